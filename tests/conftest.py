"""
Pytest configuration and shared fixtures for testing.
"""

import os

import boto3
import pytest
from moto import mock_aws

from cloudwarden.core.aws_client import AWSClient
from cloudwarden.core.cache import SourceCache

REGION = "us-east-1"
ACCOUNT = "123456789012"


def open_group(group_id, name="open-sg", protocol="-1", from_port=None, to_port=None,
               ipv4=("0.0.0.0/0",), ipv6=()):
    """Build a describeSecurityGroups item with a single inbound permission."""
    permission = {
        "IpProtocol": protocol,
        "IpRanges": [{"CidrIp": cidr} for cidr in ipv4],
        "Ipv6Ranges": [{"CidrIpv6": cidr} for cidr in ipv6],
        "UserIdGroupPairs": [],
    }
    if from_port is not None:
        permission["FromPort"] = from_port
    if to_port is not None:
        permission["ToPort"] = to_port
    return {
        "GroupId": group_id,
        "GroupName": name,
        "OwnerId": ACCOUNT,
        "IpPermissions": [permission],
        "IpPermissionsEgress": [],
    }


def closed_group(group_id, name="web-sg"):
    """Build a describeSecurityGroups item allowing only HTTPS from the VPC."""
    return open_group(
        group_id, name, protocol="tcp", from_port=443, to_port=443, ipv4=("10.0.0.0/16",)
    )


def interface(eni_id, group_ids, public_ip=None):
    """Build a describeNetworkInterfaces item."""
    eni = {
        "NetworkInterfaceId": eni_id,
        "Groups": [{"GroupId": gid, "GroupName": gid} for gid in group_ids],
    }
    if public_ip:
        eni["Association"] = {"PublicIp": public_ip}
    return eni


@pytest.fixture
def region_settings():
    """Settings limiting AWS rules to the test region."""
    return {"regions": [REGION]}


@pytest.fixture
def make_cache():
    """Factory building a frozen cache from ``{(service, op, scope): entry}``."""

    def _make(entries, freeze=True):
        cache = SourceCache()
        for (service, operation, scope), entry in entries.items():
            cache.put(service, operation, scope, **entry)
        if freeze:
            cache.freeze()
        return cache

    return _make


@pytest.fixture
def aws_credentials():
    """Mock AWS credentials for moto."""
    os.environ["AWS_ACCESS_KEY_ID"] = "testing"
    os.environ["AWS_SECRET_ACCESS_KEY"] = "testing"
    os.environ["AWS_SECURITY_TOKEN"] = "testing"
    os.environ["AWS_SESSION_TOKEN"] = "testing"
    os.environ["AWS_DEFAULT_REGION"] = REGION


@pytest.fixture
def mock_aws_environment(aws_credentials):
    """Create a mocked AWS environment."""
    with mock_aws():
        yield


@pytest.fixture
def aws_client(mock_aws_environment):
    """Create an AWSClient instance for testing."""
    return AWSClient(region=REGION)


@pytest.fixture
def ec2_client(mock_aws_environment):
    """Create a boto3 EC2 client for setting up test resources."""
    return boto3.client("ec2", region_name=REGION)


@pytest.fixture
def vpc(ec2_client):
    """Create a VPC for testing."""
    response = ec2_client.create_vpc(CidrBlock="10.0.0.0/16")
    return response["Vpc"]["VpcId"]


@pytest.fixture
def subnet(ec2_client, vpc):
    """Create a subnet for testing."""
    response = ec2_client.create_subnet(
        VpcId=vpc,
        CidrBlock="10.0.1.0/24",
        AvailabilityZone="us-east-1a",
    )
    return response["Subnet"]["SubnetId"]


@pytest.fixture
def open_security_group(ec2_client, vpc):
    """Create a security group allowing all traffic from anywhere."""
    response = ec2_client.create_security_group(
        GroupName="wide-open",
        Description="Allows everything",
        VpcId=vpc,
    )
    group_id = response["GroupId"]
    ec2_client.authorize_security_group_ingress(
        GroupId=group_id,
        IpPermissions=[{"IpProtocol": "-1", "IpRanges": [{"CidrIp": "0.0.0.0/0"}]}],
    )
    return group_id
