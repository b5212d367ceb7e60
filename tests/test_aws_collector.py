"""
Tests for the AWS collector.
"""

import boto3
from botocore.stub import Stubber

from cloudwarden.collectors.aws_collector import AWS_CALLS, AWSCollector, parse_api
from cloudwarden.core.aws_client import AWSClient
from cloudwarden.core.results import Status
from cloudwarden.rules import all_rules, get_rule

SETTINGS = {"regions": ["us-east-1"]}


class TestParseApi:
    """Tests for parse_api."""

    def test_lower_cases_service(self):
        """Test the service half is lower-cased and the operation kept."""
        assert parse_api("EC2:describeSecurityGroups") == ("ec2", "describeSecurityGroups")
        assert parse_api("Lambda:listFunctions") == ("lambda", "listFunctions")

    def test_declared_aws_apis_supported(self):
        """Test every AWS API a rule declares has a collector call."""
        for rule in all_rules(provider="aws"):
            for api in rule.apis:
                assert parse_api(api) in AWS_CALLS


class TestAWSCollector:
    """Tests for AWSCollector against moto."""

    def test_collects_security_groups(self, ec2_client, open_security_group):
        """Test security groups land in the cache under the region."""
        collector = AWSCollector(max_workers=2)

        cache = collector.collect(["EC2:describeSecurityGroups"], SETTINGS)

        entry = cache.lookup("ec2", "describeSecurityGroups", "us-east-1")
        assert entry.ok
        assert open_security_group in {g["GroupId"] for g in entry.data}
        assert cache.lookup("ec2", "describeSecurityGroups", "eu-west-1") is None

    def test_collects_network_interfaces(self, ec2_client, subnet, open_security_group):
        """Test ENIs are collected with their groups."""
        ec2_client.create_network_interface(SubnetId=subnet, Groups=[open_security_group])

        cache = AWSCollector().collect(["EC2:describeNetworkInterfaces"], SETTINGS)

        enis = cache.lookup("ec2", "describeNetworkInterfaces", "us-east-1").data
        assert any(
            g["GroupId"] == open_security_group for eni in enis for g in eni["Groups"]
        )

    def test_duplicates_and_unknown_apis(self, mock_aws_environment):
        """Test repeated APIs are collected once and unsupported ones skipped."""
        cache = AWSCollector().collect(
            ["Lambda:listFunctions", "Lambda:listFunctions", "networkSecurityGroups:listAll"],
            SETTINGS,
        )

        assert list(cache) == [("lambda", "listFunctions", "us-east-1")]
        assert cache.lookup("lambda", "listFunctions", "us-east-1").data == []

    def test_global_service_collected_once(self, mock_aws_environment):
        """Test CloudFront is collected in the default region only."""
        cache = AWSCollector().collect(["CloudFront:listDistributions"], {})
        assert cache.scopes("cloudfront", "listDistributions") == ["us-east-1"]

    def test_api_error_stored(self, aws_credentials, monkeypatch):
        """Test a failing call becomes an error entry instead of raising."""
        ec2 = boto3.client("ec2", region_name="us-east-1")
        stubber = Stubber(ec2)
        stubber.add_client_error(
            "describe_security_groups",
            service_error_code="UnauthorizedOperation",
            service_message="You are not authorized to perform this operation.",
        )
        stubber.activate()
        monkeypatch.setattr(AWSClient, "get_client", lambda self, name: ec2)

        cache = AWSCollector().collect(["EC2:describeSecurityGroups"], SETTINGS)

        entry = cache.lookup("ec2", "describeSecurityGroups", "us-east-1")
        assert not entry.ok
        assert "UnauthorizedOperation" in entry.error_message

    def test_discover_regions(self, mock_aws_environment):
        """Test enabled regions are listed."""
        regions = AWSCollector().discover_regions()
        assert "us-east-1" in regions
        assert regions == sorted(regions)


class TestCollectedUsage:
    """Tests for usage detection on freshly collected inventory."""

    SETTINGS = {**SETTINGS, "ec2_skip_unused_groups": "true"}

    def _scan(self, rule):
        cache = AWSCollector().collect(rule.apis, self.SETTINGS).freeze()
        return rule.run(cache, self.SETTINGS)

    def _finding(self, result, group_id):
        return next(f for f in result.findings if f.resource and f.resource.endswith(group_id))

    def test_rds_attached_group_in_use(self, open_security_group):
        """Test a group attached only to an RDS instance is reported FAIL."""
        boto3.client("rds", region_name="us-east-1").create_db_instance(
            DBInstanceIdentifier="orders-db",
            DBInstanceClass="db.t3.micro",
            Engine="postgres",
            AllocatedStorage=20,
            MasterUsername="admin",
            MasterUserPassword="not-a-real-password",
            VpcSecurityGroupIds=[open_security_group],
        )
        rule = get_rule("ec2_open_all_ports_protocols")

        finding = self._finding(self._scan(rule), open_security_group)

        assert finding.status == Status.FAIL

    def test_unattached_group_not_in_use(self, open_security_group):
        """Test the same group without an RDS attachment is WARN."""
        rule = get_rule("ec2_open_all_ports_protocols")

        finding = self._finding(self._scan(rule), open_security_group)

        assert finding.status == Status.WARN
        assert finding.message.endswith("is not in use")
