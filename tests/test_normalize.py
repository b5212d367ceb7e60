"""
Tests for ingress normalization.
"""

import pytest

from cloudwarden.network.exposure import Protocol, find_exposures
from cloudwarden.network.normalize import (
    from_aws_permission,
    from_aws_security_group,
    from_azure_security_group,
    from_azure_security_rule,
    parse_port_range,
)


class TestAWSNormalization:
    """Tests for AWS IpPermissions projection."""

    def test_all_traffic(self):
        """Test protocol -1 maps to ANY without ports."""
        rule = from_aws_permission(
            {"IpProtocol": "-1", "IpRanges": [{"CidrIp": "0.0.0.0/0"}], "Ipv6Ranges": []}
        )
        assert rule.protocol is Protocol.ANY
        assert rule.from_port is None
        assert rule.to_port is None
        assert rule.ipv4_ranges == {"0.0.0.0/0"}

    def test_tcp_range_with_ipv6(self):
        """Test TCP ports and IPv6 ranges are kept."""
        rule = from_aws_permission(
            {
                "IpProtocol": "tcp",
                "FromPort": 0,
                "ToPort": 65535,
                "IpRanges": [],
                "Ipv6Ranges": [{"CidrIpv6": "::/0"}],
            }
        )
        assert rule.protocol is Protocol.TCP
        assert (rule.from_port, rule.to_port) == (0, 65535)
        assert rule.ipv6_ranges == {"::/0"}

    def test_protocol_numbers(self):
        """Test numeric TCP/UDP protocols are recognised."""
        assert from_aws_permission({"IpProtocol": "6"}).protocol is Protocol.TCP
        assert from_aws_permission({"IpProtocol": "17"}).protocol is Protocol.UDP

    def test_icmp_dropped(self):
        """Test ICMP permissions are skipped."""
        assert from_aws_permission({"IpProtocol": "icmp", "FromPort": -1, "ToPort": -1}) is None

    def test_security_group(self):
        """Test every supported permission of a group is normalized."""
        group = {
            "GroupId": "sg-1",
            "IpPermissions": [
                {"IpProtocol": "tcp", "FromPort": 22, "ToPort": 22,
                 "IpRanges": [{"CidrIp": "10.0.0.0/8"}]},
                {"IpProtocol": "icmp", "FromPort": 8, "ToPort": 0, "IpRanges": []},
                {"IpProtocol": "-1", "IpRanges": [{"CidrIp": "0.0.0.0/0"}]},
            ],
        }
        rules = from_aws_security_group(group)
        assert [r.protocol for r in rules] == [Protocol.TCP, Protocol.ANY]

    def test_group_without_permissions(self):
        """Test a group with no inbound rules normalizes to nothing."""
        assert from_aws_security_group({"GroupId": "sg-1"}) == []


class TestParsePortRange:
    """Tests for parse_port_range."""

    @pytest.mark.parametrize(
        "value, expected",
        [("*", (None, None)), ("22", (22, 22)), ("1000-2000", (1000, 2000))],
    )
    def test_valid(self, value, expected):
        """Test wildcard, single and range forms."""
        assert parse_port_range(value) == expected

    def test_invalid(self):
        """Test non-numeric ranges raise ValueError."""
        with pytest.raises(ValueError):
            parse_port_range("ssh")


class TestAzureNormalization:
    """Tests for Azure NSG security rule projection."""

    def test_star_source_is_public(self):
        """Test '*' maps to both unrestricted blocks."""
        rules = from_azure_security_rule(
            {
                "name": "allow-all",
                "protocol": "*",
                "access": "Allow",
                "direction": "Inbound",
                "sourceAddressPrefix": "*",
                "destinationPortRange": "*",
            }
        )
        assert len(rules) == 1
        assert rules[0].ipv4_ranges == {"0.0.0.0/0"}
        assert rules[0].ipv6_ranges == {"::/0"}
        assert set(find_exposures(rules)) == {
            "all ports open to 0.0.0.0/0",
            "all protocols open to 0.0.0.0/0",
            "all ports open to ::/0",
            "all protocols open to ::/0",
        }

    def test_internet_tag_with_properties_wrapper(self):
        """Test the REST 'properties' shape and the Internet service tag."""
        rules = from_azure_security_rule(
            {
                "name": "memcached",
                "properties": {
                    "protocol": "Udp",
                    "access": "Allow",
                    "direction": "Inbound",
                    "sourceAddressPrefix": "Internet",
                    "destinationPortRanges": ["11211", "20000-20010"],
                },
            }
        )
        assert [(r.from_port, r.to_port) for r in rules] == [(11211, 11211), (20000, 20010)]
        assert all(r.protocol is Protocol.UDP for r in rules)
        assert all(r.name == "memcached" for r in rules)

    def test_deny_and_outbound_ignored(self):
        """Test only inbound allow rules are kept."""
        base = {"protocol": "Tcp", "sourceAddressPrefix": "*", "destinationPortRange": "22"}
        assert from_azure_security_rule({**base, "access": "Deny", "direction": "Inbound"}) == []
        assert from_azure_security_rule({**base, "access": "Allow", "direction": "Outbound"}) == []

    def test_icmp_ignored(self):
        """Test ICMP rules are dropped."""
        rule = {
            "protocol": "Icmp",
            "access": "Allow",
            "direction": "Inbound",
            "sourceAddressPrefix": "*",
            "destinationPortRange": "*",
        }
        assert from_azure_security_rule(rule) == []

    def test_unparseable_range_skipped(self):
        """Test a bad range is skipped while others are kept."""
        rules = from_azure_security_rule(
            {
                "protocol": "Tcp",
                "access": "Allow",
                "direction": "Inbound",
                "sourceAddressPrefixes": ["10.0.0.0/8", "2001:db8::/32"],
                "destinationPortRanges": ["ssh", "22"],
            }
        )
        assert len(rules) == 1
        assert rules[0].ipv4_ranges == {"10.0.0.0/8"}
        assert rules[0].ipv6_ranges == {"2001:db8::/32"}

    def test_security_group_reads_default_rules(self):
        """Test custom and default rules are both normalized."""
        group = {
            "securityRules": [
                {"protocol": "Tcp", "access": "Allow", "direction": "Inbound",
                 "sourceAddressPrefix": "*", "destinationPortRange": "9042"},
            ],
            "defaultSecurityRules": [
                {"protocol": "*", "access": "Allow", "direction": "Inbound",
                 "sourceAddressPrefix": "VirtualNetwork", "destinationPortRange": "*"},
            ],
        }
        assert len(from_azure_security_group(group)) == 2
