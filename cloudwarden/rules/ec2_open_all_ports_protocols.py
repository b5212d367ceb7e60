"""
EC2 Open All Ports / Protocols Rule
===================================

Flags security groups with an inbound permission that opens every port or
every protocol to ``0.0.0.0/0`` or ``::/0``.

Options
-------
ec2_skip_unused_groups
    Report flagged groups that no resource has attached as WARN instead of FAIL.
check_network_interface
    Report a flagged group as FAIL only when an ENI attached to it has a
    public IP; otherwise it is OK ("only exposed internally").

The two options are alternatives. When both are enabled the unused-group
check wins.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List

from cloudwarden.core.arn import resource_arn
from cloudwarden.core.base_rule import RegionalRule, ScopeContext
from cloudwarden.core.results import Status
from cloudwarden.core.settings import BOOLEAN_REGEX, SettingSpec, as_bool
from cloudwarden.network.exposure import (
    Boundary,
    ExposureMode,
    classify_boundary,
    find_exposures,
)
from cloudwarden.network.normalize import from_aws_security_group
from cloudwarden.network.usage import (
    build_usage_index,
    has_public_interface,
    usage_index_available,
)

# Module logger
logger = logging.getLogger(__name__)


class OpenAllPortsProtocols(RegionalRule):
    """Security groups must not open all ports or protocols to the public."""

    rule_id = "ec2_open_all_ports_protocols"
    provider = "aws"
    title = "Open All Ports Protocols"
    category = "EC2"
    domain = "Compute"
    description = "Determine if security group has all ports or protocols open to the public"
    more_info = (
        "Security groups should be created on a per-service basis and avoid "
        "allowing all ports or protocols."
    )
    link = "http://docs.aws.amazon.com/AWSEC2/latest/UserGuide/authorizing-access-to-an-instance.html"
    recommended_action = "Modify the security group to specify a specific port and protocol to allow."
    apis = [
        "EC2:describeSecurityGroups",
        "EC2:describeNetworkInterfaces",
        "EC2:describeInstances",
        "Lambda:listFunctions",
        "RDS:describeDBInstances",
        "ELB:describeLoadBalancers",
        "ELBv2:describeLoadBalancers",
    ]
    settings = {
        "ec2_skip_unused_groups": SettingSpec(
            name="EC2 Skip Unused Groups",
            description=(
                "When set to true, skip checking ports for unused security groups "
                "and produce a WARN result"
            ),
            regex=BOOLEAN_REGEX,
            default="false",
        ),
        "check_network_interface": SettingSpec(
            name="Check Associated ENI",
            description=(
                "When set to true, checks elastic network interfaces associated to the "
                "security group and returns FAIL if both the security group and ENI "
                "are publicly exposed"
            ),
            regex=BOOLEAN_REGEX,
            default="false",
        ),
    }

    service = "ec2"
    operation = "describeSecurityGroups"
    query_label = "security groups"
    empty_message = "No security groups present"

    def _mode(self, config: Dict[str, str]) -> ExposureMode:
        if as_bool(config["ec2_skip_unused_groups"]):
            return ExposureMode.SKIP_UNUSED
        if as_bool(config["check_network_interface"]):
            return ExposureMode.CHECK_INTERFACE
        return ExposureMode.DEFAULT

    def evaluate(self, ctx: ScopeContext, resources: List[Dict[str, Any]]) -> None:
        mode = self._mode(ctx.config)
        usage_index = None
        interfaces: List[Dict[str, Any]] = []
        interface_error = None

        if mode is not ExposureMode.DEFAULT:
            enis = ctx.lookup("ec2", "describeNetworkInterfaces")
            if enis is None:
                # No interface inventory for this region, nothing to cross-check with
                mode = ExposureMode.DEFAULT
            elif not enis.ok:
                interface_error = enis.error_message
            else:
                interfaces = enis.data

        if mode is ExposureMode.SKIP_UNUSED:
            if interface_error:
                ctx.add(
                    Status.DEPENDENCY_ERROR,
                    f"Unable to query for network interfaces: {interface_error}",
                )
            index = build_usage_index(ctx.cache, ctx.scope, ctx.source)
            if usage_index_available(ctx.cache, ctx.scope):
                usage_index = index

        for group in resources:
            group_id = group.get("GroupId")
            if not group_id:
                continue

            resource = resource_arn(
                ctx.partition,
                "ec2",
                ctx.scope,
                group.get("OwnerId"),
                "security-group",
                group_id,
            )
            boundary = Boundary(group_id, group.get("GroupName", ""), ctx.scope, resource)
            descriptors = find_exposures(from_aws_security_group(group))

            if descriptors and mode is ExposureMode.CHECK_INTERFACE and interface_error:
                ctx.add(
                    Status.DEPENDENCY_ERROR,
                    f"Unable to query for network interfaces: {interface_error}",
                    resource,
                )
                continue

            public = mode is ExposureMode.CHECK_INTERFACE and has_public_interface(
                interfaces, group_id
            )
            ctx.results.append(
                classify_boundary(boundary, descriptors, mode, usage_index, public)
            )
