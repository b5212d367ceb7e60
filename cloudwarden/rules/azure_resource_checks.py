"""
Azure Resource Configuration Rules
==================================

Single-attribute checks over Azure inventories: each looks at one field of
every resource returned by a listing call.
"""

from __future__ import annotations

from typing import Any, Dict, List

from cloudwarden.core.base_rule import RegionalRule, ScopeContext
from cloudwarden.core.results import Status


class LoadBalancerHasTags(RegionalRule):
    rule_id = "lb_has_tags"
    provider = "azure"
    title = "Load Balancer Has Tags"
    category = "Load Balancer"
    domain = "Availability"
    description = "Ensures that Azure Load Balancers have tags associated."
    more_info = (
        "Tags help you to group resources together that are related to or "
        "associated with each other."
    )
    link = "https://learn.microsoft.com/en-us/azure/azure-resource-manager/management/tag-resources"
    recommended_action = "Modify affected load balancers and add tags."
    apis = ["loadBalancers:listAll"]

    service = "loadBalancers"
    operation = "listAll"
    query_label = "Load Balancers"
    empty_message = "No existing Load Balancers found"

    def evaluate(self, ctx: ScopeContext, resources: List[Dict[str, Any]]) -> None:
        for lb in resources:
            if not lb.get("id"):
                continue
            if lb.get("tags"):
                ctx.add(Status.OK, "Load Balancer has tags associated", lb["id"])
            else:
                ctx.add(Status.FAIL, "Load Balancer does not have tags associated", lb["id"])


class PostgresqlPrivateEndpoints(RegionalRule):
    rule_id = "postgresql_private_endpoints"
    provider = "azure"
    title = "PostgreSQL Server Private Endpoints Configured"
    category = "PostgreSQL Server"
    domain = "Databases"
    description = "Ensures that PostgreSQL Servers are accessible only through private endpoints"
    more_info = (
        "Azure Private Endpoint is a network interface that connects you privately "
        "and securely to a service powered by Azure Private Link."
    )
    link = "https://learn.microsoft.com/en-us/azure/private-link/private-link-overview"
    recommended_action = (
        "Ensure that Private Endpoints are configured properly and Public Network "
        "Access is disabled for PostgreSQL Server"
    )
    apis = ["servers:listPostgres"]

    service = "servers"
    operation = "listPostgres"
    query_label = "PostgreSQL servers"
    empty_message = "No PostgreSQL servers found"

    def evaluate(self, ctx: ScopeContext, resources: List[Dict[str, Any]]) -> None:
        for server in resources:
            if server.get("privateEndpointConnections"):
                ctx.add(
                    Status.OK,
                    "Private Endpoints are configured for the PostgreSQL Server",
                    server.get("id"),
                )
            else:
                ctx.add(
                    Status.FAIL,
                    "Private Endpoints are not configured for the PostgreSQL Server",
                    server.get("id"),
                )


class AutoOsUpgradesEnabled(RegionalRule):
    rule_id = "vmss_auto_os_upgrades_enabled"
    provider = "azure"
    title = "Automatic OS Upgrades Enabled"
    category = "Virtual Machine Scale Set"
    domain = "Compute"
    description = (
        "Ensure that automatic operating system (OS) upgrades are enabled for "
        "Microsoft Azure virtual machine scale sets."
    )
    more_info = (
        "Enabling automatic OS image upgrades on your scale set helps ease update "
        "management by safely and automatically upgrading the OS disk for all "
        "instances in the scale set."
    )
    link = "https://learn.microsoft.com/en-us/azure/virtual-machine-scale-sets/virtual-machine-scale-sets-automatic-upgrade"
    recommended_action = "Enable automatic OS upgrades under operating system settings"
    apis = ["virtualMachineScaleSets:listAll"]

    service = "virtualMachineScaleSets"
    operation = "listAll"
    query_label = "Virtual Machine Scale Sets"
    empty_message = "No existing Virtual Machine Scale Sets found"

    def evaluate(self, ctx: ScopeContext, resources: List[Dict[str, Any]]) -> None:
        for scale_set in resources:
            policy = (scale_set.get("upgradePolicy") or {}).get("automaticOSUpgradePolicy") or {}
            if policy.get("enableAutomaticOSUpgrade"):
                ctx.add(
                    Status.OK,
                    "Automatic OS upgrades feature is enabled for virtual machine scale set",
                    scale_set.get("id"),
                )
            else:
                ctx.add(
                    Status.FAIL,
                    "Automatic OS upgrades feature is not enabled for virtual machine scale set",
                    scale_set.get("id"),
                )
