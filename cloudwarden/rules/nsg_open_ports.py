"""
Azure NSG Open Port Rules
=========================

Rules flagging network security groups that expose a sensitive service
port to the internet.

Each concrete rule only names the service and its ports; the shared
:class:`NsgOpenPortsRule` normalizes the NSG rules and asks the exposure
analyzer which of those ports an unrestricted source can reach.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List

from cloudwarden.core.base_rule import RegionalRule, ScopeContext
from cloudwarden.core.results import Status
from cloudwarden.network.exposure import find_open_ports
from cloudwarden.network.normalize import from_azure_security_group

# Module logger
logger = logging.getLogger(__name__)

NSG_LINK = "https://learn.microsoft.com/en-us/azure/virtual-network/manage-network-security-group"


class NsgOpenPortsRule(RegionalRule):
    """
    Base class for "service port open to the public" NSG rules.

    Attributes
    ----------
    service_name : str
        Human name of the protected service, used in messages.
    ports : dict
        Protocol name to list of ports, e.g. ``{"TCP": [9042]}``.
    """

    provider = "azure"
    category = "Network Security Groups"
    domain = "Network Access Control"
    link = NSG_LINK
    apis = ["networkSecurityGroups:listAll"]

    service = "networkSecurityGroups"
    operation = "listAll"
    query_label = "Network Security Groups"
    empty_message = "No security groups found"

    service_name: str = ""
    ports: Dict[str, List[int]] = {}

    def evaluate(self, ctx: ScopeContext, resources: List[Dict[str, Any]]) -> None:
        for group in resources:
            name = group.get("name") or group.get("id", "")
            open_ports = find_open_ports(from_azure_security_group(group), self.ports)

            if open_ports:
                details = ", ".join(port.describe() for port in open_ports)
                ctx.add(
                    Status.FAIL,
                    f"Security group: {name} has {self.service_name} open to the public: {details}",
                    group.get("id"),
                )
            else:
                ctx.add(
                    Status.OK,
                    f"Security group: {name} does not have {self.service_name} open to the public",
                    group.get("id"),
                )


class OpenMemcached(NsgOpenPortsRule):
    rule_id = "nsg_open_memcached"
    title = "Open Memcached"
    description = "Determine if TCP or UDP port 11211 for Memcached is open to the public"
    more_info = (
        "While some ports such as HTTP and HTTPS are required to be open to the public "
        "to function properly, more sensitive services such as Memcached should be "
        "restricted to known IP addresses."
    )
    recommended_action = "Restrict TCP and UDP port 11211 to known IP addresses"

    service_name = "Memcached"
    ports = {"TCP": [11211], "UDP": [11211]}


class OpenCassandraClient(NsgOpenPortsRule):
    rule_id = "nsg_open_cassandra_client"
    title = "Open Cassandra Client"
    description = "Determine if TCP port 9042 for Cassandra Client is open to the public"
    more_info = (
        "While some ports such as HTTP and HTTPS are required to be open to the public "
        "to function properly, more sensitive services such as Cassandra Client should "
        "be restricted to known IP addresses."
    )
    recommended_action = "Restrict TCP port 9042 to known IP addresses."

    service_name = "Cassandra Client"
    ports = {"TCP": [9042]}
