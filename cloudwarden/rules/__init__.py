"""
Rule Catalog
============

Concrete rules evaluated by Cloud-Warden.

Available Rules
---------------
ec2_open_all_ports_protocols
    Security groups opening every port or protocol to the internet (AWS).
cloudfront_waf_enabled
    CloudFront distributions without a WAF web ACL (AWS).
nsg_open_memcached / nsg_open_cassandra_client
    NSGs exposing Memcached or the Cassandra client port (Azure).
lb_has_tags
    Load balancers without tags (Azure).
postgresql_private_endpoints
    PostgreSQL servers without private endpoints (Azure).
vmss_auto_os_upgrades_enabled
    Scale sets without automatic OS upgrades (Azure).

Example
-------
>>> from cloudwarden.rules import get_rule
>>>
>>> rule = get_rule("ec2_open_all_ports_protocols")
>>> result = rule.run(cache, {"ec2_skip_unused_groups": "true"})

Adding New Rules
----------------
1. Create a module in this package with a class extending
   :class:`~cloudwarden.core.base_rule.RegionalRule` (or ``BaseRule``)
2. Set ``rule_id``, the descriptive attributes and ``apis``
3. Add the class to ``RULE_CLASSES`` below
"""

from __future__ import annotations

from typing import Dict, List, Optional, Type

from cloudwarden.core.base_rule import BaseRule
from cloudwarden.core.exceptions import UnknownRuleError
from cloudwarden.core.region_manager import RegionalDispatcher
from cloudwarden.rules.azure_resource_checks import (
    AutoOsUpgradesEnabled,
    LoadBalancerHasTags,
    PostgresqlPrivateEndpoints,
)
from cloudwarden.rules.cloudfront_waf_enabled import CloudFrontWafEnabled
from cloudwarden.rules.ec2_open_all_ports_protocols import OpenAllPortsProtocols
from cloudwarden.rules.nsg_open_ports import OpenCassandraClient, OpenMemcached

RULE_CLASSES: Dict[str, Type[BaseRule]] = {
    cls.rule_id: cls
    for cls in (
        OpenAllPortsProtocols,
        CloudFrontWafEnabled,
        OpenMemcached,
        OpenCassandraClient,
        LoadBalancerHasTags,
        PostgresqlPrivateEndpoints,
        AutoOsUpgradesEnabled,
    )
}


def get_rule(rule_id: str, dispatcher: Optional[RegionalDispatcher] = None) -> BaseRule:
    """
    Instantiate a rule by id.

    Raises
    ------
    UnknownRuleError
        If ``rule_id`` is not in the catalog.
    """
    try:
        rule_class = RULE_CLASSES[rule_id]
    except KeyError:
        raise UnknownRuleError(
            f"Unknown rule '{rule_id}'",
            rule_id=rule_id,
            details={"available": sorted(RULE_CLASSES)},
        )
    return rule_class(dispatcher)


def all_rules(
    provider: Optional[str] = None,
    dispatcher: Optional[RegionalDispatcher] = None,
) -> List[BaseRule]:
    """Instantiate every rule, optionally only those of one provider."""
    return [
        cls(dispatcher)
        for cls in RULE_CLASSES.values()
        if provider is None or cls.provider == provider
    ]


__all__ = [
    "RULE_CLASSES",
    "get_rule",
    "all_rules",
    "AutoOsUpgradesEnabled",
    "CloudFrontWafEnabled",
    "LoadBalancerHasTags",
    "OpenAllPortsProtocols",
    "OpenCassandraClient",
    "OpenMemcached",
    "PostgresqlPrivateEndpoints",
]
