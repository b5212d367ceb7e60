"""
Ingress Normalization Module
============================

Projects provider-specific firewall rules into :class:`IngressRule`.

AWS
---
A security group ``IpPermissions`` entry carries ``IpProtocol``
(``tcp``/``udp``/``-1`` or a protocol number), optional ``FromPort`` and
``ToPort``, and ``IpRanges``/``Ipv6Ranges`` source lists. One permission
becomes one rule.

Azure
-----
An NSG security rule carries ``protocol`` (``Tcp``/``Udp``/``*``),
``access``, ``direction``, one or more destination port ranges and one or
more source prefixes. Only inbound ``Allow`` rules are kept; each
destination port range becomes its own rule. Service tags that mean
"anywhere" (``*``, ``Internet``, ``Any``) map to both unrestricted blocks.

Rules using other protocols (ICMP, ESP, AH, ...) cannot open TCP/UDP ports
and are dropped.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List, Optional, Set, Tuple

from cloudwarden.network.exposure import (
    UNRESTRICTED_IPV4,
    UNRESTRICTED_IPV6,
    IngressRule,
    Protocol,
)

# Module logger
logger = logging.getLogger(__name__)

AWS_PROTOCOLS = {
    "-1": Protocol.ANY,
    "all": Protocol.ANY,
    "tcp": Protocol.TCP,
    "6": Protocol.TCP,
    "udp": Protocol.UDP,
    "17": Protocol.UDP,
}

AZURE_PROTOCOLS = {
    "*": Protocol.ANY,
    "tcp": Protocol.TCP,
    "udp": Protocol.UDP,
}

# Azure source prefixes that admit every address
AZURE_ANYWHERE = {"*", "internet", "any", "0.0.0.0", "/0"}


# =============================================================================
# AWS
# =============================================================================


def from_aws_permission(permission: Dict[str, Any]) -> Optional[IngressRule]:
    """
    Normalize one ``IpPermissions`` entry.

    Returns
    -------
    IngressRule or None
        ``None`` for protocols other than TCP, UDP or all.
    """
    raw_protocol = str(permission.get("IpProtocol", "")).lower()
    protocol = AWS_PROTOCOLS.get(raw_protocol)
    if protocol is None:
        logger.debug(f"Skipping permission with protocol {raw_protocol!r}")
        return None

    return IngressRule(
        protocol=protocol,
        from_port=permission.get("FromPort"),
        to_port=permission.get("ToPort"),
        ipv4_ranges={r["CidrIp"] for r in permission.get("IpRanges", []) if "CidrIp" in r},
        ipv6_ranges={
            r["CidrIpv6"] for r in permission.get("Ipv6Ranges", []) if "CidrIpv6" in r
        },
    )


def from_aws_security_group(group: Dict[str, Any]) -> List[IngressRule]:
    """Normalize every inbound permission of a security group."""
    rules = []
    for permission in group.get("IpPermissions") or []:
        rule = from_aws_permission(permission)
        if rule is not None:
            rules.append(rule)
    return rules


# =============================================================================
# Azure
# =============================================================================


def _azure_fields(rule: Dict[str, Any]) -> Dict[str, Any]:
    # The REST API nests rule fields under "properties"; the SDKs flatten them.
    properties = rule.get("properties")
    if isinstance(properties, dict):
        merged = dict(properties)
        merged.setdefault("name", rule.get("name"))
        return merged
    return rule


def _as_list(single: Any, many: Any) -> List[str]:
    values = []
    if single:
        values.append(str(single))
    for value in many or []:
        if value:
            values.append(str(value))
    return values


def parse_port_range(value: str) -> Tuple[Optional[int], Optional[int]]:
    """
    Parse an Azure port range: ``"*"``, ``"22"`` or ``"1000-2000"``.

    Raises
    ------
    ValueError
        If the range is not numeric.
    """
    value = value.strip()
    if value == "*":
        return (None, None)
    if "-" in value:
        low, high = value.split("-", 1)
        return (int(low), int(high))
    port = int(value)
    return (port, port)


def _split_sources(prefixes: Iterable[str]) -> Tuple[Set[str], Set[str]]:
    ipv4: Set[str] = set()
    ipv6: Set[str] = set()
    for prefix in prefixes:
        lowered = prefix.strip().lower()
        if lowered in AZURE_ANYWHERE:
            ipv4.add(UNRESTRICTED_IPV4)
            ipv6.add(UNRESTRICTED_IPV6)
        elif ":" in lowered:
            ipv6.add(lowered)
        else:
            ipv4.add(lowered)
    return ipv4, ipv6


def from_azure_security_rule(rule: Dict[str, Any]) -> List[IngressRule]:
    """
    Normalize one NSG security rule.

    Returns
    -------
    list of IngressRule
        One rule per destination port range; empty for outbound, deny, or
        non-TCP/UDP rules.
    """
    fields = _azure_fields(rule)

    if str(fields.get("direction", "")).lower() != "inbound":
        return []
    if str(fields.get("access", "")).lower() != "allow":
        return []

    protocol = AZURE_PROTOCOLS.get(str(fields.get("protocol", "")).lower())
    if protocol is None:
        return []

    ipv4, ipv6 = _split_sources(
        _as_list(fields.get("sourceAddressPrefix"), fields.get("sourceAddressPrefixes"))
    )
    port_ranges = _as_list(
        fields.get("destinationPortRange"), fields.get("destinationPortRanges")
    )

    rules = []
    for port_range in port_ranges:
        try:
            from_port, to_port = parse_port_range(port_range)
        except ValueError:
            logger.warning(
                f"Ignoring unparseable port range {port_range!r} in rule {fields.get('name')}"
            )
            continue
        rules.append(
            IngressRule(
                protocol=protocol,
                from_port=from_port,
                to_port=to_port,
                ipv4_ranges=ipv4,
                ipv6_ranges=ipv6,
                name=fields.get("name"),
            )
        )
    return rules


def from_azure_security_group(group: Dict[str, Any]) -> List[IngressRule]:
    """Normalize the custom and default rules of a network security group."""
    rules: List[IngressRule] = []
    for key in ("securityRules", "defaultSecurityRules"):
        for security_rule in group.get(key) or []:
            rules.extend(from_azure_security_rule(security_rule))
    return rules
