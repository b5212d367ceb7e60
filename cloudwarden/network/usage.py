"""
Resource Usage Index Module
===========================

Derives which security groups are attached to a resource in a region, from
inventory already present in the source cache.

Detection Logic
---------------
A security group is considered "in use" if any of the following has it
attached:

1. **EC2 Instances** - ``ec2/describeInstances``
2. **Network Interfaces (ENIs)** - ``ec2/describeNetworkInterfaces``, which
   also covers ECS tasks, ElastiCache, VPC endpoints and other services
   that attach through an ENI
3. **Lambda Functions** - ``lambda/listFunctions`` VPC configuration
4. **RDS Instances** - ``rds/describeDBInstances``
5. **Classic Load Balancers** - ``elb/describeLoadBalancers``
6. **Application/Network Load Balancers** - ``elbv2/describeLoadBalancers``

A group named only in another group's rules (``UserIdGroupPairs``) is not
attached to anything and does not count, and neither does a group that
references itself.

Each source is read independently: a source that is absent or errored is
skipped, and the others still contribute.

Notes
-----
The index is an empty set when no attachment data exists. It cannot tell
"nothing uses this group" from "nothing was collected"; callers ask
:func:`usage_index_available` for that.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Set

from cloudwarden.core.cache import CacheEntry, SourceCache, SourceTrace, add_source

# Module logger
logger = logging.getLogger(__name__)


def _entry(
    cache: SourceCache,
    source: Optional[SourceTrace],
    service: str,
    operation: str,
    region: str,
) -> Optional[CacheEntry]:
    key = (service, operation, region)
    if source is not None:
        return add_source(cache, source, key)
    return cache.lookup(*key)


# =============================================================================
# Per-source extraction
# =============================================================================


def _sgs_from_instances(data: List[Dict[str, Any]]) -> Set[str]:
    sg_ids: Set[str] = set()
    for item in data:
        # Reservations wrap instances; flattened instance lists are accepted too
        instances = item.get("Instances", [item])
        for instance in instances:
            for sg in instance.get("SecurityGroups", []):
                if "GroupId" in sg:
                    sg_ids.add(sg["GroupId"])
    return sg_ids


def _sgs_from_enis(data: List[Dict[str, Any]]) -> Set[str]:
    sg_ids: Set[str] = set()
    for eni in data:
        for sg in eni.get("Groups", []):
            if "GroupId" in sg:
                sg_ids.add(sg["GroupId"])
    return sg_ids


def _sgs_from_lambda(data: List[Dict[str, Any]]) -> Set[str]:
    sg_ids: Set[str] = set()
    for function in data:
        vpc_config = function.get("VpcConfig") or {}
        sg_ids.update(vpc_config.get("SecurityGroupIds", []))
    return sg_ids


def _sgs_from_rds(data: List[Dict[str, Any]]) -> Set[str]:
    sg_ids: Set[str] = set()
    for db_instance in data:
        for sg in db_instance.get("VpcSecurityGroups", []):
            if "VpcSecurityGroupId" in sg:
                sg_ids.add(sg["VpcSecurityGroupId"])
    return sg_ids


def _sgs_from_load_balancers(data: List[Dict[str, Any]]) -> Set[str]:
    sg_ids: Set[str] = set()
    for lb in data:
        sg_ids.update(lb.get("SecurityGroups", []))
    return sg_ids


USAGE_SOURCES: List[tuple] = [
    ("EC2 instances", "ec2", "describeInstances", _sgs_from_instances),
    ("Network interfaces", "ec2", "describeNetworkInterfaces", _sgs_from_enis),
    ("Lambda functions", "lambda", "listFunctions", _sgs_from_lambda),
    ("RDS instances", "rds", "describeDBInstances", _sgs_from_rds),
    ("Classic ELBs", "elb", "describeLoadBalancers", _sgs_from_load_balancers),
    ("ALB/NLB", "elbv2", "describeLoadBalancers", _sgs_from_load_balancers),
]


def build_usage_index(
    cache: SourceCache,
    region: str,
    source: Optional[SourceTrace] = None,
) -> Set[str]:
    """
    Collect the ids of security groups attached to a resource in ``region``.

    Parameters
    ----------
    cache : SourceCache
        Frozen source cache.
    region : str
        Region to index.
    source : SourceTrace, optional
        Trace to record consulted entries into.

    Returns
    -------
    set of str
        Security group ids in use. Empty when nothing was collected.
    """
    used_sgs: Set[str] = set()

    for source_name, service, operation, extract in USAGE_SOURCES:
        entry = _entry(cache, source, service, operation, region)
        if entry is None:
            continue
        if not entry.ok:
            logger.warning(
                f"Skipping {source_name} for usage in {region}: {entry.error_message}"
            )
            continue
        sgs = extract(entry.data)
        used_sgs.update(sgs)
        logger.debug(f"Found {len(sgs)} SGs from {source_name} in {region}")

    return used_sgs


def usage_index_available(cache: SourceCache, region: str) -> bool:
    """True when network interface inventory was collected without error."""
    entry = cache.lookup("ec2", "describeNetworkInterfaces", region)
    return entry is not None and entry.ok


# =============================================================================
# Interface cross-check
# =============================================================================


def attached_interfaces(
    interfaces: List[Dict[str, Any]],
    group_id: str,
) -> List[Dict[str, Any]]:
    """Network interfaces that have ``group_id`` attached."""
    return [
        eni
        for eni in interfaces
        if any(sg.get("GroupId") == group_id for sg in eni.get("Groups", []))
    ]


def has_public_interface(interfaces: List[Dict[str, Any]], group_id: str) -> bool:
    """
    True when an interface attached to ``group_id`` has a public IP
    (an ``Association.PublicIp``).
    """
    return any(_has_public_ip(eni) for eni in attached_interfaces(interfaces, group_id))


def _has_public_ip(eni: Dict[str, Any]) -> bool:
    association = eni.get("Association") or {}
    return bool(association.get("PublicIp"))
