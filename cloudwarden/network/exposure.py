"""
Exposure Analyzer Module
========================

Decides whether the ingress rules of one security boundary (an AWS
security group or an Azure network security group) expose it to the whole
internet.

The analyzer only ever sees provider-agnostic :class:`IngressRule`
records; see :mod:`cloudwarden.network.normalize` for the projection of
provider payloads.

Detection Logic
---------------
Only an exact unrestricted block counts as public: ``0.0.0.0/0`` for IPv4
and ``::/0`` for IPv6. A wide but narrower block such as ``0.0.0.0/1`` is
not reported.

For every public block a rule is reachable from:

1. **All ports** - the lower bound is unset (or 0) and the upper bound is
   unset or 65535.
2. **All protocols** - the protocol is the ANY wildcard.

Both tests are independent, and IPv4 and IPv6 are reported separately.

Classes
-------
Protocol
    Transport protocol of a normalized rule.
IngressRule
    Normalized inbound allow rule.
OpenPort
    A specific port reachable from a public block.
ExposureMode
    How a flagged boundary is cross-checked against live usage.
Boundary
    Identity of the security boundary being classified.

Example
-------
>>> rule = IngressRule(Protocol.ANY, ipv4_ranges={"0.0.0.0/0"})
>>> sorted(find_exposures([rule]))
['all ports open to 0.0.0.0/0', 'all protocols open to 0.0.0.0/0']
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import FrozenSet, Iterable, Iterator, List, Mapping, Optional, Set

from cloudwarden.core.results import Finding, Status

# Module logger
logger = logging.getLogger(__name__)

UNRESTRICTED_IPV4 = "0.0.0.0/0"
UNRESTRICTED_IPV6 = "::/0"
MAX_PORT = 65535


class Protocol(str, Enum):
    """Transport protocol of a normalized ingress rule."""

    TCP = "TCP"
    UDP = "UDP"
    ANY = "ANY"


@dataclass(frozen=True)
class IngressRule:
    """
    Inbound allow rule in provider-neutral form.

    Parameters
    ----------
    protocol : Protocol
        TCP, UDP or the ANY wildcard.
    from_port, to_port : int, optional
        Inclusive port bounds. ``None`` means unbounded on that side.
    ipv4_ranges, ipv6_ranges : iterable of str
        Source CIDR blocks.
    name : str, optional
        Provider rule name, used in messages when available.
    """

    protocol: Protocol
    from_port: Optional[int] = None
    to_port: Optional[int] = None
    ipv4_ranges: FrozenSet[str] = field(default_factory=frozenset)
    ipv6_ranges: FrozenSet[str] = field(default_factory=frozenset)
    name: Optional[str] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "protocol", Protocol(self.protocol))
        object.__setattr__(self, "ipv4_ranges", frozenset(self.ipv4_ranges))
        object.__setattr__(self, "ipv6_ranges", frozenset(self.ipv6_ranges))

    @property
    def all_ports(self) -> bool:
        """True when the rule spans the full port range."""
        return not self.from_port and (self.to_port is None or self.to_port == MAX_PORT)

    @property
    def all_protocols(self) -> bool:
        return self.protocol is Protocol.ANY

    def public_blocks(self) -> Iterator[str]:
        """Yield the unrestricted blocks this rule admits, IPv4 first."""
        if UNRESTRICTED_IPV4 in self.ipv4_ranges:
            yield UNRESTRICTED_IPV4
        if UNRESTRICTED_IPV6 in self.ipv6_ranges:
            yield UNRESTRICTED_IPV6

    def covers_port(self, port: int) -> bool:
        low = self.from_port if self.from_port is not None else 0
        high = self.to_port if self.to_port is not None else MAX_PORT
        return low <= port <= high

    def matches_protocol(self, protocol: Protocol) -> bool:
        return self.protocol is Protocol.ANY or self.protocol is Protocol(protocol)


def find_exposures(rules: Iterable[IngressRule]) -> List[str]:
    """
    Describe the public over-exposure of one boundary.

    Parameters
    ----------
    rules : iterable of IngressRule
        All ingress rules of the boundary.

    Returns
    -------
    list of str
        Distinct descriptors in the order first found, e.g.
        ``"all ports open to 0.0.0.0/0"``. Empty when compliant.
    """
    descriptors: List[str] = []
    for rule in rules:
        for block in rule.public_blocks():
            if rule.all_ports:
                _append_once(descriptors, f"all ports open to {block}")
            if rule.all_protocols:
                _append_once(descriptors, f"all protocols open to {block}")
    return descriptors


def _append_once(items: List[str], item: str) -> None:
    if item not in items:
        items.append(item)


@dataclass(frozen=True)
class OpenPort:
    """A specific port reachable from an unrestricted block."""

    protocol: Protocol
    port: int
    block: str
    rule_name: Optional[str] = None

    def describe(self) -> str:
        text = f"{self.protocol.value}:{self.port} open to {self.block}"
        if self.rule_name:
            text += f" by rule {self.rule_name}"
        return text


def find_open_ports(
    rules: Iterable[IngressRule],
    ports: Mapping[str, Iterable[int]],
) -> List[OpenPort]:
    """
    Find which of the given ports are reachable from the internet.

    Parameters
    ----------
    rules : iterable of IngressRule
        Ingress rules of one boundary.
    ports : mapping
        Protocol name (``"TCP"``/``"UDP"``) to the ports of interest,
        e.g. ``{"TCP": [11211], "UDP": [11211]}``.

    Returns
    -------
    list of OpenPort
        Distinct matches in discovery order.
    """
    found: List[OpenPort] = []
    for rule in rules:
        for block in rule.public_blocks():
            for protocol_name, port_list in ports.items():
                protocol = Protocol(protocol_name.upper())
                if not rule.matches_protocol(protocol):
                    continue
                for port in port_list:
                    if rule.covers_port(port):
                        match = OpenPort(protocol, port, block, rule.name)
                        if match not in found:
                            found.append(match)
    return found


# =============================================================================
# Boundary Classification
# =============================================================================


class ExposureMode(Enum):
    """
    Cross-check applied to a flagged boundary.

    The two checks are alternatives; a rule picks at most one.
    """

    DEFAULT = "default"
    SKIP_UNUSED = "skip_unused"
    CHECK_INTERFACE = "check_interface"


@dataclass(frozen=True)
class Boundary:
    """Identity of a security group being classified."""

    group_id: str
    name: str
    region: str
    resource: str


def classify_boundary(
    boundary: Boundary,
    descriptors: List[str],
    mode: ExposureMode = ExposureMode.DEFAULT,
    usage_index: Optional[Set[str]] = None,
    public_interface: bool = False,
) -> Finding:
    """
    Turn the exposure descriptors of a boundary into a finding.

    Parameters
    ----------
    boundary : Boundary
        The security group.
    descriptors : list of str
        Output of :func:`find_exposures`.
    mode : ExposureMode
        Cross-check applied when descriptors are present.
    usage_index : set of str, optional
        Group ids in use; ``None`` when usage data is unavailable, in which
        case no downgrade happens.
    public_interface : bool
        Whether an interface attached to the group has a public IP. Only
        consulted in CHECK_INTERFACE mode.

    Returns
    -------
    Finding
        OK when compliant, WARN when flagged but unused, OK when flagged
        but only exposed internally, FAIL otherwise.
    """
    label = f"{boundary.group_id} ({boundary.name})"

    if not descriptors:
        return Finding(
            Status.OK,
            f"Security group: {label} does not have all ports or protocols open to the public",
            boundary.region,
            boundary.resource,
        )

    exposure = f"Security group: {label} has {' and '.join(descriptors)}"

    if mode is ExposureMode.SKIP_UNUSED and usage_index is not None:
        if boundary.group_id not in usage_index:
            return Finding(
                Status.WARN,
                f"Security group: {boundary.group_id} is not in use",
                boundary.region,
                boundary.resource,
            )

    if mode is ExposureMode.CHECK_INTERFACE and not public_interface:
        return Finding(
            Status.OK,
            f"{exposure} but is only exposed internally",
            boundary.region,
            boundary.resource,
        )

    return Finding(Status.FAIL, exposure, boundary.region, boundary.resource)
