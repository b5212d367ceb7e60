"""
Result Model Module
===================

Standardized finding records emitted by every rule.

Classes
-------
Status
    Fixed severity domain of a finding.
Finding
    One pass/warn/fail/error verdict about a resource or a scope.
RuleResult
    Everything a single rule run produced.

Functions
---------
add_result
    Append a finding to a result list.

Example
-------
>>> from cloudwarden.core.results import Status, add_result
>>>
>>> findings = []
>>> add_result(findings, Status.FAIL, "Security group is open", "us-east-1",
...            "arn:aws:ec2:us-east-1:123456789012:security-group/sg-1")
>>> findings[0].status.label
'FAIL'
"""

from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import IntEnum
from typing import Any, Dict, List, Optional

# Module logger
logger = logging.getLogger(__name__)


class Status(IntEnum):
    """
    Finding status codes.

    The numeric values are part of the output contract and never change.
    """

    OK = 0
    WARN = 1
    FAIL = 2
    DEPENDENCY_ERROR = 3

    @property
    def label(self) -> str:
        """Short upper-case name used in reports."""
        return self.name


@dataclass
class Finding:
    """
    A single verdict produced by a rule.

    Parameters
    ----------
    status : Status
        Outcome of the evaluation.
    message : str
        Human-readable explanation.
    region : str, optional
        Region or location the finding belongs to. ``None`` for
        account-level findings.
    resource : str, optional
        Identifier (ARN or provider resource id) of the evaluated resource.
    """

    status: Status
    message: str
    region: Optional[str] = None
    resource: Optional[str] = None

    def __post_init__(self) -> None:
        self.status = Status(self.status)

    def to_dict(self) -> Dict[str, Any]:
        """Convert the finding to a JSON-serializable dictionary."""
        return {
            "status": int(self.status),
            "status_label": self.status.label,
            "message": self.message,
            "region": self.region,
            "resource": self.resource,
        }


def add_result(
    results: List[Finding],
    status: Status,
    message: str,
    region: Optional[str] = None,
    resource: Optional[str] = None,
) -> Finding:
    """
    Create a finding and append it to ``results``.

    Returns
    -------
    Finding
        The appended finding.
    """
    finding = Finding(status=status, message=message, region=region, resource=resource)
    results.append(finding)
    return finding


@dataclass
class RuleResult:
    """
    Output of one rule run.

    Parameters
    ----------
    rule_id : str
        Catalog identifier of the rule.
    findings : list of Finding
        Findings in the order they were produced within each scope.
    source : dict
        Trace of the cache entries consulted, keyed
        ``service -> operation -> scope``.
    scan_time : datetime, optional
        When the rule finished (defaults to now, UTC).

    Examples
    --------
    >>> result = rule.run(cache, settings)
    >>> result.counts()
    {'OK': 4, 'WARN': 0, 'FAIL': 1, 'DEPENDENCY_ERROR': 0}
    >>> result.has_failures
    True
    """

    rule_id: str
    findings: List[Finding] = field(default_factory=list)
    source: Dict[str, Any] = field(default_factory=dict)
    scan_time: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def counts(self) -> Dict[str, int]:
        """Number of findings per status label, every status included."""
        counter = Counter(f.status for f in self.findings)
        return {status.label: counter.get(status, 0) for status in Status}

    def by_status(self, status: Status) -> List[Finding]:
        """Findings with the given status, in original order."""
        return [f for f in self.findings if f.status == status]

    @property
    def has_failures(self) -> bool:
        """True when any finding is FAIL or DEPENDENCY_ERROR."""
        return any(
            f.status in (Status.FAIL, Status.DEPENDENCY_ERROR) for f in self.findings
        )

    def source_keys(self) -> List[tuple]:
        """Flatten the source trace into (service, operation, scope) tuples."""
        keys = []
        for service, operations in self.source.items():
            for operation, scopes in operations.items():
                for scope in scopes:
                    keys.append((service, operation, scope))
        return keys

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert the result to a dictionary for serialization.

        The source trace is reduced to its keys; provider payloads are not
        echoed back.
        """
        return {
            "rule_id": self.rule_id,
            "scan_time": self.scan_time.isoformat(),
            "counts": self.counts(),
            "findings": [f.to_dict() for f in self.findings],
            "source": ["/".join(key) for key in self.source_keys()],
        }

    def __repr__(self) -> str:
        """Return string representation."""
        return (
            f"RuleResult(rule_id='{self.rule_id}', "
            f"findings={len(self.findings)}, "
            f"failures={self.has_failures})"
        )
