"""
Rule Runner Module
==================

Runs a set of rules over one collected cache and aggregates their output.

Classes
-------
ScanReport
    Aggregated results of every rule in a scan.
RuleRunner
    Evaluates rules one after another against a frozen cache.

Example
-------
>>> runner = RuleRunner(all_rules())
>>> report = runner.run(cache, settings={"govcloud": False})
>>> print(report.counts())
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional, Sequence

from cloudwarden.core.base_rule import BaseRule
from cloudwarden.core.cache import SourceCache
from cloudwarden.core.results import RuleResult, Status

# Module logger
logger = logging.getLogger(__name__)


@dataclass
class ScanReport:
    """
    Aggregated results of a scan.

    Parameters
    ----------
    results : list of RuleResult
        One entry per rule, in the order the rules ran.
    scan_time : datetime, optional
        When the scan started.
    """

    results: List[RuleResult] = field(default_factory=list)
    scan_time: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def has_failures(self) -> bool:
        """True when any rule produced a FAIL or DEPENDENCY_ERROR finding."""
        return any(r.has_failures for r in self.results)

    def all_findings(self) -> List[tuple]:
        """(rule_id, Finding) pairs across all rules."""
        return [(r.rule_id, f) for r in self.results for f in r.findings]

    def counts(self) -> Dict[str, int]:
        """Finding counts per status label across all rules."""
        totals = {status.label: 0 for status in Status}
        for result in self.results:
            for label, count in result.counts().items():
                totals[label] += count
        return totals

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "scan_time": self.scan_time.isoformat(),
            "counts": self.counts(),
            "rules": [r.to_dict() for r in self.results],
        }

    def __repr__(self) -> str:
        """Return string representation."""
        return f"ScanReport(rules={len(self.results)}, failures={self.has_failures})"


class RuleRunner:
    """
    Evaluates a list of rules against one cache.

    Parameters
    ----------
    rules : sequence of BaseRule
        Rules to run, in order.

    Notes
    -----
    The cache is frozen before the first rule runs, so no rule can observe
    a partially collected state. A :class:`RuleExecutionError` from any
    rule aborts the scan.
    """

    def __init__(self, rules: Sequence[BaseRule]) -> None:
        """Initialize the runner."""
        self.rules = list(rules)

    def run(
        self,
        cache: SourceCache,
        settings: Optional[Mapping[str, Any]] = None,
    ) -> ScanReport:
        """
        Run every rule and return the aggregated report.

        Parameters
        ----------
        cache : SourceCache
            Collected provider responses; frozen by this call.
        settings : mapping, optional
            Scan-wide settings and rule options.
        """
        settings = settings or {}
        if not cache.frozen:
            cache.freeze()

        report = ScanReport()
        logger.info(f"Running {len(self.rules)} rules")

        for rule in self.rules:
            report.results.append(rule.run(cache, settings))

        logger.info(f"Scan complete: {report.counts()}")
        return report

    def __repr__(self) -> str:
        """Return string representation."""
        return f"RuleRunner(rules={len(self.rules)})"
