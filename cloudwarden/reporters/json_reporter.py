"""
JSON Reporter Module
====================

Serializes scan reports to JSON for pipelines and other tools.

Output Structure
----------------
::

    {
      "scan_time": "2024-01-15T10:30:00+00:00",
      "counts": {"OK": 10, "WARN": 1, "FAIL": 2, "DEPENDENCY_ERROR": 0},
      "rules": [
        {
          "rule_id": "ec2_open_all_ports_protocols",
          "counts": {...},
          "findings": [{"status": 2, "status_label": "FAIL", ...}],
          "source": ["ec2/describeSecurityGroups/us-east-1"]
        }
      ]
    }

See Also
--------
CLIReporter : For terminal display.
"""

from __future__ import annotations

import json
import logging
from typing import Optional, TextIO

import click

from cloudwarden.core.runner import ScanReport

# Module logger
logger = logging.getLogger(__name__)


class JSONReporter:
    """
    Reporter writing a scan report as JSON.

    Parameters
    ----------
    indent : int, default=2
        JSON indentation level. Set to None for compact output.
    """

    def __init__(self, indent: Optional[int] = 2) -> None:
        """Initialize the JSON reporter."""
        self.indent = indent
        logger.debug(f"Initialized JSONReporter (indent={indent})")

    def to_string(self, report: ScanReport) -> str:
        """Return the report as a JSON string."""
        return json.dumps(report.to_dict(), indent=self.indent, default=str)

    def report(self, report: ScanReport, stream: Optional[TextIO] = None) -> None:
        """Write the report to ``stream`` (stdout by default)."""
        click.echo(self.to_string(report), file=stream)

    def __repr__(self) -> str:
        """Return string representation."""
        return f"JSONReporter(indent={self.indent})"
