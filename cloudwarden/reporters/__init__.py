"""
Report Generators
=================

Output formatters for scan reports.

Available Reporters
-------------------
CLIReporter
    Rich terminal output with summary counts and findings tables.
JSONReporter
    JSON on stdout for pipelines and programmatic access.

Example
-------
>>> from cloudwarden.reporters import CLIReporter, JSONReporter
>>>
>>> CLIReporter().report(scan_report)
>>> JSONReporter().report(scan_report)

See Also
--------
cloudwarden.core.runner.ScanReport : Input data structure.
"""

from cloudwarden.reporters.cli_reporter import CLIReporter
from cloudwarden.reporters.json_reporter import JSONReporter

__all__ = [
    "CLIReporter",
    "JSONReporter",
]
