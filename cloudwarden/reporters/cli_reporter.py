"""
CLI Reporter Module
===================

Rich terminal output for scan reports.

Classes
-------
CLIReporter
    Renders a :class:`ScanReport` as a header panel, a summary of
    finding counts and one findings table per rule.

Example
-------
>>> from cloudwarden.reporters import CLIReporter
>>>
>>> reporter = CLIReporter()
>>> reporter.report(scan_report)

See Also
--------
rich : Python library for rich text and formatting.
JSONReporter : For machine-readable output.
"""

from __future__ import annotations

import logging
from typing import Iterable, List, Optional

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from cloudwarden.core.base_rule import BaseRule
from cloudwarden.core.results import RuleResult, Status
from cloudwarden.core.runner import ScanReport

# Module logger
logger = logging.getLogger(__name__)

STATUS_STYLES = {
    Status.OK: "green",
    Status.WARN: "yellow",
    Status.FAIL: "red",
    Status.DEPENDENCY_ERROR: "magenta",
}


class CLIReporter:
    """
    Reporter for displaying scan results in the terminal.

    Parameters
    ----------
    console : Console, optional
        Rich Console instance. If not provided, creates a new one.
    show_ok : bool, default=True
        Whether passing findings are listed in the tables.
    """

    def __init__(self, console: Optional[Console] = None, show_ok: bool = True) -> None:
        """Initialize the CLI reporter with a Rich Console."""
        self.console = console or Console()
        self.show_ok = show_ok
        logger.debug("Initialized CLIReporter")

    def report(self, report: ScanReport) -> None:
        """
        Print the full scan report.

        Parameters
        ----------
        report : ScanReport
            Aggregated results of the scan.
        """
        self._print_header(report)
        self._print_summary(report)

        for result in report.results:
            self._print_rule_table(result)

        if report.has_failures:
            self.console.print("\n[red bold]Scan found failing or unverifiable resources.[/red bold]")
        else:
            self.console.print("\n[green bold]All checks passed.[/green bold]")

    def print_rules(self, rules: Iterable[BaseRule]) -> None:
        """Print the rule catalog as a table."""
        table = Table(title="\nAvailable Rules", title_style="bold", show_lines=False)
        table.add_column("Rule ID", style="cyan", no_wrap=True)
        table.add_column("Provider", style="yellow")
        table.add_column("Category", style="white")
        table.add_column("Title", style="white")
        table.add_column("APIs", style="dim", max_width=50)

        for rule in rules:
            table.add_row(
                rule.rule_id,
                rule.provider,
                rule.category,
                rule.title,
                ", ".join(rule.apis),
            )

        self.console.print(table)

    # =========================================================================
    # Private Methods: Output Formatting
    # =========================================================================

    def _print_header(self, report: ScanReport) -> None:
        header_text = Text()
        header_text.append("\nCloud-Warden Scan Report\n", style="bold blue")
        header_text.append(f"Rules: {len(report.results)}", style="dim")

        self.console.print(Panel(header_text, border_style="blue"))

    def _print_summary(self, report: ScanReport) -> None:
        summary = Table(show_header=False, box=None, padding=(0, 2))
        summary.add_column("Metric", style="cyan")
        summary.add_column("Value", style="white")

        counts = report.counts()
        for status in Status:
            count = counts[status.label]
            style = STATUS_STYLES[status] if count else "dim"
            summary.add_row(f"{status.label}:", f"[{style}]{count}[/]")

        summary.add_row(
            "Scan Time:",
            report.scan_time.strftime("%Y-%m-%d %H:%M:%S UTC")
        )

        self.console.print("\n")
        self.console.print(summary)

    def _print_rule_table(self, result: RuleResult) -> None:
        findings = [
            f for f in result.findings
            if self.show_ok or f.status != Status.OK
        ]
        if not findings:
            self.console.print(f"\n[dim]{result.rule_id}: no findings to show[/dim]")
            return

        table = Table(title=f"\n{result.rule_id}", title_style="bold", show_lines=False)
        table.add_column("Status", no_wrap=True)
        table.add_column("Region", style="yellow", no_wrap=True)
        table.add_column("Resource", style="cyan", max_width=60)
        table.add_column("Message", style="white")

        for finding in sorted(findings, key=lambda f: (f.region or "", -f.status)):
            style = STATUS_STYLES[finding.status]
            table.add_row(
                f"[{style}]{finding.status.label}[/]",
                finding.region or "N/A",
                escape(finding.resource or "N/A"),
                escape(finding.message),
            )

        self.console.print(table)

    # =========================================================================
    # Public Methods: Messages
    # =========================================================================

    def print_scanning_message(self, rule_ids: List[str], source: str) -> None:
        """Print what is about to run and where the data comes from."""
        self.console.print(
            f"\n[bold]Running {len(rule_ids)} rule(s) against {escape(source)}...[/bold]"
        )

    def print_error(self, message: str) -> None:
        """Print an error message."""
        self.console.print(f"\n[red bold]Error:[/red bold] {escape(message)}")

    def print_warning(self, message: str) -> None:
        """Print a warning message."""
        self.console.print(f"\n[yellow bold]Warning:[/yellow bold] {escape(message)}")

    def __repr__(self) -> str:
        """Return string representation."""
        return f"CLIReporter(show_ok={self.show_ok})"
