"""
Tests for the Reporter modules.
"""

import io
import json
from datetime import datetime, timezone

import pytest
from rich.console import Console

from cloudwarden.core.results import Finding, RuleResult, Status
from cloudwarden.core.runner import ScanReport
from cloudwarden.reporters.cli_reporter import CLIReporter
from cloudwarden.reporters.json_reporter import JSONReporter
from cloudwarden.rules import all_rules


@pytest.fixture
def sample_report():
    """Create a sample ScanReport for testing."""
    return ScanReport(
        results=[
            RuleResult(
                "ec2_open_all_ports_protocols",
                [
                    Finding(Status.FAIL, "Security group: sg-1 (open) has all ports open",
                            "us-east-1", "arn:aws:ec2:us-east-1:1:security-group/sg-1"),
                    Finding(Status.OK, "Security group: sg-2 (web) is fine", "us-east-1",
                            "arn:aws:ec2:us-east-1:1:security-group/sg-2"),
                    Finding(Status.WARN, "Security group: sg-3 is not in use", "eu-west-1",
                            "arn:aws:ec2:eu-west-1:1:security-group/sg-3"),
                ],
            ),
            RuleResult("lb_has_tags", []),
        ],
        scan_time=datetime(2024, 1, 15, 10, 30, 0, tzinfo=timezone.utc),
    )


@pytest.fixture
def console():
    """Console writing to a buffer, wide enough to avoid wrapping."""
    return Console(file=io.StringIO(), width=200, force_terminal=False)


class TestCLIReporter:
    """Tests for CLIReporter."""

    def test_report(self, console, sample_report):
        """Test the header, counts and findings are printed."""
        CLIReporter(console).report(sample_report)
        output = console.file.getvalue()

        assert "Cloud-Warden Scan Report" in output
        assert "ec2_open_all_ports_protocols" in output
        assert "sg-3 is not in use" in output
        assert "lb_has_tags: no findings to show" in output
        assert "failing or unverifiable" in output

    def test_hide_ok(self, console, sample_report):
        """Test passing findings can be hidden."""
        CLIReporter(console, show_ok=False).report(sample_report)
        assert "sg-2 (web)" not in console.file.getvalue()

    def test_clean_report(self, console):
        """Test a report without failures."""
        CLIReporter(console).report(ScanReport(results=[RuleResult("lb_has_tags", [])]))
        assert "All checks passed." in console.file.getvalue()

    def test_brackets_not_treated_as_markup(self, console):
        """Test resource text with brackets is printed verbatim."""
        report = ScanReport(results=[
            RuleResult("demo", [Finding(Status.FAIL, "rule [bold]x[/bold] open", "eastus", "/id")])
        ])
        CLIReporter(console).report(report)
        assert "rule [bold]x[/bold] open" in console.file.getvalue()

    def test_print_rules(self, console):
        """Test the rule catalog table."""
        CLIReporter(console).print_rules(all_rules())
        output = console.file.getvalue()
        assert "nsg_open_memcached" in output
        assert "EC2:describeSecurityGroups" in output

    def test_print_error(self, console):
        """Test error messages."""
        CLIReporter(console).print_error("Unable to read cache snapshot")
        assert "Error: Unable to read cache snapshot" in console.file.getvalue()


class TestJSONReporter:
    """Tests for JSONReporter."""

    def test_to_string(self, sample_report):
        """Test the JSON structure."""
        data = json.loads(JSONReporter().to_string(sample_report))

        assert data["scan_time"] == "2024-01-15T10:30:00+00:00"
        assert data["counts"] == {"OK": 1, "WARN": 1, "FAIL": 1, "DEPENDENCY_ERROR": 0}
        assert [r["rule_id"] for r in data["rules"]] == [
            "ec2_open_all_ports_protocols",
            "lb_has_tags",
        ]
        assert data["rules"][0]["findings"][0]["status_label"] == "FAIL"

    def test_compact(self, sample_report):
        """Test indent=None gives a single line."""
        assert "\n" not in JSONReporter(indent=None).to_string(sample_report)

    def test_report_to_stream(self, sample_report):
        """Test writing to a stream."""
        stream = io.StringIO()
        JSONReporter().report(sample_report, stream)
        assert json.loads(stream.getvalue())["counts"]["FAIL"] == 1
