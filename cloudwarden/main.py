"""
Cloud-Warden CLI - Cloud Security Posture Scanner

Main entry point for the command-line interface.
"""

import json
import logging
import sys
from typing import Any, Dict, List, Optional, Tuple

import click
from rich.console import Console

from .collectors.aws_collector import AWSCollector
from .core.aws_client import AWSClient
from .core.cache import SourceCache
from .core.exceptions import CloudWardenError
from .core.logging import setup_logging
from .core.region_manager import RegionalDispatcher, default_region
from .core.runner import RuleRunner
from .reporters.cli_reporter import CLIReporter
from .reporters.json_reporter import JSONReporter
from .rules import RULE_CLASSES, all_rules, get_rule


console = Console()

# Module logger
logger = logging.getLogger(__name__)


def validate_regions(ctx, param, value: Optional[str]) -> Optional[List[str]]:
    """Validate and parse comma-separated region list."""
    if value is None:
        return None
    regions = [r.strip() for r in value.split(",") if r.strip()]
    if not regions:
        raise click.BadParameter("No valid regions specified")
    return regions


def validate_settings(ctx, param, value: Tuple[str, ...]) -> Dict[str, str]:
    """Parse repeated ``key=value`` options into a dict."""
    settings = {}
    for item in value:
        key, sep, setting_value = item.partition("=")
        if not sep or not key.strip():
            raise click.BadParameter(f"Expected key=value, got '{item}'")
        settings[key.strip()] = setting_value.strip()
    return settings


@click.group()
@click.version_option(version="0.1.0", prog_name="cloudwarden")
def cli():
    """
    Cloud-Warden: Cloud Security Posture Scanner

    Evaluates security rules against collected AWS and Azure inventory and
    reports each resource as OK, WARN, FAIL or DEPENDENCY_ERROR.
    """
    pass


@cli.command("scan")
@click.option(
    "--cache",
    "cache_file",
    type=click.Path(exists=True, dir_okay=False),
    default=None,
    help="JSON snapshot of collected API responses to evaluate",
)
@click.option(
    "--collect",
    is_flag=True,
    help="Collect AWS data live before evaluating",
)
@click.option(
    "--region",
    "-r",
    default=None,
    help="Single AWS region to collect and evaluate",
)
@click.option(
    "--regions",
    callback=validate_regions,
    help="Comma-separated list of regions (e.g., us-east-1,us-west-2)",
)
@click.option(
    "--all-regions",
    is_flag=True,
    help="Collect from every region enabled for the account",
)
@click.option(
    "--profile",
    "-p",
    default=None,
    help="AWS profile name from ~/.aws/credentials",
)
@click.option(
    "--rule",
    "rule_ids",
    multiple=True,
    type=click.Choice(sorted(RULE_CLASSES)),
    help="Rule to run (repeatable; default: all rules)",
)
@click.option(
    "--setting",
    "-s",
    "settings",
    multiple=True,
    callback=validate_settings,
    help="Rule option as key=value (repeatable)",
)
@click.option(
    "--format",
    "-f",
    "output_format",
    type=click.Choice(["cli", "json"]),
    default="cli",
    help="Output format (default: cli)",
)
@click.option(
    "--govcloud",
    is_flag=True,
    help="Use the AWS GovCloud / Azure Government region catalog",
)
@click.option(
    "--china",
    is_flag=True,
    help="Use the AWS China region catalog",
)
@click.option(
    "--max-workers",
    default=10,
    type=int,
    help="Maximum parallel API calls and scope evaluations (default: 10)",
)
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    default="WARNING",
    help="Log verbosity on stderr (default: WARNING)",
)
@click.option(
    "--log-file",
    default=None,
    help="Also write logs to this file",
)
def scan(
    cache_file: Optional[str],
    collect: bool,
    region: Optional[str],
    regions: Optional[List[str]],
    all_regions: bool,
    profile: Optional[str],
    rule_ids: Tuple[str, ...],
    settings: Dict[str, str],
    output_format: str,
    govcloud: bool,
    china: bool,
    max_workers: int,
    log_level: str,
    log_file: Optional[str],
):
    """
    Evaluate security rules against cloud inventory.

    Data comes either from a cache snapshot (--cache) or from live AWS
    calls (--collect). Exits with status 1 when any finding is FAIL or
    DEPENDENCY_ERROR.

    Examples:

        # Evaluate every rule against a saved snapshot
        cloudwarden scan --cache snapshot.json

        # Collect live and flag unused open groups as warnings
        cloudwarden scan --collect --regions us-east-1,eu-west-1 \\
            --rule ec2_open_all_ports_protocols -s ec2_skip_unused_groups=true

        # Machine-readable output
        cloudwarden scan --cache snapshot.json --format json
    """
    setup_logging(level=log_level, log_file=log_file)

    if bool(cache_file) == collect:
        raise click.UsageError("Specify exactly one of --cache FILE or --collect")

    scan_settings: Dict[str, Any] = dict(settings)
    scan_settings["govcloud"] = govcloud
    scan_settings["china"] = china
    if regions:
        scan_settings["regions"] = regions
    elif region:
        scan_settings["regions"] = [region]

    cli_reporter = CLIReporter(console)
    dispatcher = RegionalDispatcher(max_workers=max_workers)

    try:
        if rule_ids:
            rules = [get_rule(rule_id, dispatcher) for rule_id in rule_ids]
        elif collect:
            rules = all_rules(provider="aws", dispatcher=dispatcher)
        else:
            rules = all_rules(dispatcher=dispatcher)

        if cache_file:
            cache = SourceCache.load(cache_file)
            source = cache_file
        else:
            cache = _collect(rules, scan_settings, profile, all_regions, max_workers)
            source = "live AWS data"

        if output_format == "cli":
            cli_reporter.print_scanning_message([r.rule_id for r in rules], source)

        report = RuleRunner(rules).run(cache, scan_settings)

    except CloudWardenError as e:
        logger.debug("Scan aborted", exc_info=True)
        cli_reporter.print_error(str(e))
        sys.exit(1)
    except KeyboardInterrupt:
        console.print("\n[yellow]Scan cancelled by user.[/yellow]")
        sys.exit(130)

    if output_format == "json":
        JSONReporter().report(report)
    else:
        cli_reporter.report(report)

    sys.exit(1 if report.has_failures else 0)


def _collect(
    rules,
    settings: Dict[str, Any],
    profile: Optional[str],
    all_regions: bool,
    max_workers: int,
) -> SourceCache:
    """Validate credentials and fill a cache with the rules' AWS calls."""
    client = AWSClient(region=default_region(settings), profile=profile)
    client.validate_credentials()
    logger.info(f"Collecting for account {client.get_account_id()}")

    collector = AWSCollector(profile=profile, max_workers=max_workers, client=client)
    if all_regions:
        settings["regions"] = collector.discover_regions()

    apis = [api for rule in rules for api in rule.apis]
    return collector.collect(apis, settings)


@cli.command("rules")
@click.option(
    "--provider",
    type=click.Choice(["aws", "azure"]),
    default=None,
    help="Only list rules for this provider",
)
@click.option(
    "--format",
    "-f",
    "output_format",
    type=click.Choice(["cli", "json"]),
    default="cli",
    help="Output format (default: cli)",
)
def list_rules(provider: Optional[str], output_format: str):
    """List the available rules."""
    rules = all_rules(provider=provider)

    if output_format == "json":
        click.echo(json.dumps([rule.metadata() for rule in rules], indent=2))
    else:
        CLIReporter(console).print_rules(rules)


def main():
    """Main entry point."""
    cli()


if __name__ == "__main__":
    main()
