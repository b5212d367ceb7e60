"""
Region Manager Module
=====================

Fan-out of a rule's per-scope work across regions or locations, plus the
catalog of scopes each provider service is evaluated in.

This module handles:
- Per-service AWS region and Azure location lists (public, GovCloud, China)
- Concurrent execution of one unit of work per scope
- A fan-in barrier: results are returned only once every scope finished

Classes
-------
RegionalDispatcher
    Runs per-scope work concurrently and gathers the findings.

Functions
---------
aws_regions
    AWS regions a service is evaluated in for the given settings.
azure_locations
    Azure locations a service is evaluated in for the given settings.
default_partition
    ARN partition for the given settings.
default_region
    Region used for global AWS services.

Example
-------
>>> dispatcher = RegionalDispatcher(max_workers=8)
>>> findings = dispatcher.dispatch(aws_regions(settings, "ec2"), check_region)

Notes
-----
Scope workers only read the frozen source cache, so they share it without
locking. Each worker returns its own list of findings; the dispatcher
merges them on the calling thread as futures complete, which keeps the
shared accumulator append-only and serialized. Order between scopes is
whatever order they finish in.

See Also
--------
BaseRule : Uses the dispatcher from ``run``.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence

from cloudwarden.core.exceptions import RuleExecutionError
from cloudwarden.core.results import Finding

# Module logger
logger = logging.getLogger(__name__)

ScopeWork = Callable[[str], List[Finding]]
ProgressCallback = Callable[[str, str], None]

# =============================================================================
# Scope Catalog
# =============================================================================

AWS_COMMERCIAL_REGIONS = [
    "us-east-1", "us-east-2", "us-west-1", "us-west-2",
    "ca-central-1", "sa-east-1",
    "eu-north-1", "eu-west-1", "eu-west-2", "eu-west-3",
    "eu-central-1", "eu-south-1",
    "ap-south-1", "ap-northeast-1", "ap-northeast-2", "ap-northeast-3",
    "ap-southeast-1", "ap-southeast-2", "ap-east-1",
    "me-south-1", "af-south-1",
]
AWS_GOVCLOUD_REGIONS = ["us-gov-west-1", "us-gov-east-1"]
AWS_CHINA_REGIONS = ["cn-north-1", "cn-northwest-1"]

# Services whose API is only served from the partition's default region
AWS_GLOBAL_SERVICES = {"cloudfront", "iam", "route53", "organizations", "s3control"}

AZURE_PUBLIC_LOCATIONS = [
    "eastus", "eastus2", "westus", "westus2", "westus3",
    "centralus", "northcentralus", "southcentralus", "westcentralus",
    "canadacentral", "canadaeast", "brazilsouth",
    "northeurope", "westeurope", "uksouth", "ukwest", "francecentral",
    "germanywestcentral", "norwayeast", "switzerlandnorth", "swedencentral",
    "eastasia", "southeastasia", "japaneast", "japanwest", "koreacentral",
    "australiaeast", "australiasoutheast", "centralindia", "southindia",
    "westindia", "uaenorth", "southafricanorth",
]
AZURE_GOV_LOCATIONS = [
    "usgovvirginia", "usgovtexas", "usgovarizona", "usdodeast", "usdodcentral",
]

# Azure services whose resources are listed once per subscription
AZURE_GLOBAL_SERVICES = {"resourceGroups", "roleDefinitions", "policyAssignments"}


def _flag(settings: Mapping[str, Any], name: str) -> bool:
    value = settings.get(name)
    return value is True or value == "true"


def default_partition(settings: Mapping[str, Any]) -> str:
    """ARN partition: ``aws``, ``aws-us-gov`` or ``aws-cn``."""
    if _flag(settings, "govcloud"):
        return "aws-us-gov"
    if _flag(settings, "china"):
        return "aws-cn"
    return "aws"


def default_region(settings: Mapping[str, Any]) -> str:
    """Region that serves global AWS services in the active partition."""
    if _flag(settings, "govcloud"):
        return "us-gov-west-1"
    if _flag(settings, "china"):
        return "cn-north-1"
    return "us-east-1"


def aws_regions(settings: Mapping[str, Any], service: str) -> List[str]:
    """
    Regions in which ``service`` is evaluated.

    ``settings["regions"]`` (a list) replaces the built-in region list,
    keeping only the regions of the active partition; global services always
    resolve to the partition's default region.
    """
    if service.lower() in AWS_GLOBAL_SERVICES:
        return [default_region(settings)]

    wanted = settings.get("regions")
    if wanted:
        partition = default_partition(settings)
        regions = [r for r in dict.fromkeys(wanted) if _region_partition(r) == partition]
        skipped = [r for r in wanted if r not in regions]
        if skipped:
            logger.warning(f"Ignoring regions outside partition {partition}: {skipped}")
        return regions

    if _flag(settings, "govcloud"):
        return list(AWS_GOVCLOUD_REGIONS)
    if _flag(settings, "china"):
        return list(AWS_CHINA_REGIONS)
    return list(AWS_COMMERCIAL_REGIONS)


def _region_partition(region: str) -> str:
    if region.startswith("us-gov-"):
        return "aws-us-gov"
    if region.startswith("cn-"):
        return "aws-cn"
    return "aws"


def azure_locations(settings: Mapping[str, Any], service: str) -> List[str]:
    """Locations in which an Azure ``service`` is evaluated."""
    if service in AZURE_GLOBAL_SERVICES:
        return ["global"]

    locations = AZURE_GOV_LOCATIONS if _flag(settings, "govcloud") else AZURE_PUBLIC_LOCATIONS
    wanted = settings.get("locations")
    if wanted:
        locations = [loc for loc in locations if loc in wanted]
    return list(locations)


# =============================================================================
# Dispatcher
# =============================================================================


class RegionalDispatcher:
    """
    Runs a unit of work for every scope and waits for all of them.

    Parameters
    ----------
    max_workers : int, default=10
        Maximum number of scopes evaluated at the same time.

    Examples
    --------
    >>> def check(region):
    ...     return [Finding(Status.OK, "fine", region)]
    >>> RegionalDispatcher().dispatch(["us-east-1", "eu-west-1"], check)

    With progress tracking:

    >>> def on_progress(scope, status):
    ...     print(f"{scope}: {status}")
    >>> dispatcher.dispatch(regions, check, progress_callback=on_progress)

    Notes
    -----
    A work function reports expected failures (errored cache entries) as
    findings itself. An exception escaping a work function is a defect: the
    remaining scopes still run to completion, then the dispatcher raises
    :class:`RuleExecutionError` for the first faulty scope.
    """

    def __init__(self, max_workers: int = 10) -> None:
        """Initialize the dispatcher."""
        self.max_workers = max_workers
        logger.debug(f"Initialized RegionalDispatcher with max_workers={max_workers}")

    def _run_scope(
        self,
        scope: str,
        work: ScopeWork,
        progress_callback: Optional[ProgressCallback] = None,
    ) -> tuple:
        """
        Evaluate a single scope (internal method).

        Returns
        -------
        tuple
            (scope, list of Finding or None, exception or None)
        """
        try:
            if progress_callback:
                progress_callback(scope, "scanning")

            findings = list(work(scope) or [])

            if progress_callback:
                progress_callback(scope, "complete")

            logger.debug(f"Completed {scope} with {len(findings)} findings")
            return (scope, findings, None)

        except Exception as e:
            logger.error(f"Unexpected error evaluating {scope}: {e}")
            if progress_callback:
                progress_callback(scope, "error")
            return (scope, None, e)

    def dispatch(
        self,
        scopes: Sequence[str],
        work: ScopeWork,
        progress_callback: Optional[ProgressCallback] = None,
        rule_id: Optional[str] = None,
    ) -> List[Finding]:
        """
        Run ``work`` for every scope concurrently.

        Parameters
        ----------
        scopes : sequence of str
            Regions or locations to evaluate. An empty sequence returns an
            empty list without starting any worker.
        work : callable
            ``work(scope) -> list of Finding``.
        progress_callback : callable, optional
            Called with (scope, status); status is one of 'scanning',
            'complete', 'error'.
        rule_id : str, optional
            Attached to the raised error for context.

        Returns
        -------
        list of Finding
            Findings of every scope. Findings of one scope keep their order.

        Raises
        ------
        RuleExecutionError
            After all scopes finished, if any work function raised.
        """
        findings: List[Finding] = []
        if not scopes:
            return findings

        faults: Dict[str, Exception] = {}
        workers = max(1, min(self.max_workers, len(scopes)))

        with ThreadPoolExecutor(max_workers=workers) as executor:
            futures = [
                executor.submit(self._run_scope, scope, work, progress_callback)
                for scope in scopes
            ]

            for future in as_completed(futures):
                scope, scope_findings, error = future.result()
                if error is not None:
                    faults[scope] = error
                else:
                    findings.extend(scope_findings)

        if faults:
            scope = sorted(faults)[0]
            error = faults[scope]
            raise RuleExecutionError(
                f"Unexpected error evaluating {scope}: {error}",
                rule_id=rule_id,
                scope=scope,
                details={"failed_scopes": sorted(faults)},
            ) from error

        logger.debug(f"Dispatched {len(scopes)} scopes, {len(findings)} findings")
        return findings

    def __repr__(self) -> str:
        """Return string representation."""
        return f"RegionalDispatcher(max_workers={self.max_workers})"
