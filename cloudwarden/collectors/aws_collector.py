"""
AWS Collector Module
====================

Fills a :class:`SourceCache` with the AWS API responses a set of rules
declares in ``apis``.

Every call is made once per region the rules would evaluate it in. A
failing call is stored as an error entry so the rules can report it;
the collector itself only raises for credential or client set-up problems.

Classes
-------
AWSCollector
    Collects declared AWS calls across regions in parallel.

Example
-------
>>> collector = AWSCollector(profile="audit", max_workers=10)
>>> cache = collector.collect(["EC2:describeSecurityGroups"], settings={})
>>> cache.lookup("ec2", "describeSecurityGroups", "us-east-1").ok
True
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from botocore.exceptions import BotoCoreError, ClientError

from cloudwarden.core.aws_client import AWSClient
from cloudwarden.core.cache import SourceCache
from cloudwarden.core.exceptions import AWSClientError
from cloudwarden.core.region_manager import aws_regions

# Module logger
logger = logging.getLogger(__name__)

# (service, operation) -> (boto3 service, boto3 method, result path)
AWS_CALLS: Dict[Tuple[str, str], Tuple[str, str, str]] = {
    ("ec2", "describeSecurityGroups"): ("ec2", "describe_security_groups", "SecurityGroups"),
    ("ec2", "describeNetworkInterfaces"): (
        "ec2", "describe_network_interfaces", "NetworkInterfaces",
    ),
    ("ec2", "describeInstances"): ("ec2", "describe_instances", "Reservations"),
    ("lambda", "listFunctions"): ("lambda", "list_functions", "Functions"),
    ("rds", "describeDBInstances"): ("rds", "describe_db_instances", "DBInstances"),
    ("elb", "describeLoadBalancers"): (
        "elb", "describe_load_balancers", "LoadBalancerDescriptions",
    ),
    ("elbv2", "describeLoadBalancers"): ("elbv2", "describe_load_balancers", "LoadBalancers"),
    ("cloudfront", "listDistributions"): (
        "cloudfront", "list_distributions", "DistributionList.Items",
    ),
}


def parse_api(api: str) -> Tuple[str, str]:
    """
    Split a declared API name into a cache key prefix.

    >>> parse_api("EC2:describeSecurityGroups")
    ('ec2', 'describeSecurityGroups')
    """
    service, _, operation = api.partition(":")
    return service.lower(), operation


def _extract(page: Dict[str, Any], path: str) -> List[Any]:
    value: Any = page
    for part in path.split("."):
        if not isinstance(value, dict):
            return []
        value = value.get(part)
    return list(value or [])


class AWSCollector:
    """
    Collects AWS API responses into a source cache.

    Parameters
    ----------
    profile : str, optional
        AWS profile name.
    max_workers : int, default=10
        Maximum parallel API calls.
    client : AWSClient, optional
        Base client; regional clients are cloned from it.
    """

    def __init__(
        self,
        profile: Optional[str] = None,
        max_workers: int = 10,
        client: Optional[AWSClient] = None,
    ) -> None:
        """Initialize the collector."""
        self.profile = profile
        self.max_workers = max_workers
        self.client = client or AWSClient(profile=profile)

    def discover_regions(self) -> List[str]:
        """
        Regions enabled for the account, from ``ec2:DescribeRegions``.

        Raises
        ------
        AWSClientError
            If the region list cannot be fetched.
        """
        try:
            response = self.client.get_client("ec2").describe_regions(AllRegions=False)
        except (ClientError, BotoCoreError) as e:
            raise AWSClientError(f"Failed to fetch AWS regions: {e}", service="ec2")
        regions = sorted(r["RegionName"] for r in response["Regions"])
        logger.info(f"Discovered {len(regions)} available AWS regions")
        return regions

    def fetch(self, service: str, operation: str, region: str) -> Dict[str, Any]:
        """
        Perform one call in one region.

        Returns
        -------
        dict
            ``{"data": [...]}`` on success or ``{"error": message}``.
        """
        boto_service, method, path = AWS_CALLS[(service, operation)]
        try:
            client = self.client.with_region(region).get_client(boto_service)
            if client.can_paginate(method):
                data: List[Any] = []
                for page in client.get_paginator(method).paginate():
                    data.extend(_extract(page, path))
            else:
                data = _extract(getattr(client, method)(), path)
        except (ClientError, BotoCoreError, AWSClientError) as e:
            logger.warning(f"{service}:{operation} failed in {region}: {e}")
            return {"error": str(e)}

        logger.debug(f"{service}:{operation} returned {len(data)} items in {region}")
        return {"data": data}

    def collect(
        self,
        apis: Iterable[str],
        settings: Optional[Mapping[str, Any]] = None,
        cache: Optional[SourceCache] = None,
    ) -> SourceCache:
        """
        Collect every supported API in every region it is evaluated in.

        Parameters
        ----------
        apis : iterable of str
            Declared API names, e.g. ``"EC2:describeSecurityGroups"``.
            Duplicates and unsupported names are ignored.
        settings : mapping, optional
            Scan settings; determine partition and region list.
        cache : SourceCache, optional
            Cache to add to; a new one is created by default.

        Returns
        -------
        SourceCache
            The populated (not yet frozen) cache.
        """
        settings = settings or {}
        cache = cache if cache is not None else SourceCache()

        tasks = []
        for service, operation in dict.fromkeys(parse_api(api) for api in apis):
            if (service, operation) not in AWS_CALLS:
                logger.warning(f"No AWS collector for {service}:{operation}, skipping")
                continue
            for region in aws_regions(settings, service):
                tasks.append((service, operation, region))

        logger.info(f"Collecting {len(tasks)} AWS calls")

        with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            futures = {executor.submit(self.fetch, *task): task for task in tasks}
            for future in as_completed(futures):
                service, operation, region = futures[future]
                outcome = future.result()
                cache.put(
                    service,
                    operation,
                    region,
                    data=outcome.get("data"),
                    error=outcome.get("error"),
                )

        return cache

    def __repr__(self) -> str:
        """Return string representation."""
        return f"AWSCollector(profile={self.profile!r}, max_workers={self.max_workers})"
