"""
Collectors
==========

Fill a :class:`~cloudwarden.core.cache.SourceCache` from live provider
APIs before evaluation.

Available Collectors
--------------------
AWSCollector
    boto3-backed collection of the AWS calls rules declare.
"""

from cloudwarden.collectors.aws_collector import AWS_CALLS, AWSCollector, parse_api

__all__ = [
    "AWS_CALLS",
    "AWSCollector",
    "parse_api",
]
