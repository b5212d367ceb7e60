"""
Core Infrastructure Components
==============================

Foundational components shared by every rule:

- :class:`SourceCache` - Frozen store of collected API responses
- :class:`RegionalDispatcher` - Concurrent per-scope execution with a fan-in barrier
- :class:`BaseRule` / :class:`RegionalRule` - Rule base classes
- :class:`RuleRunner` - Runs a rule list over one cache
- :class:`AWSClient` - boto3 wrapper used by the collector
- Exception hierarchy for error handling

Exceptions
----------
CloudWardenError
    Base exception for all Cloud-Warden errors.
AWSClientError
    Base exception for AWS client errors.
CacheError
    Base exception for source cache errors.
RuleError
    Base exception for rule errors.

Example
-------
>>> from cloudwarden.core import RegionalDispatcher, SourceCache
>>>
>>> cache = SourceCache.load("snapshot.json").freeze()
>>> dispatcher = RegionalDispatcher(max_workers=10)
"""

from cloudwarden.core.aws_client import AWSClient
from cloudwarden.core.base_rule import BaseRule, RegionalRule, ScopeContext
from cloudwarden.core.cache import (
    GLOBAL_SCOPE,
    CacheEntry,
    SourceCache,
    SourceTrace,
    add_source,
)
from cloudwarden.core.exceptions import (
    AWSClientError,
    CacheError,
    CacheFrozenError,
    CloudWardenError,
    CredentialsError,
    RegionError,
    RuleError,
    RuleExecutionError,
    ServiceError,
    SnapshotError,
    UnknownRuleError,
)
from cloudwarden.core.region_manager import RegionalDispatcher
from cloudwarden.core.results import Finding, RuleResult, Status, add_result
from cloudwarden.core.runner import RuleRunner, ScanReport
from cloudwarden.core.settings import SettingSpec, resolve_settings

__all__ = [
    # AWS
    "AWSClient",
    # Cache
    "GLOBAL_SCOPE",
    "CacheEntry",
    "SourceCache",
    "SourceTrace",
    "add_source",
    # Results
    "Finding",
    "RuleResult",
    "Status",
    "add_result",
    # Rules
    "BaseRule",
    "RegionalRule",
    "ScopeContext",
    "RegionalDispatcher",
    "RuleRunner",
    "ScanReport",
    "SettingSpec",
    "resolve_settings",
    # Exceptions
    "CloudWardenError",
    "AWSClientError",
    "CredentialsError",
    "RegionError",
    "ServiceError",
    "CacheError",
    "CacheFrozenError",
    "SnapshotError",
    "RuleError",
    "RuleExecutionError",
    "UnknownRuleError",
]
