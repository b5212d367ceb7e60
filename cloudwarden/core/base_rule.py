"""
Base Rule Module
================

Provides the abstract base classes for all compliance rules in Cloud-Warden.

A rule is a thin consumer of the harness: it declares which provider calls
it needs and which options it accepts, then reads the frozen source cache
and emits findings.

Classes
-------
BaseRule
    Abstract base class for rules.
ScopeContext
    Everything a rule needs while evaluating one region or location.
RegionalRule
    Template for the common "one listing call per scope" rule shape.

Example
-------
>>> class LoadBalancerHasTags(RegionalRule):
...     rule_id = "azure_lb_has_tags"
...     provider = "azure"
...     service = "loadBalancers"
...     operation = "listAll"
...     query_label = "Load Balancers"
...     empty_message = "No existing Load Balancers found"
...
...     def evaluate(self, ctx, resources):
...         for lb in resources:
...             status = Status.OK if lb.get("tags") else Status.FAIL
...             ctx.add(status, "...", lb["id"])

Notes
-----
Every expected failure mode becomes a finding:

- no cache entry for a scope: the scope was not scanned, emit nothing
- errored cache entry: a DEPENDENCY_ERROR finding with the error message
- empty listing: an informational OK finding
- invalid option value: the option's default is used

An exception escaping :meth:`RegionalRule.evaluate` is a defect and
surfaces as :class:`RuleExecutionError`.

See Also
--------
RegionalDispatcher : Runs ``evaluate`` for every scope.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional

from cloudwarden.core.cache import CacheEntry, SourceCache, SourceTrace, add_source
from cloudwarden.core.region_manager import (
    RegionalDispatcher,
    aws_regions,
    azure_locations,
    default_partition,
)
from cloudwarden.core.results import Finding, RuleResult, Status, add_result
from cloudwarden.core.settings import SettingSpec, resolve_settings

# Module logger
logger = logging.getLogger(__name__)


class BaseRule(ABC):
    """
    Abstract base class for all rules.

    Subclasses set the class attributes describing the rule and implement
    :meth:`run`.

    Parameters
    ----------
    dispatcher : RegionalDispatcher, optional
        Dispatcher used to fan out across scopes.

    Attributes
    ----------
    rule_id : str
        Catalog identifier (lowercase with underscores).
    provider : str
        ``"aws"`` or ``"azure"``.
    apis : list of str
        Provider calls the rule reads, as ``"Service:operation"``.
    settings : dict
        Option name to :class:`SettingSpec`.
    """

    rule_id: str = ""
    provider: str = "aws"
    title: str = ""
    category: str = ""
    domain: str = ""
    description: str = ""
    more_info: str = ""
    link: str = ""
    recommended_action: str = ""
    apis: List[str] = []
    settings: Dict[str, SettingSpec] = {}

    def __init__(self, dispatcher: Optional[RegionalDispatcher] = None) -> None:
        """Initialize the rule."""
        self.dispatcher = dispatcher or RegionalDispatcher()
        logger.debug(f"Initialized {self.__class__.__name__} ({self.rule_id})")

    def resolve_settings(self, settings: Mapping[str, Any]) -> Dict[str, str]:
        """Validated option values, defaults applied."""
        return resolve_settings(self.settings, settings)

    def scopes(self, settings: Mapping[str, Any], service: str) -> List[str]:
        """Regions or locations ``service`` is evaluated in."""
        if self.provider == "azure":
            return azure_locations(settings, service)
        return aws_regions(settings, service)

    @abstractmethod
    def run(self, cache: SourceCache, settings: Mapping[str, Any]) -> RuleResult:
        """
        Evaluate the rule against a frozen cache.

        Parameters
        ----------
        cache : SourceCache
            Collected provider responses.
        settings : mapping
            Scan-wide settings and rule options (string values).

        Returns
        -------
        RuleResult
            Findings plus the trace of consulted cache keys.

        Raises
        ------
        RuleExecutionError
            Only for unexpected internal faults.
        """
        pass

    def metadata(self) -> Dict[str, Any]:
        """Descriptive attributes of the rule, for listings."""
        return {
            "id": self.rule_id,
            "provider": self.provider,
            "title": self.title,
            "category": self.category,
            "domain": self.domain,
            "description": self.description,
            "more_info": self.more_info,
            "link": self.link,
            "recommended_action": self.recommended_action,
            "apis": list(self.apis),
            "settings": {
                key: {"name": s.name, "regex": s.regex, "default": s.default}
                for key, s in self.settings.items()
            },
        }

    def __repr__(self) -> str:
        """Return string representation."""
        return f"{self.__class__.__name__}(rule_id='{self.rule_id}')"


@dataclass
class ScopeContext:
    """
    Per-scope state handed to :meth:`RegionalRule.evaluate`.

    Findings added through :meth:`add` keep their order within the scope.
    """

    cache: SourceCache
    source: SourceTrace
    scope: str
    settings: Mapping[str, Any]
    config: Dict[str, str]
    results: List[Finding] = field(default_factory=list)

    def lookup(self, service: str, operation: str) -> Optional[CacheEntry]:
        """Look up a call for this scope and record it in the trace."""
        return add_source(self.cache, self.source, (service, operation, self.scope))

    def add(
        self,
        status: Status,
        message: str,
        resource: Optional[str] = None,
        region: Optional[str] = None,
    ) -> Finding:
        """Append a finding for this scope (or ``region`` when given)."""
        return add_result(self.results, status, message, region or self.scope, resource)

    @property
    def partition(self) -> str:
        return default_partition(self.settings)


class RegionalRule(BaseRule):
    """
    Rule evaluating one listing call in every region or location.

    Subclasses set :attr:`service`, :attr:`operation`, :attr:`query_label`
    and :attr:`empty_message`, and implement :meth:`evaluate`.
    """

    service: str = ""
    operation: str = ""
    query_label: str = "resources"
    empty_message: str = "No resources found"

    def check_scope(
        self,
        cache: SourceCache,
        source: SourceTrace,
        scope: str,
        settings: Mapping[str, Any],
        config: Dict[str, str],
    ) -> List[Finding]:
        """Evaluate one scope and return its findings."""
        ctx = ScopeContext(cache, source, scope, settings, config)

        entry = ctx.lookup(self.service, self.operation)
        if entry is None:
            return ctx.results

        if not entry.ok:
            logger.warning(
                f"{self.rule_id}: {self.service}/{self.operation} failed in {scope}: "
                f"{entry.error_message}"
            )
            ctx.add(
                Status.DEPENDENCY_ERROR,
                f"Unable to query for {self.query_label}: {entry.error_message}",
            )
            return ctx.results

        if not entry.data:
            ctx.add(Status.OK, self.empty_message)
            return ctx.results

        self.evaluate(ctx, entry.data)
        return ctx.results

    @abstractmethod
    def evaluate(self, ctx: ScopeContext, resources: List[Dict[str, Any]]) -> None:
        """
        Emit findings for the non-empty listing of one scope.

        Parameters
        ----------
        ctx : ScopeContext
            Scope state; findings go through ``ctx.add``.
        resources : list of dict
            Data of the rule's listing call for this scope.
        """
        pass

    def run(self, cache: SourceCache, settings: Mapping[str, Any]) -> RuleResult:
        """Fan :meth:`check_scope` out over every scope of the service."""
        config = self.resolve_settings(settings)
        source = SourceTrace()
        scopes = self.scopes(settings, self.service)

        logger.info(f"Running {self.rule_id} across {len(scopes)} scopes")

        findings = self.dispatcher.dispatch(
            scopes,
            lambda scope: self.check_scope(cache, source, scope, settings, config),
            rule_id=self.rule_id,
        )

        result = RuleResult(rule_id=self.rule_id, findings=findings, source=source.as_dict())
        logger.info(f"Finished {self.rule_id}: {result.counts()}")
        return result
