"""
Custom Exceptions for Cloud-Warden
==================================

This module defines a hierarchy of custom exceptions used throughout
the application for consistent error handling and reporting.

Exception Hierarchy
-------------------
::

    CloudWardenError (base)
    ├── AWSClientError
    │   ├── CredentialsError
    │   ├── RegionError
    │   └── ServiceError
    ├── CacheError
    │   ├── CacheFrozenError
    │   └── SnapshotError
    └── RuleError
        ├── RuleExecutionError
        └── UnknownRuleError

Notes
-----
Rules never raise for expected failure modes: an errored or missing
provider call becomes a finding. The :class:`RuleError` branch is reserved
for defects in the harness or in a rule body.

Example
-------
>>> from cloudwarden.core.exceptions import CacheFrozenError
>>>
>>> try:
...     cache.put("ec2", "describeSecurityGroups", "us-east-1", data=[])
... except CacheFrozenError as e:
...     print(f"Cache is read-only: {e}")
"""

from __future__ import annotations

from typing import Any, Dict, Optional


class CloudWardenError(Exception):
    """
    Base exception for all Cloud-Warden errors.

    Parameters
    ----------
    message : str
        Human-readable error message.
    details : dict, optional
        Additional context about the error.

    Example
    -------
    >>> raise CloudWardenError("Something went wrong", details={"code": 500})
    """

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.message = message
        self.details = details or {}
        super().__init__(self.message)

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} (Details: {self.details})"
        return self.message

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert exception to dictionary for serialization.

        Returns
        -------
        dict
            Dictionary representation of the error.
        """
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "details": self.details,
        }


# =============================================================================
# AWS Client Exceptions
# =============================================================================


class AWSClientError(CloudWardenError):
    """
    Base exception for AWS client-related errors.

    Raised by the collector side when there's an issue with AWS
    connectivity or authentication.

    Parameters
    ----------
    message : str
        Human-readable error message.
    service : str, optional
        The AWS service that caused the error.
    region : str, optional
        The AWS region where the error occurred.
    details : dict, optional
        Additional context about the error.
    """

    def __init__(
        self,
        message: str,
        service: Optional[str] = None,
        region: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.service = service
        self.region = region
        full_details = details or {}
        if service:
            full_details["service"] = service
        if region:
            full_details["region"] = region
        super().__init__(message, full_details)


class CredentialsError(AWSClientError):
    """Raised when AWS credentials are invalid, missing, or expired."""

    pass


class RegionError(AWSClientError):
    """Raised when there's an issue with the specified AWS region."""

    pass


class ServiceError(AWSClientError):
    """
    Raised when there's an error creating a client for an AWS service.

    Example
    -------
    >>> raise ServiceError(
    ...     "Failed to create ec2 client",
    ...     service="ec2",
    ...     region="us-east-1"
    ... )
    """

    pass


# =============================================================================
# Source Cache Exceptions
# =============================================================================


class CacheError(CloudWardenError):
    """
    Base exception for source cache errors.

    Parameters
    ----------
    message : str
        Human-readable error message.
    key : tuple, optional
        The (service, operation, scope) key involved.
    details : dict, optional
        Additional context about the error.
    """

    def __init__(
        self,
        message: str,
        key: Optional[tuple] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.key = key
        full_details = details or {}
        if key:
            full_details["key"] = "/".join(str(part) for part in key)
        super().__init__(message, full_details)


class CacheFrozenError(CacheError):
    """Raised when writing to a cache that has been frozen for evaluation."""

    pass


class SnapshotError(CacheError):
    """
    Raised when a cache snapshot cannot be read or has the wrong shape.

    Example
    -------
    >>> raise SnapshotError(
    ...     "Snapshot root must be an object",
    ...     details={"path": "cache.json"}
    ... )
    """

    pass


# =============================================================================
# Rule Exceptions
# =============================================================================


class RuleError(CloudWardenError):
    """
    Base exception for rule-related errors.

    Parameters
    ----------
    message : str
        Human-readable error message.
    rule_id : str, optional
        Identifier of the rule involved.
    scope : str, optional
        Region or location being evaluated.
    details : dict, optional
        Additional context about the error.
    """

    def __init__(
        self,
        message: str,
        rule_id: Optional[str] = None,
        scope: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.rule_id = rule_id
        self.scope = scope
        full_details = details or {}
        if rule_id:
            full_details["rule_id"] = rule_id
        if scope:
            full_details["scope"] = scope
        super().__init__(message, full_details)


class RuleExecutionError(RuleError):
    """
    Raised when a rule body fails with an unexpected internal fault.

    Example
    -------
    >>> raise RuleExecutionError(
    ...     "KeyError: 'GroupId'",
    ...     rule_id="ec2_open_all_ports_protocols",
    ...     scope="us-east-1"
    ... )
    """

    pass


class UnknownRuleError(RuleError):
    """Raised when a rule identifier is not present in the catalog."""

    pass
