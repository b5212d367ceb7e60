"""
Resource identifier helpers.

All AWS findings carry an ARN built here rather than concatenated inside
each rule.
"""

from __future__ import annotations

from typing import Optional


def resource_arn(
    partition: str,
    service: str,
    region: Optional[str],
    account: Optional[str],
    resource_type: Optional[str],
    resource_id: str,
) -> str:
    """
    Build an ARN such as
    ``arn:aws:ec2:us-east-1:123456789012:security-group/sg-0abc``.

    Global services pass ``region=None`` and/or ``account=None``; a missing
    ``resource_type`` yields ``...:<resource_id>`` without a slash.
    """
    resource = f"{resource_type}/{resource_id}" if resource_type else resource_id
    return f"arn:{partition}:{service}:{region or ''}:{account or ''}:{resource}"
