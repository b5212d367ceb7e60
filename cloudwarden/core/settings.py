"""
Rule Settings Module
====================

Named rule options with a validation pattern and a default.

A scan receives settings as a flat mapping of option name to string value.
Each rule declares a schema of :class:`SettingSpec` entries; a value that
is missing or does not match its pattern falls back to the default instead
of failing the scan.

Example
-------
>>> schema = {
...     "ec2_skip_unused_groups": SettingSpec(
...         name="EC2 Skip Unused Groups",
...         description="Produce a WARN for unused security groups",
...         regex=BOOLEAN_REGEX,
...         default="false",
...     )
... }
>>> resolve_settings(schema, {"ec2_skip_unused_groups": "yes"})
{'ec2_skip_unused_groups': 'false'}
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Any, Dict, Mapping

# Module logger
logger = logging.getLogger(__name__)

BOOLEAN_REGEX = r"^(true|false)$"


@dataclass(frozen=True)
class SettingSpec:
    """
    Schema entry for one rule option.

    Parameters
    ----------
    name : str
        Display name.
    description : str
        What the option changes.
    regex : str
        Pattern the full value must match.
    default : str
        Value used when the option is absent or invalid.
    """

    name: str
    description: str
    regex: str
    default: str

    def validate(self, value: Any) -> bool:
        """True when ``value`` is a string matching the pattern."""
        return isinstance(value, str) and re.search(self.regex, value) is not None


def resolve_settings(
    schema: Mapping[str, SettingSpec],
    settings: Mapping[str, Any],
) -> Dict[str, str]:
    """
    Resolve every option of ``schema`` against user ``settings``.

    Returns
    -------
    dict
        Option name to validated string value.
    """
    resolved: Dict[str, str] = {}
    for key, spec in schema.items():
        value = settings.get(key)
        if value is None:
            resolved[key] = spec.default
        elif spec.validate(value):
            resolved[key] = value
        else:
            logger.warning(
                f"Invalid value {value!r} for setting '{key}', "
                f"using default {spec.default!r}"
            )
            resolved[key] = spec.default
    return resolved


def as_bool(value: str) -> bool:
    return value == "true"
