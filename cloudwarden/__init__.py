"""
Cloud-Warden: Cloud Security Posture Scanner
============================================

Evaluates security rules against an inventory of AWS and Azure resources
collected ahead of time, and reports every resource as OK, WARN, FAIL or
DEPENDENCY_ERROR.

Modules
-------
core
    Result model, source cache, settings, regional dispatcher, rule base
    classes, AWS client and logging
network
    Ingress normalization, exposure analysis and resource usage index
collectors
    Fill the source cache from live provider APIs
rules
    The rule catalog
reporters
    Output formatters (CLI, JSON)

Example
-------
>>> from cloudwarden import RuleRunner, SourceCache, get_rule
>>>
>>> cache = SourceCache.load("snapshot.json")
>>> report = RuleRunner([get_rule("ec2_open_all_ports_protocols")]).run(cache)
>>> print(report.counts())

Notes
-----
Live collection requires AWS credentials configured via:
- Environment variables (AWS_ACCESS_KEY_ID, AWS_SECRET_ACCESS_KEY)
- AWS credentials file (~/.aws/credentials)
- IAM role (when running on AWS infrastructure)

See Also
--------
boto3 : AWS SDK for Python
"""

__version__ = "0.1.0"

# Public API
from cloudwarden.core.cache import SourceCache
from cloudwarden.core.results import Finding, RuleResult, Status
from cloudwarden.core.runner import RuleRunner, ScanReport
from cloudwarden.rules import all_rules, get_rule

__all__ = [
    # Version info
    "__version__",
    # Core classes
    "Finding",
    "RuleResult",
    "RuleRunner",
    "ScanReport",
    "SourceCache",
    "Status",
    # Rule catalog
    "all_rules",
    "get_rule",
]
