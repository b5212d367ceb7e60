"""
Network Exposure Analysis
=========================

Provider-neutral analysis of security boundaries.

Modules
-------
exposure
    Ingress rule model, public exposure detection and boundary
    classification
normalize
    AWS security group and Azure NSG projection into ingress rules
usage
    Which security groups are attached to resources in a region
"""

from cloudwarden.network.exposure import (
    Boundary,
    ExposureMode,
    IngressRule,
    OpenPort,
    Protocol,
    classify_boundary,
    find_exposures,
    find_open_ports,
)
from cloudwarden.network.normalize import (
    from_aws_security_group,
    from_azure_security_group,
)
from cloudwarden.network.usage import build_usage_index, has_public_interface

__all__ = [
    "Boundary",
    "ExposureMode",
    "IngressRule",
    "OpenPort",
    "Protocol",
    "classify_boundary",
    "find_exposures",
    "find_open_ports",
    "from_aws_security_group",
    "from_azure_security_group",
    "build_usage_index",
    "has_public_interface",
]
