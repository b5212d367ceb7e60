"""CloudFront distributions must be fronted by a WAF web ACL."""

from __future__ import annotations

from typing import Any, Dict, List

from cloudwarden.core.base_rule import RegionalRule, ScopeContext
from cloudwarden.core.cache import GLOBAL_SCOPE
from cloudwarden.core.results import Status


class CloudFrontWafEnabled(RegionalRule):
    rule_id = "cloudfront_waf_enabled"
    provider = "aws"
    title = "CloudFront WAF Enabled"
    category = "CloudFront"
    domain = "Content Delivery"
    description = "Ensures CloudFront distributions have WAF enabled."
    more_info = (
        "Enabling WAF allows control over requests to the CloudFront Distribution, "
        "allowing or denying traffic based off rules in the Web ACL"
    )
    link = "https://docs.aws.amazon.com/waf/latest/developerguide/web-acl-associating-cloudfront-distribution.html"
    recommended_action = (
        "Associate a global Web ACL with the CloudFront distribution."
    )
    apis = ["CloudFront:listDistributions"]

    service = "cloudfront"
    operation = "listDistributions"
    query_label = "CloudFront distributions"
    empty_message = "No CloudFront distributions found"

    def evaluate(self, ctx: ScopeContext, resources: List[Dict[str, Any]]) -> None:
        for distribution in resources:
            if distribution.get("WebACLId"):
                ctx.add(
                    Status.OK,
                    "The CloudFront Distribution has WAF enabled",
                    distribution.get("ARN"),
                    region=GLOBAL_SCOPE,
                )
            else:
                ctx.add(
                    Status.FAIL,
                    "The CloudFront Distribution does not have WAF enabled",
                    distribution.get("ARN"),
                    region=GLOBAL_SCOPE,
                )
