"""
Tests for the exception hierarchy.
"""

from cloudwarden.core.exceptions import (
    AWSClientError,
    CacheError,
    CacheFrozenError,
    CloudWardenError,
    CredentialsError,
    RuleError,
    RuleExecutionError,
    UnknownRuleError,
)


class TestExceptions:
    """Tests for Cloud-Warden exceptions."""

    def test_hierarchy(self):
        """Test every error derives from CloudWardenError."""
        assert issubclass(CredentialsError, AWSClientError)
        assert issubclass(CacheFrozenError, CacheError)
        assert issubclass(UnknownRuleError, RuleError)
        for cls in (AWSClientError, CacheError, RuleError):
            assert issubclass(cls, CloudWardenError)

    def test_str_includes_details(self):
        """Test details are rendered in the message."""
        error = CloudWardenError("Something went wrong", details={"code": 500})
        assert str(error) == "Something went wrong (Details: {'code': 500})"
        assert str(CloudWardenError("plain")) == "plain"

    def test_aws_context(self):
        """Test service and region are merged into details."""
        error = AWSClientError("denied", service="ec2", region="us-east-1")
        assert error.details == {"service": "ec2", "region": "us-east-1"}

    def test_rule_context(self):
        """Test rule id and scope are kept."""
        error = RuleExecutionError("boom", rule_id="demo", scope="us-east-1")
        assert error.to_dict() == {
            "error_type": "RuleExecutionError",
            "message": "boom",
            "details": {"rule_id": "demo", "scope": "us-east-1"},
        }
