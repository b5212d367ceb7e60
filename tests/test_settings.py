"""
Tests for rule settings resolution.
"""

import pytest

from cloudwarden.core.settings import BOOLEAN_REGEX, SettingSpec, as_bool, resolve_settings


@pytest.fixture
def schema():
    """Schema with a boolean and a numeric option."""
    return {
        "ec2_skip_unused_groups": SettingSpec(
            name="EC2 Skip Unused Groups",
            description="Downgrade unused groups",
            regex=BOOLEAN_REGEX,
            default="false",
        ),
        "max_age_days": SettingSpec(
            name="Max Age",
            description="Maximum age in days",
            regex=r"^[0-9]{1,4}$",
            default="90",
        ),
    }


class TestResolveSettings:
    """Tests for resolve_settings."""

    def test_defaults_when_absent(self, schema):
        """Test absent options take their default."""
        assert resolve_settings(schema, {}) == {
            "ec2_skip_unused_groups": "false",
            "max_age_days": "90",
        }

    def test_valid_values_kept(self, schema):
        """Test valid values are used as given."""
        resolved = resolve_settings(
            schema, {"ec2_skip_unused_groups": "true", "max_age_days": "30"}
        )
        assert resolved == {"ec2_skip_unused_groups": "true", "max_age_days": "30"}

    @pytest.mark.parametrize("value", ["yes", "TRUE", "true ", "", 1, True])
    def test_malformed_boolean_falls_back(self, schema, value):
        """Test values failing the pattern fall back to the default."""
        resolved = resolve_settings(schema, {"ec2_skip_unused_groups": value})
        assert resolved["ec2_skip_unused_groups"] == "false"

    def test_unknown_settings_ignored(self, schema):
        """Test settings outside the schema are not returned."""
        resolved = resolve_settings(schema, {"govcloud": True, "regions": ["us-east-1"]})
        assert set(resolved) == set(schema)

    def test_as_bool(self):
        """Test only the literal 'true' is truthy."""
        assert as_bool("true")
        assert not as_bool("false")
        assert not as_bool("True")
