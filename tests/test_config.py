"""
Configuration Tests

Tests for Settings defaults and validators.
"""

import pytest
from pydantic import ValidationError

from species_proxy.config import Settings


class TestSettingsDefaults:
    def test_defaults_match_rate_limit_rule(self, monkeypatch):
        monkeypatch.delenv("PORT", raising=False)
        settings = Settings(_env_file=None)

        assert settings.port == 3000
        assert settings.cache_ttl == 5
        assert settings.rate_limit_window == 60
        assert settings.rate_limit_max_requests == 3
        assert settings.store_failure_policy == "closed"
        assert settings.fail_open is False

    def test_port_from_environment(self, monkeypatch):
        monkeypatch.setenv("PORT", "8080")

        assert Settings(_env_file=None).port == 8080


class TestSettingsValidators:
    def test_log_level_is_uppercased(self):
        assert Settings(_env_file=None, log_level="debug").log_level == "DEBUG"

    def test_invalid_log_level_rejected(self):
        with pytest.raises(ValidationError):
            Settings(_env_file=None, log_level="verbose")

    def test_fail_open_policy(self):
        settings = Settings(_env_file=None, store_failure_policy="OPEN")

        assert settings.store_failure_policy == "open"
        assert settings.fail_open is True

    def test_invalid_policy_rejected(self):
        with pytest.raises(ValidationError):
            Settings(_env_file=None, store_failure_policy="sometimes")

    def test_upstream_base_url_trailing_slash_removed(self):
        settings = Settings(_env_file=None, upstream_base_url="https://example.org/")

        assert settings.upstream_base_url == "https://example.org"

    def test_unknown_environment_variables_are_ignored(self, monkeypatch):
        """Settings only carries fields the service reads."""
        monkeypatch.setenv("ENVIRONMENT", "qa")

        settings = Settings(_env_file=None)

        assert "environment" not in Settings.model_fields
        assert not hasattr(settings, "is_production")
