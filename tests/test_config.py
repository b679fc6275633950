"""
Tests for settings loaded from the environment.
"""

import pytest
from pydantic import ValidationError

from tandem_systems.core.config import Settings


class TestSettings:

    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("TANDEM_SCAN_WORKERS", raising=False)
        settings = Settings(_env_file=None)
        assert settings.scan_workers == 1
        assert settings.max_retries == 3
        assert settings.base_url.endswith("/tandem/v1")

    def test_env_prefix(self, monkeypatch):
        monkeypatch.setenv("TANDEM_ACCESS_TOKEN", "tok")
        monkeypatch.setenv("TANDEM_SCAN_WORKERS", "4")
        monkeypatch.setenv("TANDEM_REQUEST_TIMEOUT_SEC", "2.5")
        settings = Settings(_env_file=None)
        assert settings.access_token == "tok"
        assert settings.scan_workers == 4
        assert settings.request_timeout_sec == 2.5

    def test_workers_must_be_positive(self, monkeypatch):
        monkeypatch.setenv("TANDEM_SCAN_WORKERS", "0")
        with pytest.raises(ValidationError):
            Settings(_env_file=None)

    def test_unused_keys_ignored(self, monkeypatch):
        monkeypatch.setenv("TANDEM_CACHE_DIR", "data/cache")
        settings = Settings(_env_file=None, app_base_url="https://tandem.test/app")
        assert not hasattr(settings, "cache_dir")
        assert not hasattr(settings, "app_base_url")
