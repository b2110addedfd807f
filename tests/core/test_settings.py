"""Tests for settings parsing and environment selection."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from core.config import Settings, get_settings


class TestSettingsDefaults:
    def test_defaults(self) -> None:
        settings = Settings(_env_file=None)  # type: ignore[call-arg]

        assert settings.GODADDY_URL == "https://api.ote-godaddy.com"
        assert settings.AVAILABILITY_TIMEOUT_SECONDS is None
        assert settings.FLUSH_GRACE_SECONDS == 0.1
        assert settings.MAX_DESCRIPTION_LENGTH == 100

    def test_urls_lose_trailing_slash(self) -> None:
        settings = Settings(
            _env_file=None,  # type: ignore[call-arg]
            GODADDY_URL="https://api.godaddy.com/",
            OPENAI_URL="http://localhost:8080/v1/chat/completions/",
        )

        assert settings.GODADDY_URL == "https://api.godaddy.com"
        assert settings.OPENAI_URL == "http://localhost:8080/v1/chat/completions"


class TestSettingsValidation:
    def test_cors_origins_from_csv(self) -> None:
        settings = Settings(
            _env_file=None,  # type: ignore[call-arg]
            CORS_ORIGINS="http://a.test, http://b.test",
        )

        assert settings.CORS_ORIGINS == ["http://a.test", "http://b.test"]

    def test_cors_origins_from_json(self) -> None:
        settings = Settings(
            _env_file=None,  # type: ignore[call-arg]
            CORS_ORIGINS='["http://a.test"]',
        )

        assert settings.CORS_ORIGINS == ["http://a.test"]

    def test_wildcard_with_credentials_rejected(self) -> None:
        with pytest.raises(ValidationError):
            Settings(_env_file=None, CORS_ORIGINS="*")  # type: ignore[call-arg]

    def test_negative_grace_rejected(self) -> None:
        with pytest.raises(ValidationError):
            Settings(_env_file=None, FLUSH_GRACE_SECONDS=-1)  # type: ignore[call-arg]

    def test_non_positive_timeout_rejected(self) -> None:
        with pytest.raises(ValidationError):
            Settings(
                _env_file=None,  # type: ignore[call-arg]
                AVAILABILITY_TIMEOUT_SECONDS=0,
            )


class TestGetSettings:
    def test_unknown_environment_rejected(
        self, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("ENVIRONMENT", "staging")

        with pytest.raises(ValueError, match="ENVIRONMENT"):
            get_settings()

    def test_production_requires_upstream_credentials(
        self, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("ENVIRONMENT", "production")
        monkeypatch.setenv("OPENAI_API_KEY", "placeholder")  # pragma: allowlist secret
        monkeypatch.delenv("GODADDY_API_KEY", raising=False)
        monkeypatch.delenv("GODADDY_API_SECRET", raising=False)

        with pytest.raises(RuntimeError) as exc_info:
            get_settings()

        assert "GODADDY_API_KEY" in str(exc_info.value)
        assert "OPENAI_API_KEY" not in str(exc_info.value)

    def test_production_with_credentials(
        self, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("ENVIRONMENT", "production")
        monkeypatch.setenv("OPENAI_API_KEY", "placeholder")  # pragma: allowlist secret
        monkeypatch.setenv("GODADDY_API_KEY", "placeholder")  # pragma: allowlist secret
        monkeypatch.setenv("GODADDY_API_SECRET", "placeholder")  # pragma: allowlist secret

        settings = get_settings()

        assert settings.ENVIRONMENT == "production"

    def test_cached(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("ENVIRONMENT", "test")

        assert get_settings() is get_settings()
