"""Application settings and upstream service configuration."""

import json
import os
from functools import lru_cache

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


ENV_FILES = {
    "production": ".env.prod",
    "development": ".env.dev",
    # Tests run on defaults plus whatever the process environment sets
    "test": "",
}

# Production refuses to start without these
PRODUCTION_REQUIRED = ("OPENAI_API_KEY", "GODADDY_API_KEY", "GODADDY_API_SECRET")


def _parse_origins(raw: str) -> list[str]:
    """Parse CORS origins from a CSV string or a JSON array string."""
    raw = raw.strip()
    if not raw.startswith("["):
        return [origin.strip() for origin in raw.split(",") if origin.strip()]
    try:
        parsed = json.loads(raw)
    except json.JSONDecodeError as e:
        raise ValueError("CORS_ORIGINS must be a CSV list or JSON array string") from e
    if not isinstance(parsed, list):
        raise ValueError("CORS_ORIGINS JSON must be a list")
    return [str(origin).strip() for origin in parsed]


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=(".env"), env_file_encoding="utf-8")

    # App
    APP_NAME: str = "DomainStream"
    ENVIRONMENT: str = "development"  # development | production | test

    # CORS: list, CSV or JSON array string; normalized to list[str]
    CORS_ORIGINS: list[str] | str = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ]
    ALLOW_CREDENTIALS: bool = True

    # Generative text source (OpenAI-compatible chat completions)
    OPENAI_URL: str = "https://api.openai.com/v1/chat/completions"
    OPENAI_API_KEY: str | None = None
    OPENAI_MODEL: str = "gpt-3.5-turbo"

    # TLD list + availability (GoDaddy-compatible domains API)
    GODADDY_URL: str = "https://api.ote-godaddy.com"
    GODADDY_API_KEY: str | None = None
    GODADDY_API_SECRET: str | None = None

    # Streaming
    # None leaves availability lookups unbounded, so one stalled lookup holds
    # the response open until it settles.
    AVAILABILITY_TIMEOUT_SECONDS: float | None = None
    FLUSH_GRACE_SECONDS: float = 0.1
    MAX_DESCRIPTION_LENGTH: int = 100

    @field_validator("CORS_ORIGINS", mode="before")
    @classmethod
    def assemble_cors_origins(cls, v: object) -> list[str]:
        if isinstance(v, list):
            return [str(origin).strip() for origin in v]
        if isinstance(v, str):
            return _parse_origins(v)
        raise ValueError("Invalid CORS_ORIGINS type; expected str or list[str]")

    @field_validator("GODADDY_URL", "OPENAI_URL")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")

    @model_validator(mode="after")
    def _validate_combinations(self) -> "Settings":
        """Reject wildcard CORS with credentials and out-of-range timings."""
        if self.ALLOW_CREDENTIALS and "*" in self.CORS_ORIGINS:
            raise ValueError(
                "CORS configuration error: ALLOW_CREDENTIALS=True but "
                "CORS_ORIGINS contains '*'. Use explicit origins when credentials "
                "are allowed."
            )
        if self.FLUSH_GRACE_SECONDS < 0:
            raise ValueError("FLUSH_GRACE_SECONDS must not be negative")
        if (
            self.AVAILABILITY_TIMEOUT_SECONDS is not None
            and self.AVAILABILITY_TIMEOUT_SECONDS <= 0
        ):
            raise ValueError("AVAILABILITY_TIMEOUT_SECONDS must be positive when set")
        return self


@lru_cache
def get_settings() -> Settings:
    env = os.getenv("ENVIRONMENT", "development").lower()
    if env not in ENV_FILES:
        raise ValueError("ENVIRONMENT must be 'development', 'production', or 'test'")

    # `_env_file` is a runtime-only pydantic-settings kwarg unknown to mypy
    settings = Settings(_env_file=ENV_FILES[env])  # type: ignore[call-arg]

    if env == "production":
        missing = [name for name in PRODUCTION_REQUIRED if not getattr(settings, name)]
        if missing:
            raise RuntimeError(
                f"Missing required production settings: {', '.join(missing)}"
            )
    return settings
