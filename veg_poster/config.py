"""veg-poster configuration module.

Loads the optional .env file into the process environment, then builds a
typed Settings object with pydantic-settings. The Settings instance is
created once by the CLI and handed to every component that needs it.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Optional, Union

from dotenv import dotenv_values
from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)

DEFAULT_ENV_FILE = ".env"
DEFAULT_LOCATION = "自家菜園"
ANTHROPIC_KEY_PLACEHOLDER = "sk-ant-..."


def load_env_file(path: Union[str, Path] = DEFAULT_ENV_FILE) -> dict[str, str]:
    """Copy KEY=VALUE pairs from an env file into os.environ.

    Existing environment variables are never overwritten. A missing file is
    a no-op, and read or parse failures only produce a warning.

    Args:
        path: Env file location.

    Returns:
        The variables that were actually set by this call.
    """
    env_path = Path(path)
    loaded: dict[str, str] = {}
    try:
        if not env_path.exists():
            return loaded
        for key, value in dotenv_values(env_path, interpolate=False, encoding="utf-8").items():
            key = key.strip()
            if not key or key in os.environ or value is None:
                continue
            os.environ[key] = value
            loaded[key] = value
    except Exception as e:
        logger.warning(".env load failed: %s", e)
        return loaded

    logger.debug("Loaded %d variables from %s", len(loaded), env_path)
    return loaded


class Settings(BaseSettings):
    """Application settings read from the process environment."""

    model_config = SettingsConfigDict(
        case_sensitive=False,
        extra="ignore",
    )

    # ── Instagram Graph API ──
    ig_business_id: str = Field(
        default="",
        description="Instagram business account ID that owns the posts",
    )
    ig_access_token: SecretStr = Field(
        default=SecretStr(""),
        description="Long-lived Graph API access token",
    )
    graph_api_base: str = Field(
        default="https://graph.facebook.com",
        description="Graph API host",
    )
    graph_api_version: str = Field(
        default="v21.0",
        description="Versioned path segment for Graph API calls",
    )

    # ── Captions ──
    default_location: str = Field(
        default=DEFAULT_LOCATION,
        description="Location used when the filename names none",
    )
    anthropic_api_key: str = Field(
        default="",
        description="Anthropic API key for LLM captions (optional)",
    )
    caption_model: str = Field(
        default="claude-sonnet-4-5-20250929",
        description="Claude model used for LLM captions",
    )

    # ── General ──
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR)",
    )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Ensure log level is valid."""
        valid = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        upper = v.upper()
        if upper not in valid:
            raise ValueError(f"log_level must be one of {valid}, got '{v}'")
        return upper

    @field_validator("graph_api_version")
    @classmethod
    def validate_api_version(cls, v: str) -> str:
        """Graph API versions look like 'v21.0'."""
        if not v.startswith("v"):
            raise ValueError(f"graph_api_version must start with 'v', got '{v}'")
        return v

    @field_validator("default_location")
    @classmethod
    def default_location_fallback(cls, v: str) -> str:
        """A blank value (e.g. `DEFAULT_LOCATION=` in .env) means the default."""
        return v.strip() or DEFAULT_LOCATION

    @field_validator("graph_api_base")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")

    def has_instagram_credentials(self) -> bool:
        """Check if both the business ID and access token are configured."""
        return bool(self.ig_business_id and self.ig_access_token.get_secret_value())

    def has_anthropic_key(self) -> bool:
        """Check if Anthropic API key is configured."""
        return bool(
            self.anthropic_api_key
            and self.anthropic_api_key != ANTHROPIC_KEY_PLACEHOLDER
        )

    def graph_url(self, *parts: str) -> str:
        """Build a versioned Graph API URL from path segments."""
        path = "/".join(p.strip("/") for p in parts)
        return f"{self.graph_api_base}/{self.graph_api_version}/{path}"


def get_settings(env_file: Optional[Union[str, Path]] = None, **overrides: str) -> Settings:
    """Create a Settings instance with optional overrides.

    Args:
        env_file: Env file to load into os.environ first (None = skip).
        **overrides: Key-value pairs to override env/defaults.

    Returns:
        Validated Settings instance.

    Raises:
        ValidationError: If any value fails validation.
    """
    if env_file is not None:
        load_env_file(env_file)
    return Settings(**overrides)
