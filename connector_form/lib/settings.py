"""Environment-based settings for the connector form.

Values are read from ``CONNECTOR_FORM_*`` environment variables or a local
``.env`` file, e.g.::

    CONNECTOR_FORM_LOG_LEVEL=DEBUG
    CONNECTOR_FORM_LOG_FORMAT=json
    CONNECTOR_FORM_VALIDATE_ON_CHANGE=false
"""

from __future__ import annotations

from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

__all__ = ["FormSettings", "get_settings"]


class FormSettings(BaseSettings):
    """Runtime settings for form sessions and the CLI."""

    log_level: str = Field(default="INFO", description="Logging level")
    log_format: str = Field(default="console", description="Log format: 'json' or 'console'")
    log_file: Optional[str] = Field(default=None, description="Optional log file path")
    strip_unknown_on_submit: bool = Field(
        default=True,
        description="Drop keys outside the active rule tree when submitting",
    )
    validate_on_change: bool = Field(
        default=True,
        description="Run a validation pass after every edited value",
    )

    model_config = SettingsConfigDict(
        env_prefix="CONNECTOR_FORM_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @field_validator("log_level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        """Validate log level is a known value."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"log_level must be one of: {valid_levels}")
        return v.upper()

    @field_validator("log_format")
    @classmethod
    def validate_format(cls, v: str) -> str:
        """Validate format is a known value."""
        valid_formats = ["json", "console"]
        if v.lower() not in valid_formats:
            raise ValueError(f"log_format must be one of: {valid_formats}")
        return v.lower()


_settings: FormSettings | None = None


def get_settings(reload: bool = False) -> FormSettings:
    """Get the process-wide settings.

    Args:
        reload: Force re-reading the environment.
    """
    global _settings
    if _settings is None or reload:
        _settings = FormSettings()
    return _settings
