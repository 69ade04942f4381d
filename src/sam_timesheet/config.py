"""Client configuration loaded from environment variables."""

from pathlib import Path
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings


class SamConfig(BaseSettings):
    """Client configuration loaded from environment variables.

    Settings are loaded from environment variables with sensible defaults.
    For local development, create a .env file in the project root.
    """

    # Portal credentials (form login, no API exists)
    ah_username: str = Field(
        default="",
        description="SAM portal username",
    )
    ah_password: str = Field(
        default="",
        description="SAM portal password",
    )
    sam_url: str = Field(
        default="https://sam.ahold.com/",
        description="SAM portal base URL",
    )

    # Store
    store_path: Path = Field(
        default_factory=lambda: Path.cwd() / "store.json",
        description="JSON file holding the session token and cached months",
    )

    # Durations (seconds)
    timesheet_cache: int = Field(
        default=3600,
        description="How long a fetched current or future month is served from cache",
    )
    token_ttl: int = Field(
        default=3600,
        description="Sliding validity window of the session token",
    )
    request_timeout: float = Field(
        default=5.0,
        description="Timeout applied to every outbound request",
    )

    portal_timezone: str | None = Field(
        default="Europe/Amsterdam",
        description="Timezone in which the portal renders shift times (empty = naive local times)",
    )

    # Logging
    log_json: bool = Field(
        default=False,
        description="Output logs in JSON format (for production)",
    )
    log_level: str = Field(
        default="INFO",
        description="Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
    )

    @field_validator("portal_timezone")
    @classmethod
    def known_timezone(cls, value: str | None) -> str | None:
        if not value:
            return None
        try:
            ZoneInfo(value)
        except (ValueError, ZoneInfoNotFoundError):
            raise ValueError(f"unknown timezone {value!r}") from None
        return value

    model_config = {
        "env_prefix": "",
        "case_sensitive": False,
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }


# Singleton pattern
_config: SamConfig | None = None


def get_config() -> SamConfig:
    """Get the client configuration singleton.

    Returns:
        SamConfig: Client configuration instance
    """
    global _config
    if _config is None:
        _config = SamConfig()
    return _config
