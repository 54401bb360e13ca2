"""Configuration management for runtrack."""

import locale
import logging
import os
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict
from rich.logging import RichHandler

from .tracking.session import TrackingOptions

logger = logging.getLogger(__name__)

DEFAULT_PREFERENCES_PATH = Path.home() / ".config" / "runtrack" / "preferences.json"


def find_env_file() -> Path | None:
    """Find .env file at git root (project root)."""
    # Search up for git root and use .env there
    current = Path.cwd()
    for parent in [current, *current.parents]:
        if (parent / ".git").exists():
            env_file = parent / ".env"
            if env_file.exists():
                return env_file
            break
    # Fallback to current directory
    local_env = Path.cwd() / ".env"
    if local_env.exists():
        return local_env
    return None


# Find env file once at module load
_env_file = find_env_file()


class Settings(BaseSettings):
    """
    Application settings loaded from RUNTRACK_* environment variables.

    Locally these can also come from a .env file at the project root.
    """

    model_config = SettingsConfigDict(
        env_prefix="RUNTRACK_",
        env_file=_env_file,
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application Settings
    log_level: str = Field(
        default="WARNING",
        description="Logging level",
    )
    preferences_path: Path = Field(
        default=DEFAULT_PREFERENCES_PATH,
        description="JSON file holding the persisted preferences",
    )
    locale_country: str = Field(
        default="",
        description="Two-letter country code for unit defaults; empty detects from locale",
    )

    # Tracking
    tick_interval_seconds: float = Field(
        default=1.0,
        description="Seconds between clock ticks",
        gt=0,
    )
    fix_timeout_seconds: float = Field(
        default=5.0,
        description="How long to wait for the initial position fix",
        gt=0,
    )
    distance_filter_meters: float = Field(
        default=10.0,
        description="Minimum movement between streamed positions",
        ge=0,
    )
    auto_stop_radius_meters: float = Field(
        default=20.0,
        description="Distance from the start point that counts as returned",
        gt=0,
    )
    auto_stop_min_elapsed_seconds: float = Field(
        default=60.0,
        description="Running time required before auto-stop may trigger",
        ge=0,
    )

    def tracking_options(self) -> TrackingOptions:
        """Build the tracker constants from these settings."""
        return TrackingOptions(
            tick_interval_seconds=self.tick_interval_seconds,
            fix_timeout_seconds=self.fix_timeout_seconds,
            distance_filter_meters=self.distance_filter_meters,
            auto_stop_radius_meters=self.auto_stop_radius_meters,
            auto_stop_min_elapsed_seconds=self.auto_stop_min_elapsed_seconds,
        )

    def country_code(self) -> str | None:
        """Configured country, or the one detected from the process locale."""
        return self.locale_country.upper() or detect_country_code()


# Singleton instance
_settings: Settings | None = None


def get_settings() -> Settings:
    """
    Get application settings (singleton pattern).

    Returns:
        Settings instance with all configuration
    """
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reset_settings() -> None:
    """Forget the cached settings so the next call reloads them."""
    global _settings
    _settings = None


def parse_country_code(locale_name: str | None) -> str | None:
    """
    Extract the country from a locale name.

    Args:
        locale_name: Locale such as "en_US.UTF-8" or "de-DE"

    Returns:
        Upper-case country code, or None if the name has no country part
    """
    if not locale_name:
        return None
    tag = locale_name.split(".", 1)[0].split("@", 1)[0].replace("-", "_")
    parts = tag.split("_")
    if len(parts) < 2 or not parts[1]:
        return None
    return parts[1].upper()


def detect_country_code() -> str | None:
    """Country of the process locale, falling back to LC_ALL/LANG."""
    try:
        name = locale.getlocale()[0]
    except ValueError:
        name = None
    country = parse_country_code(name)
    if country:
        return country
    for var in ("LC_ALL", "LANG"):
        country = parse_country_code(os.environ.get(var))
        if country:
            return country
    logger.debug("No country found in locale")
    return None


def configure_logging(level: str | None = None) -> None:
    """Send log records through rich at the configured level."""
    level_name = (level or get_settings().log_level).upper()
    logging.basicConfig(
        level=level_name,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(rich_tracebacks=True, show_path=False)],
        force=True,
    )
