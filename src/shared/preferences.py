"""Persisted user preferences: unit system and auto-stop."""

import json
import logging
from pathlib import Path
from typing import Any, Protocol

from .models import UnitSystem

logger = logging.getLogger(__name__)

USE_METRIC_KEY = "useMetric"
AUTO_STOP_KEY = "autoStopEnabled"

# Countries that default to imperial units
IMPERIAL_COUNTRIES = frozenset({"US"})


class PreferenceStore(Protocol):
    """Key/value store for boolean preferences."""

    def get_bool(self, key: str, default: bool) -> bool: ...

    def set_bool(self, key: str, value: bool) -> None: ...


class JsonPreferenceStore:
    """Preference store backed by a JSON object on disk."""

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    def _load(self) -> dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            with open(self.path) as f:
                data = json.load(f)
        except (json.JSONDecodeError, OSError) as e:
            logger.warning(f"Ignoring unreadable preferences file {self.path}: {e}")
            return {}
        if not isinstance(data, dict):
            logger.warning(f"Ignoring malformed preferences file {self.path}")
            return {}
        return data

    def get_bool(self, key: str, default: bool) -> bool:
        """Read a boolean, falling back to default when absent or not a bool."""
        value = self._load().get(key)
        return value if isinstance(value, bool) else default

    def set_bool(self, key: str, value: bool) -> None:
        """Write a boolean and persist the whole file."""
        data = self._load()
        data[key] = value
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, "w") as f:
            json.dump(data, f, indent=2)
        logger.debug(f"Saved preference {key}={value} to {self.path}")


def default_use_metric(country_code: str | None) -> bool:
    """Metric everywhere except countries that use imperial units."""
    return (country_code or "").upper() not in IMPERIAL_COUNTRIES


class UserPreferences:
    """
    Unit and auto-stop preferences.

    Values are read from the store once, when loaded, and written back on
    every change.
    """

    def __init__(self, store: PreferenceStore, use_metric: bool, auto_stop_enabled: bool) -> None:
        self._store = store
        self._use_metric = use_metric
        self._auto_stop_enabled = auto_stop_enabled

    @classmethod
    def load(cls, store: PreferenceStore, country_code: str | None = None) -> "UserPreferences":
        """
        Load preferences from a store.

        Args:
            store: Preference store
            country_code: Device country, used for the first-launch unit default

        Returns:
            Loaded preferences
        """
        use_metric = store.get_bool(USE_METRIC_KEY, default_use_metric(country_code))
        auto_stop = store.get_bool(AUTO_STOP_KEY, False)
        return cls(store, use_metric=use_metric, auto_stop_enabled=auto_stop)

    @property
    def use_metric(self) -> bool:
        return self._use_metric

    @property
    def auto_stop_enabled(self) -> bool:
        return self._auto_stop_enabled

    @property
    def unit_system(self) -> UnitSystem:
        return UnitSystem.from_flag(self._use_metric)

    def set_use_metric(self, value: bool) -> None:
        self._use_metric = value
        self._store.set_bool(USE_METRIC_KEY, value)

    def set_auto_stop(self, value: bool) -> None:
        self._auto_stop_enabled = value
        self._store.set_bool(AUTO_STOP_KEY, value)

    def toggle_units(self) -> bool:
        """Flip between metric and imperial; returns the new use_metric."""
        self.set_use_metric(not self._use_metric)
        return self._use_metric

    def toggle_auto_stop(self) -> bool:
        """Flip auto-stop; returns the new value."""
        self.set_auto_stop(not self._auto_stop_enabled)
        return self._auto_stop_enabled
