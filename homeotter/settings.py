"""
Persistent user settings.

SettingsStore exposes typed accessors over a flat key-value store. Getters
never raise: an unset or unreadable key yields its documented default.
Setters validate with voluptuous and raise vol.Invalid on bad input.

Lists (dashboard entities, menu-bar sensors) are stored as JSON array strings,
every other value as a primitive.
"""
from __future__ import annotations

import json
import logging
import os
import tempfile
from abc import ABC, abstractmethod
from typing import Any, Callable

import voluptuous as vol

from .const import (
    CONF_ACCESS_TOKEN,
    CONF_APPEARANCE_MODE,
    CONF_BASE_URL,
    CONF_CPU_ENTITY_ID,
    CONF_CRITICAL_THRESHOLD,
    CONF_DASHBOARD_ENTITIES,
    CONF_DISK_ENTITY_ID,
    CONF_LAUNCH_AT_LOGIN,
    CONF_MEMORY_ENTITY_ID,
    CONF_MENU_BAR_SENSOR_IDS,
    CONF_NOTIFICATIONS_ENABLED,
    CONF_REFRESH_INTERVAL,
    CONF_WARNING_THRESHOLD,
    DEFAULT_APPEARANCE_MODE,
    DEFAULT_CRITICAL_THRESHOLD,
    DEFAULT_REFRESH_INTERVAL,
    DEFAULT_WARNING_THRESHOLD,
    MAX_MENU_BAR_SENSORS,
    MAX_THRESHOLD,
    MIN_REFRESH_INTERVAL,
    MIN_THRESHOLD,
    THRESHOLD_GAP,
)
from .models import AppearanceMode, DashboardEntity
from .sensor_detection import SensorType

_LOGGER = logging.getLogger(__name__)

# Warning stops one below the maximum and critical one above the minimum so
# the auto-adjusted partner value can always stay strictly on its side.
warning_threshold = vol.All(vol.Coerce(int), vol.Range(min=MIN_THRESHOLD, max=MAX_THRESHOLD - 1))
critical_threshold = vol.All(vol.Coerce(int), vol.Range(min=MIN_THRESHOLD + 1, max=MAX_THRESHOLD))
refresh_interval = vol.All(vol.Coerce(int), vol.Range(min=MIN_REFRESH_INTERVAL))
stripped_string = vol.All(str, vol.Strip)
base_url = vol.All(stripped_string, lambda value: value.rstrip("/"))
entity_id = vol.All(stripped_string, vol.Match(r"^[a-z0-9_]+\.[A-Za-z0-9_]+$"))
optional_entity_id = vol.Any(None, "", entity_id)
appearance_mode = vol.All(vol.Coerce(AppearanceMode))
boolean = vol.Boolean()

SENSOR_MAPPING_KEYS: dict[SensorType, str] = {
    SensorType.CPU: CONF_CPU_ENTITY_ID,
    SensorType.MEMORY: CONF_MEMORY_ENTITY_ID,
    SensorType.DISK: CONF_DISK_ENTITY_ID,
}


# ---------------------------------------------------------------------------
# Key-value backends
# ---------------------------------------------------------------------------

class KeyValueStore(ABC):
    """Minimal get/set-by-key storage interface."""

    @abstractmethod
    def get(self, key: str, default: Any = None) -> Any:
        raise NotImplementedError

    @abstractmethod
    def set(self, key: str, value: Any) -> None:
        raise NotImplementedError

    @abstractmethod
    def remove(self, key: str) -> None:
        raise NotImplementedError

    def __contains__(self, key: str) -> bool:
        sentinel = object()
        return self.get(key, sentinel) is not sentinel


class MemoryKeyValueStore(KeyValueStore):
    """Non-durable store, used by tests and as a scratch backend."""

    def __init__(self, initial: dict | None = None) -> None:
        self._data: dict[str, Any] = dict(initial or {})

    def get(self, key: str, default: Any = None) -> Any:
        return self._data.get(key, default)

    def set(self, key: str, value: Any) -> None:
        self._data[key] = value

    def remove(self, key: str) -> None:
        self._data.pop(key, None)


class JsonFileKeyValueStore(KeyValueStore):
    """
    Durable store backed by a single JSON object on disk.

    The file is read once on construction and rewritten atomically
    (temp file + rename) on every write.
    """

    def __init__(self, file_path: str) -> None:
        self.file_path = os.path.abspath(os.path.expanduser(file_path))
        os.makedirs(os.path.dirname(self.file_path), exist_ok=True)
        self._data = self._load()

    def _load(self) -> dict[str, Any]:
        if not os.path.exists(self.file_path):
            return {}
        try:
            with open(self.file_path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (json.JSONDecodeError, OSError) as e:
            _LOGGER.warning("Failed to load settings file %s: %s", self.file_path, e)
            return {}
        if not isinstance(data, dict):
            _LOGGER.warning("Settings file %s does not hold an object, ignoring it", self.file_path)
            return {}
        return data

    def _save(self) -> None:
        fd, temp_path = tempfile.mkstemp(
            dir=os.path.dirname(self.file_path),
            prefix=".settings_tmp_",
            suffix=".json",
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(self._data, f, indent=2, sort_keys=True)
            # The file holds the access token
            os.chmod(temp_path, 0o600)
            os.replace(temp_path, self.file_path)
        except Exception:
            try:
                os.unlink(temp_path)
            except OSError:
                pass
            raise

    def get(self, key: str, default: Any = None) -> Any:
        return self._data.get(key, default)

    def set(self, key: str, value: Any) -> None:
        self._data[key] = value
        self._save()

    def remove(self, key: str) -> None:
        if self._data.pop(key, None) is not None:
            self._save()


# ---------------------------------------------------------------------------
# Typed accessors
# ---------------------------------------------------------------------------

class SettingsStore:
    """Typed settings on top of a KeyValueStore."""

    def __init__(self, store: KeyValueStore | None = None) -> None:
        self.store = store if store is not None else MemoryKeyValueStore()

    def _get(self, key: str, validator: Callable[[Any], Any], default: Any) -> Any:
        raw = self.store.get(key)
        if raw is None:
            return default
        try:
            return validator(raw)
        except vol.Invalid as exc:
            _LOGGER.warning("Ignoring invalid stored value for %s: %s", key, exc)
            return default

    def _get_json_list(self, key: str) -> list:
        raw = self.store.get(key)
        if raw is None:
            return []
        try:
            value = json.loads(raw)
        except (TypeError, ValueError) as exc:
            _LOGGER.warning("Ignoring unreadable stored list for %s: %s", key, exc)
            return []
        if not isinstance(value, list):
            _LOGGER.warning("Ignoring stored value for %s: not a list", key)
            return []
        return value

    # --- connection -------------------------------------------------------

    @property
    def base_url(self) -> str:
        return self._get(CONF_BASE_URL, base_url, "")

    @base_url.setter
    def base_url(self, value: str) -> None:
        self.store.set(CONF_BASE_URL, base_url(value))

    @property
    def access_token(self) -> str:
        return self._get(CONF_ACCESS_TOKEN, stripped_string, "")

    @access_token.setter
    def access_token(self, value: str) -> None:
        self.store.set(CONF_ACCESS_TOKEN, stripped_string(value))

    @property
    def is_configured(self) -> bool:
        return bool(self.base_url) and bool(self.access_token)

    # --- sensor mappings --------------------------------------------------

    def get_sensor_entity_id(self, sensor_type: SensorType) -> str | None:
        value = self._get(SENSOR_MAPPING_KEYS[sensor_type], optional_entity_id, None)
        return value or None

    def set_sensor_entity_id(self, sensor_type: SensorType, value: str | None) -> None:
        value = optional_entity_id(value)
        key = SENSOR_MAPPING_KEYS[sensor_type]
        if value:
            self.store.set(key, value)
        else:
            self.store.remove(key)

    @property
    def sensor_mappings(self) -> dict[SensorType, str | None]:
        return {sensor_type: self.get_sensor_entity_id(sensor_type) for sensor_type in SensorType}

    # --- thresholds -------------------------------------------------------

    @property
    def warning_threshold(self) -> int:
        return self._get(CONF_WARNING_THRESHOLD, warning_threshold, DEFAULT_WARNING_THRESHOLD)

    @property
    def critical_threshold(self) -> int:
        return self._get(CONF_CRITICAL_THRESHOLD, critical_threshold, DEFAULT_CRITICAL_THRESHOLD)

    def set_warning_threshold(self, value: int) -> None:
        """Store warning; raise critical to keep it above warning if needed."""
        value = warning_threshold(value)
        self.store.set(CONF_WARNING_THRESHOLD, value)
        if value >= self.critical_threshold:
            self.store.set(CONF_CRITICAL_THRESHOLD, min(value + THRESHOLD_GAP, MAX_THRESHOLD))

    def set_critical_threshold(self, value: int) -> None:
        """Store critical; lower warning to keep it below critical if needed."""
        value = critical_threshold(value)
        self.store.set(CONF_CRITICAL_THRESHOLD, value)
        if value <= self.warning_threshold:
            self.store.set(CONF_WARNING_THRESHOLD, max(value - THRESHOLD_GAP, MIN_THRESHOLD))

    # --- refresh / appearance / toggles ----------------------------------

    @property
    def refresh_interval(self) -> int:
        return self._get(CONF_REFRESH_INTERVAL, refresh_interval, DEFAULT_REFRESH_INTERVAL)

    @refresh_interval.setter
    def refresh_interval(self, value: int) -> None:
        self.store.set(CONF_REFRESH_INTERVAL, refresh_interval(value))

    @property
    def appearance_mode(self) -> AppearanceMode:
        return self._get(CONF_APPEARANCE_MODE, appearance_mode, AppearanceMode(DEFAULT_APPEARANCE_MODE))

    @appearance_mode.setter
    def appearance_mode(self, value: AppearanceMode | str) -> None:
        self.store.set(CONF_APPEARANCE_MODE, appearance_mode(value).value)

    @property
    def launch_at_login(self) -> bool:
        return self._get(CONF_LAUNCH_AT_LOGIN, boolean, False)

    @launch_at_login.setter
    def launch_at_login(self, value: bool) -> None:
        self.store.set(CONF_LAUNCH_AT_LOGIN, boolean(value))

    @property
    def notifications_enabled(self) -> bool:
        return self._get(CONF_NOTIFICATIONS_ENABLED, boolean, False)

    @notifications_enabled.setter
    def notifications_enabled(self, value: bool) -> None:
        self.store.set(CONF_NOTIFICATIONS_ENABLED, boolean(value))

    @property
    def notifications_configured(self) -> bool:
        """True once the user (or a permission grant) has set the flag."""
        return CONF_NOTIFICATIONS_ENABLED in self.store

    # --- dashboard --------------------------------------------------------

    @property
    def dashboard_entities(self) -> list[DashboardEntity]:
        entities = []
        for item in self._get_json_list(CONF_DASHBOARD_ENTITIES):
            if isinstance(item, dict) and isinstance(item.get("entity_id"), str):
                entities.append(DashboardEntity.from_json(item))
        return entities

    @dashboard_entities.setter
    def dashboard_entities(self, entities: list[DashboardEntity]) -> None:
        self.store.set(CONF_DASHBOARD_ENTITIES, json.dumps([e.to_json() for e in entities]))

    # --- menu bar sensors -------------------------------------------------

    @property
    def menu_bar_sensor_ids(self) -> list[str]:
        ids: list[str] = []
        for item in self._get_json_list(CONF_MENU_BAR_SENSOR_IDS):
            if isinstance(item, str) and item not in ids:
                ids.append(item)
        return ids[:MAX_MENU_BAR_SENSORS]

    @menu_bar_sensor_ids.setter
    def menu_bar_sensor_ids(self, ids: list[str]) -> None:
        unique = list(dict.fromkeys(ids))
        if len(unique) > MAX_MENU_BAR_SENSORS:
            raise vol.Invalid(f"at most {MAX_MENU_BAR_SENSORS} menu bar sensors allowed")
        self.store.set(CONF_MENU_BAR_SENSOR_IDS, json.dumps(unique))
