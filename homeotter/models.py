"""
Domain models for HomeOtter.

This module contains immutable data classes representing Home Assistant
payloads, plus the pure derived accessors the UI reads (friendly names,
display strings, icons, state colors). No HTTP or engine logic lives here.
"""
from __future__ import annotations

import dataclasses
import logging
import math
import string
from enum import Enum
from typing import Any

import voluptuous as vol

from .requests import HomeAssistantError

_LOGGER = logging.getLogger(__name__)


class PayloadError(HomeAssistantError):
    """Raised when a JSON payload does not match the expected shape."""


CONFIG_SCHEMA = vol.Schema(
    {
        vol.Required("location_name"): str,
        vol.Required("version"): str,
        vol.Required("state"): str,
        vol.Required("time_zone"): str,
        vol.Required("latitude"): vol.All(vol.Any(int, float), vol.Coerce(float)),
        vol.Required("longitude"): vol.All(vol.Any(int, float), vol.Coerce(float)),
    },
    extra=vol.ALLOW_EXTRA,
)

STATE_SCHEMA = vol.Schema(
    {
        vol.Required("entity_id"): str,
        vol.Required("state"): str,
        vol.Required("attributes"): dict,
        vol.Required("last_changed"): str,
        vol.Required("last_updated"): str,
    },
    extra=vol.ALLOW_EXTRA,
)


def _validate(schema: vol.Schema, raw: Any, what: str) -> dict:
    try:
        return schema(raw)
    except vol.Invalid as exc:
        raise PayloadError(f"Malformed {what} payload: {exc}") from exc


def parse_numeric(value: str | None) -> float | None:
    """
    Parse a sensor state as a number.

    Comma decimals ("42,5") are accepted. Anything that does not parse,
    including "unavailable" and "unknown", returns None and never 0.
    """
    if value is None:
        return None
    try:
        number = float(value.replace(",", "."))
    except (AttributeError, ValueError):
        return None
    if not math.isfinite(number):
        return None
    return number


def entity_domain(entity_id: str) -> str:
    """Return the domain prefix of an entity id ("light" for "light.kitchen")."""
    return entity_id.split(".", 1)[0]


# ---------------------------------------------------------------------------
# Server config
# ---------------------------------------------------------------------------

@dataclasses.dataclass(frozen=True)
class ServerConfig:
    """Subset of /api/config the app displays."""

    location_name: str
    version: str
    state: str
    time_zone: str
    latitude: float
    longitude: float

    @classmethod
    def from_json(cls, raw: Any) -> ServerConfig:
        data = _validate(CONFIG_SCHEMA, raw, "config")
        return cls(
            location_name=data["location_name"],
            version=data["version"],
            state=data["state"],
            time_zone=data["time_zone"],
            latitude=data["latitude"],
            longitude=data["longitude"],
        )


# ---------------------------------------------------------------------------
# Entity state
# ---------------------------------------------------------------------------

@dataclasses.dataclass(frozen=True)
class EntityAttributes:
    """The handful of entity attributes the app understands. All optional."""

    friendly_name: str | None = None
    unit_of_measurement: str | None = None
    device_class: str | None = None
    installed_version: str | None = None
    latest_version: str | None = None
    entity_picture: str | None = None
    release_url: str | None = None

    @classmethod
    def from_json(cls, raw: dict) -> EntityAttributes:
        # Non-string values (rare, integration specific) are treated as absent
        # instead of failing the whole state list.
        values = {}
        for field in dataclasses.fields(cls):
            value = raw.get(field.name)
            values[field.name] = value if isinstance(value, str) else None
        return cls(**values)


# domain → (icon when "active", icon otherwise, state that counts as active)
_TWO_STATE_ICONS: dict[str, tuple[str, str, str]] = {
    "light": ("mdi:lightbulb", "mdi:lightbulb-outline", "on"),
    "switch": ("mdi:toggle-switch", "mdi:toggle-switch-off", "on"),
    "binary_sensor": ("mdi:checkbox-blank-circle", "mdi:checkbox-blank-circle-outline", "on"),
    "lock": ("mdi:lock", "mdi:lock-open", "locked"),
    "cover": ("mdi:window-shutter-open", "mdi:window-shutter", "open"),
    "update": ("mdi:package-up", "mdi:package-check", "on"),
    "sun": ("mdi:white-balance-sunny", "mdi:weather-night", "above_horizon"),
    "media_player": ("mdi:play-circle", "mdi:pause-circle", "playing"),
}

_STATIC_ICONS: dict[str, str] = {
    "climate": "mdi:thermostat",
    "person": "mdi:account",
    "weather": "mdi:weather-partly-cloudy",
    "vacuum": "mdi:robot-vacuum",
    "fan": "mdi:fan",
    "camera": "mdi:cctv",
    "alarm_control_panel": "mdi:shield-home",
}

DEFAULT_ICON = "mdi:help-circle"


class StateColor(str, Enum):
    """Color class of an entity state."""

    POSITIVE = "positive"
    INACTIVE = "inactive"
    ERROR = "error"
    DEFAULT = "default"


_STATE_COLORS: dict[str, StateColor] = {
    **dict.fromkeys(("on", "open", "unlocked", "playing", "home", "above_horizon"), StateColor.POSITIVE),
    **dict.fromkeys(("off", "closed", "locked", "paused", "idle", "away", "below_horizon"), StateColor.INACTIVE),
    **dict.fromkeys(("unavailable", "unknown"), StateColor.ERROR),
}


@dataclasses.dataclass(frozen=True)
class EntityState:
    """One entry of /api/states. Identified by entity_id."""

    entity_id: str
    state: str
    attributes: EntityAttributes = dataclasses.field(default_factory=EntityAttributes)
    last_changed: str = ""
    last_updated: str = ""

    @classmethod
    def from_json(cls, raw: Any) -> EntityState:
        data = _validate(STATE_SCHEMA, raw, "state")
        return cls(
            entity_id=data["entity_id"],
            state=data["state"],
            attributes=EntityAttributes.from_json(data["attributes"]),
            last_changed=data["last_changed"],
            last_updated=data["last_updated"],
        )

    @property
    def domain(self) -> str:
        return entity_domain(self.entity_id)

    @property
    def object_id(self) -> str:
        return self.entity_id.split(".", 1)[-1]

    @property
    def friendly_name(self) -> str:
        if self.attributes.friendly_name:
            return self.attributes.friendly_name
        return string.capwords(self.object_id.replace("_", " "))

    @property
    def display_state(self) -> str:
        unit = self.attributes.unit_of_measurement
        if unit:
            return f"{self.state} {unit}"
        return _capitalize(self.state)

    @property
    def numeric_state(self) -> float | None:
        return parse_numeric(self.state)

    @property
    def icon(self) -> str:
        domain = self.domain
        if domain == "sensor":
            return self._sensor_icon()
        if domain in _TWO_STATE_ICONS:
            active_icon, inactive_icon, active_state = _TWO_STATE_ICONS[domain]
            return active_icon if self.state == active_state else inactive_icon
        return _STATIC_ICONS.get(domain, DEFAULT_ICON)

    def _sensor_icon(self) -> str:
        unit = self.attributes.unit_of_measurement or ""
        if "°" in unit or unit in ("C", "F", "K"):
            return "mdi:thermometer"
        if "%" in unit and "humidity" in self.entity_id:
            return "mdi:water-percent"
        if "%" in unit and "battery" in self.entity_id:
            return "mdi:battery"
        if "W" in unit:
            return "mdi:flash"
        if "lx" in unit or "lm" in unit:
            return "mdi:brightness-5"
        return "mdi:eye"

    @property
    def state_color(self) -> StateColor:
        return _STATE_COLORS.get(self.state.lower(), StateColor.DEFAULT)


def _capitalize(text: str) -> str:
    return string.capwords(text, " ") if text else text


# ---------------------------------------------------------------------------
# User selections
# ---------------------------------------------------------------------------

@dataclasses.dataclass(frozen=True)
class DashboardEntity:
    """A pinned entity. Serialized as {"entity_id": ...}."""

    entity_id: str

    def to_json(self) -> dict:
        return {"entity_id": self.entity_id}

    @classmethod
    def from_json(cls, raw: dict) -> DashboardEntity:
        return cls(entity_id=raw["entity_id"])


class AppearanceMode(str, Enum):
    AUTO = "auto"
    LIGHT = "light"
    DARK = "dark"


# ---------------------------------------------------------------------------
# Status variants
# ---------------------------------------------------------------------------

class ConnectionState(str, Enum):
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    ERROR = "error"


_CONNECTION_ICONS = {
    ConnectionState.DISCONNECTED: "mdi:wifi-off",
    ConnectionState.CONNECTING: "mdi:wifi-sync",
    ConnectionState.CONNECTED: "mdi:wifi",
    ConnectionState.ERROR: "mdi:alert",
}

_CONNECTION_DESCRIPTIONS = {
    ConnectionState.DISCONNECTED: "Disconnected",
    ConnectionState.CONNECTING: "Connecting...",
    ConnectionState.CONNECTED: "Connected",
}


@dataclasses.dataclass(frozen=True)
class ConnectionStatus:
    """disconnected | connecting | connected | error(message)."""

    state: ConnectionState
    message: str | None = None

    @classmethod
    def disconnected(cls) -> ConnectionStatus:
        return cls(ConnectionState.DISCONNECTED)

    @classmethod
    def connecting(cls) -> ConnectionStatus:
        return cls(ConnectionState.CONNECTING)

    @classmethod
    def connected(cls) -> ConnectionStatus:
        return cls(ConnectionState.CONNECTED)

    @classmethod
    def error(cls, message: str) -> ConnectionStatus:
        return cls(ConnectionState.ERROR, message)

    @property
    def is_error(self) -> bool:
        return self.state is ConnectionState.ERROR

    @property
    def icon(self) -> str:
        return _CONNECTION_ICONS[self.state]

    @property
    def description(self) -> str:
        if self.is_error:
            return self.message or "Unknown error"
        return _CONNECTION_DESCRIPTIONS[self.state]


class HealthStatus(str, Enum):
    HEALTHY = "healthy"
    WARNING = "warning"
    CRITICAL = "critical"
    UNKNOWN = "unknown"

    @property
    def icon(self) -> str:
        return {
            HealthStatus.HEALTHY: "mdi:shield-check",
            HealthStatus.WARNING: "mdi:shield-alert",
            HealthStatus.CRITICAL: "mdi:shield-remove",
            HealthStatus.UNKNOWN: "mdi:help-circle",
        }[self]
