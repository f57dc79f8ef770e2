"""
Health classification from the CPU, memory and disk sensor readings.

Pure functions: the engine resolves readings from its snapshot and settings
and passes them in, nothing here reads settings on its own.
"""
from __future__ import annotations

import dataclasses
from typing import Sequence

from .const import HEALTH_DETAILS_FALLBACK
from .models import EntityState, HealthStatus, parse_numeric
from .sensor_detection import SensorType, resolve_sensor


@dataclasses.dataclass(frozen=True)
class SensorReadings:
    """Resolved sensor entity per metric. None when nothing was found."""

    cpu: EntityState | None = None
    memory: EntityState | None = None
    disk: EntityState | None = None

    @classmethod
    def resolve(cls, states: Sequence[EntityState], mappings: dict[SensorType, str | None]) -> SensorReadings:
        return cls(**{
            sensor_type.value: resolve_sensor(states, sensor_type, mappings.get(sensor_type))
            for sensor_type in SensorType
        })

    def get(self, sensor_type: SensorType) -> EntityState | None:
        return getattr(self, sensor_type.value)

    def values(self) -> dict[SensorType, float | None]:
        """Numeric value per metric; None when absent or not a number."""
        result = {}
        for sensor_type in SensorType:
            entity = self.get(sensor_type)
            result[sensor_type] = parse_numeric(entity.state) if entity is not None else None
        return result


def classify(value: float, warning: float, critical: float) -> HealthStatus:
    """Bucket one value. A value equal to a threshold takes that severity."""
    if value >= critical:
        return HealthStatus.CRITICAL
    if value >= warning:
        return HealthStatus.WARNING
    return HealthStatus.HEALTHY


def evaluate_health(readings: SensorReadings, warning: float, critical: float) -> HealthStatus:
    """Classify the worst parsed reading, or UNKNOWN if none parse."""
    parsed = [value for value in readings.values().values() if value is not None]
    if not parsed:
        return HealthStatus.UNKNOWN
    return classify(max(parsed), warning, critical)


def health_details(readings: SensorReadings, warning: float) -> str:
    """Describe every metric at or above the warning threshold, e.g. "CPU: 96%"."""
    issues = [
        f"{sensor_type.label}: {int(value)}%"
        for sensor_type, value in readings.values().items()
        if value is not None and value >= warning
    ]
    return ", ".join(issues) if issues else HEALTH_DETAILS_FALLBACK


def should_notify_health(previous: HealthStatus, current: HealthStatus) -> bool:
    """
    Decide whether a health change deserves an alert.

    Only worsening into WARNING (from HEALTHY or UNKNOWN) or into CRITICAL
    (from anything but CRITICAL) notifies.
    """
    if current is HealthStatus.WARNING:
        return previous in (HealthStatus.HEALTHY, HealthStatus.UNKNOWN)
    if current is HealthStatus.CRITICAL:
        return previous is not HealthStatus.CRITICAL
    return False
