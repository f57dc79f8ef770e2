"""
SensorHistory: bounded in-memory sample windows for sparkline display.

Never persisted; the windows start empty on every launch.
"""
from __future__ import annotations

from collections import deque

from .const import SENSOR_HISTORY_SIZE
from .sensor_detection import SensorType


class SensorHistory:
    """Rolling window of recent percentage values per metric."""

    def __init__(self, capacity: int = SENSOR_HISTORY_SIZE) -> None:
        if capacity < 1:
            raise ValueError("capacity must be at least 1")
        self.capacity = capacity
        self._samples: dict[SensorType, deque[float]] = {
            sensor_type: deque(maxlen=capacity) for sensor_type in SensorType
        }

    def record(self, values: dict[SensorType, float | None]) -> None:
        """Append one sample per metric. Missing values are skipped, not zero-filled."""
        for sensor_type, value in values.items():
            if value is not None:
                self._samples[sensor_type].append(value)

    def samples(self, sensor_type: SensorType) -> list[float]:
        """Oldest first."""
        return list(self._samples[sensor_type])

    def latest(self, sensor_type: SensorType) -> float | None:
        window = self._samples[sensor_type]
        return window[-1] if window else None

    def clear(self) -> None:
        for window in self._samples.values():
            window.clear()
