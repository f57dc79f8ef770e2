"""
Best-effort detection of the system monitor sensors used for health.

Used only when the user has not mapped an entity for a metric. Matching is
by substring on the entity id and friendly name; the first match in the order
the server returned the states wins.
"""
from __future__ import annotations

import logging
from enum import Enum
from typing import Iterable, Sequence

from .models import EntityState

_LOGGER = logging.getLogger(__name__)


class SensorType(str, Enum):
    CPU = "cpu"
    MEMORY = "memory"
    DISK = "disk"

    @property
    def label(self) -> str:
        return {SensorType.CPU: "CPU", SensorType.MEMORY: "Memory", SensorType.DISK: "Disk"}[self]


_CPU_TOKENS = ("processor", "cpu")
_USAGE_TOKENS = ("use", "usage", "load")
_MEMORY_TOKENS = ("memory", "ram", "geheugen")
_DISK_TOKENS = ("disk", "storage", "schijf")


def _contains_any(haystacks: tuple[str, ...], tokens: tuple[str, ...]) -> bool:
    return any(token in haystack for haystack in haystacks for token in tokens)


def matches_sensor_type(entity: EntityState, sensor_type: SensorType) -> bool:
    """Return True if the entity looks like the given system monitor sensor."""
    if not entity.entity_id.startswith("sensor."):
        return False

    haystacks = (entity.entity_id.lower(), entity.friendly_name.lower())
    is_percent = entity.attributes.unit_of_measurement == "%"

    if sensor_type is SensorType.CPU:
        return _contains_any(haystacks, _CPU_TOKENS) and _contains_any(haystacks, _USAGE_TOKENS)
    if sensor_type is SensorType.MEMORY:
        return _contains_any(haystacks, _MEMORY_TOKENS) and is_percent
    if sensor_type is SensorType.DISK:
        return _contains_any(haystacks, _DISK_TOKENS) and is_percent
    return False


def auto_detect_sensor(states: Iterable[EntityState], sensor_type: SensorType) -> EntityState | None:
    """Return the first entity matching sensor_type, or None."""
    for entity in states:
        if matches_sensor_type(entity, sensor_type):
            return entity
    return None


def resolve_sensor(
    states: Sequence[EntityState],
    sensor_type: SensorType,
    configured_entity_id: str | None,
) -> EntityState | None:
    """
    Resolve the entity used for a metric.

    An explicitly configured id is looked up by exact match. When it is not
    set, or not present in the current snapshot, detection is used instead.
    """
    if configured_entity_id:
        for entity in states:
            if entity.entity_id == configured_entity_id:
                return entity
        _LOGGER.debug(
            "Configured %s sensor %s not found, falling back to detection",
            sensor_type.value, configured_entity_id,
        )
    return auto_detect_sensor(states, sensor_type)
