"""
EngineData — immutable snapshot of the server state shared with the UI.

This is a pure data module with no network dependencies.
"""
from __future__ import annotations

import dataclasses
from datetime import datetime

from .models import ConnectionStatus, EntityState, ServerConfig


@dataclasses.dataclass(frozen=True)
class EngineData:
    """
    Typed, copy-on-write snapshot of everything fetched from the server.

    Always replace via dataclasses.replace(); never mutate in place.
    """

    # /api/config of the last successful refresh
    config: ServerConfig | None = None

    # /api/states of the last successful refresh, in received order
    states: tuple[EntityState, ...] = ()

    status: ConnectionStatus = dataclasses.field(default_factory=ConnectionStatus.disconnected)

    # Wall-clock time of the last successful refresh
    last_update: datetime | None = None

    def get_state(self, entity_id: str) -> EntityState | None:
        for entity in self.states:
            if entity.entity_id == entity_id:
                return entity
        return None
