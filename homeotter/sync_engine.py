"""
SyncEngine — polling and state synchronisation for HomeOtter.

Responsibilities:
- Poll /api/config and /api/states every refresh_interval seconds and keep
  the latest EngineData snapshot.
- Derive health from the CPU / memory / disk sensors and alert on worsening.
- Alert once when a Home Assistant core update becomes available.
- Expose the command surface used by the UI: toggle, pin/unpin, menu-bar
  sensor selection and settings changes with their side effects.
- Notify subscribed listeners after every mutation.

All mutation happens on the event loop thread. Overlapping refreshes are not
serialised; the one that finishes last wins.
"""
from __future__ import annotations

import asyncio
import dataclasses
import logging
from datetime import datetime
from typing import Callable, Coroutine

from . import api
from .const import CORE_UPDATE_ENTITY_ID, MAX_MENU_BAR_SENSORS, SENSOR_HISTORY_SIZE, TOGGLE_SETTLE_DELAY
from .engine_data import EngineData
from .health import SensorReadings, classify, evaluate_health, health_details, should_notify_health
from .history import SensorHistory
from .models import (
    AppearanceMode,
    ConnectionState,
    ConnectionStatus,
    DashboardEntity,
    EntityState,
    HealthStatus,
    entity_domain,
    parse_numeric,
)
from .requests import HomeAssistantError
from .sensor_detection import SensorType
from .settings import SettingsStore
from .system import LaunchAtLoginService, LogNotifier, MemoryLaunchAtLoginService, Notifier

_LOGGER = logging.getLogger(__name__)

MENU_BAR_SEPARATOR = " │ "


class SyncEngine:
    """
    Owns the snapshot of one Home Assistant server.

    The UI reads `data`, the derived properties and `history`, subscribes with
    async_add_listener() and changes things only through the methods below.
    """

    def __init__(
        self,
        settings: SettingsStore,
        notifier: Notifier | None = None,
        login_service: LaunchAtLoginService | None = None,
        history_size: int = SENSOR_HISTORY_SIZE,
    ) -> None:
        self.settings = settings
        self.notifier = notifier if notifier is not None else LogNotifier(settings)
        self.login_service = login_service if login_service is not None else MemoryLaunchAtLoginService()
        self.history = SensorHistory(history_size)

        # Snapshot starts empty; readers must handle config=None until first refresh
        self.data = EngineData()

        self._listeners: list[Callable[[], None]] = []
        self._previous_health: HealthStatus = HealthStatus.UNKNOWN
        self._previous_update_available: bool = False
        self._refresh_task: asyncio.Task | None = None
        self._background_tasks: set[asyncio.Task] = set()

        # The OS is the source of truth for the login item
        self.settings.launch_at_login = self.login_service.is_enabled()

    # ------------------------------------------------------------------
    # Listeners
    # ------------------------------------------------------------------

    def async_add_listener(self, update_callback: Callable[[], None]) -> Callable[[], None]:
        """Subscribe to changes. Returns a callable that unsubscribes."""
        self._listeners.append(update_callback)

        def remove_listener() -> None:
            if update_callback in self._listeners:
                self._listeners.remove(update_callback)

        return remove_listener

    def _async_notify_listeners(self) -> None:
        for update_callback in list(self._listeners):
            try:
                update_callback()
            except Exception:  # noqa: BLE001
                _LOGGER.exception("Error in update listener %s", update_callback)

    def _set_data(self, new_data: EngineData) -> None:
        self.data = new_data
        self._async_notify_listeners()

    def _set_status(self, status: ConnectionStatus) -> None:
        self._set_data(dataclasses.replace(self.data, status=status))

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def async_start(self) -> None:
        """Ask for notification permission, start polling and refresh once."""
        granted = await self.notifier.async_request_permission()
        if granted and not self.settings.notifications_configured:
            self.settings.notifications_enabled = True

        self.start_auto_refresh()
        if self.settings.is_configured:
            await self.async_refresh()

    async def async_shutdown(self) -> None:
        """Stop polling and cancel any refresh or toggle still running."""
        self.stop_auto_refresh()
        for task in list(self._background_tasks):
            task.cancel()
        if self._background_tasks:
            await asyncio.gather(*self._background_tasks, return_exceptions=True)
        self._background_tasks.clear()

    def _create_task(self, coro: Coroutine) -> asyncio.Task:
        task = asyncio.ensure_future(coro)
        self._background_tasks.add(task)
        task.add_done_callback(self._background_tasks.discard)
        return task

    # ------------------------------------------------------------------
    # Periodic refresh
    # ------------------------------------------------------------------

    def start_auto_refresh(self) -> None:
        """(Re)start polling. Any previously scheduled timer is cancelled first."""
        self.stop_auto_refresh()
        interval = self.settings.refresh_interval
        _LOGGER.debug("Auto refresh every %s seconds", interval)
        self._refresh_task = asyncio.ensure_future(self._auto_refresh_loop(interval))

    def stop_auto_refresh(self) -> None:
        if self._refresh_task is not None:
            self._refresh_task.cancel()
            self._refresh_task = None

    @property
    def is_auto_refreshing(self) -> bool:
        return self._refresh_task is not None and not self._refresh_task.done()

    async def _auto_refresh_loop(self, interval: int) -> None:
        while True:
            await asyncio.sleep(interval)
            # Runs as its own task so restarting the timer never cancels a fetch
            self._create_task(self.async_refresh())

    # ------------------------------------------------------------------
    # Refresh
    # ------------------------------------------------------------------

    async def async_refresh(self) -> None:
        """
        Fetch config and states concurrently and replace the snapshot.

        Never raises for remote failures: they become ConnectionStatus.error and
        the previous config and states are kept.
        """
        if not self.settings.is_configured:
            self._set_status(ConnectionStatus.disconnected())
            return

        self._set_status(ConnectionStatus.connecting())
        base_url = self.settings.base_url
        token = self.settings.access_token

        results = await asyncio.gather(
            api.fetch_config(base_url, token),
            api.fetch_states(base_url, token),
            return_exceptions=True,
        )
        for result in results:
            if isinstance(result, HomeAssistantError):
                _LOGGER.warning("Refresh from %s failed: %s", base_url, result)
                self._set_status(ConnectionStatus.error(str(result)))
                return
            if isinstance(result, BaseException):
                raise result

        config, states = results
        self._set_data(EngineData(
            config=config,
            states=tuple(states),
            status=ConnectionStatus.connected(),
            last_update=datetime.now(),
        ))

        readings = self.sensor_readings
        self.history.record(readings.values())
        await self._check_health_change(readings)
        await self._check_update_availability()

    async def _check_health_change(self, readings: SensorReadings) -> None:
        warning = self.settings.warning_threshold
        current = evaluate_health(readings, warning, self.settings.critical_threshold)
        previous = self._previous_health
        self._previous_health = current

        if should_notify_health(previous, current):
            details = health_details(readings, warning)
            _LOGGER.info("Health changed from %s to %s: %s", previous.value, current.value, details)
            await self.notifier.send_health_alert(current, details)
        elif current is not previous:
            _LOGGER.debug("Health changed from %s to %s", previous.value, current.value)

    async def _check_update_availability(self) -> None:
        update_entity = self.update_entity
        available = update_entity is not None and update_entity.state == "on"
        was_available = self._previous_update_available
        self._previous_update_available = available

        if available and not was_available:
            version = update_entity.attributes.latest_version
            if version:
                await self.notifier.send_update_available(version)
            else:
                _LOGGER.debug("Update available but no latest_version attribute")

    # ------------------------------------------------------------------
    # Derived state
    # ------------------------------------------------------------------

    @property
    def is_configured(self) -> bool:
        return self.settings.is_configured

    @property
    def sensor_readings(self) -> SensorReadings:
        return SensorReadings.resolve(self.data.states, self.settings.sensor_mappings)

    @property
    def overall_health(self) -> HealthStatus:
        return evaluate_health(
            self.sensor_readings,
            self.settings.warning_threshold,
            self.settings.critical_threshold,
        )

    def health_details(self) -> str:
        return health_details(self.sensor_readings, self.settings.warning_threshold)

    def metric_severity(self, value: str | None) -> HealthStatus:
        """Gauge color class for one raw sensor state."""
        number = parse_numeric(value)
        if number is None:
            return HealthStatus.UNKNOWN
        return classify(number, self.settings.warning_threshold, self.settings.critical_threshold)

    def get_state(self, entity_id: str) -> EntityState | None:
        return self.data.get_state(entity_id)

    @property
    def update_entity(self) -> EntityState | None:
        return self.data.get_state(CORE_UPDATE_ENTITY_ID)

    @property
    def is_update_available(self) -> bool:
        entity = self.update_entity
        return entity is not None and entity.state == "on"

    @property
    def dashboard_states(self) -> list[EntityState]:
        pinned = {entity.entity_id for entity in self.settings.dashboard_entities}
        return [entity for entity in self.data.states if entity.entity_id in pinned]

    @property
    def grouped_states(self) -> dict[str, list[EntityState]]:
        groups: dict[str, list[EntityState]] = {}
        for entity in self.data.states:
            groups.setdefault(entity_domain(entity.entity_id), []).append(entity)
        return groups

    def status_indicator(self) -> str:
        """Return "update", "error" or the health value, in that priority."""
        if self.is_update_available:
            return "update"
        if self.data.status.is_error:
            return "error"
        return self.overall_health.value

    def menu_bar_text(self) -> str:
        values = []
        for entity_id in self.settings.menu_bar_sensor_ids:
            entity = self.data.get_state(entity_id)
            if entity is not None:
                values.append(entity.display_state)
        return MENU_BAR_SEPARATOR.join(values)

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    async def async_toggle_entity(self, entity_id: str) -> None:
        """
        Toggle an entity, wait for the server to settle, then refresh.

        There is no optimistic update. Failures are logged and swallowed.
        """
        if not self.settings.is_configured:
            return

        try:
            await api.toggle(self.settings.base_url, self.settings.access_token, entity_id)
        except HomeAssistantError as exc:
            _LOGGER.error("Failed to toggle %s: %s", entity_id, exc)
            return

        await asyncio.sleep(TOGGLE_SETTLE_DELAY)
        await self.async_refresh()

    def toggle_entity(self, entity_id: str) -> asyncio.Task:
        """Fire-and-forget variant of async_toggle_entity for UI callbacks."""
        return self._create_task(self.async_toggle_entity(entity_id))

    async def async_test_connection(self, base_url: str, token: str) -> tuple[bool, str]:
        """
        Try candidate credentials by refreshing with them.

        They stay applied on success; on failure the previous ones are restored.
        """
        original_url = self.settings.base_url
        original_token = self.settings.access_token
        self.settings.base_url = base_url
        self.settings.access_token = token

        await self.async_refresh()

        status = self.data.status
        if status.state is ConnectionState.CONNECTED:
            config = self.data.config
            self._async_notify_listeners()
            return True, f"Connected to {config.location_name} (HA {config.version})"

        self.settings.base_url = original_url
        self.settings.access_token = original_token
        self._async_notify_listeners()
        return False, status.message if status.is_error else "Connection failed"

    # --- dashboard --------------------------------------------------------

    def add_to_dashboard(self, entity_id: str) -> None:
        entities = self.settings.dashboard_entities
        if any(entity.entity_id == entity_id for entity in entities):
            return
        entities.append(DashboardEntity(entity_id))
        self.settings.dashboard_entities = entities
        self._async_notify_listeners()

    def remove_from_dashboard(self, entity_id: str) -> None:
        entities = self.settings.dashboard_entities
        remaining = [entity for entity in entities if entity.entity_id != entity_id]
        if len(remaining) == len(entities):
            return
        self.settings.dashboard_entities = remaining
        self._async_notify_listeners()

    def is_in_dashboard(self, entity_id: str) -> bool:
        return any(entity.entity_id == entity_id for entity in self.settings.dashboard_entities)

    # --- menu bar sensors -------------------------------------------------

    def add_menu_bar_sensor(self, entity_id: str) -> bool:
        """Append a sensor. No-op (False) if already present or the list is full."""
        ids = self.settings.menu_bar_sensor_ids
        if entity_id in ids or len(ids) >= MAX_MENU_BAR_SENSORS:
            return False
        ids.append(entity_id)
        self.settings.menu_bar_sensor_ids = ids
        self._async_notify_listeners()
        return True

    def remove_menu_bar_sensor(self, entity_id: str) -> bool:
        ids = self.settings.menu_bar_sensor_ids
        if entity_id not in ids:
            return False
        ids.remove(entity_id)
        self.settings.menu_bar_sensor_ids = ids
        self._async_notify_listeners()
        return True

    def move_menu_bar_sensor_up(self, entity_id: str) -> bool:
        return self._swap_menu_bar_sensor(entity_id, -1)

    def move_menu_bar_sensor_down(self, entity_id: str) -> bool:
        return self._swap_menu_bar_sensor(entity_id, 1)

    def _swap_menu_bar_sensor(self, entity_id: str, offset: int) -> bool:
        ids = self.settings.menu_bar_sensor_ids
        if entity_id not in ids:
            return False
        index = ids.index(entity_id)
        target = index + offset
        if not 0 <= target < len(ids):
            return False
        ids[index], ids[target] = ids[target], ids[index]
        self.settings.menu_bar_sensor_ids = ids
        self._async_notify_listeners()
        return True

    # --- settings with side effects --------------------------------------

    def set_connection(self, base_url: str, token: str) -> None:
        self.settings.base_url = base_url
        self.settings.access_token = token
        self._async_notify_listeners()

    def set_refresh_interval(self, seconds: int) -> None:
        """Store the interval and restart polling so the next tick uses it."""
        self.settings.refresh_interval = seconds
        if self.is_auto_refreshing:
            self.start_auto_refresh()
        self._async_notify_listeners()

    def set_warning_threshold(self, value: int) -> None:
        self.settings.set_warning_threshold(value)
        self._async_notify_listeners()

    def set_critical_threshold(self, value: int) -> None:
        self.settings.set_critical_threshold(value)
        self._async_notify_listeners()

    def set_sensor_entity_id(self, sensor_type: SensorType, entity_id: str | None) -> None:
        self.settings.set_sensor_entity_id(sensor_type, entity_id)
        self._async_notify_listeners()

    def set_appearance_mode(self, mode: AppearanceMode | str) -> None:
        self.settings.appearance_mode = mode
        self._async_notify_listeners()

    def set_notifications_enabled(self, enabled: bool) -> None:
        self.settings.notifications_enabled = enabled
        self._async_notify_listeners()

    def set_launch_at_login(self, enabled: bool) -> None:
        """Persist the flag and (un)register the login item."""
        self.settings.launch_at_login = enabled
        try:
            if enabled and not self.login_service.is_enabled():
                self.login_service.register()
            elif not enabled and self.login_service.is_enabled():
                self.login_service.unregister()
        except Exception as exc:  # noqa: BLE001
            _LOGGER.error("Failed to update launch at login status: %s", exc)
        self._async_notify_listeners()
