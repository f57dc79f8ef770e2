"""
Operating-system collaborators: notification delivery and launch-at-login.

The engine only decides *when* to notify; these classes decide *whether*
(the notifications_enabled setting) and *how*. Platform front-ends subclass
Notifier.deliver and LaunchAtLoginService; the defaults here log only.
"""
from __future__ import annotations

import logging
import uuid
from abc import ABC, abstractmethod

from .const import HEALTH_ALERT_TITLE, UPDATE_ALERT_TITLE
from .models import HealthStatus
from .settings import SettingsStore

_LOGGER = logging.getLogger(__name__)


class Notifier(ABC):
    """Formats alerts and hands them to deliver() when notifications are enabled."""

    def __init__(self, settings: SettingsStore) -> None:
        self.settings = settings

    async def async_request_permission(self) -> bool:
        """Ask the platform for permission to post notifications."""
        return True

    @abstractmethod
    async def deliver(self, identifier: str, title: str, body: str, critical: bool = False) -> None:
        raise NotImplementedError

    async def send_health_alert(self, status: HealthStatus, details: str) -> bool:
        """Post a health alert. Returns True if something was delivered."""
        if not self.settings.notifications_enabled:
            _LOGGER.debug("Notifications disabled, dropping %s health alert", status.value)
            return False

        if status is HealthStatus.WARNING:
            body = f"⚠️ Warning: {details}"
        elif status is HealthStatus.CRITICAL:
            body = f"🚨 Critical: {details}"
        else:
            return False

        await self._safe_deliver(f"health-alert-{uuid.uuid4()}", HEALTH_ALERT_TITLE, body,
                                 critical=status is HealthStatus.CRITICAL)
        return True

    async def send_update_available(self, version: str) -> bool:
        """Post an update-available alert. Returns True if something was delivered."""
        if not self.settings.notifications_enabled:
            _LOGGER.debug("Notifications disabled, dropping update alert for %s", version)
            return False
        await self._safe_deliver("ha-update-available", UPDATE_ALERT_TITLE,
                                 f"🎉 Version {version} is now available!")
        return True

    async def _safe_deliver(self, identifier: str, title: str, body: str, critical: bool = False) -> None:
        try:
            await self.deliver(identifier, title, body, critical=critical)
        except Exception as exc:  # noqa: BLE001
            _LOGGER.error("Failed to send notification %s: %s", identifier, exc)


class LogNotifier(Notifier):
    """Notifier for headless use: every notification becomes a log line."""

    async def deliver(self, identifier: str, title: str, body: str, critical: bool = False) -> None:
        level = logging.WARNING if critical else logging.INFO
        _LOGGER.log(level, "%s: %s", title, body)


class LaunchAtLoginService(ABC):
    """Registers the app as a login item."""

    @abstractmethod
    def is_enabled(self) -> bool:
        raise NotImplementedError

    @abstractmethod
    def register(self) -> None:
        raise NotImplementedError

    @abstractmethod
    def unregister(self) -> None:
        raise NotImplementedError


class MemoryLaunchAtLoginService(LaunchAtLoginService):
    """Keeps the login-item flag in memory; for headless use and tests."""

    def __init__(self, enabled: bool = False) -> None:
        self._enabled = enabled

    def is_enabled(self) -> bool:
        return self._enabled

    def register(self) -> None:
        self._enabled = True

    def unregister(self) -> None:
        self._enabled = False
