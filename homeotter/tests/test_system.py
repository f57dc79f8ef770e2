"""
Tests for the notification and launch-at-login collaborators.
"""

from __future__ import annotations

import unittest

from homeotter.models import HealthStatus
from homeotter.settings import KeyValueStore
from homeotter.system import LaunchAtLoginService, Notifier

from .test_common import make_notifier, make_settings


class TestAbstractInterfaces(unittest.TestCase):

    def test_notifier_requires_deliver(self):
        class Silent(Notifier):
            pass

        with self.assertRaises(TypeError):
            Silent(make_settings())

    def test_login_service_requires_all_methods(self):
        class RegisterOnly(LaunchAtLoginService):
            def is_enabled(self):
                return False

            def register(self):
                pass

        with self.assertRaises(TypeError):
            RegisterOnly()

    def test_key_value_store_requires_remove(self):
        class NoRemove(KeyValueStore):
            def get(self, key, default=None):
                return default

            def set(self, key, value):
                pass

        with self.assertRaises(TypeError):
            NoRemove()


class TestNotifier(unittest.IsolatedAsyncioTestCase):

    def setUp(self):
        self.notifier = make_notifier(make_settings(notifications_enabled=True))

    async def test_health_alerts_get_unique_identifiers(self):
        await self.notifier.send_health_alert(HealthStatus.WARNING, "CPU: 80%")
        await self.notifier.send_health_alert(HealthStatus.WARNING, "CPU: 81%")

        identifiers = [c.args[0] for c in self.notifier.deliver.await_args_list]
        self.assertEqual(len(identifiers), 2)
        self.assertNotEqual(identifiers[0], identifiers[1])
        for identifier in identifiers:
            self.assertTrue(identifier.startswith("health-alert-"))

    async def test_warning_body(self):
        delivered = await self.notifier.send_health_alert(HealthStatus.WARNING, "Memory: 80%")
        self.assertTrue(delivered)
        _, title, body = self.notifier.deliver.await_args.args
        self.assertEqual(title, "HomeOtter Health Alert")
        self.assertEqual(body, "⚠️ Warning: Memory: 80%")
        self.assertFalse(self.notifier.deliver.await_args.kwargs["critical"])

    async def test_non_alert_status_is_not_delivered(self):
        self.assertFalse(await self.notifier.send_health_alert(HealthStatus.HEALTHY, "ok"))
        self.notifier.deliver.assert_not_awaited()

    async def test_update_available(self):
        self.assertTrue(await self.notifier.send_update_available("2026.11.0"))
        identifier, title, body = self.notifier.deliver.await_args.args
        self.assertEqual(identifier, "ha-update-available")
        self.assertEqual(title, "Home Assistant Update Available")
        self.assertEqual(body, "🎉 Version 2026.11.0 is now available!")

    async def test_disabled_drops_everything(self):
        notifier = make_notifier(make_settings(notifications_enabled=False))
        self.assertFalse(await notifier.send_update_available("2026.11.0"))
        self.assertFalse(await notifier.send_health_alert(HealthStatus.CRITICAL, "CPU: 99%"))
        notifier.deliver.assert_not_awaited()
