"""
Headless runner: poll a Home Assistant server and log what the menu bar
would show.

    python -m homeotter --settings ~/.config/homeotter/settings.json
"""
import argparse
import asyncio
import logging
import os

from .const import ENV_TOKEN, ENV_URL
from .settings import JsonFileKeyValueStore, SettingsStore
from .sync_engine import SyncEngine

_LOGGER = logging.getLogger(__name__)

DEFAULT_SETTINGS_PATH = "~/.config/homeotter/settings.json"


def parse_args(argv=None):
    parser = argparse.ArgumentParser(prog="homeotter", description=__doc__.strip().splitlines()[0])
    parser.add_argument("--settings", default=DEFAULT_SETTINGS_PATH, help="settings file path")
    parser.add_argument("--once", action="store_true", help="refresh once and exit")
    parser.add_argument("-v", "--verbose", action="store_true", help="debug logging")
    return parser.parse_args(argv)


def build_engine(settings_path: str) -> SyncEngine:
    settings = SettingsStore(JsonFileKeyValueStore(settings_path))
    # Environment overrides the stored connection, handy for containers
    if os.getenv(ENV_URL):
        settings.base_url = os.environ[ENV_URL]
    if os.getenv(ENV_TOKEN):
        settings.access_token = os.environ[ENV_TOKEN]
    return SyncEngine(settings)


def _log_snapshot(engine: SyncEngine) -> None:
    status = engine.data.status
    if status.state.value == "connecting":
        return
    _LOGGER.info(
        "[%s] %s | health=%s | %s",
        engine.status_indicator(),
        status.description,
        engine.overall_health.value,
        engine.menu_bar_text() or "-",
    )


async def _run(args) -> int:
    engine = build_engine(args.settings)
    if not engine.is_configured:
        _LOGGER.error(
            "No server configured. Set %s and %s or edit %s", ENV_URL, ENV_TOKEN, args.settings
        )
        return 1

    engine.async_add_listener(lambda: _log_snapshot(engine))
    if args.once:
        await engine.async_refresh()
        return 0 if not engine.data.status.is_error else 2

    await engine.async_start()
    try:
        await asyncio.Event().wait()
    finally:
        await engine.async_shutdown()
    return 0


def main(argv=None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    try:
        return asyncio.run(_run(args))
    except KeyboardInterrupt:
        return 0


if __name__ == "__main__":
    raise SystemExit(main())
