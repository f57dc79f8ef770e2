"""HomeOtter: a menu-bar companion core for Home Assistant."""
from .const import VERSION
from .settings import JsonFileKeyValueStore, MemoryKeyValueStore, SettingsStore
from .sync_engine import SyncEngine

__version__ = VERSION

__all__ = [
    "JsonFileKeyValueStore",
    "MemoryKeyValueStore",
    "SettingsStore",
    "SyncEngine",
    "__version__",
]
