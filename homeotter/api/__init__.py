"""Home Assistant REST API endpoints used by the sync engine."""
from .config import fetch_config
from .services import call_service, toggle
from .states import fetch_states

__all__ = ["call_service", "fetch_config", "fetch_states", "toggle"]
