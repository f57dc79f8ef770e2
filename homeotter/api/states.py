"""
Entity state fetching from the Home Assistant REST API.

Corresponding CURL command:
curl -H 'Authorization: Bearer TOKEN' 'http://homeassistant.local:8123/api/states'
"""
import logging

from homeotter.const import API_STATES_PATH
from homeotter.models import EntityState, PayloadError
from homeotter.requests import make_request

from .auth import build_url, get_standard_headers

_LOGGER = logging.getLogger(__name__)


async def fetch_states(base_url: str, token: str) -> list[EntityState]:
    """
    Fetch every entity state known to the server, in the order received.

    The whole list fails to decode if any single entry is malformed.
    """
    url = build_url(base_url, API_STATES_PATH)
    raw_json = await make_request("GET", url, get_standard_headers(token))
    if not isinstance(raw_json, list):
        raise PayloadError(f"Expected a list of states, got {type(raw_json).__name__}")

    states = [EntityState.from_json(item) for item in raw_json]
    _LOGGER.debug("Fetched %s entity states", len(states))
    return states
