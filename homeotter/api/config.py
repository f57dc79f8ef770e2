"""
Server configuration fetching from the Home Assistant REST API.

Corresponding CURL command:
curl -H 'Authorization: Bearer TOKEN' 'http://homeassistant.local:8123/api/config'
"""
import logging

from homeotter.const import API_CONFIG_PATH
from homeotter.models import ServerConfig
from homeotter.requests import make_request

from .auth import build_url, get_standard_headers

_LOGGER = logging.getLogger(__name__)


async def fetch_config(base_url: str, token: str) -> ServerConfig:
    """
    Fetch and decode the server configuration.

    Raises HomeAssistantError (or its PayloadError subclass) on failure.
    """
    url = build_url(base_url, API_CONFIG_PATH)
    raw_json = await make_request("GET", url, get_standard_headers(token))
    config = ServerConfig.from_json(raw_json)
    _LOGGER.debug("Fetched config for %s (HA %s)", config.location_name, config.version)
    return config
