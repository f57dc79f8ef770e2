"""
Service calls against the Home Assistant REST API.

Corresponding CURL command:
curl -X 'POST' \\
  -H 'Authorization: Bearer TOKEN' \\
  -d '{"entity_id": "light.kitchen"}' \\
  'http://homeassistant.local:8123/api/services/light/toggle'
"""
import logging

from homeotter.const import API_SERVICE_PATH
from homeotter.models import entity_domain
from homeotter.requests import make_request

from .auth import build_url, get_standard_headers

_LOGGER = logging.getLogger(__name__)


async def call_service(base_url: str, token: str, domain: str, service: str, entity_id: str) -> None:
    """Invoke a service for one entity. The response body is ignored."""
    url = build_url(base_url, API_SERVICE_PATH.format(domain=domain, service=service))
    await make_request("POST", url, get_standard_headers(token), payload={"entity_id": entity_id})
    _LOGGER.debug("Called %s.%s for %s", domain, service, entity_id)


async def toggle(base_url: str, token: str, entity_id: str) -> None:
    """Toggle an entity using the generic toggle service of its own domain."""
    domain = entity_domain(entity_id) or "homeassistant"
    await call_service(base_url, token, domain, "toggle", entity_id)
