"""
Low-level HTTP request helper for Home Assistant REST API communication.
This module performs single-attempt requests and maps every failure to a
HomeAssistantError subclass so callers only have to catch one type.
"""
import asyncio
import logging

import aiohttp


_LOGGER = logging.getLogger(__name__)


class HomeAssistantError(Exception):
    """Base class for any failure talking to the Home Assistant server."""


class RequestFailedError(HomeAssistantError):
    """Raised when no HTTP response was received at all."""


class HttpStatusError(HomeAssistantError):
    """Exception raised when the server answers with a non-2xx status."""
    def __init__(self, status: int):
        self.status = status
        message = f"HTTP Error: {status}"
        if status == 401:
            message += " (check access token)"
        super().__init__(message)


class InvalidResponseError(HomeAssistantError):
    """Raised when a successful response does not carry a JSON body."""


async def make_request(
    method: str,
    url: str,
    headers: dict,
    payload: dict = None,
    timeout: aiohttp.ClientTimeout = None,
):
    """
    Make a single HTTP request and return the decoded JSON body.

    Args:
        method: HTTP method (GET or POST)
        url: Target URL for the request
        headers: HTTP headers dictionary
        payload: JSON payload for POST requests (optional)
        timeout: aiohttp timeout; the library default is used when omitted

    Returns:
        Parsed JSON response

    Raises:
        RequestFailedError: If the server could not be reached
        HttpStatusError: If the response status is not 2xx
        InvalidResponseError: If the body is not valid JSON
    """
    method = method.upper()
    if method not in ("GET", "POST"):
        raise ValueError(f"Unsupported HTTP method: {method}")

    session_kwargs = {} if timeout is None else {"timeout": timeout}
    try:
        async with aiohttp.ClientSession(**session_kwargs) as session:
            async with session.request(method, url, headers=headers, json=payload) as response:
                return await _process_response(response, url)
    except (asyncio.TimeoutError, TimeoutError) as e:
        _LOGGER.warning("Timeout on %s request to %s", method, url)
        raise RequestFailedError(f"Request to {url} timed out") from e
    except aiohttp.InvalidURL as e:
        raise RequestFailedError(f"Invalid URL: {url}") from e
    except aiohttp.ClientError as e:
        _LOGGER.debug("Connection error on %s request to %s: %s", method, url, e)
        raise RequestFailedError(f"Could not connect to server: {e}") from e


async def _process_response(response: aiohttp.ClientResponse, url: str):
    """
    Check the status and decode the JSON body of a response.

    Raises:
        HttpStatusError: For any non-2xx status
        InvalidResponseError: For a 2xx response that is not JSON
    """
    if not 200 <= response.status < 300:
        text = await response.text(errors="replace")
        _LOGGER.debug(
            "Error response from %s: status %s, body preview: %s",
            url, response.status, text[:200]
        )
        raise HttpStatusError(response.status)

    try:
        return await response.json(content_type=None)
    except ValueError as e:
        _LOGGER.warning(
            "Unparseable response from %s (content-type %s)",
            url, response.headers.get("Content-Type", "")
        )
        raise InvalidResponseError("Invalid response from server") from e
