"""
Authorization helpers for the Home Assistant REST API.

The long-lived access token is created by the user in their Home Assistant
profile and is sent verbatim; there is no login or refresh flow.
"""


def get_standard_headers(token: str) -> dict:
    """
    Build the standard HTTP headers used by all authenticated requests.

    :param token: Long-lived access token supplied by the user.
    :return: Dictionary of HTTP headers.
    """
    return {
        "Authorization": f"Bearer {token}",
        "Content-Type": "application/json",
        "accept": "application/json",
    }


def build_url(base_url: str, path: str) -> str:
    """Join the configured server URL and an API path."""
    return base_url.rstrip("/") + path
