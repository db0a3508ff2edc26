"""Album search against a provider's API using a bearer token.

Status handling mirrors the rest of the error hierarchy: 401/403 become
:class:`~radio.exceptions.AuthError`, 5xx :class:`~radio.exceptions.ServerError`,
transport failures :class:`~radio.exceptions.ConnectionError_`.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

import httpx

from radio.exceptions import AuthError, ConnectionError_, RadioError, ServerError
from radio.services import Provider

logger = logging.getLogger(__name__)

_TIMEOUT = 30.0


def search(
    provider: Provider,
    token: str,
    query: str,
    client: Optional[httpx.Client] = None,
) -> Any:
    """Search *provider* for albums matching *query*.

    Args:
        provider: The service to query.
        token: Bearer access token from :func:`radio.oauth.login`.
        query: Free-text search, e.g. ``"radiohead in rainbows"``.
        client: Optional :class:`httpx.Client` to send the request with.

    Returns:
        The decoded JSON body, or the raw text if the body is not JSON.
    """
    url, params = provider.search_request(query)
    headers = {"Authorization": f"Bearer {token}", "Accept": "application/json"}

    try:
        if client is not None:
            response = client.get(url, params=params, headers=headers)
        else:
            with httpx.Client(timeout=_TIMEOUT) as own_client:
                response = own_client.get(url, params=params, headers=headers)
    except httpx.TimeoutException as exc:
        raise ConnectionError_(f"Request to {provider.label} timed out: {exc}") from exc
    except httpx.HTTPError as exc:
        raise ConnectionError_(f"Cannot reach {provider.label}: {exc}") from exc

    logger.debug("%s search answered %s", provider.label, response.status_code)
    _raise_for_status(provider, response)

    try:
        return response.json()
    except ValueError:
        return response.text


def _raise_for_status(provider: Provider, response: httpx.Response) -> None:
    status = response.status_code
    if status in (401, 403):
        raise AuthError(f"{provider.label} rejected the access token (HTTP {status})")
    if status >= 500:
        raise ServerError(f"{provider.label} server error (HTTP {status})")
    if status >= 400:
        raise RadioError(f"{provider.label} search failed (HTTP {status}): {response.text}")
