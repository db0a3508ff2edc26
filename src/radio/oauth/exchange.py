"""Authorization code to access token exchange.

:class:`TokenExchanger` is the seam the login flow depends on: anything
that can turn ``(code, verifier)`` into a bearer token. Production code
uses :class:`HttpTokenExchanger`; tests substitute a fake and never touch
the network.
"""

from __future__ import annotations

import logging
from typing import Any, Optional, Protocol

import httpx

from radio.exceptions import TokenExchangeFailure
from radio.models import AppCredentials, ServiceDescriptor

logger = logging.getLogger(__name__)


class TokenExchanger(Protocol):
    """Capability: exchange an authorization code for an access token."""

    def exchange(self, code: str, code_verifier: str) -> str:
        """Return the bearer access token for *code*.

        Raises:
            TokenExchangeFailure: If no token could be obtained.
        """
        ...


class HttpTokenExchanger:
    """POST the authorization code to the provider's token endpoint.

    The request body carries ``client_id`` and ``client_secret``
    (``client_secret_post``) together with the PKCE ``code_verifier``.
    Redirects are never followed: a 3xx from the token endpoint is treated
    as a failure rather than replaying the code and secret to another
    host.

    Args:
        service: Provider whose ``token_endpoint`` is called.
        credentials: The app's client id and secret.
        redirect_uri: The redirect URI used in the authorization request.
        client: Optional pre-configured :class:`httpx.Client` (e.g. with a
            mock transport). Its redirect setting is overridden per request.
        timeout: Request timeout in seconds when no *client* is given.
    """

    def __init__(
        self,
        service: ServiceDescriptor,
        credentials: AppCredentials,
        redirect_uri: str,
        client: Optional[httpx.Client] = None,
        timeout: float = 30.0,
    ) -> None:
        self.service = service
        self.credentials = credentials
        self.redirect_uri = redirect_uri
        self._client = client
        self._timeout = timeout

    def exchange(self, code: str, code_verifier: str) -> str:
        """Exchange *code* for an access token.

        Args:
            code: The authorization code from the redirect.
            code_verifier: The PKCE verifier paired with the challenge sent
                in the authorization request.

        Returns:
            The ``access_token`` string from the JSON response.

        Raises:
            TokenExchangeFailure: On transport errors, non-2xx responses,
                non-JSON bodies, or a missing ``access_token`` field.
        """
        data: dict[str, str] = {
            "grant_type": "authorization_code",
            "code": code,
            "redirect_uri": self.redirect_uri,
            "client_id": self.credentials.client_id,
            "client_secret": self.credentials.client_secret.get_secret_value(),
            "code_verifier": code_verifier,
        }

        if self._client is not None:
            response = self._post(self._client, data)
        else:
            with httpx.Client(timeout=self._timeout, follow_redirects=False) as client:
                response = self._post(client, data)

        logger.debug(
            "Token endpoint %s answered %s", self.service.token_endpoint, response.status_code
        )
        return _parse_token_response(response)

    def _post(self, client: httpx.Client, data: dict[str, str]) -> httpx.Response:
        try:
            return client.post(
                self.service.token_endpoint,
                data=data,
                headers={"Accept": "application/json"},
                follow_redirects=False,
            )
        except httpx.HTTPError as exc:
            # httpx messages name the URL, never the form body.
            raise TokenExchangeFailure(f"{type(exc).__name__}: {exc}") from exc


def _parse_token_response(response: httpx.Response) -> str:
    """Pull ``access_token`` out of a token endpoint response."""
    if not response.is_success:
        raise TokenExchangeFailure(_describe_error(response), status_code=response.status_code)

    try:
        token_data: Any = response.json()
    except ValueError as exc:
        raise TokenExchangeFailure(
            "response body is not valid JSON", status_code=response.status_code
        ) from exc

    if not isinstance(token_data, dict):
        raise TokenExchangeFailure(
            "response body is not a JSON object", status_code=response.status_code
        )

    access_token = token_data.get("access_token")
    if not isinstance(access_token, str) or not access_token:
        raise TokenExchangeFailure(
            "Token response missing 'access_token' field", status_code=response.status_code
        )
    return access_token


def _describe_error(response: httpx.Response) -> str:
    """Summarise an error response using its RFC 6749 ``error`` fields when present."""
    if response.is_redirect:
        location = response.headers.get("location", "")
        return f"unexpected redirect to {location!r} (redirects are not followed)"

    try:
        body: Any = response.json()
    except ValueError:
        body = None

    if isinstance(body, dict) and isinstance(body.get("error"), str):
        detail = body["error"]
        description = body.get("error_description")
        if isinstance(description, str) and description:
            detail += f" - {description}"
        return detail
    return response.reason_phrase or "request rejected"
