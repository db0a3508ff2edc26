"""Authorization URL construction."""

from __future__ import annotations

from urllib.parse import urlencode

from radio.exceptions import ConfigError
from radio.models import ServiceDescriptor, is_absolute_url


def build_authorize_url(
    service: ServiceDescriptor,
    client_id: str,
    redirect_uri: str,
    csrf_token: str,
    pkce_challenge: str,
) -> str:
    """Build the provider URL the user opens in a browser to grant access.

    Args:
        service: Provider endpoints and requested scopes.
        client_id: The app's public client identifier.
        redirect_uri: Where the provider sends the browser back to; must
            match the URI registered for the app.
        csrf_token: The ``state`` value to round-trip through the provider.
        pkce_challenge: S256 challenge derived from the flow's verifier.

    Returns:
        The authorization URL with all parameters form-encoded.

    Raises:
        ConfigError: If ``service.authorize_endpoint`` is not an absolute
            http(s) URL.
    """
    base = service.authorize_endpoint
    if not is_absolute_url(base):
        raise ConfigError(f"Invalid authorization endpoint: {base!r}")

    params: dict[str, str] = {
        "response_type": "code",
        "client_id": client_id,
        "redirect_uri": redirect_uri,
    }
    if service.scopes:
        params["scope"] = " ".join(service.scopes)
    params["state"] = csrf_token
    params["code_challenge"] = pkce_challenge
    params["code_challenge_method"] = "S256"

    if base.endswith(("?", "&")):
        separator = ""
    else:
        separator = "&" if "?" in base else "?"
    return f"{base}{separator}{urlencode(params)}"
