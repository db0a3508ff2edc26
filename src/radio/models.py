"""Canonical Pydantic models shared across radio modules.

**OAuth inputs** -- supplied by the caller of :func:`radio.oauth.login`:
    :class:`AppCredentials` (one per registered app) and
    :class:`ServiceDescriptor` (one per provider). Both are frozen: a login
    flow never mutates what it was given.

**Configuration** -- serialised as JSON in the user's config directory:
    :class:`RadioConfig`.

The per-flow values (:class:`~radio.oauth.pkce.FlowState`,
:class:`~radio.oauth.listener.RedirectResult`) are plain dataclasses that
live next to the code that produces them.
"""

from __future__ import annotations

from typing import Optional
from urllib.parse import urlsplit

from pydantic import BaseModel, ConfigDict, Field, SecretStr, field_validator


def is_absolute_url(value: str) -> bool:
    """Return ``True`` if *value* is an absolute ``http``/``https`` URL with a host."""
    try:
        parts = urlsplit(value)
    except ValueError:
        return False
    return parts.scheme in ("http", "https") and bool(parts.netloc)


class AppCredentials(BaseModel):
    """Client credentials of an app registered with an OAuth provider.

    ``client_secret`` is a :class:`~pydantic.SecretStr`, so it is masked in
    ``repr()``, ``str()`` and log output. Call ``get_secret_value()`` only
    at the point where it goes on the wire.

    Example::

        AppCredentials(client_id="abc", client_secret="s3cr3t")
    """

    model_config = ConfigDict(frozen=True)

    client_id: str = Field(min_length=1)
    client_secret: SecretStr


class ServiceDescriptor(BaseModel):
    """OAuth endpoints and scopes of a single provider.

    Example::

        ServiceDescriptor(
            authorize_endpoint="https://login.tidal.com/authorize",
            token_endpoint="https://auth.tidal.com/v1/oauth2/token",
            scopes=("search.read",),
        )
    """

    model_config = ConfigDict(frozen=True)

    authorize_endpoint: str
    token_endpoint: str
    scopes: tuple[str, ...] = ()

    @field_validator("authorize_endpoint", "token_endpoint")
    @classmethod
    def _must_be_absolute(cls, value: str) -> str:
        if not is_absolute_url(value):
            raise ValueError(f"not an absolute http(s) URL: {value!r}")
        return value


class RadioConfig(BaseModel):
    """Contents of ``config.json`` in the radio config directory.

    Each provider section is optional; a missing section only matters when
    that provider is used. Credential values may be literal strings or
    ``env:VAR`` / ``file:/path`` sources, resolved by
    :func:`radio.config.load_config` before validation.

    Example file::

        {
          "tidal": {"client_id": "abc", "client_secret": "env:TIDAL_SECRET"},
          "spotify": {"client_id": "def", "client_secret": "file:~/.spotify"},
          "redirect_timeout": 300
        }
    """

    spotify: Optional[AppCredentials] = None
    tidal: Optional[AppCredentials] = None
    redirect_timeout: Optional[float] = Field(
        default=None,
        gt=0,
        description="Seconds to wait for the browser redirect (None = wait forever)",
    )
    open_browser: bool = Field(
        default=True,
        description="Open the authorization URL in the default browser",
    )

    def credentials_for(self, provider: str) -> Optional[AppCredentials]:
        """Return the configured credentials for *provider*, or ``None``."""
        value = getattr(self, provider, None)
        return value if isinstance(value, AppCredentials) else None
