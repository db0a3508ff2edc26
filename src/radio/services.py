"""Built-in provider registry.

Each :class:`Provider` bundles what radio needs to talk to one music
service: the OAuth :class:`~radio.models.ServiceDescriptor` used to log in
and the album search endpoint queried with the resulting token.
"""

from __future__ import annotations

from urllib.parse import quote

from pydantic import BaseModel, ConfigDict, Field

from radio.exceptions import InvalidUsageError
from radio.models import ServiceDescriptor

_QUERY_PLACEHOLDER = "{query}"


class Provider(BaseModel):
    """A music service radio can log in to and search.

    ``search_url`` and the values of ``search_params`` may contain a
    ``{query}`` placeholder. In the URL it is replaced with the
    percent-encoded query; in parameters with the raw query (httpx encodes
    parameters itself).
    """

    model_config = ConfigDict(frozen=True)

    name: str
    label: str
    service: ServiceDescriptor
    search_url: str
    search_params: dict[str, str] = Field(default_factory=dict)

    def search_request(self, query: str) -> tuple[str, dict[str, str]]:
        """Return the ``(url, params)`` of an album search for *query*."""
        url = self.search_url.replace(_QUERY_PLACEHOLDER, quote(query, safe=""))
        params = {
            key: value.replace(_QUERY_PLACEHOLDER, query)
            for key, value in self.search_params.items()
        }
        return url, params


TIDAL = Provider(
    name="tidal",
    label="Tidal",
    service=ServiceDescriptor(
        authorize_endpoint="https://login.tidal.com/authorize",
        token_endpoint="https://auth.tidal.com/v1/oauth2/token",
        scopes=("search.read",),
    ),
    search_url="https://openapi.tidal.com/v2/searchResults/{query}",
    search_params={"countryCode": "GB", "include": "albums"},
)

SPOTIFY = Provider(
    name="spotify",
    label="Spotify",
    service=ServiceDescriptor(
        authorize_endpoint="https://accounts.spotify.com/authorize",
        token_endpoint="https://accounts.spotify.com/api/token",
    ),
    search_url="https://api.spotify.com/v1/search",
    search_params={"q": "{query}", "type": "album"},
)

SERVICES: dict[str, Provider] = {p.name: p for p in (TIDAL, SPOTIFY)}
"""Providers by name, in the order ``radio demo`` visits them."""


def get_provider(name: str) -> Provider:
    """Look up a provider by (case-insensitive) name.

    Raises:
        InvalidUsageError: If no provider has that name.
    """
    provider = SERVICES.get(name.lower())
    if provider is None:
        known = ", ".join(SERVICES)
        raise InvalidUsageError(f"Unknown provider '{name}'. Choose one of: {known}")
    return provider
