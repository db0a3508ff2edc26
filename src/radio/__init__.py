"""radio -- log in to music services with OAuth2 + PKCE and search them.

The core is :mod:`radio.oauth`, an interactive OAuth2 Authorization Code
login that needs no server: the user's browser is sent to the provider,
a one-shot listener on ``127.0.0.1:8080`` catches the redirect, and the
code is exchanged for a bearer token. The rest of the package is the
small application around it.

Typical use::

    radio login tidal
    radio search spotify "radiohead in rainbows"

Modules:
    oauth: The login flow (PKCE, authorization URL, listener, exchange).
    app: Typer application and CLI entry point.
    models: Pydantic models for credentials, services, and config.
    config: XDG-aware config loading and credential sources.
    services: Built-in providers (Tidal, Spotify).
    search: Bearer-authenticated album search.
    exceptions: Exception hierarchy with exit-code mapping.
    exit_codes: Numeric exit codes following clig.dev conventions.
    output: stdout/stderr formatting system with Rich support.
"""

__version__ = "0.1.0"
