"""Exception hierarchy for radio.

All exceptions inherit from :class:`RadioError`, which carries an
``exit_code`` attribute mapped to a constant from :mod:`radio.exit_codes`.
The top-level error handler in :func:`radio.app.main` catches
``RadioError`` and exits with the appropriate code, while unexpected
exceptions produce a crash log and exit with :data:`EXIT_GENERIC_FAILURE`.

Every way the OAuth login flow can fail has its own :class:`AuthError`
subclass so callers can decide on a retry policy per failure kind. None
of them are retried inside the flow itself.

Subclass hierarchy::

    RadioError (exit 1)
    +-- InvalidUsageError          (exit 2)
    +-- ConfigError                (exit 1)
    +-- AuthError                  (exit 3)
    |   +-- BindFailure
    |   +-- NoConnectionAccepted
    |   +-- MalformedRedirectRequest
    |   +-- MissingQueryParameter
    |   +-- AuthorizationDenied
    |   +-- StateMismatch
    |   +-- TokenExchangeFailure
    |   +-- FlowError
    +-- ServerError                (exit 5)
    +-- ConnectionError_           (exit 6)
"""

from __future__ import annotations

from typing import Optional

from radio.exit_codes import (
    EXIT_AUTH_FAILURE,
    EXIT_CONNECTION_ERROR,
    EXIT_GENERIC_FAILURE,
    EXIT_INVALID_USAGE,
    EXIT_SERVER_ERROR,
)


class RadioError(Exception):
    """Base exception for all radio errors.

    Every subclass sets a class-level ``exit_code`` corresponding to one of
    the constants in :mod:`radio.exit_codes`. The entry point catches
    this exception type and calls ``sys.exit(exc.exit_code)``.

    Args:
        message: Human-readable error description printed to stderr.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class InvalidUsageError(RadioError):
    """Raised for invalid CLI arguments such as an unknown provider name."""

    exit_code = EXIT_INVALID_USAGE


class ConfigError(RadioError):
    """Raised for configuration problems (missing file, invalid JSON, bad credential sources)."""

    exit_code = EXIT_GENERIC_FAILURE


class AuthError(RadioError):
    """Raised when the login flow fails or the API rejects the access token."""

    exit_code = EXIT_AUTH_FAILURE


class ServerError(RadioError):
    """Raised when the API returns an HTTP 5xx server error."""

    exit_code = EXIT_SERVER_ERROR


class ConnectionError_(RadioError):
    """Raised on network-level failures (timeout, DNS resolution, connection refused).

    Named with a trailing underscore to avoid shadowing the built-in
    ``ConnectionError``.
    """

    exit_code = EXIT_CONNECTION_ERROR


# --- Login flow failures ---


class BindFailure(AuthError):
    """The redirect listener could not bind its local address (usually: port in use)."""


class NoConnectionAccepted(AuthError):
    """The redirect listener closed, or its deadline expired, before a browser connected."""


class MalformedRedirectRequest(AuthError):
    """The redirect request line could not be parsed into a URL."""


class MissingQueryParameter(AuthError):
    """The redirect URL parsed fine but lacks a required query parameter.

    Args:
        name: The missing parameter (``"code"`` or ``"state"``).
    """

    def __init__(self, name: str):
        super().__init__(f"Failed to find '{name}' in redirect query parameters")
        self.name = name


class AuthorizationDenied(AuthError):
    """The provider redirected back with an ``error`` instead of a ``code``.

    Args:
        error: The OAuth error code (e.g. ``access_denied``).
        description: Optional ``error_description`` sent by the provider.
    """

    def __init__(self, error: str, description: Optional[str] = None):
        message = f"Authorization failed: {error}"
        if description:
            message += f" - {description}"
        super().__init__(message)
        self.error = error
        self.description = description


class StateMismatch(AuthError):
    """The ``state`` returned by the provider differs from the one we generated."""

    def __init__(self) -> None:
        super().__init__(
            "State mismatch: the redirect did not come from the login we started"
        )


class TokenExchangeFailure(AuthError):
    """Exchanging the authorization code for an access token failed.

    Args:
        detail: Diagnostic text. Never contains the client secret.
        status_code: HTTP status of the token endpoint response, when one
            was received.
    """

    def __init__(self, detail: str, status_code: Optional[int] = None):
        message = "Token exchange failed"
        if status_code is not None:
            message += f" with status {status_code}"
        super().__init__(f"{message}: {detail}")
        self.detail = detail
        self.status_code = status_code


class FlowError(AuthError):
    """A login flow was driven out of order (e.g. run twice)."""
