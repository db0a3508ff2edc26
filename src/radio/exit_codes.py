"""Numeric process exit codes following `clig.dev <https://clig.dev/>`_ conventions.

Each constant maps to a specific error category and is referenced by the
corresponding :class:`~radio.exceptions.RadioError` subclass. Shell
wrappers can inspect the exit code to tell a rejected login apart from a
network failure without parsing stderr.

Example::

    $ radio login tidal
    $ echo $?
    3   # EXIT_AUTH_FAILURE -- the login flow was aborted
"""

EXIT_SUCCESS = 0
"""The command completed successfully."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred."""

EXIT_INVALID_USAGE = 2
"""The command was invoked with invalid arguments (e.g. an unknown provider)."""

EXIT_AUTH_FAILURE = 3
"""The OAuth login flow failed or the API rejected the access token."""

EXIT_SERVER_ERROR = 5
"""The remote API returned an HTTP 5xx server error."""

EXIT_CONNECTION_ERROR = 6
"""A network-level error occurred (timeout, DNS failure, connection refused)."""

EXIT_INTERRUPTED = 130
"""The user cancelled with Ctrl-C."""
