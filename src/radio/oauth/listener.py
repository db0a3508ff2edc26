"""Single-use loopback listener that catches the provider's redirect.

:class:`RedirectListener` binds ``127.0.0.1:8080`` (the redirect URI the
apps are registered with), accepts exactly one connection, reads its
request line, answers with a short plain-text page and closes both the
connection and the listening socket. It is not an HTTP server: headers
and bodies are never interpreted, and a second request is never served.

The parsing half is exposed separately as :func:`parse_request_line` so
it can be exercised without sockets.
"""

from __future__ import annotations

import logging
import socket
from dataclasses import dataclass, field
from typing import Optional
from urllib.parse import parse_qsl, urlsplit

from radio.exceptions import (
    AuthError,
    AuthorizationDenied,
    BindFailure,
    FlowError,
    MalformedRedirectRequest,
    MissingQueryParameter,
    NoConnectionAccepted,
)

logger = logging.getLogger(__name__)

REDIRECT_HOST = "127.0.0.1"
REDIRECT_PORT = 8080

SUCCESS_MESSAGE = "Go back to your terminal :)"

_SYNTHETIC_BASE = "http://localhost"
_MAX_REQUEST_LINE = 8192
_MAX_HEADER_LINES = 100
_READ_TIMEOUT = 10.0


@dataclass(frozen=True)
class RedirectResult:
    """The ``code`` and ``state`` query parameters of the redirect request."""

    code: str = field(repr=False)
    state: str


def _first(pairs: list[tuple[str, str]], name: str) -> Optional[str]:
    for key, value in pairs:
        if key == name:
            return value
    return None


def parse_request_line(line: str) -> RedirectResult:
    """Extract ``code`` and ``state`` from an HTTP request line.

    Only the request target matters; the method and protocol version are
    ignored. The target is resolved against ``http://localhost`` and the
    first occurrence of each parameter wins.

    Args:
        line: e.g. ``"GET /callback?code=ABC&state=XYZ HTTP/1.1"``.

    Returns:
        The parsed :class:`RedirectResult`.

    Raises:
        MalformedRedirectRequest: If the line has no request target or the
            target is not a path.
        AuthorizationDenied: If the provider sent ``error`` instead of
            ``code``.
        MissingQueryParameter: If ``code`` or ``state`` is absent.
    """
    parts = line.split()
    if len(parts) < 2 or not parts[1].startswith("/"):
        raise MalformedRedirectRequest(f"Failed to parse request line: {line.strip()!r}")

    try:
        url = urlsplit(_SYNTHETIC_BASE + parts[1])
    except ValueError as exc:
        raise MalformedRedirectRequest(f"Failed to parse redirect URL: {exc}") from exc

    params = parse_qsl(url.query, keep_blank_values=True)
    code = _first(params, "code")
    if code is None:
        error = _first(params, "error")
        if error is not None:
            raise AuthorizationDenied(error, _first(params, "error_description"))
        raise MissingQueryParameter("code")

    state = _first(params, "state")
    if state is None:
        raise MissingQueryParameter("state")

    return RedirectResult(code=code, state=state)


class RedirectListener:
    """Accept one redirect on a loopback address, then shut down.

    Use as a context manager so the socket is released on every exit
    path::

        with RedirectListener(timeout=300) as listener:
            print("Redirect URI:", listener.redirect_uri)
            result = listener.accept_one()

    Args:
        host: Address to bind.
        port: Port to bind. ``0`` picks a free port (useful in tests).
        timeout: Seconds to wait for the connection. ``None`` waits
            forever.
    """

    def __init__(
        self,
        host: str = REDIRECT_HOST,
        port: int = REDIRECT_PORT,
        timeout: Optional[float] = None,
    ) -> None:
        self.host = host
        self.port = port
        self.timeout = timeout
        self._socket: Optional[socket.socket] = None
        self._used = False

    def __enter__(self) -> "RedirectListener":
        self.open()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    @property
    def address(self) -> tuple[str, int]:
        """The bound ``(host, port)``, or the requested one before binding."""
        if self._socket is None:
            return self.host, self.port
        host, port = self._socket.getsockname()[:2]
        return host, port

    @property
    def redirect_uri(self) -> str:
        """The redirect URI pointing at this listener."""
        host, port = self.address
        return f"http://{host}:{port}"

    def open(self) -> None:
        """Bind and start listening.

        Raises:
            BindFailure: If the address cannot be bound.
            FlowError: If the listener has already served its one
                connection.
        """
        if self._used:
            raise FlowError("Redirect listener is single-use and has already been used")
        if self._socket is not None:
            return

        sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        try:
            sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
            sock.bind((self.host, self.port))
            sock.listen(1)
        except OSError as exc:
            sock.close()
            reason = exc.strerror or str(exc)
            raise BindFailure(
                f"Cannot listen for the redirect on {self.host}:{self.port}: {reason}"
            ) from exc

        self._socket = sock
        logger.debug("Listening for redirect on %s", self.redirect_uri)

    def close(self) -> None:
        """Close the listening socket. Safe to call more than once."""
        if self._socket is not None:
            self._socket.close()
            self._socket = None

    def accept_one(self) -> RedirectResult:
        """Block until one connection arrives and return its redirect parameters.

        The listener is closed before this returns or raises.

        Raises:
            NoConnectionAccepted: If the listener is not open, or the
                deadline passes before a connection arrives.
            MalformedRedirectRequest: If no usable request line is read.
            MissingQueryParameter: If ``code`` or ``state`` is absent.
            AuthorizationDenied: If the provider redirected with an error.
        """
        if self._socket is None:
            raise NoConnectionAccepted("Listener terminated without accepting a connection")
        self._used = True

        try:
            self._socket.settimeout(self.timeout)
            try:
                conn, peer = self._socket.accept()
            except socket.timeout as exc:
                raise NoConnectionAccepted(
                    f"No redirect received within {self.timeout:g} seconds"
                ) from exc
            except OSError as exc:
                raise NoConnectionAccepted(
                    f"Listener terminated without accepting a connection: {exc}"
                ) from exc

            logger.debug("Accepted redirect connection from %s:%s", *peer[:2])
            with conn:
                return self._handle(conn)
        finally:
            self.close()

    def _handle(self, conn: socket.socket) -> RedirectResult:
        conn.settimeout(_READ_TIMEOUT)
        try:
            result = parse_request_line(_read_request_line(conn))
        except AuthError as exc:
            _try_respond(conn, "400 Bad Request", str(exc))
            raise

        _try_respond(conn, "200 OK", SUCCESS_MESSAGE)
        return result


def _read_request_line(conn: socket.socket) -> str:
    """Read the request line, then drain the header block unread."""
    with conn.makefile("rb") as reader:
        try:
            raw = reader.readline(_MAX_REQUEST_LINE + 1)
        except socket.timeout as exc:
            raise MalformedRedirectRequest("Timed out waiting for the request line") from exc

        if not raw:
            raise MalformedRedirectRequest("Connection closed before a request line was received")
        if len(raw) > _MAX_REQUEST_LINE:
            raise MalformedRedirectRequest("Request line too long")

        # Unread input makes close() send RST, which can eat our response.
        try:
            for _ in range(_MAX_HEADER_LINES):
                header = reader.readline(_MAX_REQUEST_LINE)
                if header in (b"", b"\r\n", b"\n"):
                    break
        except OSError as exc:
            logger.debug("Stopped reading redirect headers: %s", exc)

    return raw.decode("iso-8859-1")


def _respond(conn: socket.socket, status: str, message: str) -> None:
    body = message.encode("utf-8")
    head = (
        f"HTTP/1.1 {status}\r\n"
        "content-type: text/plain; charset=utf-8\r\n"
        f"content-length: {len(body)}\r\n"
        "connection: close\r\n"
        "\r\n"
    )
    conn.sendall(head.encode("ascii") + body)


def _try_respond(conn: socket.socket, status: str, message: str) -> None:
    # The browser may already be gone; the parsed result still stands.
    try:
        _respond(conn, status, message)
    except OSError as exc:
        logger.warning("Could not answer the redirect request: %s", exc)
