"""Shared test fixtures for radio.

Provides reusable OAuth inputs, an isolated config environment, a helper
that plays the browser against a redirect listener, and output state
management. These fixtures are discovered by pytest automatically.
"""

from __future__ import annotations

import json
import threading
from http.client import HTTPConnection
from pathlib import Path
from typing import Any, Optional

import pytest

from radio.models import AppCredentials, ServiceDescriptor
from radio.output import OutputFormat, OutputManager, reset_output, set_output


# ---------------------------------------------------------------------------
# Auto-reset global output state between tests
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_output_between_tests() -> None:
    """Reset the global OutputManager after every test.

    The OutputManager caches references to sys.stdout/sys.stderr at
    creation time, which go stale once CliRunner restores the streams.
    """
    yield
    reset_output()


@pytest.fixture
def quiet_output() -> OutputManager:
    """Install a PLAIN-format, quiet OutputManager as the global output."""
    output = OutputManager(format=OutputFormat.PLAIN, quiet=True, no_color=True)
    set_output(output)
    yield output
    reset_output()


# ---------------------------------------------------------------------------
# OAuth inputs
# ---------------------------------------------------------------------------


@pytest.fixture
def credentials() -> AppCredentials:
    return AppCredentials(client_id="abc", client_secret="top-secret-value")


@pytest.fixture
def service() -> ServiceDescriptor:
    return ServiceDescriptor(
        authorize_endpoint="https://auth.example.com/authorize",
        token_endpoint="https://auth.example.com/token",
        scopes=("read",),
    )


# ---------------------------------------------------------------------------
# Browser simulation
# ---------------------------------------------------------------------------


class BrowserRedirect:
    """Send one GET to a local listener from a background thread.

    The HTTP status and body of the listener's answer are recorded so
    tests can check what the browser would have shown.
    """

    def __init__(self, port: int, path: str) -> None:
        self.port = port
        self.path = path
        self.status: Optional[int] = None
        self.body: bytes = b""
        self.headers: dict[str, str] = {}
        self._thread = threading.Thread(target=self._send, daemon=True)

    def start(self) -> "BrowserRedirect":
        self._thread.start()
        return self

    def join(self) -> None:
        self._thread.join(timeout=5)

    def _send(self) -> None:
        conn = HTTPConnection("127.0.0.1", self.port, timeout=5)
        try:
            conn.request("GET", self.path, headers={"User-Agent": "pytest-browser"})
            response = conn.getresponse()
            self.status = response.status
            self.headers = {k.lower(): v for k, v in response.getheaders()}
            self.body = response.read()
        except OSError:
            pass
        finally:
            conn.close()


@pytest.fixture
def browser():
    """Factory: ``browser(port, path)`` starts a simulated redirect."""
    started: list[BrowserRedirect] = []

    def _start(port: int, path: str) -> BrowserRedirect:
        redirect = BrowserRedirect(port, path).start()
        started.append(redirect)
        return redirect

    yield _start
    for redirect in started:
        redirect.join()


# ---------------------------------------------------------------------------
# Config isolation fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point XDG_CONFIG_HOME / XDG_DATA_HOME into tmp_path and clear RADIO_CONFIG.

    Returns:
        The tmp_path root directory.
    """
    monkeypatch.setattr("radio.config._is_xdg_platform", lambda: True)
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))
    monkeypatch.delenv("RADIO_CONFIG", raising=False)
    return tmp_path


@pytest.fixture
def write_config(tmp_path: Path):
    """Factory: write *data* as JSON to ``tmp_path/config.json`` and return the path."""

    def _write(data: Any) -> Path:
        path = tmp_path / "config.json"
        path.write_text(json.dumps(data, indent=2), encoding="utf-8")
        return path

    return _write
