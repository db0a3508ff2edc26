"""Configuration loading with XDG paths and credential source resolution.

* **Directory layout** -- XDG Base Directory compliant on Linux/BSD,
  ``~/.radio/`` on macOS and Windows. See :func:`get_config_dir` and
  :func:`get_data_dir`.
* **Config file** -- ``config.json`` (or ``config.toml``) in the config
  directory, deserialised into a :class:`~radio.models.RadioConfig`.
  ``RADIO_CONFIG`` or the ``--config`` flag point somewhere else.
* **Credential resolution** -- :func:`resolve_credential` lets the
  config file reference secrets in environment variables or files instead
  of holding them inline.
"""

from __future__ import annotations

import getpass
import json
import os
import platform
import sys
from pathlib import Path
from typing import Any, Optional

import toml

from radio.exceptions import ConfigError
from radio.models import RadioConfig

_APP_NAME = "radio"
_CONFIG_FILENAMES = ("config.json", "config.toml")
_CONFIG_ENV_VAR = "RADIO_CONFIG"
_PROVIDER_SECTIONS = ("spotify", "tidal")
_CREDENTIAL_FIELDS = ("client_id", "client_secret")


# --- XDG path resolution ---


def _is_xdg_platform() -> bool:
    """Return True if the platform supports XDG Base Directory spec (Linux/FreeBSD)."""
    return platform.system() == "Linux" or platform.system().endswith("BSD")


def _fallback_base_dir() -> Path:
    """Fallback base directory for non-XDG platforms (macOS, Windows)."""
    return Path.home() / f".{_APP_NAME}"


def _xdg_base(env_var: str, default_segments: tuple[str, ...]) -> Path:
    """Resolve an XDG base directory from an env var with fallback segments under $HOME."""
    env_value = os.environ.get(env_var, "")
    if env_value:
        return Path(env_value)
    return Path.home().joinpath(*default_segments)


def get_config_dir() -> Path:
    """Return the configuration directory, creating it if necessary.

    On Linux/BSD: ``$XDG_CONFIG_HOME/radio/`` (default ``~/.config/radio/``).
    On macOS/Windows: ``~/.radio/``.
    """
    if _is_xdg_platform():
        path = _xdg_base("XDG_CONFIG_HOME", (".config",)) / _APP_NAME
    else:
        path = _fallback_base_dir()
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_data_dir() -> Path:
    """Return the data directory (crash logs), creating it if necessary.

    On Linux/BSD: ``$XDG_DATA_HOME/radio/`` (default ``~/.local/share/radio/``).
    On macOS/Windows: ``~/.radio/logs/``.
    """
    if _is_xdg_platform():
        path = _xdg_base("XDG_DATA_HOME", (".local", "share")) / _APP_NAME
    else:
        path = _fallback_base_dir() / "logs"
    path.mkdir(parents=True, exist_ok=True)
    return path


def config_path(override: Optional[str] = None) -> Path:
    """Return the config file location.

    Precedence: *override* (the ``--config`` flag), then ``RADIO_CONFIG``,
    then ``config.json`` or ``config.toml`` in :func:`get_config_dir`, the
    first that exists. With neither present the ``config.json`` path is
    returned.
    """
    if override:
        return Path(override).expanduser()
    env_value = os.environ.get(_CONFIG_ENV_VAR)
    if env_value:
        return Path(env_value).expanduser()
    config_dir = get_config_dir()
    for name in _CONFIG_FILENAMES:
        if (config_dir / name).is_file():
            return config_dir / name
    return config_dir / _CONFIG_FILENAMES[0]


# --- Config file ---


def load_config(path: Optional[Path] = None) -> RadioConfig:
    """Load and validate the radio config file.

    Credential values in provider sections are passed through
    :func:`resolve_credential` before validation.

    Args:
        path: File to read. Defaults to :func:`config_path`.

    Returns:
        The validated :class:`~radio.models.RadioConfig`.

    Raises:
        ConfigError: If the file does not exist, cannot be parsed, fails
            validation, or references an unresolvable credential source.
    """
    path = path if path is not None else config_path()
    if not path.is_file():
        raise ConfigError(
            f"Config file not found at {path} (radio reads config.json or config.toml)"
        )
    try:
        text = path.read_text(encoding="utf-8")
        if path.suffix == ".toml":
            data = toml.loads(text)
        else:
            data = json.loads(text)
    except (ValueError, OSError) as exc:
        raise ConfigError(f"Invalid config at {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError(f"Invalid config at {path}: expected a JSON object")

    for provider in _PROVIDER_SECTIONS:
        section = data.get(provider)
        if isinstance(section, dict):
            data[provider] = _resolve_section(provider, section)

    try:
        return RadioConfig.model_validate(data)
    except ValueError as exc:
        raise ConfigError(f"Invalid config at {path}: {exc}") from exc


def _resolve_section(provider: str, section: dict[str, Any]) -> dict[str, Any]:
    resolved = dict(section)
    for key in _CREDENTIAL_FIELDS:
        value = resolved.get(key)
        if isinstance(value, str):
            try:
                resolved[key] = resolve_credential(value)
            except ConfigError as exc:
                raise ConfigError(f"{provider}.{key}: {exc}") from exc
    return resolved


# --- Credential source resolution ---


def resolve_credential(source: str) -> str:
    """Resolve a credential from its source descriptor.

    Supported formats:
        - ``"env:VAR_NAME"`` -- reads ``os.environ["VAR_NAME"]``
        - ``"file:/path/to/file"`` -- reads file content, stripped of whitespace
        - ``"prompt"`` -- prompts interactively (requires a TTY)
        - anything else -- used literally

    Raises:
        ConfigError: If the source can't be resolved.
    """
    if source.startswith("env:"):
        var_name = source[4:]
        value = os.environ.get(var_name)
        if value is None:
            raise ConfigError(f"Environment variable '{var_name}' is not set (source: {source})")
        return value

    if source.startswith("file:"):
        path = Path(source[5:]).expanduser()
        if not path.is_file():
            raise ConfigError(f"Credential file not found: {path} (source: {source})")
        try:
            return path.read_text(encoding="utf-8").strip()
        except OSError as exc:
            raise ConfigError(f"Cannot read credential file {path}: {exc}") from exc

    if source == "prompt":
        if not sys.stdin.isatty():
            raise ConfigError("Cannot prompt for credentials: stdin is not a TTY (source: prompt)")
        return getpass.getpass("Enter credential: ")

    return source
