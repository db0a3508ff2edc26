"""Typer application and CLI entry point for radio.

Commands::

    radio login tidal                         # print an access token
    radio search spotify "radiohead in rainbows"
    radio demo                                # Tidal, then Spotify
    radio providers                           # what is configured

Every command that needs a token runs a fresh interactive
:func:`~radio.oauth.login`; nothing is cached between invocations.

The :func:`main` function is the console-script entry point declared in
``pyproject.toml``. It installs a SIGINT handler, invokes the Typer app,
maps :class:`~radio.exceptions.RadioError` to its exit code, and writes a
crash log for anything unexpected.
"""

from __future__ import annotations

import logging
import signal
import sys
import traceback
from contextlib import contextmanager
from datetime import datetime
from functools import partial
from pathlib import Path
from typing import Any, Iterator, Optional

import typer
from rich.logging import RichHandler

from radio import __version__
from radio.config import config_path, get_data_dir, load_config
from radio.exceptions import ConfigError, RadioError
from radio.exit_codes import EXIT_GENERIC_FAILURE, EXIT_INTERRUPTED
from radio.models import RadioConfig
from radio.oauth import announce_authorize_url, login
from radio.output import (
    OutputFormat,
    OutputManager,
    error,
    format_response,
    info,
    print_data,
    print_table,
    set_output,
    success,
    suggest,
    warning,
)
from radio.search import search
from radio.services import SERVICES, Provider, get_provider

DEMO_QUERY = "radiohead in rainbows"

app = typer.Typer(
    name="radio",
    help="Log in to music services with OAuth2 + PKCE and search them.",
    no_args_is_help=True,
    add_completion=False,
    rich_markup_mode="rich",
)


def _version_callback(value: bool) -> None:
    """Print version and exit when --version is passed."""
    if value:
        typer.echo(f"radio {__version__}")
        raise typer.Exit()


def _setup_logging(output: OutputManager, verbose: bool) -> None:
    """Route the ``radio`` loggers to stderr through Rich."""
    logger = logging.getLogger("radio")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    logger.addHandler(
        RichHandler(
            console=output.stderr_console,
            show_time=False,
            show_path=False,
            markup=False,
        )
    )
    logger.setLevel(logging.DEBUG if verbose else logging.WARNING)


@app.callback()
def main_callback(
    ctx: typer.Context,
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    config: Optional[str] = typer.Option(
        None, "--config", "-c", help="Config file path (default: XDG config dir)."
    ),
    timeout: Optional[float] = typer.Option(
        None, "--timeout", "-t", min=0.0, help="Seconds to wait for the browser redirect."
    ),
    no_browser: bool = typer.Option(
        False, "--no-browser", help="Only print the authorization URL."
    ),
    json_output: bool = typer.Option(False, "--json", help="JSON output format."),
    plain_output: bool = typer.Option(False, "--plain", help="Plain text output."),
    no_color: bool = typer.Option(False, "--no-color", help="Disable color output."),
    quiet: bool = typer.Option(
        False, "--quiet", "-q", help="Suppress non-essential output."
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug output."),
) -> None:
    """Root callback executed before every sub-command.

    Installs the global :class:`~radio.output.OutputManager`, configures
    logging, and stores shared options in ``ctx.obj``.
    """
    fmt = OutputFormat.AUTO
    if json_output:
        fmt = OutputFormat.JSON
    elif plain_output:
        fmt = OutputFormat.PLAIN

    output = OutputManager(format=fmt, no_color=no_color, quiet=quiet)
    set_output(output)
    _setup_logging(output, verbose)

    ctx.ensure_object(dict)
    ctx.obj["config"] = config
    ctx.obj["timeout"] = timeout or None
    ctx.obj["no_browser"] = no_browser


@contextmanager
def _exit_on_error(ctx: typer.Context) -> Iterator[None]:
    """Print a :class:`RadioError` and exit with its code."""
    try:
        yield
    except RadioError as exc:
        error(str(exc))
        if isinstance(exc, ConfigError):
            suggest(f"Check your config file: {_config_file(ctx)}")
        raise typer.Exit(code=exc.exit_code) from None


def _config_file(ctx: typer.Context) -> Path:
    override = ctx.obj.get("config") if ctx.obj else None
    return config_path(override)


def _load(ctx: typer.Context) -> RadioConfig:
    return load_config(_config_file(ctx))


def _login(ctx: typer.Context, settings: RadioConfig, provider: Provider) -> str:
    """Run an interactive login for *provider* and return the token."""
    credentials = settings.credentials_for(provider.name)
    if credentials is None:
        raise ConfigError(f"{provider.label} not configured")

    timeout = ctx.obj.get("timeout") or settings.redirect_timeout
    open_browser = settings.open_browser and not ctx.obj.get("no_browser", False)

    info(f"Logging in to {provider.label}...")
    token = login(
        credentials,
        provider.service,
        timeout=timeout,
        emit=partial(announce_authorize_url, open_browser=open_browser),
    )
    success(f"Logged in to {provider.label}.")
    return token


@app.command("login")
def login_command(
    ctx: typer.Context,
    provider_name: str = typer.Argument(help="Provider to log in to (tidal, spotify)."),
) -> None:
    """Log in to a provider and print the access token to stdout.

    Example::

        TOKEN=$(radio login tidal)
    """
    with _exit_on_error(ctx):
        provider = get_provider(provider_name)
        token = _login(ctx, _load(ctx), provider)
    print_data(token)


@app.command("search")
def search_command(
    ctx: typer.Context,
    provider_name: str = typer.Argument(help="Provider to search (tidal, spotify)."),
    query: str = typer.Argument(help="Album search text."),
) -> None:
    """Log in to a provider and search it for albums."""
    with _exit_on_error(ctx):
        provider = get_provider(provider_name)
        token = _login(ctx, _load(ctx), provider)
        results = search(provider, token, query)
    format_response(results)


@app.command("demo")
def demo_command(ctx: typer.Context) -> None:
    """Search every provider for "radiohead in rainbows"."""
    with _exit_on_error(ctx):
        settings = _load(ctx)
        for provider in SERVICES.values():
            token = _login(ctx, settings, provider)
            format_response(search(provider, token, DEMO_QUERY))


@app.command("providers")
def providers_command(ctx: typer.Context) -> None:
    """List known providers and whether credentials are configured."""
    settings: Optional[RadioConfig]
    try:
        settings = _load(ctx)
    except ConfigError as exc:
        warning(str(exc))
        settings = None

    rows = []
    for provider in SERVICES.values():
        configured = settings is not None and settings.credentials_for(provider.name) is not None
        rows.append(
            [
                provider.name,
                provider.label,
                "yes" if configured else "no",
                " ".join(provider.service.scopes) or "-",
            ]
        )
    print_table(["name", "label", "configured", "scopes"], rows, title="Providers")


def _setup_signal_handlers() -> None:
    """Install a SIGINT handler so Ctrl-C exits cleanly."""

    def _handler(signum: int, frame: Any) -> None:  # noqa: ANN401
        sys.stderr.write("\nCancelled.\n")
        sys.exit(EXIT_INTERRUPTED)

    signal.signal(signal.SIGINT, _handler)


def _write_crash_log() -> str:
    """Write the current traceback to disk and return the log file path."""
    logs_dir = get_data_dir() / "logs"
    logs_dir.mkdir(parents=True, exist_ok=True)
    timestamp = datetime.now().strftime("%Y%m%d-%H%M%S")
    log_path = logs_dir / f"crash-{timestamp}.log"
    log_path.write_text(traceback.format_exc())
    return str(log_path)


def main() -> None:
    """CLI entry point invoked by the ``radio`` console script.

    :class:`~radio.exceptions.RadioError` instances that escape a command
    cause a clean exit with the error's ``exit_code``. All other exceptions
    produce a crash log and a generic failure exit.
    """
    _setup_signal_handlers()
    try:
        app()
    except SystemExit:
        raise
    except KeyboardInterrupt:
        sys.stderr.write("\nCancelled.\n")
        sys.exit(EXIT_INTERRUPTED)
    except RadioError as exc:
        error(str(exc))
        sys.exit(exc.exit_code)
    except Exception:
        log_path = _write_crash_log()
        error(f"Unexpected error. Debug log: {log_path}")
        sys.exit(EXIT_GENERIC_FAILURE)
