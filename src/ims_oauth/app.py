"""Typer application and CLI entry point for ims-oauth.

This module wires the top-level Typer application together with the
built-in sub-commands (``login`` and ``config``) and configures output
and logging from the global options.

The :func:`main` function is the console-script entry point declared in
``pyproject.toml``. It installs signal handlers, registers commands and
invokes the Typer app. :class:`~ims_oauth.exceptions.ImsOAuthError`
exits with the error's ``exit_code``; anything else is written to a
crash log under the data directory.

See Also:
    :mod:`ims_oauth.config`: Global configuration and environment selection.
    :mod:`ims_oauth.output`: Output formatting initialised in :func:`main_callback`.
"""

from __future__ import annotations

import logging
import signal
import sys
import traceback
from datetime import datetime
from typing import Any

import typer

from ims_oauth import __version__
from ims_oauth.exit_codes import EXIT_GENERIC_FAILURE


app = typer.Typer(
    name="ims-oauth",
    help="Log in to Adobe IMS from the command line.",
    no_args_is_help=True,
    add_completion=False,
    rich_markup_mode="rich",
)

_LOGGER_NAME = "ims_oauth"


def _version_callback(value: bool) -> None:
    """Print version and exit when --version is passed."""
    if value:
        typer.echo(f"ims-oauth {__version__}")
        raise typer.Exit()


def _configure_logging(verbose: bool, console: Any) -> None:
    """Route package logging to a Rich handler on stderr when *verbose*."""
    from rich.logging import RichHandler

    logger = logging.getLogger(_LOGGER_NAME)
    for handler in list(logger.handlers):
        if isinstance(handler, RichHandler):
            logger.removeHandler(handler)

    if not verbose:
        logger.setLevel(logging.WARNING)
        return

    handler = RichHandler(console=console, show_path=False, rich_tracebacks=True)
    handler.setFormatter(logging.Formatter("%(name)s: %(message)s"))
    logger.addHandler(handler)
    logger.setLevel(logging.DEBUG)


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
    json_output: bool = typer.Option(
        False, "--json", help="JSON output format."
    ),
    plain_output: bool = typer.Option(
        False, "--plain", help="Plain text output."
    ),
    no_color: bool = typer.Option(
        False, "--no-color", help="Disable color output."
    ),
    quiet: bool = typer.Option(
        False, "--quiet", "-q", help="Suppress non-essential output."
    ),
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Enable debug output."
    ),
) -> None:
    """Root callback executed before every sub-command.

    Initialises the global :class:`~ims_oauth.output.OutputManager` from
    the CLI flags and, with ``--verbose``, sends library logging to
    stderr through :class:`rich.logging.RichHandler`.

    Args:
        ctx: Typer invocation context.
        version: If ``True``, print the version string and exit.
        json_output: Force JSON output format.
        plain_output: Force plain-text output format.
        no_color: Disable all colour and Rich markup.
        quiet: Suppress non-essential diagnostic output.
        verbose: Enable debug-level diagnostic output.
    """
    from ims_oauth.output import OutputFormat, OutputManager, set_output

    fmt = OutputFormat.AUTO
    if json_output:
        fmt = OutputFormat.JSON
    elif plain_output:
        fmt = OutputFormat.PLAIN

    output = OutputManager(
        format=fmt,
        no_color=no_color,
        quiet=quiet,
    )
    set_output(output)
    _configure_logging(verbose, output.stderr_console)

    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose


_registered = False


def register_commands() -> None:
    """Attach the built-in sub-commands to :data:`app` (once)."""
    global _registered
    if _registered:
        return

    from ims_oauth.commands.config import config_app
    from ims_oauth.commands.login import login_command

    app.command("login")(login_command)
    app.add_typer(config_app, name="config", help="Configuration management.")
    _registered = True


def _setup_signal_handlers() -> None:
    """Install a SIGINT handler so Ctrl-C exits cleanly."""

    def _handler(signum: int, frame: Any) -> None:  # noqa: ANN401
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)

    signal.signal(signal.SIGINT, _handler)


def _write_crash_log(exc: Exception) -> str:
    """Write a crash traceback to disk and return the log file path."""
    from ims_oauth.config import get_data_dir

    logs_dir = get_data_dir() / "logs"
    logs_dir.mkdir(parents=True, exist_ok=True)
    timestamp = datetime.now().strftime("%Y%m%d-%H%M%S")
    log_path = logs_dir / f"crash-{timestamp}.log"
    log_path.write_text(traceback.format_exc())
    return str(log_path)


def main() -> None:
    """CLI entry point invoked by the ``ims-oauth`` console script.

    Raises:
        SystemExit: Always raised (either by Typer or explicitly).
    """
    _setup_signal_handlers()
    try:
        register_commands()
        app()
    except SystemExit:
        raise
    except KeyboardInterrupt:
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)
    except Exception as exc:
        from ims_oauth.exceptions import ImsOAuthError
        from ims_oauth.output import error

        if isinstance(exc, ImsOAuthError):
            error(str(exc))
            sys.exit(exc.exit_code)
        else:
            log_path = _write_crash_log(exc)
            error(f"Unexpected error. Debug log: {log_path}")
            sys.exit(EXIT_GENERIC_FAILURE)
