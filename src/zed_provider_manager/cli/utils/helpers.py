"""Helper functions for CLI operations."""

import logging
import sys
from typing import Any, Callable, Dict, Iterable, NoReturn, Optional

import click
from rich.console import Console
from rich.logging import RichHandler

from ...errors import (
    ConfigurationError,
    InvalidPathError,
    ModelNotFoundError,
    NetworkError,
    ProviderExistsError,
    ProviderNotFoundError,
)
from ...logging import LOGGER_NAME
from ...manager import ProviderManager
from ...model_source import KeyProvider
from ...records import CAPABILITY_FIELDS
from ...settings import SettingsStore
from ..formatters import create_console, format_json, format_yaml


class ExitCode:
    """Standard exit codes for the CLI."""

    SUCCESS = 0
    GENERIC_ERROR = 1
    INVALID_USAGE = 2
    NOT_FOUND = 3
    SETTINGS_ERROR = 4
    NETWORK_ERROR = 5


def exit_code_for(error: Exception) -> int:
    """Map an exception to the exit code reported for it."""
    if isinstance(error, (ProviderNotFoundError, ModelNotFoundError)):
        return ExitCode.NOT_FOUND
    if isinstance(error, ConfigurationError):
        return ExitCode.SETTINGS_ERROR
    if isinstance(error, NetworkError):
        return ExitCode.NETWORK_ERROR
    if isinstance(error, (ProviderExistsError, InvalidPathError, ValueError, click.BadParameter)):
        return ExitCode.INVALID_USAGE
    return ExitCode.GENERIC_ERROR


def handle_error(error: Exception, exit_code: Optional[int] = None) -> NoReturn:
    """Handle CLI errors with consistent formatting.

    Args:
        error: Exception to handle
        exit_code: Exit code to use; derived from the exception type if None
    """
    click.echo(f"Error: {str(error)}", err=True)
    sys.exit(exit_code if exit_code is not None else exit_code_for(error))


def resolve_format(cli_format: Optional[str] = None, default_tty: str = "table", default_non_tty: str = "json") -> str:
    """Resolve output format with TTY detection.

    Args:
        cli_format: Format specified via CLI flag
        default_tty: Default format for TTY output
        default_non_tty: Default format for non-TTY output

    Returns:
        Resolved format name
    """
    if cli_format:
        return cli_format.lower()

    # Auto-detect based on TTY
    if sys.stdout.isatty():
        return default_tty
    else:
        return default_non_tty


def resolve_log_level(verbose: int = 0, quiet: int = 0, debug: bool = False) -> str:
    """Translate verbosity flags into a logging level name."""
    log_level = "WARNING"
    if debug:
        log_level = "DEBUG"
    elif verbose > quiet:
        if verbose >= 2:
            log_level = "DEBUG"
        elif verbose >= 1:
            log_level = "INFO"
    elif quiet > verbose:
        if quiet >= 2:
            log_level = "CRITICAL"
        elif quiet >= 1:
            log_level = "ERROR"
    return log_level


def configure_logging(log_level: str, no_color: bool = False) -> None:
    """Send package log records to stderr through Rich."""
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(log_level)
    for handler in list(logger.handlers):
        if isinstance(handler, RichHandler):
            logger.removeHandler(handler)
    handler = RichHandler(console=Console(stderr=True, no_color=no_color), show_path=False)
    handler.setLevel(log_level)
    logger.addHandler(handler)


def get_manager(ctx: click.Context) -> ProviderManager:
    """Return the manager for this invocation, creating it on first use."""
    obj = ctx.find_root().obj
    manager = obj.get("manager")
    if manager is None:
        manager = ProviderManager(SettingsStore(obj.get("settings_path")))
        obj["manager"] = manager
    return manager


def collect_capabilities(enable: Iterable[str], disable: Iterable[str]) -> Dict[str, bool]:
    """Build a capability mapping from --enable/--disable values.

    Raises:
        click.BadParameter: If a flag is unknown or both enabled and disabled
    """
    flags: Dict[str, bool] = {}
    for value, names in ((True, enable), (False, disable)):
        for name in names:
            flag = name.strip().lower().replace("-", "_")
            if flag not in CAPABILITY_FIELDS:
                raise click.BadParameter(f"Unknown capability '{name}'. Choose from: {', '.join(CAPABILITY_FIELDS)}")
            if flags.get(flag, value) != value:
                raise click.BadParameter(f"Capability '{flag}' cannot be both enabled and disabled")
            flags[flag] = value
    return flags


def emit(ctx: click.Context, data: Any, render_table: Callable[[Console], None]) -> None:
    """Write a command result in the format selected for this invocation.

    Args:
        ctx: Click context holding the global options
        data: Structured result used for json and yaml output
        render_table: Callback drawing the result on a Rich console
    """
    obj = ctx.find_root().obj
    format_type = obj["format"]
    if format_type == "json":
        format_json(data)
    elif format_type == "yaml":
        format_yaml(data)
    else:
        render_table(create_console(no_color=obj["no_color"]))


def prompt_key_provider(provider_name: str) -> Optional[KeyProvider]:
    """Ask for a replacement API key after an auth failure, on a terminal only."""
    if not sys.stdin.isatty():
        return None

    def ask(attempt: int) -> Optional[str]:
        key = click.prompt(
            f"API key for '{provider_name}' was rejected (attempt {attempt}). Enter a key, or leave empty to stop",
            default="",
            hide_input=True,
            show_default=False,
        )
        return key.strip() or None

    return ask
