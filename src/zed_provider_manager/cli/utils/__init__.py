"""CLI utilities package."""

from .helpers import (
    ExitCode,
    collect_capabilities,
    configure_logging,
    emit,
    exit_code_for,
    get_manager,
    handle_error,
    prompt_key_provider,
    resolve_format,
    resolve_log_level,
)

__all__ = [
    "ExitCode",
    "exit_code_for",
    "handle_error",
    "resolve_format",
    "resolve_log_level",
    "configure_logging",
    "get_manager",
    "collect_capabilities",
    "emit",
    "prompt_key_provider",
]
