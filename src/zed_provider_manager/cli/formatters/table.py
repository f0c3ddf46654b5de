"""Rich table formatter for CLI output."""

import sys
from typing import Any, Iterable, Mapping, Optional, TextIO

from rich.console import Console
from rich.table import Table

from ...config_paths import derive_display_name
from ...records import CAPABILITY_FIELDS, ProviderConfig, RawModelRecord


def create_console(output: Optional[TextIO] = None, no_color: bool = False) -> Console:
    """Create a Rich console instance.

    Args:
        output: Output stream (defaults to stdout)
        no_color: Disable color output

    Returns:
        Console instance
    """
    if output is None:
        output = sys.stdout

    return Console(file=output, no_color=no_color)


def _format_column_value(value: Any) -> str:
    if value is None:
        return "N/A"
    if isinstance(value, bool):
        return "✓" if value else "✗"
    return str(value)


def _capability_header(flag: str) -> str:
    return "\n".join(part.title() for part in flag.split("_", 1))


def format_providers_table(providers: Mapping[str, ProviderConfig], console: Optional[Console] = None) -> None:
    """Format configured providers as a Rich table.

    Args:
        providers: Providers in document order
        console: Rich console (will create if None)
    """
    if console is None:
        console = create_console()

    if not providers:
        console.print("No providers configured. Use 'zpm providers add' to add your first provider.")
        return

    table = Table(title=f"Configured Providers ({len(providers)})", show_header=True, header_style="bold magenta")
    table.add_column("Provider", style="cyan", no_wrap=True)
    table.add_column("URL", no_wrap=True)
    table.add_column("Models", justify="right")

    for name, provider in providers.items():
        table.add_row(name, provider.api_url, str(len(provider.available_models)))

    console.print(table)


def format_models_table(provider_name: str, provider: ProviderConfig, console: Optional[Console] = None) -> None:
    """Format a provider's configured models as a Rich table."""
    if console is None:
        console = create_console()

    table = Table(title=f"{provider_name} Models", show_header=True, header_style="bold magenta")
    table.add_column("Model", style="cyan", no_wrap=True)
    table.add_column("Display Name", no_wrap=True)
    table.add_column("Max\nTokens", justify="right", no_wrap=True)
    for flag in CAPABILITY_FIELDS:
        table.add_column(_capability_header(flag), justify="center", no_wrap=True)

    for model in provider.available_models:
        capabilities = model.capabilities.to_dict()
        table.add_row(
            model.name,
            model.display_name,
            str(model.max_tokens),
            *(_format_column_value(capabilities[flag]) for flag in CAPABILITY_FIELDS),
        )

    console.print(table)


def format_available_table(
    records: Iterable[RawModelRecord],
    configured: Iterable[str],
    console: Optional[Console] = None,
) -> None:
    """Format a provider's remote model listing as a Rich table."""
    if console is None:
        console = create_console()

    active = set(configured)
    table = Table(title="Available Models", show_header=True, header_style="bold magenta")
    table.add_column("Model", style="cyan", no_wrap=True)
    table.add_column("Display Name", no_wrap=True)
    table.add_column("Max Completion\nTokens", justify="right", no_wrap=True)
    table.add_column("Active", justify="center")

    for record in records:
        table.add_row(
            record.id,
            derive_display_name(record.id),
            _format_column_value(record.max_completion_tokens),
            _format_column_value(record.id in active),
        )

    console.print(table)
