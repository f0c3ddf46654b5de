"""Provider management commands for the zpm CLI."""

from typing import Optional, Tuple

import click

from ..formatters import (
    create_console,
    format_models_json,
    format_models_table,
    format_providers_json,
    format_providers_table,
)
from ..utils import emit, get_manager, handle_error, prompt_key_provider


@click.group()
def providers() -> None:
    """Add, list, rename and delete providers."""
    pass


@providers.command(name="list")
@click.pass_context
def list_providers(ctx: click.Context) -> None:
    """List configured providers."""
    try:
        configured = get_manager(ctx).list_providers()
        emit(ctx, format_providers_json(configured), lambda console: format_providers_table(configured, console))
    except Exception as e:
        handle_error(e)


@providers.command()
@click.argument("name")
@click.argument("url")
@click.option("--model", "-m", "model_ids", multiple=True, help="Model id to add (repeatable). Defaults to all models.")
@click.option("--max-tokens", type=int, help="Requested token limit for every added model.")
@click.pass_context
def add(ctx: click.Context, name: str, url: str, model_ids: Tuple[str, ...], max_tokens: Optional[int]) -> None:
    """Add a provider and configure its models.

    The provider's `/models` listing is fetched with the key in
    `<NAME>_API_KEY`. Capabilities come from the listing, or from the public
    model registry when the listing has none.
    """
    try:
        manager = get_manager(ctx)
        provider = manager.add_provider(
            name,
            url,
            model_ids=list(model_ids) or None,
            default_max_tokens=max_tokens,
            key_provider=prompt_key_provider(name),
        )
        emit(
            ctx,
            format_models_json(name, provider),
            lambda console: format_models_table(name, provider, console),
        )
    except Exception as e:
        handle_error(e)


@providers.command()
@click.argument("name")
@click.option("--yes", is_flag=True, help="Confirm deletion without prompting (required for non-interactive use).")
@click.pass_context
def delete(ctx: click.Context, name: str, yes: bool = False) -> None:
    """Delete a provider and all of its models."""
    try:
        manager = get_manager(ctx)
        if not yes:
            provider = manager.get_provider(name)
            console = create_console(no_color=ctx.obj["no_color"])
            console.print(
                f"[yellow]Warning:[/yellow] This will delete provider '{name}' "
                f"with {len(provider.available_models)} models."
            )
            try:
                confirmed = click.confirm("\nAre you sure you want to delete it?")
            except click.Abort:
                confirmed = False
            if not confirmed:
                console.print("Delete cancelled.")
                return

        manager.delete_provider(name)
        click.echo(f"Deleted provider '{name}'.")
    except Exception as e:
        handle_error(e)


@providers.command()
@click.argument("old_name")
@click.argument("new_name")
@click.pass_context
def rename(ctx: click.Context, old_name: str, new_name: str) -> None:
    """Rename a provider, keeping its models."""
    try:
        get_manager(ctx).rename_provider(old_name, new_name)
        click.echo(f"Renamed provider '{old_name}' to '{new_name}'.")
    except Exception as e:
        handle_error(e)
