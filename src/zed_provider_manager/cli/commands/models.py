"""Model listing and editing commands for the zpm CLI."""

from typing import List, Optional, Tuple

import click

from ..formatters import (
    format_available_json,
    format_available_table,
    format_models_json,
    format_models_table,
)
from ..utils import ExitCode, collect_capabilities, emit, get_manager, handle_error, prompt_key_provider


@click.group()
def models() -> None:
    """Inspect and change a provider's models."""
    pass


@models.command(name="list")
@click.argument("name")
@click.pass_context
def list_models(ctx: click.Context, name: str) -> None:
    """List the models configured for provider NAME."""
    try:
        provider = get_manager(ctx).get_provider(name)
        emit(ctx, format_models_json(name, provider), lambda console: format_models_table(name, provider, console))
    except Exception as e:
        handle_error(e)


@models.command()
@click.argument("name")
@click.pass_context
def available(ctx: click.Context, name: str) -> None:
    """List the models provider NAME currently offers."""
    try:
        manager = get_manager(ctx)
        provider = manager.get_provider(name)
        records = manager.fetch_available_models(provider.api_url, name, prompt_key_provider(name))
        configured = provider.model_names
        emit(
            ctx,
            format_available_json(records, configured),
            lambda console: format_available_table(records, configured, console),
        )
    except Exception as e:
        handle_error(e)


@models.command()
@click.argument("name")
@click.option("--model", "-m", "model_ids", multiple=True, help="Model id to keep or add (repeatable).")
@click.option("--all", "select_all", is_flag=True, help="Select every model the provider offers.")
@click.option("--max-tokens", type=int, help="Requested token limit for newly added models.")
@click.pass_context
def sync(
    ctx: click.Context,
    name: str,
    model_ids: Tuple[str, ...],
    select_all: bool = False,
    max_tokens: Optional[int] = None,
) -> None:
    """Make the selected models the model list of provider NAME.

    Models already configured keep their settings. New models are resolved
    the same way `providers add` resolves them. Models not selected are
    removed.
    """
    if bool(model_ids) == select_all:
        handle_error(click.BadParameter("Give either --model (one or more) or --all"), ExitCode.INVALID_USAGE)

    try:
        manager = get_manager(ctx)
        selected: Optional[List[str]] = None if select_all else list(model_ids)
        changes = manager.sync_models(
            name,
            selected,
            default_max_tokens=max_tokens,
            key_provider=prompt_key_provider(name),
        )

        if ctx.obj["format"] in ("json", "yaml"):
            emit(ctx, {"provider": name, "added": changes.additions, "removed": changes.removals}, lambda console: None)
        elif not changes.changed:
            click.echo(f"No changes to '{name}'.")
        else:
            for model_id in changes.additions:
                click.echo(f"+ {model_id}")
            for model_id in changes.removals:
                click.echo(f"- {model_id}")
            click.echo(f"Updated '{name}': {len(changes.additions)} added, {len(changes.removals)} removed.")
    except Exception as e:
        handle_error(e)


@models.command(name="set")
@click.argument("name")
@click.option("--model", "-m", "model_names", multiple=True, required=True, help="Configured model to change.")
@click.option("--max-tokens", type=int, help="New token limit.")
@click.option("--enable", multiple=True, help="Capability to turn on: tools, images, parallel_tool_calls, prompt_cache_key.")
@click.option("--disable", multiple=True, help="Capability to turn off.")
@click.pass_context
def set_models(
    ctx: click.Context,
    name: str,
    model_names: Tuple[str, ...],
    max_tokens: Optional[int],
    enable: Tuple[str, ...],
    disable: Tuple[str, ...],
) -> None:
    """Change the token limit or capability flags of configured models."""
    try:
        capabilities = collect_capabilities(enable, disable)
        count = get_manager(ctx).update_models(
            name,
            list(model_names),
            max_tokens=max_tokens,
            capabilities=capabilities,
        )
        click.echo(f"Updated {count} model(s) of '{name}'.")
    except Exception as e:
        handle_error(e)
