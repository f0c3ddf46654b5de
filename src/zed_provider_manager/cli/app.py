"""Main CLI application for the Zed provider manager."""

from typing import Optional

import click
import rich_click as rich_click

from .utils import ExitCode, configure_logging, handle_error, resolve_format, resolve_log_level

# Configure rich-click
rich_click.rich_click.USE_RICH_MARKUP = True
rich_click.rich_click.USE_MARKDOWN = True
rich_click.rich_click.SHOW_ARGUMENTS = True
rich_click.rich_click.GROUP_ARGUMENTS_OPTIONS = True


@click.group(invoke_without_command=True)
@click.option(
    "--settings",
    "settings_path",
    type=click.Path(dir_okay=False),
    help="Path to Zed's settings.json. Takes precedence over the ZPM_SETTINGS_PATH environment variable.",
)
@click.option(
    "--format",
    type=click.Choice(["table", "json", "yaml"], case_sensitive=False),
    help="Output format. Defaults to 'table' for TTY, 'json' for non-TTY.",
)
@click.option("--verbose", "-v", count=True, help="Increase verbosity (can be used multiple times).")
@click.option("--quiet", "-q", count=True, help="Decrease verbosity (can be used multiple times).")
@click.option("--debug", is_flag=True, help="Enable debug-level logging.")
@click.option("--no-color", is_flag=True, help="Disable color output.")
@click.option("--version", is_flag=True, is_eager=True, help="Print version information.")
@click.pass_context
def app(
    ctx: click.Context,
    settings_path: Optional[str] = None,
    format: Optional[str] = None,
    verbose: int = 0,
    quiet: int = 0,
    debug: bool = False,
    no_color: bool = False,
    version: bool = False,
) -> None:
    """Zed Provider Manager CLI - manage OpenAI-compatible providers in Zed.

    Providers live under `language_models.openai_compatible` in Zed's
    settings file. Edits keep comments and formatting of the rest of the
    file intact. API keys are read from `<PROVIDER>_API_KEY`.

    Examples:
      # Add a provider with two of its models
      zpm providers add together https://api.together.xyz --model meta-llama/Llama-3-8b --model qwen/qwen3

      # Show the models configured for it
      zpm models list together

      # Raise the token limit of one model
      zpm models set together --model qwen/qwen3 --max-tokens 32768
    """
    if version:
        try:
            from .. import __version__
        except ImportError:
            __version__ = "unknown"

        click.echo(f"zpm version: {__version__}")
        ctx.exit(ExitCode.SUCCESS)

    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())
        ctx.exit(ExitCode.SUCCESS)

    # Store global options in context for subcommands
    ctx.ensure_object(dict)

    log_level = resolve_log_level(verbose, quiet, debug)
    try:
        configure_logging(log_level, no_color=no_color)
    except ValueError as e:
        handle_error(e, ExitCode.INVALID_USAGE)

    ctx.obj.setdefault("settings_path", settings_path)
    ctx.obj.update(
        {
            "format": resolve_format(format),
            "format_explicit": bool(format),
            "verbose": verbose,
            "quiet": quiet,
            "debug": debug,
            "no_color": no_color,
            "log_level": log_level,
        }
    )


from .commands import models, providers  # noqa: E402

app.add_command(providers.providers)
app.add_command(models.models)


def main() -> None:
    """Console script entry point."""
    app()


if __name__ == "__main__":
    main()
