"""Main CLI entry point using Typer.

This module defines the root CLI application and global options.
Commands are registered from the commands package.
"""

from pathlib import Path
from typing import Optional, Annotated

import typer
from rich.console import Console

from lecert import __version__
from lecert.commands import handle_error
from lecert.commands.inventory import check, list_certificates
from lecert.commands.renew import print_manual_commands, renew
from lecert.core.context import create_context
from lecert.core.config import (
    DEFAULT_CONFIG_PATH,
    AppConfig,
    get_example_config,
    init_config,
)
from lecert.core.exceptions import LecertError


app = typer.Typer(
    name="lecert",
    help="Let's Encrypt certificate inventory and renewal.",
    rich_markup_mode="rich",
    pretty_exceptions_enable=True,
    pretty_exceptions_show_locals=False,
)

config_app = typer.Typer(
    name="config",
    help="Configuration management.",
    no_args_is_help=True,
)

app.command("list")(list_certificates)
app.command("check")(check)
app.command("renew")(renew)
app.add_typer(config_app, name="config")


VerboseOption = Annotated[
    int,
    typer.Option(
        "--verbose",
        "-v",
        count=True,
        help="Increase output verbosity. Can be repeated (-v, -vv).",
    ),
]

ForceOption = Annotated[
    bool,
    typer.Option(
        "--force",
        "-f",
        help="Overwrite an existing file.",
        is_flag=True,
    ),
]

NoColorOption = Annotated[
    bool,
    typer.Option(
        "--no-color",
        help="Disable colored output.",
        is_flag=True,
    ),
]

ConfigOption = Annotated[
    Optional[Path],
    typer.Option(
        "--config",
        "-c",
        help=f"Path to configuration file. Default: {DEFAULT_CONFIG_PATH}",
        exists=False,
        file_okay=True,
        dir_okay=False,
    ),
]


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        Console().print(f"lecert version {__version__}")
        raise typer.Exit()


@app.callback(invoke_without_command=True)
def main(
    typer_ctx: typer.Context,
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            "-V",
            callback=version_callback,
            is_eager=True,
            help="Show version and exit.",
        ),
    ] = False,
) -> None:
    """Let's Encrypt certificate inventory and renewal.

    Lists certbot-managed certificates with their expiry and renewal
    method, and renews one interactively with a manual DNS challenge.
    Running without a command is the same as [bold]lecert check[/bold].

    [bold]Examples:[/bold]
        lecert
        lecert list --json
        lecert renew --email ops@example.com
        LETSENCRYPT_EMAIL=ops@example.com lecert check
    """
    if typer_ctx.invoked_subcommand is None:
        check()


@app.command("commands")
def commands_cmd(
    config: ConfigOption = None,
    no_color: NoColorOption = False,
) -> None:
    """Show manual renewal and web server reload commands."""
    ctx = create_context(no_color=no_color, config=config)
    try:
        print_manual_commands(ctx)
    except LecertError as e:
        handle_error(e)


# ============================================================================
# Config commands
# ============================================================================

@config_app.command("show")
def config_show(
    config: ConfigOption = None,
    verbose: VerboseOption = 0,
    no_color: NoColorOption = False,
) -> None:
    """Show current configuration.

    Displays the loaded configuration and where the ACME email comes from.
    """
    ctx = create_context(verbose=verbose, no_color=no_color, config=config)

    try:
        app_config = ctx.config

        ctx.console.print()
        ctx.console.print(f"[bold]Configuration file:[/bold] {ctx.config_path}")
        ctx.console.print(f"[bold]File exists:[/bold] {ctx.config_path.exists()}")
        ctx.console.print()

        ctx.console.yaml(app_config.config.to_yaml(), title="Configuration")

        ctx.console.summary("Email", {
            "LETSENCRYPT_EMAIL": "Set" if app_config.env.letsencrypt_email else "Not set",
            "Effective email": app_config.email,
            "Source": app_config.email_source,
        })

    except LecertError as e:
        handle_error(e)


@config_app.command("init")
def config_init(
    config: ConfigOption = None,
    force: ForceOption = False,
    no_color: NoColorOption = False,
) -> None:
    """Initialize a new configuration file with commented defaults."""
    ctx = create_context(no_color=no_color, config=config)

    try:
        init_config(ctx.config_path, force=force)
        ctx.console.success(f"Configuration file created: {ctx.config_path}")
        ctx.console.hint("Set LETSENCRYPT_EMAIL to override the email without editing the file")
    except LecertError as e:
        handle_error(e)
    except PermissionError:
        ctx.console.error(f"Cannot write {ctx.config_path}")
        ctx.console.hint("Run with sudo or pass --config")
        raise typer.Exit(2)


@config_app.command("validate")
def config_validate(
    config: ConfigOption = None,
    verbose: VerboseOption = 0,
    no_color: NoColorOption = False,
) -> None:
    """Validate configuration file.

    Checks that the file is valid YAML, all values pass validation and
    the certbot directories exist.
    """
    ctx = create_context(verbose=verbose, no_color=no_color, config=config)

    try:
        app_config = AppConfig(config_path=ctx.config_path)
        ctx.console.success(f"Configuration is valid: {ctx.config_path}")

        if ctx.is_verbose:
            ctx.console.yaml(app_config.config.to_yaml())

        warnings = []
        if not ctx.config_path.exists():
            warnings.append("Configuration file not found, using defaults")
        if not app_config.config.live_dir.is_dir():
            warnings.append(f"Certificate directory not found: {app_config.config.live_dir}")
        if app_config.email_source == "built-in fallback":
            warnings.append("No email configured (set default_email or LETSENCRYPT_EMAIL)")

        if warnings:
            ctx.console.print()
            for warning in warnings:
                ctx.console.warn(warning)

    except LecertError as e:
        handle_error(e)


@config_app.command("example")
def config_example(no_color: NoColorOption = False) -> None:
    """Print example configuration file."""
    ctx = create_context(no_color=no_color)
    ctx.console.print(get_example_config(), markup=False)


if __name__ == "__main__":
    app()
