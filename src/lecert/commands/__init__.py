"""CLI commands and the wiring they share."""

from dataclasses import dataclass
from pathlib import Path
from typing import NoReturn, Optional

import typer

from lecert.core import (
    LecertError,
    console,
    AuditLogger,
    CommandExecutor,
    ExecutionContext,
    configure_audit_logger,
    create_context,
)
from lecert.services.certbot import CertbotRegistry
from lecert.services.inventory import CertificateScanner
from lecert.services.renewal import RenewalRunner
from lecert.services.systemd import WebServerManager


@dataclass
class Services:
    """Everything a command needs, built from one context."""
    ctx: ExecutionContext
    executor: CommandExecutor
    scanner: CertificateScanner
    runner: RenewalRunner
    web_servers: WebServerManager
    audit: AuditLogger


def get_services(
    dry_run: bool = False,
    yes: bool = False,
    verbose: int = 0,
    quiet: bool = False,
    no_color: bool = False,
    config: Optional[Path] = None,
) -> Services:
    """Create the context and service objects for a command.

    Raises:
        ConfigurationError: If the configuration file is invalid
    """
    ctx = create_context(
        dry_run=dry_run,
        yes=yes,
        verbose=verbose,
        quiet=quiet,
        no_color=no_color,
        config=config,
    )
    settings = ctx.settings
    executor = CommandExecutor(ctx)

    registry = CertbotRegistry(ctx, executor, timeout=settings.registry_timeout)
    return Services(
        ctx=ctx,
        executor=executor,
        scanner=CertificateScanner(ctx, registry, settings),
        runner=RenewalRunner(ctx, executor, timeout=settings.renewal_timeout),
        web_servers=WebServerManager(
            ctx,
            executor,
            settings.web_servers,
            timeout=settings.service_timeout,
        ),
        audit=configure_audit_logger(
            log_path=settings.audit_log,
            enabled=settings.audit_enabled,
        ),
    )


def handle_error(error: LecertError) -> NoReturn:
    """Print a LecertError with its details and hint, then exit with its code."""
    console.error(error.message)

    for detail in error.details:
        console.print(f"  [dim]{detail}[/dim]")

    if error.hint:
        console.hint(error.hint)

    raise typer.Exit(error.exit_code)
