"""Certificate listing commands.

``lecert list`` prints the inventory and exits. ``lecert check`` is the
full interactive run: inventory, an optional renewal, then the manual
command cheat sheet.
"""

import json
from pathlib import Path
from typing import Annotated, Optional

import typer

from lecert.commands import Services, get_services, handle_error
from lecert.commands.renew import RenewalOutcome, exit_for, make_wizard, print_manual_commands
from lecert.commands.table import CertificateTable
from lecert.core import AuditEventType, AuditResult, LecertError, RenewalError
from lecert.services.inventory import Inventory


def _show_inventory(services: Services, inventory: Inventory) -> None:
    ctx = services.ctx
    settings = ctx.settings
    table = CertificateTable(ctx.color_enabled, settings.warning_days)
    table.render(ctx.console, inventory.records)

    if inventory.skipped:
        ctx.console.verbose(f"Skipped unreadable certificates: {', '.join(inventory.skipped)}")

    if not inventory.registry_scanned and not inventory.filesystem_scanned:
        ctx.console.warn("certbot not installed and no certificate directory found")
        ctx.console.hint(f"Expected certificates under {settings.live_dir}")


def _output_json(inventory: Inventory, warning_days: int) -> None:
    """Output inventory as JSON."""
    output = {
        "certificates": [record.to_dict() for record in inventory.records],
        "counts": {
            "total": len(inventory),
            "expired": len(inventory.expired),
            "expiring_soon": len(inventory.expiring_soon(warning_days)),
        },
        "sources": {
            "certbot": inventory.registry_scanned,
            "files": inventory.filesystem_scanned,
        },
    }
    print(json.dumps(output, indent=2))


def list_certificates(
    json_output: Annotated[
        bool,
        typer.Option("--json", "-j", help="Output as JSON"),
    ] = False,
    verbose: Annotated[
        int,
        typer.Option("--verbose", "-v", count=True, help="Increase verbosity"),
    ] = 0,
    no_color: Annotated[
        bool,
        typer.Option("--no-color", help="Disable colored output"),
    ] = False,
    config: Annotated[
        Optional[Path],
        typer.Option("--config", "-c", help="Path to configuration file", dir_okay=False),
    ] = None,
) -> None:
    """List certificates with expiry dates and renewal methods.

    Expired certificates come first (most overdue at the top), followed by
    valid ones ordered by days remaining.

    Examples:
        lecert list
        lecert list --json
    """
    try:
        services = get_services(
            verbose=verbose,
            quiet=json_output,
            no_color=no_color,
            config=config,
        )
        inventory = services.scanner.scan()
    except LecertError as e:
        handle_error(e)
        return

    if json_output:
        _output_json(inventory, services.ctx.settings.warning_days)
        return

    _show_inventory(services, inventory)


def check(
    dry_run: Annotated[
        bool,
        typer.Option("--dry-run", "-n", help="Show the renewal command without running it"),
    ] = False,
    verbose: Annotated[
        int,
        typer.Option("--verbose", "-v", count=True, help="Increase verbosity"),
    ] = 0,
    no_color: Annotated[
        bool,
        typer.Option("--no-color", help="Disable colored output"),
    ] = False,
    config: Annotated[
        Optional[Path],
        typer.Option("--config", "-c", help="Path to configuration file", dir_okay=False),
    ] = None,
) -> None:
    """List certificates and optionally renew one.

    Shows the certificate table, asks whether to renew a specific
    certificate and finishes with the manual renewal commands.
    """
    outcome: Optional[RenewalOutcome] = None

    try:
        services = get_services(dry_run=dry_run, verbose=verbose, no_color=no_color, config=config)
        ctx = services.ctx
        audit = services.audit
        audit.log_session_start("check", [])

        ctx.console.print("[bold]=== Let's Encrypt Certificates ===[/bold]")
        ctx.console.print(
            f"Using email: {ctx.config.email} (override with LETSENCRYPT_EMAIL env var)"
        )
        ctx.console.print()

        inventory = services.scanner.scan()
        audit.log_operation(
            event_type=AuditEventType.INVENTORY_SCAN,
            result=AuditResult.SUCCESS,
            target_type="directory",
            target_name=str(ctx.settings.letsencrypt_dir),
            operation="scan",
            parameters={
                "certificates": len(inventory),
                "expired": len(inventory.expired),
                "skipped": inventory.skipped,
            },
        )
        _show_inventory(services, inventory)

        if not inventory.is_empty:
            ctx.console.print()
            if ctx.console.confirm("Do you want to renew a specific certificate?"):
                outcome = make_wizard(services, inventory.records).run()

        print_manual_commands(ctx)
    except LecertError as e:
        handle_error(e)
        return

    exit_code = 0 if outcome is None or outcome.ok else RenewalError.exit_code
    audit.log_session_end(exit_code)
    if outcome is not None:
        exit_for(outcome)
