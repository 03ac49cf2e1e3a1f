"""Interactive certificate renewal.

Walks through one renewal in a single pass:

    list -> select -> email -> domain form -> build command
         -> confirm -> execute -> reload web servers

Every terminal state prints a final status line. Nothing loops back to
the list; an invalid answer ends the run.
"""

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Annotated, Callable, Optional, Sequence

import typer

from lecert.commands import Services, get_services, handle_error
from lecert.commands.table import CertificateTable
from lecert.core import (
    AuditEventType,
    AuditLogger,
    AuditResult,
    ExecutionContext,
    LecertError,
    RenewalError,
    ValidationError,
)
from lecert.core.validation import validate_domain, validate_email
from lecert.services.inventory import CertificateRecord
from lecert.services.renewal import (
    RenewalRunner,
    build_renewal_command,
    format_command,
    is_wildcard,
    promote_wildcard,
)
from lecert.services.systemd import ReloadOutcome, WebServerManager, manual_reload_command


class RenewalOutcome(Enum):
    """Terminal states of the renewal flow."""
    NO_CERTIFICATES = "no_certificates"
    INVALID_SELECTION = "invalid_selection"
    CANCELLED = "cancelled"
    DRY_RUN = "dry_run"
    FAILED = "failed"
    RENEWED = "renewed"
    RELOADED = "reloaded"
    RELOAD_SKIPPED = "reload_skipped"

    @property
    def ok(self) -> bool:
        return self is not RenewalOutcome.FAILED


@dataclass
class RenewalPlan:
    """Resolved inputs for one renewal."""
    record: CertificateRecord
    email: str
    domain: str
    command: list[str]


class RenewalWizard:
    """Drives the interactive renewal of one certificate.

    Args:
        ctx: Execution context (console, dry-run, --yes)
        records: Sorted records, as shown in the table
        runner: Executes the renewal command
        web_servers: Detects and reloads web servers
        audit: Audit trail
        table: Renders the selection menu
        email_override: Email given on the command line; skips the prompt
    """

    def __init__(
        self,
        ctx: ExecutionContext,
        records: Sequence[CertificateRecord],
        *,
        runner: RenewalRunner,
        web_servers: WebServerManager,
        audit: AuditLogger,
        table: CertificateTable,
        email_override: Optional[str] = None,
    ) -> None:
        self.ctx = ctx
        self.records = list(records)
        self.runner = runner
        self.web_servers = web_servers
        self.audit = audit
        self.table = table
        self.email_override = email_override

    @property
    def console(self):
        return self.ctx.console

    def run(self) -> RenewalOutcome:
        if not self.records:
            self.console.print("No certificates found to renew.")
            return RenewalOutcome.NO_CERTIFICATES

        record = self.select()
        if record is None:
            self.console.error("Invalid selection.")
            return RenewalOutcome.INVALID_SELECTION

        self.console.print()
        self.console.print(f"Selected: [bold]{record.name}[/bold] ({record.domain})")
        self.console.print()

        plan = self.plan(record)

        self.console.print()
        self.console.panel(format_command(plan.command), title="Renewal Command")

        with self.audit.correlation("renew"):
            return self.execute(plan)

    # Steps

    def select(self) -> Optional[CertificateRecord]:
        """Ask for a number in [1, N]; None for anything else."""
        total = len(self.records)
        self.console.print()
        self.console.print("[bold]=== Select Certificate to Renew ===[/bold]")
        self.table.render_menu(self.console, self.records)
        self.console.print()

        answer = self.console.ask(f"Enter certificate number (1-{total}): ")
        if not answer.isdigit():
            return None
        choice = int(answer)
        if not 1 <= choice <= total:
            return None
        return self.records[choice - 1]

    def _lenient(self, validate: Callable[[str], str], value: str) -> str:
        """Warn when a value fails validation and use it unchanged."""
        try:
            return validate(value)
        except ValidationError as e:
            self.console.warn(e.message)
            return value.strip()

    def resolve_email(self) -> str:
        """Command line, then interactive answer, then configured default."""
        if self.email_override:
            return self._lenient(validate_email, self.email_override)

        app_config = self.ctx.config
        current = app_config.email
        self.console.print(
            f"Current email for Let's Encrypt: [bold]{current}[/bold] "
            f"[dim]({app_config.email_source})[/dim]"
        )
        answer = self.console.ask(
            "Use different email? (press Enter to keep current, or type new email): "
        )
        if answer:
            email = self._lenient(validate_email, answer)
            self.console.print(f"Using email: {email}")
            return email
        return self._lenient(validate_email, current)

    def resolve_domain(self, domain: str) -> str:
        """Offer literal vs wildcard form for wildcard domains."""
        if not is_wildcard(domain):
            return domain

        promoted = promote_wildcard(domain)
        self.console.print(f"Detected potential wildcard domain: {domain}")
        self.console.print(f"1. Use as-is: {domain}")
        self.console.print(f"2. Use wildcard format: {promoted}")
        answer = self.console.ask("Choose format (1-2): ", default="1")
        self.console.print()
        return promoted if answer == "2" else domain

    def plan(self, record: CertificateRecord) -> RenewalPlan:
        email = self.resolve_email()
        self.console.print()
        domain = self._lenient(validate_domain, self.resolve_domain(record.domain))
        command = build_renewal_command(
            email,
            domain,
            server=self.ctx.settings.acme_server,
        )
        return RenewalPlan(record=record, email=email, domain=domain, command=command)

    def execute(self, plan: RenewalPlan) -> RenewalOutcome:
        """Confirm, run the renewal, then hand over to the reload step."""
        params = {"email": plan.email, "domain": plan.domain}

        if self.ctx.dry_run:
            self.console.dry_run_msg(f"Run: {format_command(plan.command)}")
            self._audit_renew(plan, AuditResult.DRY_RUN, params)
            return RenewalOutcome.DRY_RUN

        if not self.console.confirm(
            "Execute this command now?",
            skip_confirm=not self.ctx.should_confirm,
        ):
            self.console.print("Command ready to copy/paste when needed.")
            self._audit_renew(plan, AuditResult.CANCELLED, params)
            return RenewalOutcome.CANCELLED

        self.console.step("Executing renewal command...")
        self.console.rule()
        result = self.runner.run(plan.command)
        self.console.rule()

        if not result.success:
            if result.timed_out:
                message = f"Certificate renewal timed out after {self.runner.timeout}s"
                hint = "Check the certbot output above, then retry with:"
            elif result.return_code is None:
                message = f"Certificate renewal could not start: {result.error}"
                hint = "Install certbot or check PATH, then run:"
            else:
                message = f"Certificate renewal failed (exit code: {result.return_code})"
                hint = "Check the certbot output above, then retry with:"
            self.console.error(message)
            self.console.hint(hint)
            self.console.print(f"  {format_command(plan.command)}")
            self._audit_renew(plan, AuditResult.FAILURE, params, error=message)
            return RenewalOutcome.FAILED

        self.console.success("Certificate renewal completed successfully!")
        self._audit_renew(plan, AuditResult.SUCCESS, params)
        return self.offer_reload()

    def offer_reload(self) -> RenewalOutcome:
        """Reload running web servers so they serve the new certificate."""
        running = self.web_servers.detect_running()
        if not running:
            self.console.info("No running web servers detected. Certificate renewed successfully.")
            return RenewalOutcome.RENEWED

        self.console.print()
        self.console.print(f"Detected running web server(s): {', '.join(running)}")
        if not self.console.confirm(
            "Reload web server(s) to apply new certificate?",
            skip_confirm=not self.ctx.should_confirm,
        ):
            self.console.print("Skipped web server reload. Remember to reload manually:")
            for service in running:
                self.console.print(f"  {manual_reload_command(service)}")
            return RenewalOutcome.RELOAD_SKIPPED

        for service in running:
            self.console.step(f"Reloading {service}...")
            result = self.web_servers.reload_or_restart(service)
            if result.outcome is ReloadOutcome.RELOADED:
                self.console.success(f"{service} reloaded successfully")
            elif result.outcome is ReloadOutcome.RESTARTED:
                self.console.success(f"{service} restarted successfully (reload not supported)")
            else:
                self.console.error(f"Failed to reload {service} with {result.manager}")
                if result.error:
                    self.console.verbose(result.error)

            self.audit.log_operation(
                event_type=(
                    AuditEventType.SERVICE_RESTART
                    if result.outcome is ReloadOutcome.RESTARTED
                    else AuditEventType.SERVICE_RELOAD
                ),
                result=AuditResult.SUCCESS if result.outcome.ok else AuditResult.FAILURE,
                target_type="service",
                target_name=service,
                operation="reload_or_restart",
                parameters={"manager": result.manager},
                error=result.error,
            )

        self.console.print()
        self.console.success("Certificate renewal and web server reload completed!")
        return RenewalOutcome.RELOADED

    def _audit_renew(
        self,
        plan: RenewalPlan,
        result: AuditResult,
        params: dict,
        error: Optional[str] = None,
    ) -> None:
        self.audit.log_operation(
            event_type=(
                AuditEventType.CERT_RENEW_CANCELLED
                if result is AuditResult.CANCELLED
                else AuditEventType.CERT_RENEW
            ),
            result=result,
            target_type="certificate",
            target_name=plan.record.name,
            operation="certonly",
            parameters=params,
            error=error,
        )


def make_wizard(
    services: Services,
    records: Sequence[CertificateRecord],
    email: Optional[str] = None,
) -> RenewalWizard:
    """Build a wizard from the shared service objects."""
    ctx = services.ctx
    return RenewalWizard(
        ctx,
        records,
        runner=services.runner,
        web_servers=services.web_servers,
        audit=services.audit,
        table=CertificateTable(ctx.color_enabled, ctx.settings.warning_days),
        email_override=email,
    )


def exit_for(outcome: RenewalOutcome) -> None:
    """Non-zero exit when the renewal command failed."""
    if not outcome.ok:
        raise typer.Exit(RenewalError.exit_code)


def print_manual_commands(ctx: ExecutionContext) -> None:
    """Cheat sheet for renewing and reloading by hand."""
    email = ctx.config.email
    server = ctx.settings.acme_server
    template = format_command(build_renewal_command(email, "DOMAIN", server=server))

    ctx.console.print()
    ctx.console.print("[bold]=== Manual Renewal Commands ===[/bold]")
    ctx.console.print("Your renewal command template:")
    ctx.console.print(f"  {template}")
    ctx.console.print('  (Email can be overridden with: export LETSENCRYPT_EMAIL="your@email.com")')
    ctx.console.print()
    ctx.console.print("Standard renewal commands:")
    ctx.console.print("  - Auto-renewal check: certbot renew --dry-run")
    ctx.console.print("  - Force renewal: certbot renew --force-renewal")
    ctx.console.print("  - Renew specific cert: certbot renew --cert-name CERT_NAME")
    ctx.console.print()
    ctx.console.print("Web server reload commands (after renewal):")
    ctx.console.print(f"  - Nginx: {manual_reload_command('nginx')}")
    ctx.console.print(f"  - Apache: {manual_reload_command('apache2')}  (or httpd)")
    ctx.console.print("  - Test nginx config: sudo nginx -t")
    ctx.console.print("  - Test apache config: sudo apache2ctl configtest  (or httpd -t)")


def renew(
    email: Annotated[
        Optional[str],
        typer.Option("--email", "-e", help="ACME account email (skips the email prompt)"),
    ] = None,
    dry_run: Annotated[
        bool,
        typer.Option("--dry-run", "-n", help="Show the renewal command without running it"),
    ] = False,
    yes: Annotated[
        bool,
        typer.Option("--yes", "-y", help="Skip the execute and reload confirmations"),
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
    """Renew one certificate interactively.

    Pick a certificate from the list, confirm the email and domain,
    then run a manual DNS-challenge renewal against Let's Encrypt.
    Running web servers are offered a reload afterwards.

    Examples:
        lecert renew
        lecert renew --email ops@example.com
        lecert renew --dry-run
    """
    try:
        services = get_services(
            dry_run=dry_run,
            yes=yes,
            verbose=verbose,
            no_color=no_color,
            config=config,
        )
        inventory = services.scanner.scan()
        if inventory.is_empty:
            services.ctx.console.print("No certificates found.")
            return
        outcome = make_wizard(services, inventory.records, email=email).run()
    except LecertError as e:
        handle_error(e)
        return

    exit_for(outcome)
