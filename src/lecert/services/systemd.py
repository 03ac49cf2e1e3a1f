"""Web server detection and reload.

After a renewal the running web servers must reload to pick up the new
certificate. Services are queried through systemd, falling back to the
SysV ``service`` wrapper on hosts without systemctl or where systemd does
not know the unit.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Sequence

from lecert.core.context import ExecutionContext
from lecert.core.exceptions import ExecutionError
from lecert.core.executor import CommandExecutor


SYSTEMCTL = "systemctl"
SERVICE = "service"


class ReloadOutcome(Enum):
    """How a reload attempt ended."""
    RELOADED = "reloaded"
    RESTARTED = "restarted"
    FAILED = "failed"

    @property
    def ok(self) -> bool:
        return self is not ReloadOutcome.FAILED


@dataclass
class ReloadResult:
    """Result of reloading one service."""
    service: str
    outcome: ReloadOutcome
    manager: str
    error: Optional[str] = None


class WebServerManager:
    """Detect and reload web servers.

    Candidates are groups of alternative unit names (apache2 on Debian,
    httpd on RHEL). The first running member of each group is reported.
    """

    def __init__(
        self,
        ctx: ExecutionContext,
        executor: CommandExecutor,
        candidates: Sequence[Sequence[str]],
        timeout: int = 30,
    ) -> None:
        self.ctx = ctx
        self.executor = executor
        self.candidates = [list(group) for group in candidates]
        self.timeout = timeout

    def has_systemctl(self) -> bool:
        """Check if systemctl is installed."""
        return self.executor.which(SYSTEMCTL) is not None

    def has_service(self) -> bool:
        """Check if the SysV service wrapper is installed."""
        return self.executor.which(SERVICE) is not None

    def _query(self, command: list[str]) -> bool:
        try:
            result = self.executor.run(
                command,
                check=False,
                read_only=True,
                timeout=self.timeout,
            )
        except ExecutionError as e:
            self.ctx.console.debug(f"Status query failed: {e.message}")
            return False
        return result.success

    def is_active_systemd(self, service: str) -> bool:
        """Check if systemd reports the unit as active."""
        return self._query([SYSTEMCTL, "is-active", "--quiet", service])

    def is_active_sysv(self, service: str) -> bool:
        """Check if ``service <name> status`` reports it running."""
        return self._query([SERVICE, service, "status"])

    def detect_running(self) -> list[str]:
        """Return the first running member of each candidate group."""
        use_systemd = self.has_systemctl()
        use_sysv = self.has_service()
        running: list[str] = []

        for group in self.candidates:
            found = None
            if use_systemd:
                found = next((s for s in group if self.is_active_systemd(s)), None)
            if found is None and use_sysv:
                found = next((s for s in group if self.is_active_sysv(s)), None)
            if found is not None:
                self.ctx.console.debug(f"Detected running web server: {found}")
                running.append(found)

        return running

    def _action_command(self, manager: str, action: str, service: str) -> list[str]:
        if manager == SYSTEMCTL:
            return [SYSTEMCTL, action, service]
        return [SERVICE, service, action]

    def _attempt(self, manager: str, action: str, service: str) -> tuple[bool, Optional[str]]:
        try:
            result = self.executor.run(
                self._action_command(manager, action, service),
                check=False,
                timeout=self.timeout,
            )
        except ExecutionError as e:
            return False, e.message
        if result.success:
            return True, None
        return False, result.stderr.strip() or f"exit code {result.return_code}"

    def reload_or_restart(self, service: str) -> ReloadResult:
        """Reload a service, falling back to a full restart.

        Never raises; failures are returned so the caller can carry on
        with the remaining services.
        """
        manager = SYSTEMCTL if self.has_systemctl() else SERVICE

        ok, error = self._attempt(manager, "reload", service)
        if ok:
            return ReloadResult(service, ReloadOutcome.RELOADED, manager)

        self.ctx.console.debug(f"Reload of {service} failed ({error}), trying restart")
        ok, error = self._attempt(manager, "restart", service)
        if ok:
            return ReloadResult(service, ReloadOutcome.RESTARTED, manager)

        return ReloadResult(service, ReloadOutcome.FAILED, manager, error=error)

    def reload_all(self, services: Sequence[str]) -> list[ReloadResult]:
        """Reload every service independently."""
        return [self.reload_or_restart(service) for service in services]


def manual_reload_command(service: str) -> str:
    """Command an operator can paste to reload a service."""
    return f"sudo {SYSTEMCTL} reload {service}"
