"""certbot registry access.

Lists the certificates certbot manages by running ``certbot certificates``
and parsing its text output. Only three line patterns matter:

    Certificate Name: example.com
    Domains: example.com www.example.com
    Expiry Date: 2026-01-15 08:12:44+00:00 (VALID: 88 days)

An entry is complete once its expiry line has been seen. Everything else
in the output (serial, key type, paths) is ignored.
"""

import re
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

from lecert.core.context import ExecutionContext
from lecert.core.exceptions import ExecutionError
from lecert.core.executor import CommandExecutor


CERTBOT = "certbot"

NAME_LINE = re.compile(r"^\s*Certificate Name:\s*(?P<value>\S.*?)\s*$")
DOMAINS_LINE = re.compile(r"^\s*Domains:\s*(?P<value>\S.*?)\s*$")
EXPIRY_LINE = re.compile(r"^\s*Expiry Date:\s*(?P<value>\S.*?)\s*$")

EXPIRY_VALUE = re.compile(
    r"^(?P<stamp>\d{4}-\d{2}-\d{2}[ T]\d{2}:\d{2}:\d{2}(?:\.\d+)?(?:[+-]\d{2}:?\d{2}|Z)?)"
)


@dataclass(frozen=True)
class RegistryEntry:
    """One certificate as reported by certbot."""
    name: str
    domains: tuple[str, ...]
    expiry: datetime

    @property
    def primary_domain(self) -> str:
        """First domain in the list, or the certificate name if none."""
        return self.domains[0] if self.domains else self.name


def parse_expiry_date(value: str) -> Optional[datetime]:
    """Parse certbot's expiry text into an aware UTC datetime.

    Accepts the trailing validity annotation, e.g.
    ``2026-01-15 08:12:44+00:00 (VALID: 88 days)``. Naive timestamps are
    taken as UTC.

    Returns:
        Parsed datetime, or None if the text is not a timestamp
    """
    match = EXPIRY_VALUE.match(value.strip())
    if not match:
        return None

    stamp = match.group("stamp")
    if stamp.endswith("Z"):
        stamp = stamp[:-1] + "+00:00"

    try:
        parsed = datetime.fromisoformat(stamp)
    except ValueError:
        return None

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def parse_certificates_output(text: str) -> list[RegistryEntry]:
    """Parse ``certbot certificates`` output into registry entries.

    Entries whose expiry line cannot be parsed are dropped. A domains line
    belongs to the most recent certificate name line.
    """
    entries: list[RegistryEntry] = []
    name: Optional[str] = None
    domains: tuple[str, ...] = ()

    for line in text.splitlines():
        match = NAME_LINE.match(line)
        if match:
            name = match.group("value")
            domains = ()
            continue

        match = DOMAINS_LINE.match(line)
        if match:
            domains = tuple(match.group("value").split())
            continue

        match = EXPIRY_LINE.match(line)
        if match and name:
            expiry = parse_expiry_date(match.group("value"))
            if expiry is not None:
                entries.append(RegistryEntry(name=name, domains=domains, expiry=expiry))
            name = None
            domains = ()

    return entries


class CertbotRegistry:
    """Read-only view of certbot's certificate registry."""

    def __init__(
        self,
        ctx: ExecutionContext,
        executor: CommandExecutor,
        timeout: int = 60,
    ) -> None:
        self.ctx = ctx
        self.executor = executor
        self.timeout = timeout

    def is_available(self) -> bool:
        """Check if the certbot binary is on PATH."""
        return self.executor.which(CERTBOT) is not None

    def list_entries(self) -> list[RegistryEntry]:
        """List the certificates certbot manages.

        A missing certbot, a failing command or a timeout all degrade to an
        empty list so the filesystem scan can still run.
        """
        if not self.is_available():
            self.ctx.console.verbose("certbot not found, scanning certificate files only")
            return []

        try:
            result = self.executor.run(
                [CERTBOT, "certificates"],
                check=False,
                read_only=True,
                timeout=self.timeout,
            )
        except ExecutionError as e:
            self.ctx.console.warn(f"certbot query failed: {e.message}")
            return []

        if not result.success:
            self.ctx.console.warn(
                f"certbot certificates exited with code {result.return_code}"
            )
            self.ctx.console.debug(result.stderr.strip())
            return []

        entries = parse_certificates_output(result.stdout)
        self.ctx.console.debug(f"certbot reported {len(entries)} certificate(s)")
        return entries
