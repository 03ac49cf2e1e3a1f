"""Renewal command construction and execution.

The renewal is a manual DNS-01 issuance against the Let's Encrypt
production endpoint. The command is kept as an argument list end to end
and never passes through a shell.
"""

import shlex
from dataclasses import dataclass
from typing import Optional

from lecert.core.config import ACME_PRODUCTION_URL
from lecert.core.context import ExecutionContext
from lecert.core.exceptions import ExecutionError
from lecert.core.executor import CommandExecutor
from lecert.core.validation import WILDCARD_PREFIX


CERTBOT = "certbot"

# Fixed challenge flags for the manual DNS flow
DNS_CHALLENGE_FLAGS = ("--manual", "--preferred-challenges=dns")


def is_wildcard(domain: str) -> bool:
    """Check if a domain starts with the wildcard label."""
    return domain.startswith(WILDCARD_PREFIX)


def promote_wildcard(domain: str) -> str:
    """Wildcard form of a domain: ``*.`` followed by its parent."""
    parent = domain.split(".", 1)[1] if "." in domain else domain
    return f"{WILDCARD_PREFIX}{parent}"


def build_renewal_command(
    email: str,
    domain: str,
    server: str = ACME_PRODUCTION_URL,
) -> list[str]:
    """Build the certbot invocation for a manual DNS-challenge renewal."""
    return [
        CERTBOT,
        "certonly",
        *DNS_CHALLENGE_FLAGS,
        "--server",
        server,
        "--agree-tos",
        "--email",
        email,
        "-d",
        domain,
    ]


def format_command(command: list[str]) -> str:
    """Shell-quoted form for display and copy/paste."""
    return shlex.join(command)


@dataclass
class RenewalResult:
    """Outcome of running the renewal command."""
    return_code: Optional[int]
    timed_out: bool = False
    error: Optional[str] = None

    @property
    def success(self) -> bool:
        return self.return_code == 0 and not self.timed_out


class RenewalRunner:
    """Run the renewal command attached to the terminal.

    certbot's manual DNS flow asks the operator to create TXT records, so
    output is not captured.
    """

    def __init__(
        self,
        ctx: ExecutionContext,
        executor: CommandExecutor,
        timeout: int = 1800,
    ) -> None:
        self.ctx = ctx
        self.executor = executor
        self.timeout = timeout

    def run(self, command: list[str]) -> RenewalResult:
        """Execute synchronously and report the exit status."""
        try:
            result = self.executor.run(
                command,
                check=False,
                capture=False,
                timeout=self.timeout,
            )
        except ExecutionError as e:
            return RenewalResult(
                return_code=e.return_code,
                timed_out=e.timed_out,
                error=e.message,
            )
        return RenewalResult(return_code=result.return_code)
