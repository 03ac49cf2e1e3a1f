"""Command execution.

Provides:
- Safe command execution from argument lists (never through a shell)
- Output capture or passthrough to the terminal
- Mandatory timeouts
- Dry-run mode support
"""

import shlex
import shutil
import subprocess
from dataclasses import dataclass
from typing import Optional

from lecert.core.context import ExecutionContext
from lecert.core.exceptions import ExecutionError


DEFAULT_TIMEOUT = 60


@dataclass
class CommandResult:
    """Result of a command execution."""
    command: list[str]
    return_code: int
    stdout: str
    stderr: str

    @property
    def success(self) -> bool:
        """Check if command succeeded."""
        return self.return_code == 0


class CommandExecutor:
    """Safe command execution with dry-run support and output capture.

    Features:
    - Dry-run mode shows what would happen
    - Read-only queries still run in dry-run mode
    - Output capture for processing
    - Timeout on every call
    """

    def __init__(self, ctx: ExecutionContext) -> None:
        """Initialize executor with context.

        Args:
            ctx: Execution context with flags
        """
        self.ctx = ctx

    @staticmethod
    def which(program: str) -> Optional[str]:
        """Locate an executable on PATH."""
        return shutil.which(program)

    def run(
        self,
        command: list[str],
        *,
        check: bool = True,
        capture: bool = True,
        read_only: bool = False,
        timeout: Optional[int] = DEFAULT_TIMEOUT,
    ) -> CommandResult:
        """Execute a command safely.

        Args:
            command: Command as list of strings
            check: Raise exception on non-zero exit
            capture: Capture stdout/stderr instead of passing them through
            read_only: Command changes nothing, so run it even in dry-run mode
            timeout: Command timeout in seconds

        Returns:
            CommandResult with output

        Raises:
            ExecutionError: If command fails and check=True, times out,
                or the program is missing
        """
        cmd_display = shlex.join(command)
        self.ctx.console.debug(f"Running: {cmd_display}")

        if self.ctx.dry_run and not read_only:
            self.ctx.console.dry_run_msg(f"Run: {cmd_display}")
            return CommandResult(
                command=command,
                return_code=0,
                stdout="",
                stderr="",
            )

        try:
            result = subprocess.run(
                command,
                capture_output=capture,
                text=True,
                timeout=timeout,
            )
        except subprocess.TimeoutExpired as e:
            raise ExecutionError(
                f"Command timed out after {timeout}s: {cmd_display}",
                command=cmd_display,
                timed_out=True,
            ) from e
        except FileNotFoundError as e:
            raise ExecutionError(
                f"Command not found: {command[0]}",
                command=cmd_display,
                hint=f"Install {command[0]} or check PATH",
            ) from e

        cmd_result = CommandResult(
            command=command,
            return_code=result.returncode,
            stdout=result.stdout if capture else "",
            stderr=result.stderr if capture else "",
        )

        if check and result.returncode != 0:
            raise ExecutionError(
                f"Command failed: {cmd_display}",
                command=cmd_display,
                return_code=result.returncode,
                stderr=result.stderr if capture else None,
            )

        return cmd_result
