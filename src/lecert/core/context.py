"""Per-run state shared by commands and services.

One context is built for each CLI invocation from its flags. Building it
configures the console; the configuration file is read on first use so
commands like ``config init`` work before the file exists.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from lecert.core.config import DEFAULT_CONFIG_PATH, AppConfig, LecertConfig
from lecert.core.output import Console, Verbosity, console


@dataclass
class ExecutionContext:
    """Flags and configuration for one lecert run."""

    dry_run: bool = False
    yes: bool = False
    verbosity: int = Verbosity.NORMAL
    no_color: bool = False
    config_path: Path = DEFAULT_CONFIG_PATH

    _config: Optional[AppConfig] = field(default=None, repr=False)
    _console: Console = field(default=console, repr=False)

    def __post_init__(self) -> None:
        self._console.configure(
            verbosity=self.verbosity,
            dry_run=self.dry_run,
            no_color=self.no_color,
        )

    @property
    def console(self) -> Console:
        return self._console

    @property
    def config(self) -> AppConfig:
        """File settings plus environment overrides, loaded once."""
        if self._config is None:
            self._config = AppConfig(config_path=self.config_path)
        return self._config

    @property
    def settings(self) -> LecertConfig:
        return self.config.config

    @property
    def color_enabled(self) -> bool:
        return self._console.color_enabled

    @property
    def is_verbose(self) -> bool:
        return self.verbosity >= Verbosity.VERBOSE

    @property
    def should_confirm(self) -> bool:
        """False when --yes answers every confirmation up front."""
        return not self.yes


def _verbosity(verbose: int, quiet: bool) -> Verbosity:
    if quiet:
        return Verbosity.QUIET
    return Verbosity(min(Verbosity.NORMAL + verbose, Verbosity.DEBUG))


def create_context(
    dry_run: bool = False,
    yes: bool = False,
    verbose: int = 0,
    quiet: bool = False,
    no_color: bool = False,
    config: Optional[Path] = None,
) -> ExecutionContext:
    """Build the context for a command from its CLI flags.

    Args:
        verbose: Number of -v flags given
        quiet: Only errors and requested output (used by --json)
        config: Configuration file, defaults to /etc/lecert/config.yaml
    """
    return ExecutionContext(
        dry_run=dry_run,
        yes=yes,
        verbosity=_verbosity(verbose, quiet),
        no_color=no_color,
        config_path=config or DEFAULT_CONFIG_PATH,
    )
