"""Core framework components for lecert."""

from lecert.core.exceptions import (
    LecertError,
    ConfigurationError,
    ValidationError,
    ExecutionError,
    RenewalError,
)

from lecert.core.context import ExecutionContext, create_context
from lecert.core.output import console, Console, Verbosity
from lecert.core.config import AppConfig, LecertConfig
from lecert.core.audit import (
    AuditLogger,
    AuditEvent,
    AuditEventType,
    AuditResult,
    configure_audit_logger,
)
from lecert.core.executor import CommandExecutor, CommandResult

__all__ = [
    # Exceptions
    "LecertError",
    "ConfigurationError",
    "ValidationError",
    "ExecutionError",
    "RenewalError",
    # Context
    "ExecutionContext",
    "create_context",
    # Output
    "console",
    "Console",
    "Verbosity",
    # Config
    "AppConfig",
    "LecertConfig",
    # Audit
    "AuditLogger",
    "AuditEvent",
    "AuditEventType",
    "AuditResult",
    "configure_audit_logger",
    # Executor
    "CommandExecutor",
    "CommandResult",
]
