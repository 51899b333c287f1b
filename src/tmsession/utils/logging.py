"""
Logging and error handling framework for tmsession.

This module provides:
- Structured logging configuration
- Custom exception classes
- Context-aware logging utilities
"""

import json
import logging
import sys
import traceback
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any


class LogLevel(str, Enum):
    """Log level enumeration for type safety."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class LogContext(str, Enum):
    """Log context categories for structured logging."""

    CLI = "cli"
    CONFIG = "config"
    SESSION = "session"
    TMUX = "tmux"


class TmSessionException(Exception):
    """Base exception class for all tmsession errors."""

    def __init__(self, message: str, context: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.context = context or {}
        self.timestamp = datetime.now(timezone.utc)


class InvocationError(TmSessionException):
    """Errors in the command line: missing arguments, conflicting modes."""

    pass


class ConfigurationError(TmSessionException):
    """Errors related to settings loading and validation."""

    pass


class SessionFileError(TmSessionException):
    """Errors related to reading session definition files."""

    pass


class TmuxError(TmSessionException):
    """Errors reported by tmux while running a control command."""

    def __init__(
        self,
        message: str,
        command: list[str] | None = None,
        stderr: list[str] | None = None,
    ):
        super().__init__(message, {"command": command or [], "stderr": stderr or []})
        self.command = command or []
        self.stderr = stderr or []


class PaneTooSmallError(TmuxError):
    """tmux refused to create a pane because the window has no room left."""

    pass


class StructuredFormatter(logging.Formatter):
    """Custom formatter for structured JSON logging."""

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        if hasattr(record, "context"):
            log_data["context"] = record.context

        if hasattr(record, "session_name"):
            log_data["session_name"] = record.session_name

        # Add all other extra fields from the record
        # Exclude standard LogRecord attributes and our own fields
        standard_fields = {
            "name",
            "msg",
            "args",
            "levelname",
            "levelno",
            "pathname",
            "filename",
            "module",
            "exc_info",
            "exc_text",
            "stack_info",
            "lineno",
            "funcName",
            "created",
            "msecs",
            "relativeCreated",
            "thread",
            "threadName",
            "processName",
            "process",
            "taskName",
            "getMessage",
            "context",
            "session_name",
        }

        for key, value in record.__dict__.items():
            if key not in standard_fields and not key.startswith("_"):
                log_data[key] = value

        if record.exc_info:
            log_data["exception"] = {
                "type": record.exc_info[0].__name__,
                "message": str(record.exc_info[1]),
                "traceback": traceback.format_exception(*record.exc_info),
            }

        return json.dumps(log_data, default=str)


class ContextualLogger:
    """Logger with context management for structured logging."""

    def __init__(self, name: str, context: LogContext):
        self.logger = logging.getLogger(name)
        self.context = context.value
        self.session_name: str | None = None

    def set_session_name(self, session_name: str) -> None:
        """Set the session name for all subsequent log messages."""
        self.session_name = session_name

    def _log(
        self, level: int, message: str, extra_context: dict[str, Any] | None = None
    ) -> None:
        """Internal logging method with context injection."""
        extra: dict[str, Any] = {
            "context": self.context,
        }

        if self.session_name:
            extra["session_name"] = self.session_name

        if extra_context:
            extra.update(extra_context)

        self.logger.log(level, message, extra=extra)

    def debug(self, message: str, **kwargs) -> None:
        """Log debug message with context."""
        self._log(logging.DEBUG, message, kwargs)

    def info(self, message: str, **kwargs) -> None:
        """Log info message with context."""
        self._log(logging.INFO, message, kwargs)

    def warning(self, message: str, **kwargs) -> None:
        """Log warning message with context."""
        self._log(logging.WARNING, message, kwargs)

    def error(self, message: str, exception: Exception | None = None, **kwargs) -> None:
        """Log error message with context and optional exception."""
        if exception:
            self.logger.error(
                message,
                exc_info=exception,
                extra={
                    "context": self.context,
                    "session_name": self.session_name,
                    **kwargs,
                },
            )
        else:
            self._log(logging.ERROR, message, kwargs)


def get_logger(name: str, context: LogContext) -> ContextualLogger:
    """Get a contextual logger instance."""
    return ContextualLogger(name, context)


def setup_logging(
    log_level: str | LogLevel = LogLevel.WARNING,
    log_file: Path | None = None,
    enable_structured: bool = False,
    enable_console: bool = True,
) -> None:
    """
    Setup logging configuration.

    Console output goes to stderr; stdout is reserved for session listings
    and usage text.

    Args:
        log_level: Minimum log level to capture
        log_file: Optional file path for log output
        enable_structured: Use JSON structured logging format
        enable_console: Enable console output
    """
    if isinstance(log_level, LogLevel):
        log_level = log_level.value

    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)

    plain_format = logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")

    handlers: list[logging.Handler] = []

    if enable_console:
        console_handler = logging.StreamHandler(sys.stderr)
        if enable_structured:
            console_handler.setFormatter(StructuredFormatter())
        else:
            console_handler.setFormatter(plain_format)
        handlers.append(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        if enable_structured:
            file_handler.setFormatter(StructuredFormatter())
        else:
            file_handler.setFormatter(plain_format)
        handlers.append(file_handler)

    root_logger = logging.getLogger()

    # Clear existing handlers first
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    root_logger.setLevel(getattr(logging, log_level.upper()))
    for handler in handlers:
        root_logger.addHandler(handler)

    # libtmux logs every subprocess it spawns
    logging.getLogger("libtmux").setLevel(logging.WARNING)
