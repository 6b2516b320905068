#!/usr/bin/env python3
"""
LIT client logging configuration

Centralized logging setup for consistent formatting across the project.
Console output is coloured when the terminal supports it; a log file is
written only when LITCLIENT_LOG_FILE is set.

Usage:
    from shared.log import get_logger

    logger = get_logger(__name__)
    logger.info("Connecting to node...")
    logger.debug("Sent request", extra={"method": "LitRPC.Balance", "request_id": 3})
"""

from __future__ import annotations
import logging
import sys
from pathlib import Path
from typing import Optional, Dict, Any
import os


# ========================================
#           LOGGING FORMATTERS
# ========================================

class GenericFormatter(logging.Formatter):

    def format(self, record: logging.LogRecord) -> str:
        # RPC context passed through `extra=`
        rpc_context = []

        if hasattr(record, 'host'):
            rpc_context.append(f"node={record.host}")
        if hasattr(record, 'method'):
            rpc_context.append(f"method={record.method}")
        if hasattr(record, 'request_id'):
            rpc_context.append(f"id={record.request_id}")

        message = super().format(record)
        if rpc_context:
            return f"[{' '.join(rpc_context)}] {message}"
        return message


class ColoredFormatter(GenericFormatter):
    """Colored formatter for console output"""

    # ANSI Color codes
    COLORS = {
        'DEBUG': '\033[36m',     # Cyan
        'INFO': '\033[32m',      # Green
        'WARNING': '\033[33m',   # Yellow
        'ERROR': '\033[31m',     # Red
        'CRITICAL': '\033[35m',  # Magenta
        'RESET': '\033[0m'       # Reset
    }

    def format(self, record: logging.LogRecord) -> str:
        levelname = record.levelname
        if levelname in self.COLORS:
            record.levelname = f"{self.COLORS[levelname]}{levelname}{self.COLORS['RESET']}"
        try:
            return super().format(record)
        finally:
            record.levelname = levelname


# ========================================
#           LOGGING CONFIGURATION
# ========================================

_loggers_configured = set()
_level_override: Optional[str] = None

def get_logger(name: str, level: Optional[str] = None) -> logging.Logger:
    """
    Get a configured logger for the given module.

    Args:
        name: Usually __name__ from the calling module
        level: Override log level ("DEBUG", "INFO", "WARNING", "ERROR")

    Returns:
        Configured logger instance

    Examples:
        logger = get_logger(__name__)
        logger.info("Connection open")

        # With context
        logger.warning("Dropping response", extra={
            "method": "LitRPC.Push",
            "request_id": 12,
        })
    """
    logger = logging.getLogger(name)

    # Only configure each logger once
    if name not in _loggers_configured:
        _configure_logger(logger, level)
        _loggers_configured.add(name)

    return logger


def _configure_logger(logger: logging.Logger, level: Optional[str] = None) -> None:
    """Configure a logger with appropriate handlers and formatters"""

    logger.setLevel(_get_log_level(level))

    # Clear existing handlers to avoid duplicates
    logger.handlers.clear()

    _add_console_handler(logger, colored=_is_development())
    if os.getenv('LITCLIENT_LOG_FILE'):
        _add_file_handler(logger, Path(os.environ['LITCLIENT_LOG_FILE']))

    # Prevent duplicate messages from parent loggers
    logger.propagate = False


def _get_log_level(level: Optional[str] = None) -> int:
    """Determine appropriate log level"""

    level = level or _level_override or os.getenv('LITCLIENT_LOG_LEVEL')
    if level:
        return getattr(logging, level.upper(), logging.INFO)

    # Default based on environment
    return logging.DEBUG if _is_development() else logging.INFO


def _is_development() -> bool:
    """Detect if we're in development mode"""
    return (
        os.getenv('LITCLIENT_ENV', '').lower() in ['dev', 'development'] or
        'pytest' in sys.modules
    )


def _add_console_handler(logger: logging.Logger, colored: bool = True) -> None:
    """Add console handler with appropriate formatter"""

    fmt = '[%(levelname)-8s][%(asctime)s][%(name)-5s]: %(message)s'
    handler = logging.StreamHandler(sys.stderr)

    if colored and _supports_color():
        formatter = ColoredFormatter(
            fmt=fmt,
            datefmt='%H:%M:%S'
        )
    else:
        formatter = GenericFormatter(
            fmt=fmt,
            datefmt='%Y-%m-%d %H:%M:%S'
        )

    handler.setFormatter(formatter)
    logger.addHandler(handler)


def _add_file_handler(logger: logging.Logger, log_file: Path) -> None:
    """Add file handler for persistent logging"""

    log_file.parent.mkdir(parents=True, exist_ok=True)
    handler = logging.FileHandler(log_file)

    formatter = GenericFormatter(
        fmt='%(asctime)s | %(name)-30s | %(levelname)-8s | %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    handler.setFormatter(formatter)
    logger.addHandler(handler)


def _supports_color() -> bool:
    """Check if terminal supports color output"""

    # stderr must be a terminal
    if not (hasattr(sys.stderr, "isatty") and sys.stderr.isatty()):
        return False

    # TERM should not be dumb
    if os.getenv("TERM", "") == "dumb":
        return False

    # Windows-specific check
    if sys.platform == "win32":
        return os.getenv("ANSICON") is not None or os.getenv("WT_SESSION") is not None or os.getenv("TERM_PROGRAM") == "vscode" or "WindowsTerminal" in os.getenv("TERM", "")

    return True

# ========================================
#           CONVENIENCE FUNCTIONS
# ========================================

def configure_root_logging(level: str = "INFO") -> None:
    """
    Configure root logging for the entire application.
    Call this once at application startup. The level also applies to
    loggers already handed out by get_logger() and to those created later.

    Args:
        level: Root log level ("DEBUG", "INFO", "WARNING", "ERROR")
    """
    global _level_override
    _level_override = level

    root_logger = logging.getLogger()
    _configure_logger(root_logger, level)

    for name in _loggers_configured:
        logging.getLogger(name).setLevel(_get_log_level(level))


def log_rpc_message(logger: logging.Logger, level: str, message: str,
                    envelope: Optional[Dict[str, Any]] = None,
                    **context: Any) -> None:
    """
    Log an RPC envelope event with structured context.

    Args:
        logger: Logger instance
        level: Log level ("debug", "info", "warning", "error")
        message: Log message
        envelope: request or response envelope dict for automatic context extraction
        **context: Additional context fields

    Example:
        log_rpc_message(logger, "debug", "Sent request",
                        envelope=request.to_dict(), host="localhost:8001")
    """

    extra_context = {}

    if envelope:
        if envelope.get('method') is not None:
            extra_context['method'] = envelope['method']
        if envelope.get('id') is not None:
            extra_context['request_id'] = envelope['id']

    extra_context.update(context)

    log_func = getattr(logger, level.lower())
    log_func(message, extra=extra_context)
