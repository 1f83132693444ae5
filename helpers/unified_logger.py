"""
Unified logging system for proxy session tools

Provides consistent, colored logging across the networking layer, the
gated client and the command line entry point.

Based on loguru with component-specific context.
"""

import os
import sys
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional

from loguru import logger as _logger

_console_handler_id: Optional[int] = None


def _write_stderr(message):
    # Resolved per write so a replaced sys.stderr is honoured.
    sys.stderr.write(message)


def _format_record(record):
    module_name = record.get("module") or record.get("name", "")
    source_location = f"{module_name}:{record['function']}:{record['line']}"
    record["extra"]["short_name"] = f"{source_location:>40}"
    return True


def _add_console_handler(log_level: str) -> None:
    global _console_handler_id

    console_format = (
        "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
        "<level>{level: <8}</level> | "
        "<cyan>{extra[short_name]}</cyan> | "
        "<level>{message}</level>"
    )

    _console_handler_id = _logger.add(
        _write_stderr,
        format=console_format,
        level=log_level.upper(),
        colorize=True,
        filter=lambda record: record["extra"].get("component_id") and _format_record(record),
        backtrace=True,
        diagnose=False
    )


def set_log_level(log_level: str) -> None:
    """
    Re-install the shared console handler at ``log_level``.

    Loggers created at import time keep working; only the console threshold
    changes. Also exported as LOG_LEVEL for loggers created later.
    """
    global _console_handler_id

    os.environ["LOG_LEVEL"] = log_level.upper()
    if not hasattr(_logger, "_proxy_tools_console_setup"):
        _logger.remove()
    elif _console_handler_id is not None:
        _logger.remove(_console_handler_id)
        _console_handler_id = None
    _add_console_handler(log_level)
    _logger._proxy_tools_console_setup = True


class UnifiedLogger:
    """
    Unified logger that provides consistent formatting across all components.

    Features:
    - Colored console output with source location (module:function:line)
    - Component-specific context (session, client, etc.)
    - Optional per-session log file when LOG_DIR is set
    """

    def __init__(
        self,
        component_type: str,  # "core", "client", "cli"
        component_name: str,  # "session_manager", "connection_factory", etc.
        context: Optional[Dict[str, Any]] = None,
        log_to_console: bool = True,
        log_level: str = "INFO"
    ):
        self.component_type = component_type.upper()
        self.component_name = component_name.upper()
        self.context = context or {}
        self.log_level = log_level.upper()

        self.component_id = f"{self.component_type}:{self.component_name}"
        if self.context:
            context_str = ":".join([f"{k}={v}" for k, v in self.context.items()])
            self.component_id = f"{self.component_id}:{context_str}"

        self._setup_logger(log_to_console)

    def _setup_logger(self, log_to_console: bool):
        """Setup loguru logger with unified formatting."""

        # Console handler is shared by every component and installed once.
        if not hasattr(_logger, "_proxy_tools_console_setup"):
            _logger.remove()

            if log_to_console:
                _add_console_handler(self.log_level)

            _logger._proxy_tools_console_setup = True

        log_dir = os.getenv("LOG_DIR")
        if log_dir and not hasattr(_logger, "_proxy_tools_session_setup"):
            logs_path = Path(log_dir)
            logs_path.mkdir(parents=True, exist_ok=True)
            session_ts = datetime.now().strftime("%Y%m%d_%H%M%S")
            session_file = logs_path / f"session_{session_ts}.log"

            def ensure_component(record):
                if "component_id" not in record["extra"]:
                    record["extra"]["component_id"] = "UNKNOWN"
                return True

            session_format = (
                "{time:YYYY-MM-DD HH:mm:ss} | "
                "{level:<8} | "
                "{extra[component_id]:<35} | "
                "{message}"
            )

            _logger.add(
                str(session_file),
                format=session_format,
                level="DEBUG",
                filter=ensure_component,
                backtrace=False,
                diagnose=False,
                enqueue=True,
                catch=True
            )
            _logger._proxy_tools_session_setup = True

        self._logger = _logger.bind(component_id=self.component_id)

    def debug(self, message: str, **kwargs):
        self._logger.opt(depth=1).debug(message, **kwargs)

    def info(self, message: str, **kwargs):
        self._logger.opt(depth=1).info(message, **kwargs)

    def warning(self, message: str, **kwargs):
        self._logger.opt(depth=1).warning(message, **kwargs)

    def error(self, message: str, **kwargs):
        self._logger.opt(depth=1).error(message, **kwargs)

    def with_context(self, **context) -> 'UnifiedLogger':
        """Create a new logger instance with additional context."""
        new_context = {**self.context, **context}
        return UnifiedLogger(
            component_type=self.component_type.lower(),
            component_name=self.component_name.lower(),
            context=new_context,
            log_level=self.log_level
        )


def get_logger(
    component_type: str,
    component_name: str,
    context: Optional[Dict[str, Any]] = None,
    log_to_console: bool = True,
    log_level: Optional[str] = None
) -> UnifiedLogger:
    """
    Factory function to create unified loggers.

    Args:
        component_type: Type of component (core, client, cli)
        component_name: Name of specific component
        context: Additional context (target, proxy, etc.)
        log_to_console: Whether to log to console
        log_level: Log level (defaults to env LOG_LEVEL or INFO)

    Examples:
        logger = get_logger("core", "session_manager")
        logger = get_logger("client", "proxied_client", {"target": "mc.example.net"})
    """
    if log_level is None:
        log_level = os.getenv('LOG_LEVEL', 'INFO')

    return UnifiedLogger(
        component_type=component_type,
        component_name=component_name,
        context=context,
        log_to_console=log_to_console,
        log_level=log_level
    )


def get_core_logger(component_name: str, **context) -> UnifiedLogger:
    """Get logger for networking core components."""
    return get_logger("core", component_name, context)


def get_client_logger(component_name: str, **context) -> UnifiedLogger:
    """Get logger for client-facing components."""
    return get_logger("client", component_name, context)
