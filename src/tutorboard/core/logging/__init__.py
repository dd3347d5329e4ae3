"""
Logging infrastructure: queue-backed structured logging and LogContext.
"""

from tutorboard.core.logging.logger import (
    LogContext,
    current_log_context,
    get_logger,
    setup_logging,
    shutdown_logging,
)

__all__ = [
    "setup_logging",
    "shutdown_logging",
    "get_logger",
    "LogContext",
    "current_log_context",
]
