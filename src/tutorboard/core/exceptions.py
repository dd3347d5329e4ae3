"""
Error base types shared by every tutorboard layer.

`TutorboardError` carries a stable `error_code`, structured `details` and an
`ErrorSeverity` that decides the log level it is reported at. Infrastructure
problems (configuration) are defined here; caller-facing rule violations
live in `tutorboard.modules.shared.exceptions`.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any, Dict, Optional


class ErrorSeverity(Enum):
    """How loudly an error should be reported."""

    INFO = "info"  # rejected input, rule violations
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"  # service cannot start or run

    @property
    def log_level(self) -> int:
        return getattr(logging, self.name)


class TutorboardError(Exception):
    DEFAULT_SEVERITY: ErrorSeverity = ErrorSeverity.ERROR

    def __init__(
        self,
        message: str,
        *,
        error_code: str,
        details: Optional[Dict[str, Any]] = None,
        severity: Optional[ErrorSeverity] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.details: Dict[str, Any] = dict(details or {})
        self.severity = severity or self.DEFAULT_SEVERITY

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error_type": type(self).__name__,
            "error_code": self.error_code,
            "message": self.message,
            "details": self.details,
            "severity": self.severity.value,
        }

    def __str__(self) -> str:
        if not self.details:
            return f"[{self.error_code}] {self.message}"
        return f"[{self.error_code}] {self.message} | Details: {self.details}"


def get_error_severity(exc: BaseException) -> ErrorSeverity:
    """Severity of a raised error. Anything we did not raise ourselves is ERROR."""
    if isinstance(exc, TutorboardError):
        return exc.severity
    return ErrorSeverity.ERROR


class ConfigurationError(TutorboardError):
    """
    A configuration key is missing or holds an unusable value.

    Raised at service construction for malformed onboarding catalogs and
    tier ladders, so a bad deploy fails before serving any request.
    """

    DEFAULT_SEVERITY = ErrorSeverity.CRITICAL

    def __init__(self, config_key: str, message: str) -> None:
        self.config_key = config_key
        super().__init__(
            f"Configuration error for {config_key}: {message}",
            error_code="CONFIG_ERROR",
            details={"config_key": config_key, "message": message},
        )
