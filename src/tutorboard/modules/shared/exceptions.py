"""
Domain exceptions for tutorboard.

Raised by services for rejected input and business rule violations. Every
class here is INFO severity: the caller did something the rules forbid and
the service itself is healthy. `error_code` is the stable identifier
callers should branch on.
"""

from __future__ import annotations

from typing import Any, Dict, Optional, Sequence

from tutorboard.core.exceptions import ErrorSeverity, TutorboardError


class TutorboardDomainException(TutorboardError):
    """Base for caller-facing rule violations."""

    DEFAULT_SEVERITY = ErrorSeverity.INFO


class ValidationError(TutorboardDomainException):
    """
    Caller input failed validation.

    Args:
        field: Name of the offending field
        message: Why the value was rejected
    """

    def __init__(self, field: str, message: str) -> None:
        self.field = field
        self.validation_message = message
        super().__init__(
            f"Validation error for {field}: {message}",
            error_code=f"VALIDATION_{field.upper()}",
            details={"field": field, "validation_message": message},
        )


class InvalidOperationError(TutorboardDomainException):
    def __init__(
        self,
        action: str,
        reason: str,
        *,
        details: Optional[Dict[str, Any]] = None,
        error_code: str = "INVALID_OPERATION",
    ) -> None:
        self.action = action
        self.reason = reason
        super().__init__(
            f"Invalid operation '{action}': {reason}",
            error_code=error_code,
            details={"action": action, "reason": reason, **(details or {})},
        )


# ============================================================================
# Onboarding
# ============================================================================


class InvalidStepError(TutorboardDomainException):
    """Raised when a step id is not part of the onboarding catalog."""

    def __init__(self, step_id: str) -> None:
        self.step_id = step_id
        super().__init__(
            f"Invalid onboarding step: {step_id}",
            error_code="INVALID_ONBOARDING_STEP",
            details={"step_id": step_id},
        )


class StepAlreadyCompletedError(InvalidOperationError):
    """Raised when a tutor completes a step twice."""

    def __init__(self, step_id: str) -> None:
        self.step_id = step_id
        super().__init__(
            "complete_step",
            f"Step '{step_id}' already completed",
            details={"step_id": step_id},
            error_code="STEP_ALREADY_COMPLETED",
        )


class StepOutOfOrderError(InvalidOperationError):
    """Raised when earlier catalog steps are still incomplete."""

    def __init__(self, step_id: str, missing_steps: Sequence[str]) -> None:
        self.step_id = step_id
        self.missing_steps = tuple(missing_steps)
        super().__init__(
            "complete_step",
            "Please complete previous steps first",
            details={"step_id": step_id, "missing_steps": list(self.missing_steps)},
            error_code="STEP_OUT_OF_ORDER",
        )
