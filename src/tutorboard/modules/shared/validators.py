"""
tutorboard input validators.

Validators accept data, raise `ValidationError` on failure and return the
normalized value on success. They never touch the database.

Usage
-----
    from tutorboard.modules.shared.validators import validate_tutor_id

    tutor_id = validate_tutor_id(" t-42 ")   # -> "t-42"
    validate_progress_value(-1)              # raises ValidationError
"""

from __future__ import annotations

import math
from typing import Any, Optional

from .exceptions import ValidationError

TUTOR_ID_MAX_LENGTH = 64
IDENTIFIER_MAX_LENGTH = 64


def validate_string(
    value: Any,
    field_name: str,
    min_length: Optional[int] = 1,
    max_length: Optional[int] = None,
) -> str:
    """
    Validate and strip a string input.

    Raises:
        ValidationError: If value is missing, not a string, or out of bounds
    """
    if value is None:
        raise ValidationError(field_name, "Value is required")
    if not isinstance(value, str):
        raise ValidationError(
            field_name, f"Must be a string, got {type(value).__name__}"
        )

    str_value = value.strip()

    if min_length is not None and len(str_value) < min_length:
        raise ValidationError(field_name, f"Must be at least {min_length} characters")
    if max_length is not None and len(str_value) > max_length:
        raise ValidationError(field_name, f"Cannot exceed {max_length} characters")

    return str_value


def validate_tutor_id(tutor_id: Any) -> str:
    return validate_string(tutor_id, "tutor_id", max_length=TUTOR_ID_MAX_LENGTH)


def validate_identifier(value: Any, field_name: str) -> str:
    return validate_string(value, field_name, max_length=IDENTIFIER_MAX_LENGTH)


def validate_progress_value(value: Any, field_name: str = "value") -> float:
    """
    Validate a reported metric value.

    Accepts ints and floats that are finite and non-negative. Booleans are
    rejected even though they are ints.

    Raises:
        ValidationError: On any other input
    """
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValidationError(
            field_name, f"Must be a number, got {type(value).__name__}"
        )
    if not math.isfinite(value):
        raise ValidationError(field_name, f"Must be finite, got {value}")
    if value < 0:
        raise ValidationError(field_name, f"Must be non-negative, got {value}")
    return float(value)
