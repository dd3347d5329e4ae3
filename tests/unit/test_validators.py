"""
Unit tests for input validators and domain exceptions.
"""

import logging

import pytest

from tutorboard.core.exceptions import (
    ConfigurationError,
    ErrorSeverity,
    get_error_severity,
)
from tutorboard.modules.shared.exceptions import (
    InvalidStepError,
    StepAlreadyCompletedError,
    StepOutOfOrderError,
    ValidationError,
)
from tutorboard.modules.shared.validators import (
    validate_identifier,
    validate_progress_value,
    validate_tutor_id,
)


@pytest.mark.unit
class TestValidators:
    def test_tutor_id_stripped(self):
        assert validate_tutor_id("  t1  ") == "t1"

    @pytest.mark.parametrize("bad", [None, "", "   ", 123, "x" * 65])
    def test_tutor_id_rejected(self, bad):
        with pytest.raises(ValidationError) as exc_info:
            validate_tutor_id(bad)
        assert exc_info.value.error_code == "VALIDATION_TUTOR_ID"

    def test_identifier_uses_field_name(self):
        with pytest.raises(ValidationError) as exc_info:
            validate_identifier("", "condition_type")
        assert exc_info.value.field == "condition_type"

    @pytest.mark.parametrize("value,expected", [(0, 0.0), (7, 7.0), (2.5, 2.5)])
    def test_progress_value_accepted(self, value, expected):
        assert validate_progress_value(value) == expected

    @pytest.mark.parametrize(
        "bad", [-1, -0.5, float("nan"), float("inf"), True, "10", None]
    )
    def test_progress_value_rejected(self, bad):
        with pytest.raises(ValidationError):
            validate_progress_value(bad)


@pytest.mark.unit
class TestExceptions:
    def test_invalid_step(self):
        error = InvalidStepError("nope")

        assert error.message == "Invalid onboarding step: nope"
        assert error.to_dict()["error_code"] == "INVALID_ONBOARDING_STEP"
        assert str(error).startswith("[INVALID_ONBOARDING_STEP] Invalid onboarding step")

    def test_already_completed_is_info(self):
        error = StepAlreadyCompletedError("welcome")

        assert get_error_severity(error) is ErrorSeverity.INFO
        assert error.to_dict()["severity"] == "info"

    def test_out_of_order_details(self):
        error = StepOutOfOrderError("c", ["a", "b"])

        assert error.details["missing_steps"] == ["a", "b"]
        assert error.details["step_id"] == "c"

    def test_unknown_errors_are_error_severity(self):
        assert get_error_severity(RuntimeError("db down")) is ErrorSeverity.ERROR

    def test_configuration_error(self):
        error = ConfigurationError("onboarding.steps", "missing")

        assert "onboarding.steps" in str(error)
        assert error.severity is ErrorSeverity.CRITICAL

    @pytest.mark.parametrize(
        "severity,level",
        [
            (ErrorSeverity.INFO, logging.INFO),
            (ErrorSeverity.WARNING, logging.WARNING),
            (ErrorSeverity.ERROR, logging.ERROR),
            (ErrorSeverity.CRITICAL, logging.CRITICAL),
        ],
    )
    def test_severity_log_level(self, severity, level):
        assert severity.log_level == level
