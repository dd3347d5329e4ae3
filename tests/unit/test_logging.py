"""
Unit tests for LogContext, ContextFilter and JSONFormatter.
"""

import json
import logging
import sys

import pytest

from tutorboard.core.logging.logger import (
    ContextFilter,
    JSONFormatter,
    LogContext,
    current_log_context,
)


def make_record(**extra):
    record = logging.LogRecord(
        "tutorboard.test", logging.INFO, __file__, 10, "step %s done", ("welcome",), None
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


@pytest.mark.unit
class TestLogContext:
    def test_outer_block_gets_correlation_id(self):
        with LogContext(operation="complete_step"):
            context = current_log_context()

        assert context["operation"] == "complete_step"
        assert len(context["correlation_id"]) == 8
        assert current_log_context() == {}

    def test_nested_blocks_inherit_and_restore(self):
        with LogContext(user_id="t1", correlation_id="abc"):
            with LogContext(operation="inner", user_id="t2"):
                inner = current_log_context()
            outer = current_log_context()

        assert inner == {"user_id": "t2", "operation": "inner", "correlation_id": "abc"}
        assert outer == {"user_id": "t1", "correlation_id": "abc"}

    def test_none_fields_are_skipped(self):
        with LogContext(user_id=None, operation="read", correlation_id="x"):
            assert current_log_context() == {"operation": "read", "correlation_id": "x"}

    async def test_async_form(self):
        async with LogContext(operation="async", correlation_id="y"):
            assert current_log_context()["operation"] == "async"
        assert current_log_context() == {}


@pytest.mark.unit
class TestFormatting:
    def test_filter_does_not_override_explicit_extra(self):
        record = make_record(operation="explicit")

        with LogContext(operation="bound", user_id="t1", correlation_id="c"):
            ContextFilter().filter(record)

        assert record.operation == "explicit"
        assert record.user_id == "t1"

    def test_json_output(self):
        record = make_record(tutor_id="t1", step_id="welcome")

        payload = json.loads(JSONFormatter().format(record))

        assert payload["level"] == "INFO"
        assert payload["message"] == "step welcome done"
        assert payload["context"] == {"tutor_id": "t1", "step_id": "welcome"}
        assert "exception" not in payload

    def test_json_includes_exception(self):
        try:
            raise RuntimeError("boom")
        except RuntimeError:
            record = logging.LogRecord(
                "tutorboard.test", logging.ERROR, __file__, 1, "failed", None, sys.exc_info()
            )

        payload = json.loads(JSONFormatter().format(record))

        assert "RuntimeError: boom" in payload["exception"]
        assert "context" not in payload
