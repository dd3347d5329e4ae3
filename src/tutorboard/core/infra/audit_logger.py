"""
Audit trail logger for tutorboard.

Purpose
-------
Event-driven audit trail for tutor progression changes (step completions,
achievement unlocks, reward grants). Publishes structured audit events to
the EventBus for decoupled persistence.

This module is a **pure event producer**: it shapes audit events and
publishes them. Persistence belongs to whichever consumer subscribes to
"audit.transaction.logged".

Canonical Event Shape
---------------------
Event name: "audit.transaction.logged"
Payload:
{
    "timestamp": str,          # ISO8601 UTC timestamp
    "tutor_id": str,
    "transaction_type": str,   # e.g. "onboarding_step_completed"
    "details": dict,
    "context": str,            # subsystem origin
    "meta": dict,
}

Usage
-----
    await AuditLogger.log(
        tutor_id="t-1",
        transaction_type="achievement_unlocked",
        details={"achievement_id": "a-42", "progress": 100},
        context="achievements",
    )
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Mapping, Optional

from tutorboard.core.event import EventBus, EventPayload, event_bus
from tutorboard.core.logging.logger import get_logger

logger = get_logger(__name__)


@dataclass
class AuditMetrics:
    """In-memory counters for audit event production."""

    events_emitted: int = 0
    publish_errors: int = 0
    total_log_time_ms: float = 0.0

    def as_dict(self) -> Dict[str, Any]:
        total_events = max(self.events_emitted, 1)
        return {
            "events_emitted": self.events_emitted,
            "publish_errors": self.publish_errors,
            "error_rate_percent": round(self.publish_errors / total_events * 100.0, 2),
            "avg_log_time_ms": round(self.total_log_time_ms / total_events, 3),
        }


_metrics = AuditMetrics()


class AuditLogger:
    """
    Write-only audit trail logger.

    Publish failures are logged and counted but never raised; an audit
    outage must not fail a progression write that already committed.
    """

    EVENT_NAME: str = "audit.transaction.logged"

    @classmethod
    async def log(
        cls,
        *,
        tutor_id: str,
        transaction_type: str,
        details: Mapping[str, Any],
        context: Optional[str] = None,
        meta: Optional[Mapping[str, Any]] = None,
        bus: Optional[EventBus] = None,
    ) -> None:
        """
        Publish a canonical audit transaction event.

        Parameters
        ----------
        tutor_id : str
            Tutor the transaction belongs to.
        transaction_type : str
            Logical type of transaction.
        details : Mapping[str, Any]
            Structured transaction data.
        context : Optional[str]
            Logical origin (subsystem name).
        meta : Optional[Mapping[str, Any]]
            Additional metadata such as trace ids.
        bus : Optional[EventBus]
            Bus to publish on. Defaults to the process-wide bus.
        """
        start_time = time.perf_counter()
        target = bus if bus is not None else event_bus

        payload: EventPayload = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "tutor_id": str(tutor_id),
            "transaction_type": transaction_type,
            "details": dict(details),
            "context": context or "unknown",
            "meta": dict(meta) if meta is not None else {},
        }

        try:
            await target.publish(cls.EVENT_NAME, payload)
        except Exception:
            _metrics.publish_errors += 1
            logger.error(
                "Failed to publish audit event",
                extra={
                    "tutor_id": tutor_id,
                    "transaction_type": transaction_type,
                    "context": context,
                },
                exc_info=True,
            )
            return

        elapsed_ms = (time.perf_counter() - start_time) * 1000
        _metrics.events_emitted += 1
        _metrics.total_log_time_ms += elapsed_ms

        logger.info(
            "Audit event emitted",
            extra={
                "event_name": cls.EVENT_NAME,
                "tutor_id": tutor_id,
                "transaction_type": transaction_type,
                "context": payload["context"],
                "log_time_ms": round(elapsed_ms, 3),
            },
        )

    @classmethod
    def get_metrics(cls) -> Dict[str, Any]:
        return _metrics.as_dict()

    @classmethod
    def reset_metrics(cls) -> None:
        global _metrics
        _metrics = AuditMetrics()
