"""
Base domain model classes for tutorboard.

Purpose
-------
Foundational abstractions for domain models that encapsulate business rules
and state transitions, kept separate from the SQLAlchemy schema models.

Responsibilities
----------------
- Base Entity / AggregateRoot with identity and pending domain events
- Base ValueObject for immutable value types
- DomainValidationError plus small validators for business invariants

Non-Responsibilities
--------------------
- Persistence (handled by repositories)
- Database schema (handled by SQLAlchemy models)
- Service orchestration (handled by the service layer)
"""

from __future__ import annotations

import math
from abc import ABC
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional


# ============================================================================
# DOMAIN EVENTS
# ============================================================================


@dataclass
class DomainEvent:
    """
    A state change other parts of the system may react to.

    Attributes
    ----------
    event_name : str
        Event name (e.g., "onboarding.step_completed")
    payload : Dict[str, Any]
        Event payload with relevant data
    occurred_at : datetime
        When the event occurred (UTC)
    """

    event_name: str
    payload: Dict[str, Any]
    occurred_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


# ============================================================================
# VALUE OBJECT
# ============================================================================


class ValueObject(ABC):
    """
    Base class for immutable value objects.

    Value objects are defined by their attributes, not by identity. Concrete
    value objects in tutorboard are frozen dataclasses that call
    `_validate()` from `__post_init__`.
    """

    def _validate(self) -> None:
        """Enforce invariants. Subclasses raise DomainValidationError."""


# ============================================================================
# ENTITY
# ============================================================================


class Entity(ABC):
    """
    Base class for entities with identity.

    Two entities with the same ID are the same entity, even if their
    attributes differ.
    """

    def __init__(self, entity_id: str) -> None:
        self._id = entity_id
        self._domain_events: List[DomainEvent] = []

    @property
    def id(self) -> str:
        return self._id

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Entity):
            return False
        return type(self) is type(other) and self.id == other.id

    def __hash__(self) -> int:
        return hash((type(self).__name__, self.id))

    def add_domain_event(self, event_name: str, payload: Dict[str, Any]) -> None:
        """
        Record a domain event to be published after persistence.

        >>> self.add_domain_event("onboarding.completed", {"tutor_id": self.id})
        """
        self._domain_events.append(DomainEvent(event_name=event_name, payload=payload))

    def clear_domain_events(self) -> List[DomainEvent]:
        """Clear and return all pending domain events."""
        events = self._domain_events.copy()
        self._domain_events.clear()
        return events

    def get_pending_events(self) -> List[DomainEvent]:
        return self._domain_events.copy()


class AggregateRoot(Entity):
    """
    Consistency boundary for a cluster of domain objects.

    All changes to the aggregate go through the root, which emits domain
    events for significant state transitions.
    """


# ============================================================================
# DOMAIN MODEL VALIDATION
# ============================================================================


class DomainValidationError(Exception):
    """Raised when a domain model invariant is violated."""

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.field = field


def validate_non_negative(value: float, field_name: str) -> None:
    if value < 0:
        raise DomainValidationError(
            f"{field_name} must be non-negative, got {value}",
            field=field_name,
        )


def validate_finite(value: float, field_name: str) -> None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise DomainValidationError(
            f"{field_name} must be a number, got {type(value).__name__}",
            field=field_name,
        )
    if not math.isfinite(value):
        raise DomainValidationError(
            f"{field_name} must be finite, got {value}",
            field=field_name,
        )


def validate_not_empty(value: str, field_name: str) -> None:
    if not value or not value.strip():
        raise DomainValidationError(
            f"{field_name} cannot be empty",
            field=field_name,
        )
