"""
Base Service Foundation

Purpose
-------
Foundational class for all tutorboard domain services. Services implement
business logic, manage transactions, enforce business rules, and emit
domain events.

Design Notes
------------
This base class provides:
- Structured logging with operation context
- Safe config access patterns
- Event emission helpers

What this class does NOT do:
- Manage database transactions (that's DatabaseService's job)
- Handle SQLAlchemy sessions

Usage
-----
    class OnboardingService(BaseService):
        def __init__(self, config_manager, event_bus, logger):
            super().__init__(config_manager, event_bus, logger)

        async def complete_step(self, tutor_id: str, step_id: str):
            ...
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict, Iterable, Optional, Type

from tutorboard.core.exceptions import ConfigurationError, get_error_severity
from tutorboard.core.logging.logger import LogContext

if TYPE_CHECKING:
    from logging import Logger

    from tutorboard.core.config.manager import ConfigManager
    from tutorboard.core.event.bus import EventBus
    from tutorboard.domain.models.base import DomainEvent


class BaseService:
    """
    Base class for all domain services.

    Args:
        config_manager: Configuration manager (class or instance exposing `get`)
        event_bus: Event bus for cross-module communication
        logger: Structured logger instance
    """

    def __init__(
        self,
        config_manager: "Type[ConfigManager] | ConfigManager",
        event_bus: EventBus,
        logger: Logger,
    ) -> None:
        self._config = config_manager
        self._events = event_bus
        self.log = logger

    @property
    def event_bus(self) -> EventBus:
        return self._events

    def get_config(
        self, key: str, default: Optional[Any] = None, required: bool = False
    ) -> Any:
        """
        Retrieve a configuration value.

        Raises:
            ConfigurationError: If required=True and key is missing
        """
        value = self._config.get(key, default)
        if required and value is None:
            raise ConfigurationError(
                key, f"Required configuration key '{key}' is missing"
            )
        return value

    async def emit_event(
        self,
        event_type: str,
        data: Dict[str, Any],
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        await self._events.publish(event_type, {**data, **(context or {})})

    async def publish_domain_events(self, events: Iterable[DomainEvent]) -> None:
        """Publish events collected on an aggregate, in recording order."""
        for event in events:
            await self.emit_event(
                event.event_name,
                event.payload,
                context={"occurred_at": event.occurred_at.isoformat()},
            )

    def operation_context(self, operation: str, tutor_id: Optional[str] = None) -> LogContext:
        return LogContext(
            user_id=tutor_id,
            component=type(self).__name__,
            operation=operation,
        )

    def log_operation(self, operation: str, **context: Any) -> None:
        self.log.info(
            f"Service operation: {operation}",
            extra={"operation": operation, **context},
        )

    def log_error(
        self,
        operation: str,
        error: Exception,
        **context: Any,
    ) -> None:
        self.log.log(
            get_error_severity(error).log_level,
            f"Service error during {operation}: {str(error)}",
            extra={
                "operation": operation,
                "error_type": type(error).__name__,
                "error_message": str(error),
                **context,
            },
        )
