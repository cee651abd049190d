"""
Event Logger

DESIGN DECISION: Every ledger mutation and every step of the
categorization workflow is logged as a structured event.
This provides:
1. Traceability of one draft through the workflow (correlation IDs)
2. Debugging capability when a suggestion or a write fails
3. A single place to configure log output

Events go to the local structured log only. There is no persisted history.
"""

from typing import Optional
from uuid import UUID, uuid4

import structlog

from spendwise.models.events import (
    EventSeverity,
    LedgerEvent,
    LedgerEventBuilder,
    LedgerEventType,
)


# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


class EventLogger:
    """
    Central event logging service.

    Keeps the events it has emitted in a bounded in-memory buffer so
    callers (and tests) can inspect what just happened.
    """

    def __init__(self, buffer_size: int = 200):
        self._logger = structlog.get_logger("spendwise.events")
        self._buffer_size = buffer_size
        self._recent: list[LedgerEvent] = []

    @property
    def recent_events(self) -> list[LedgerEvent]:
        return list(self._recent)

    def events_of_type(self, event_type: LedgerEventType) -> list[LedgerEvent]:
        return [e for e in self._recent if e.event_type == event_type]

    def log(self, event: LedgerEvent) -> None:
        """Log an event at the level matching its severity."""
        log_dict = event.to_log_dict()

        if event.severity == EventSeverity.ERROR:
            self._logger.error("ledger_event", **log_dict)
        elif event.severity == EventSeverity.WARNING:
            self._logger.warning("ledger_event", **log_dict)
        elif event.severity == EventSeverity.DEBUG:
            self._logger.debug("ledger_event", **log_dict)
        else:
            self._logger.info("ledger_event", **log_dict)

        self._recent.append(event)
        if len(self._recent) > self._buffer_size:
            del self._recent[: len(self._recent) - self._buffer_size]

    def log_identity_changed(
        self,
        previous: Optional[str],
        current: Optional[str],
    ) -> None:
        self.log(LedgerEventBuilder.identity_changed(previous, current))

    def log_cells_rebound(self, identity: Optional[str], keys: list[str]) -> None:
        self.log(LedgerEventBuilder.cells_rebound(identity, keys))

    def log_transaction_added(
        self,
        transaction_id: str,
        identity: str,
        amount: str,
        category_id: str,
        is_ai_categorized: bool,
    ) -> None:
        self.log(LedgerEventBuilder.transaction_added(
            transaction_id=transaction_id,
            identity=identity,
            amount=amount,
            category_id=category_id,
            is_ai_categorized=is_ai_categorized,
        ))

    def log_transaction_updated(self, transaction_id: str, identity: str) -> None:
        self.log(LedgerEventBuilder.transaction_updated(transaction_id, identity))

    def log_transaction_deleted(self, transaction_id: str, identity: str) -> None:
        self.log(LedgerEventBuilder.transaction_deleted(transaction_id, identity))

    def log_budget_changed(
        self,
        event_type: LedgerEventType,
        budget_id: str,
        identity: str,
        category_id: str,
        period: str,
    ) -> None:
        self.log(LedgerEventBuilder.budget_changed(
            event_type=event_type,
            budget_id=budget_id,
            identity=identity,
            category_id=category_id,
            period=period,
        ))

    def log_budget_rejected(
        self,
        identity: str,
        category_id: str,
        period: str,
        reason: str,
    ) -> None:
        self.log(LedgerEventBuilder.budget_rejected(identity, category_id, period, reason))

    def log_suggestion_requested(
        self,
        description: str,
        identity: Optional[str],
        correlation_id: UUID,
    ) -> None:
        self.log(LedgerEventBuilder.suggestion_requested(description, identity, correlation_id))

    def log_suggestion_presented(
        self,
        label: str,
        deviates: bool,
        selected_category_id: str,
        correlation_id: UUID,
    ) -> None:
        self.log(LedgerEventBuilder.suggestion_presented(
            label=label,
            deviates=deviates,
            selected_category_id=selected_category_id,
            correlation_id=correlation_id,
        ))

    def log_suggestion_failed(self, error_message: str, correlation_id: UUID) -> None:
        self.log(LedgerEventBuilder.suggestion_failed(error_message, correlation_id))

    def log_suggestion_approved(
        self,
        transaction_id: str,
        category_id: str,
        correlation_id: UUID,
    ) -> None:
        self.log(LedgerEventBuilder.suggestion_approved(transaction_id, category_id, correlation_id))

    def log_suggestion_cancelled(self, correlation_id: Optional[UUID]) -> None:
        self.log(LedgerEventBuilder.suggestion_cancelled(correlation_id))

    def log_storage_write_failed(self, key: str, error_message: str) -> None:
        self.log(LedgerEventBuilder.storage_write_failed(key, error_message))


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    The workflow creates one per submitted draft.
    """
    return uuid4()
