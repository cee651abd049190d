"""
Event Models for SpendWise

Every significant ledger or workflow action produces a structured event.
Events are written to the local structured log only; nothing here is
persisted, there is no stored history.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class LedgerEventType(str, Enum):
    """
    Types of events we log.

    Each step of the categorization workflow has its own event type.
    """
    # Identity
    IDENTITY_CHANGED = "identity_changed"
    CELLS_REBOUND = "cells_rebound"

    # Ledger mutations
    TRANSACTION_ADDED = "transaction_added"
    TRANSACTION_UPDATED = "transaction_updated"
    TRANSACTION_DELETED = "transaction_deleted"
    BUDGET_ADDED = "budget_added"
    BUDGET_UPDATED = "budget_updated"
    BUDGET_DELETED = "budget_deleted"
    BUDGET_REJECTED = "budget_rejected"

    # Categorization workflow
    SUGGESTION_REQUESTED = "suggestion_requested"
    SUGGESTION_PRESENTED = "suggestion_presented"
    SUGGESTION_FAILED = "suggestion_failed"
    SUGGESTION_APPROVED = "suggestion_approved"
    SUGGESTION_CANCELLED = "suggestion_cancelled"

    # Storage
    STORAGE_WRITE_FAILED = "storage_write_failed"


class EventSeverity(str, Enum):
    """Severity level for events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class LedgerEvent(BaseModel):
    """A single structured log event."""

    event_id: UUID = Field(default_factory=uuid4)
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    event_type: LedgerEventType
    severity: EventSeverity = EventSeverity.INFO

    # What entity is this about?
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'transaction', 'budget', 'draft')"
    )
    entity_id: Optional[str] = None

    # Whose data?
    identity: Optional[str] = None

    # Ties together the events of one draft's trip through the workflow
    correlation_id: Optional[UUID] = None

    description: str = Field(..., max_length=500)
    details: dict[str, Any] = Field(default_factory=dict)
    error_message: Optional[str] = None

    is_user_action: bool = False

    def to_log_dict(self) -> dict:
        """Convert to a dictionary suitable for structured logging."""
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "identity": self.identity,
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
            "is_user_action": self.is_user_action,
        }


class LedgerEventBuilder:
    """
    Helper class to build events with common patterns.

    Usage:
        event = LedgerEventBuilder.transaction_added(txn_id, owner, amount)
        event = LedgerEventBuilder.suggestion_failed(draft_desc, error, cid)
    """

    @staticmethod
    def identity_changed(
        previous: Optional[str],
        current: Optional[str],
    ) -> LedgerEvent:
        return LedgerEvent(
            event_type=LedgerEventType.IDENTITY_CHANGED,
            identity=current,
            description="Signed in" if current else "Signed out",
            details={"previous_identity": previous},
        )

    @staticmethod
    def cells_rebound(identity: Optional[str], keys: list[str]) -> LedgerEvent:
        return LedgerEvent(
            event_type=LedgerEventType.CELLS_REBOUND,
            severity=EventSeverity.DEBUG,
            identity=identity,
            description=f"Rebound {len(keys)} cells",
            details={"keys": keys},
        )

    @staticmethod
    def transaction_added(
        transaction_id: str,
        identity: str,
        amount: str,
        category_id: str,
        is_ai_categorized: bool,
    ) -> LedgerEvent:
        return LedgerEvent(
            event_type=LedgerEventType.TRANSACTION_ADDED,
            entity_type="transaction",
            entity_id=transaction_id,
            identity=identity,
            description=f"Transaction added: {amount} in {category_id}",
            details={
                "amount": amount,
                "category_id": category_id,
                "is_ai_categorized": is_ai_categorized,
            },
            is_user_action=True,
        )

    @staticmethod
    def transaction_updated(transaction_id: str, identity: str) -> LedgerEvent:
        return LedgerEvent(
            event_type=LedgerEventType.TRANSACTION_UPDATED,
            entity_type="transaction",
            entity_id=transaction_id,
            identity=identity,
            description="Transaction updated",
            is_user_action=True,
        )

    @staticmethod
    def transaction_deleted(transaction_id: str, identity: str) -> LedgerEvent:
        return LedgerEvent(
            event_type=LedgerEventType.TRANSACTION_DELETED,
            entity_type="transaction",
            entity_id=transaction_id,
            identity=identity,
            description="Transaction deleted",
            is_user_action=True,
        )

    @staticmethod
    def budget_changed(
        event_type: LedgerEventType,
        budget_id: str,
        identity: str,
        category_id: str,
        period: str,
    ) -> LedgerEvent:
        verb = event_type.value.split("_", 1)[1]
        return LedgerEvent(
            event_type=event_type,
            entity_type="budget",
            entity_id=budget_id,
            identity=identity,
            description=f"Budget {verb}: {category_id} for {period}",
            details={"category_id": category_id, "period": period},
            is_user_action=True,
        )

    @staticmethod
    def budget_rejected(
        identity: str,
        category_id: str,
        period: str,
        reason: str,
    ) -> LedgerEvent:
        return LedgerEvent(
            event_type=LedgerEventType.BUDGET_REJECTED,
            severity=EventSeverity.WARNING,
            entity_type="budget",
            identity=identity,
            description=f"Budget rejected for {category_id} in {period}",
            details={"category_id": category_id, "period": period, "reason": reason},
            is_user_action=True,
        )

    @staticmethod
    def suggestion_requested(
        description: str,
        identity: Optional[str],
        correlation_id: UUID,
    ) -> LedgerEvent:
        return LedgerEvent(
            event_type=LedgerEventType.SUGGESTION_REQUESTED,
            entity_type="draft",
            identity=identity,
            correlation_id=correlation_id,
            description="Category suggestion requested",
            details={"transaction_description": description[:100]},
        )

    @staticmethod
    def suggestion_presented(
        label: str,
        deviates: bool,
        selected_category_id: str,
        correlation_id: UUID,
    ) -> LedgerEvent:
        return LedgerEvent(
            event_type=LedgerEventType.SUGGESTION_PRESENTED,
            entity_type="draft",
            correlation_id=correlation_id,
            description=f"Suggested category: {label}",
            details={
                "suggested_label": label,
                "deviates_from_history": deviates,
                "selected_category_id": selected_category_id,
            },
        )

    @staticmethod
    def suggestion_failed(
        error_message: str,
        correlation_id: UUID,
    ) -> LedgerEvent:
        return LedgerEvent(
            event_type=LedgerEventType.SUGGESTION_FAILED,
            severity=EventSeverity.WARNING,
            entity_type="draft",
            correlation_id=correlation_id,
            description="Category suggestion unavailable, using manual category",
            error_message=error_message,
        )

    @staticmethod
    def suggestion_approved(
        transaction_id: str,
        category_id: str,
        correlation_id: UUID,
    ) -> LedgerEvent:
        return LedgerEvent(
            event_type=LedgerEventType.SUGGESTION_APPROVED,
            entity_type="transaction",
            entity_id=transaction_id,
            correlation_id=correlation_id,
            description=f"User approved category {category_id}",
            details={"category_id": category_id},
            is_user_action=True,
        )

    @staticmethod
    def suggestion_cancelled(correlation_id: Optional[UUID]) -> LedgerEvent:
        return LedgerEvent(
            event_type=LedgerEventType.SUGGESTION_CANCELLED,
            entity_type="draft",
            correlation_id=correlation_id,
            description="User dismissed the category suggestion",
            is_user_action=True,
        )

    @staticmethod
    def storage_write_failed(key: str, error_message: str) -> LedgerEvent:
        return LedgerEvent(
            event_type=LedgerEventType.STORAGE_WRITE_FAILED,
            severity=EventSeverity.ERROR,
            description=f"Write to {key} failed",
            details={"key": key},
            error_message=error_message,
        )
