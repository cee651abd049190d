"""
Shared test fixtures.

Everything runs against the in-memory store; no network, no Gemini.
Async code is driven with asyncio.run inside each test.
"""

import asyncio
from datetime import datetime
from decimal import Decimal
from typing import Optional

import pytest

from spendwise.agents import SuggestionUnavailableError, TransactionCategorizer
from spendwise.events import EventLogger
from spendwise.ledger import LedgerStore
from spendwise.models.ledger import (
    CategorizationSuggestion,
    TransactionDraft,
    TransactionType,
)
from spendwise.services.storage import InMemoryKeyValueStore, StorageUnavailableError


class FlakyStore(InMemoryKeyValueStore):
    """In-memory store whose writes can be switched off or slowed down."""

    def __init__(self):
        super().__init__()
        self.fail_writes = False
        self.write_delay = 0.0
        self.write_count = 0

    async def write(self, key, value):
        if self.write_delay:
            await asyncio.sleep(self.write_delay)
        if self.fail_writes:
            raise StorageUnavailableError(f"disk full writing {key}", key=key)
        self.write_count += 1
        return await super().write(key, value)


class FakeCategorizer(TransactionCategorizer):
    """Categorizer double returning a fixed label, or failing."""

    def __init__(
        self,
        label: str = "Food & Dining",
        deviates: bool = False,
        error: Optional[Exception] = None,
        delay: float = 0.0,
    ):
        self.label = label
        self.deviates = deviates
        self.error = error
        self.delay = delay
        self.calls: list[tuple[str, str]] = []
        self.in_flight = 0
        self.max_in_flight = 0

    async def suggest(self, description, spending_summary):
        self.calls.append((description, spending_summary))
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if self.delay:
                await asyncio.sleep(self.delay)
            if self.error is not None:
                raise self.error
            return CategorizationSuggestion(
                suggested_category_label=self.label,
                deviates_from_history=self.deviates,
                rationale="test",
            )
        finally:
            self.in_flight -= 1


def make_draft(
    description: str = "Lunch",
    amount: str = "12.50",
    type: TransactionType = TransactionType.EXPENSE,
    category_id: str = "food",
    date: Optional[datetime] = None,
) -> TransactionDraft:
    return TransactionDraft(
        description=description,
        amount=Decimal(amount),
        type=type,
        category_id=category_id,
        date=date or datetime(2024, 6, 15, 12, 0),
    )


@pytest.fixture
def store():
    return FlakyStore()


@pytest.fixture
def event_logger():
    return EventLogger()


@pytest.fixture
def ledger(store, event_logger):
    return LedgerStore(store, event_logger=event_logger)


@pytest.fixture
def failing_categorizer():
    return FakeCategorizer(error=SuggestionUnavailableError("model offline"))
