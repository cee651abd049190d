"""
Tests for the identity-scoped ledger store.

Covers scoping across identity changes, ownership and sign rules,
the update/delete policies, the spending summary and write failures.
"""

import asyncio
from datetime import datetime
from decimal import Decimal

import pytest

from spendwise.ledger import (
    NO_DATA_SUMMARY,
    UNAUTHENTICATED_SUMMARY,
    NotFoundError,
    OwnershipMismatchError,
    UnauthenticatedError,
    UnsavedChangeError,
    render_spending_summary,
)
from spendwise.models import (
    Budget,
    BudgetDraft,
    LedgerEventType,
    Transaction,
    TransactionType,
)
from spendwise.services.session import LocalSessionProvider
from spendwise.services.storage import StorageUnavailableError

from conftest import make_draft


class TestScoping:
    """Tests that each identity sees only its own records."""

    def test_records_do_not_leak_between_identities(self, ledger):
        async def scenario():
            await ledger.add_transaction("alice", make_draft("Alice lunch"))
            bob_view = await ledger.list_transactions("bob")
            await ledger.add_transaction("bob", make_draft("Bob lunch"))
            alice_view = await ledger.list_transactions("alice")
            return bob_view, alice_view

        bob_view, alice_view = asyncio.run(scenario())
        assert bob_view == []
        assert [t.description for t in alice_view] == ["Alice lunch"]

    def test_records_persist_under_identity_key(self, ledger, store):
        asyncio.run(ledger.add_transaction("alice", make_draft()))

        stored = asyncio.run(store.read("spendwise-transactions-alice"))
        assert len(stored) == 1
        assert stored[0]["ownerId"] == "alice"
        assert stored[0]["categoryId"] == "food"

    def test_guest_scope_when_signed_out(self, ledger):
        assert asyncio.run(ledger.list_transactions(None)) == []
        assert ledger.bound_identity is None

    def test_categories_are_seeded_globally(self, ledger, store):
        asyncio.run(ledger.list_transactions("alice"))

        stored = asyncio.run(store.read("spendwise-categories"))
        assert len(stored) == 15
        assert len(ledger.categories) == 15

    def test_categories_for_income_include_all_type(self, ledger):
        asyncio.run(ledger.bind("alice"))

        ids = {c.id for c in ledger.categories_for(TransactionType.INCOME)}
        assert "salary" in ids
        assert "uncategorized" in ids
        assert "food" not in ids

    def test_session_provider_triggers_rebind(self, ledger, store):
        session = LocalSessionProvider(store=store)
        ledger.attach(session)

        async def scenario():
            await session.sign_in("alice")
            after_sign_in = ledger.bound_identity
            await session.sign_out()
            return after_sign_in, ledger.bound_identity

        after_sign_in, after_sign_out = asyncio.run(scenario())
        assert after_sign_in == "alice"
        assert after_sign_out is None
        assert ledger.is_bound

    def test_identity_change_is_logged(self, ledger, store, event_logger):
        session = LocalSessionProvider(store=store)
        ledger.attach(session)
        asyncio.run(session.sign_in("alice"))

        events = event_logger.events_of_type(LedgerEventType.IDENTITY_CHANGED)
        assert len(events) == 1
        assert events[0].identity == "alice"

    def test_detached_ledger_ignores_session(self, ledger, store):
        session = LocalSessionProvider(store=store)
        ledger.attach(session)
        ledger.detach()
        asyncio.run(session.sign_in("alice"))
        assert not ledger.is_bound


class TestTransactions:
    """Tests for transaction mutations."""

    def test_add_requires_identity(self, ledger):
        with pytest.raises(UnauthenticatedError):
            asyncio.run(ledger.add_transaction(None, make_draft()))

    def test_add_assigns_owner_and_sign(self, ledger):
        txn = asyncio.run(ledger.add_transaction("alice", make_draft(amount="20")))

        assert txn.owner_id == "alice"
        assert txn.amount == Decimal("-20")
        assert txn.type == TransactionType.EXPENSE
        assert not txn.is_ai_categorized

    def test_add_income(self, ledger):
        txn = asyncio.run(ledger.add_transaction(
            "alice",
            make_draft("Paycheck", "1500", TransactionType.INCOME, "salary"),
        ))
        assert txn.amount == Decimal("1500")

    def test_update_replaces_record(self, ledger):
        async def scenario():
            txn = await ledger.add_transaction("alice", make_draft())
            edited = txn.model_copy(update={"description": "Brunch"})
            await ledger.update_transaction("alice", edited)
            return await ledger.list_transactions("alice")

        items = asyncio.run(scenario())
        assert [t.description for t in items] == ["Brunch"]

    def test_update_foreign_record_rejected(self, ledger):
        async def scenario():
            txn = await ledger.add_transaction("alice", make_draft())
            await ledger.update_transaction("bob", txn)

        with pytest.raises(OwnershipMismatchError):
            asyncio.run(scenario())

    def test_update_missing_record_raises_not_found(self, ledger):
        ghost = Transaction(
            owner_id="alice",
            date=datetime(2024, 6, 1),
            description="Ghost",
            amount=Decimal("-1"),
            type=TransactionType.EXPENSE,
            category_id="food",
        )
        with pytest.raises(NotFoundError):
            asyncio.run(ledger.update_transaction("alice", ghost))

    def test_delete_missing_is_noop(self, ledger):
        assert asyncio.run(ledger.delete_transaction("alice", "nope")) is False

    def test_delete_removes_record(self, ledger):
        async def scenario():
            txn = await ledger.add_transaction("alice", make_draft())
            removed = await ledger.delete_transaction("alice", txn.id)
            return removed, await ledger.list_transactions("alice")

        removed, items = asyncio.run(scenario())
        assert removed is True
        assert items == []

    def test_delete_of_other_identity_record_is_absent(self, ledger):
        async def scenario():
            txn = await ledger.add_transaction("alice", make_draft())
            removed = await ledger.delete_transaction("bob", txn.id)
            return txn, removed, await ledger.list_transactions("alice")

        txn, removed, alice_items = asyncio.run(scenario())
        assert removed is False
        assert [t.id for t in alice_items] == [txn.id]

    def test_delete_foreign_record_rejected(self, ledger, store):
        planted = Transaction(
            id="planted",
            owner_id="bob",
            date=datetime(2024, 6, 1),
            description="Not yours",
            amount=Decimal("-5"),
            type=TransactionType.EXPENSE,
            category_id="food",
        )
        asyncio.run(store.write("spendwise-transactions-alice", [planted.to_storage()]))

        with pytest.raises(OwnershipMismatchError):
            asyncio.run(ledger.delete_transaction("alice", "planted"))

    def test_failed_write_raises_unsaved_change(self, ledger, store, event_logger):
        asyncio.run(ledger.bind("alice"))
        store.fail_writes = True

        with pytest.raises(UnsavedChangeError) as exc_info:
            asyncio.run(ledger.add_transaction("alice", make_draft()))

        error = exc_info.value
        assert isinstance(error, StorageUnavailableError)
        assert error.record.description == "Lunch"
        assert error.key == "spendwise-transactions-alice"
        assert event_logger.events_of_type(LedgerEventType.STORAGE_WRITE_FAILED)

        store.fail_writes = False
        items = asyncio.run(ledger.list_transactions("alice"))
        assert [t.id for t in items] == [error.record.id]


class TestBudgets:
    """Tests for budget mutations."""

    def test_add_budget(self, ledger, store):
        budget = asyncio.run(ledger.add_budget(
            "alice",
            BudgetDraft(category_id="food", amount=Decimal("100"), period="2024-06"),
        ))
        assert budget.owner_id == "alice"
        stored = asyncio.run(store.read("spendwise-budgets-alice"))
        assert stored[0]["categoryId"] == "food"

    def test_add_budget_requires_identity(self, ledger):
        with pytest.raises(UnauthenticatedError):
            asyncio.run(ledger.add_budget(
                None,
                BudgetDraft(category_id="food", amount=Decimal("100"), period="2024-06"),
            ))

    def test_update_missing_budget_raises_not_found(self, ledger):
        ghost = Budget(owner_id="alice", category_id="food", amount=Decimal("10"), period="2024-06")
        with pytest.raises(NotFoundError):
            asyncio.run(ledger.update_budget("alice", ghost))

    def test_update_foreign_budget_rejected(self, ledger):
        async def scenario():
            budget = await ledger.add_budget(
                "alice",
                BudgetDraft(category_id="food", amount=Decimal("100"), period="2024-06"),
            )
            await ledger.update_budget("bob", budget)

        with pytest.raises(OwnershipMismatchError):
            asyncio.run(scenario())

    def test_update_over_foreign_budget_rejected(self, ledger, store):
        planted = Budget(
            id="planted", owner_id="bob", category_id="food", amount=Decimal("50"), period="2024-06",
        )
        asyncio.run(store.write("spendwise-budgets-alice", [planted.to_storage()]))
        takeover = planted.model_copy(update={"owner_id": "alice"})

        with pytest.raises(OwnershipMismatchError):
            asyncio.run(ledger.update_budget("alice", takeover))

    def test_delete_foreign_budget_rejected(self, ledger, store):
        planted = Budget(
            id="planted", owner_id="bob", category_id="food", amount=Decimal("50"), period="2024-06",
        )
        asyncio.run(store.write("spendwise-budgets-alice", [planted.to_storage()]))

        with pytest.raises(OwnershipMismatchError):
            asyncio.run(ledger.delete_budget("alice", "planted"))

    def test_delete_budget_is_idempotent(self, ledger):
        async def scenario():
            budget = await ledger.add_budget(
                "alice",
                BudgetDraft(category_id="food", amount=Decimal("100"), period="2024-06"),
            )
            return (
                await ledger.delete_budget("alice", budget.id),
                await ledger.delete_budget("alice", budget.id),
            )

        assert asyncio.run(scenario()) == (True, False)


class TestSpendingSummary:
    """Tests for the historical spending summary handed to the categorizer."""

    def test_unauthenticated_sentinel(self, ledger):
        assert asyncio.run(ledger.get_historical_spending_patterns(None)) == UNAUTHENTICATED_SUMMARY

    def test_no_data_sentinel(self, ledger):
        assert asyncio.run(ledger.get_historical_spending_patterns("alice")) == NO_DATA_SUMMARY

    def test_summary_counts_expenses_only(self, ledger):
        async def scenario():
            await ledger.add_transaction("alice", make_draft("Lunch", "20"))
            await ledger.add_transaction("alice", make_draft("Dinner", "30"))
            await ledger.add_transaction(
                "alice", make_draft("Paycheck", "2000", TransactionType.INCOME, "salary"),
            )
            return await ledger.get_historical_spending_patterns("alice")

        summary = asyncio.run(scenario())
        assert summary == "Historical spending: Food & Dining: $50.00."
        assert "Salary" not in summary

    def test_unknown_category_counts_as_uncategorized(self, ledger):
        async def scenario():
            await ledger.add_transaction("alice", make_draft(category_id="retired"))
            return await ledger.spending_summary("alice")

        assert asyncio.run(scenario()) == {"Uncategorized": Decimal("12.50")}

    def test_render_multiple_categories(self):
        text = render_spending_summary({
            "Food & Dining": Decimal("50"),
            "Transportation": Decimal("7.5"),
        })
        assert text == "Historical spending: Food & Dining: $50.00, Transportation: $7.50."
