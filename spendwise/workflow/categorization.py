"""
Categorization Workflow

Turns a typed transaction draft into a stored ledger entry, asking the
categorizer for a suggestion when that is worth it.

FLOW:
    Idle/Drafted/Completed --submit--> AwaitingSuggestion   (expense, not yet AI-reviewed)
                           --submit--> Finalizing           (otherwise)

    AwaitingSuggestion --suggestion--> PresentingSuggestion
    AwaitingSuggestion --failure/timeout--> Finalizing(draft category)   + notice
    AwaitingSuggestion --cancel--> Drafted                 (request is cancelled)

    PresentingSuggestion --approve(C)--> Finalizing(C, AI-reviewed)
    PresentingSuggestion --cancel--> Drafted               (nothing persisted)

    Finalizing --ledger ok--> Completed
    Finalizing --ledger error / cancelled--> Drafted (error propagates)

DESIGN DECISION: The state is one tagged value, not a cluster of flags.
A suggestion can only be presented together with the draft it belongs to,
and only one suggestion request can be in flight: submit() is rejected
while one is pending or being reviewed, the request runs as a task that
cancel() and reset() cancel, and a new request starts only after the
previous task has settled.

A failing categorizer NEVER blocks saving. The draft is saved with the
category the user picked and a notice explains why there was no suggestion.
"""

import asyncio
from enum import Enum
from typing import Literal, Optional, Union
from uuid import UUID

from pydantic import BaseModel, ConfigDict

from spendwise.agents import TransactionCategorizer
from spendwise.config import get_settings
from spendwise.events import EventLogger, create_correlation_id
from spendwise.ledger import (
    LedgerStore,
    UnauthenticatedError,
    UnsavedChangeError,
)
from spendwise.models.ledger import (
    CategorizationSuggestion,
    Category,
    CategoryType,
    Transaction,
    TransactionDraft,
    TransactionType,
)


SUGGESTION_UNAVAILABLE_NOTICE = (
    "Could not get an AI suggestion. The transaction was saved with the category you chose."
)
UNSAVED_NOTICE = (
    "The transaction is saved on this device but could not be written to storage."
)


# =============================================================================
# STATES
# =============================================================================

class WorkflowStage(str, Enum):
    IDLE = "idle"
    DRAFTED = "drafted"
    AWAITING_SUGGESTION = "awaiting_suggestion"
    PRESENTING_SUGGESTION = "presenting_suggestion"
    FINALIZING = "finalizing"
    COMPLETED = "completed"


class _State(BaseModel):
    model_config = ConfigDict(frozen=True)


class Idle(_State):
    """No draft held."""
    stage: Literal[WorkflowStage.IDLE] = WorkflowStage.IDLE


class Drafted(_State):
    """A draft is held for (re-)editing. Nothing persisted."""
    stage: Literal[WorkflowStage.DRAFTED] = WorkflowStage.DRAFTED
    draft: TransactionDraft
    editing: Optional[Transaction] = None


class AwaitingSuggestion(_State):
    stage: Literal[WorkflowStage.AWAITING_SUGGESTION] = WorkflowStage.AWAITING_SUGGESTION
    draft: TransactionDraft
    editing: Optional[Transaction] = None
    correlation_id: UUID


class PresentingSuggestion(_State):
    """The user is reviewing a suggestion for the held draft."""
    stage: Literal[WorkflowStage.PRESENTING_SUGGESTION] = WorkflowStage.PRESENTING_SUGGESTION
    draft: TransactionDraft
    editing: Optional[Transaction] = None
    suggestion: CategorizationSuggestion
    selected_category_id: str
    correlation_id: UUID

    @property
    def can_approve(self) -> bool:
        return bool(self.selected_category_id)


class Finalizing(_State):
    stage: Literal[WorkflowStage.FINALIZING] = WorkflowStage.FINALIZING
    draft: TransactionDraft
    editing: Optional[Transaction] = None
    category_id: str
    ai_reviewed: bool


class Completed(_State):
    """The draft is stored. `notice` is an informational message, if any."""
    stage: Literal[WorkflowStage.COMPLETED] = WorkflowStage.COMPLETED
    transaction: Transaction
    notice: Optional[str] = None


WorkflowState = Union[
    Idle,
    Drafted,
    AwaitingSuggestion,
    PresentingSuggestion,
    Finalizing,
    Completed,
]


# =============================================================================
# ERRORS
# =============================================================================

class WorkflowError(Exception):
    """Base exception for workflow misuse."""
    pass


class WorkflowBusyError(WorkflowError):
    """A suggestion is already pending or under review for a draft."""
    pass


class InvalidTransitionError(WorkflowError):
    """The requested action is not valid in the current state."""

    def __init__(self, action: str, stage: WorkflowStage):
        super().__init__(f"Cannot {action} while {stage.value}")
        self.action = action
        self.stage = stage


class EmptySelectionError(WorkflowError):
    """Approval requested with no category selected."""
    pass


# =============================================================================
# CATEGORY MATCHING
# =============================================================================

def needs_suggestion(draft: TransactionDraft, editing: Optional[Transaction]) -> bool:
    """Only expenses that have not been AI-reviewed before get a suggestion."""
    if draft.type is not TransactionType.EXPENSE:
        return False
    return not (editing is not None and editing.is_ai_categorized)


def match_suggested_category(
    categories: list[Category],
    suggested_label: str,
    fallback_category_id: Optional[str] = None,
) -> str:
    """
    Pick the category to pre-select when presenting a suggestion.

    1. An expense category whose name equals the label (case-insensitive)
    2. The fallback (the draft's category) if it is an expense category
    3. The first expense category
    4. "" when there are no expense categories; approval is then disabled
    """
    expense = [c for c in categories if c.type is CategoryType.EXPENSE]
    label = suggested_label.strip().lower()

    for category in expense:
        if category.name.lower() == label:
            return category.id

    for category in expense:
        if category.id == fallback_category_id:
            return category.id

    return expense[0].id if expense else ""


# =============================================================================
# WORKFLOW
# =============================================================================

class CategorizationWorkflow:
    """
    Drives one transaction draft at a time from entry to storage.

    All methods are called from a single event loop.
    """

    def __init__(
        self,
        ledger: LedgerStore,
        categorizer: TransactionCategorizer,
        event_logger: Optional[EventLogger] = None,
        suggestion_timeout: Optional[float] = None,
    ):
        self._ledger = ledger
        self._categorizer = categorizer
        self._event_logger = event_logger
        if suggestion_timeout is None:
            suggestion_timeout = get_settings().app.suggestion_timeout_seconds
        self._suggestion_timeout = suggestion_timeout
        self._state: WorkflowState = Idle()
        self._suggestion_task: Optional[asyncio.Task] = None

    @property
    def state(self) -> WorkflowState:
        return self._state

    @property
    def stage(self) -> WorkflowStage:
        return self._state.stage

    @property
    def is_busy(self) -> bool:
        return isinstance(self._state, (AwaitingSuggestion, PresentingSuggestion, Finalizing))

    async def submit(
        self,
        identity: Optional[str],
        draft: TransactionDraft,
        editing: Optional[Transaction] = None,
    ) -> WorkflowState:
        """
        Submit a draft (new, or an edit of `editing`).

        Returns the resulting state: Completed when no suggestion was
        needed or the suggestion failed, PresentingSuggestion otherwise.

        Raises:
            WorkflowBusyError: A previous draft is still pending or in review
            LedgerError: Saving failed; the workflow is back in Drafted
        """
        if self.is_busy:
            raise WorkflowBusyError(
                f"A draft is already {self._state.stage.value}; finish or cancel it first"
            )

        if not identity:
            self._state = Drafted(draft=draft, editing=editing)
            raise UnauthenticatedError("add a transaction")

        if not needs_suggestion(draft, editing):
            return await self._finalize(identity, draft, editing, draft.category_id, ai_reviewed=False)

        correlation_id = create_correlation_id()
        awaiting = AwaitingSuggestion(draft=draft, editing=editing, correlation_id=correlation_id)
        self._state = awaiting

        if self._event_logger:
            self._event_logger.log_suggestion_requested(draft.description, identity, correlation_id)

        await self._settle_previous_request()
        if self._state is not awaiting:
            return self._state

        task = asyncio.ensure_future(self._request_suggestion(identity, draft.description))
        self._suggestion_task = task
        try:
            suggestion = await task
        except asyncio.CancelledError:
            if self._state is not awaiting:
                # Dismissed with cancel() or reset().
                return self._state
            task.cancel()
            self._state = Drafted(draft=draft, editing=editing)
            raise
        except Exception as e:
            # Any categorizer failure, timeout included, falls back to the
            # user's own category.
            if self._state is not awaiting:
                return self._state
            message = "Suggestion timed out" if isinstance(e, asyncio.TimeoutError) else str(e)
            if self._event_logger:
                self._event_logger.log_suggestion_failed(message or type(e).__name__, correlation_id)
            return await self._finalize(
                identity,
                draft,
                editing,
                draft.category_id,
                ai_reviewed=False,
                notice=SUGGESTION_UNAVAILABLE_NOTICE,
            )

        if self._state is not awaiting:
            # Cancelled while the request was in flight.
            return self._state

        categories = await self._ledger.load_categories()
        selected = match_suggested_category(
            categories,
            suggestion.suggested_category_label,
            draft.category_id,
        )
        self._state = PresentingSuggestion(
            draft=draft,
            editing=editing,
            suggestion=suggestion,
            selected_category_id=selected,
            correlation_id=correlation_id,
        )
        if self._event_logger:
            self._event_logger.log_suggestion_presented(
                label=suggestion.suggested_category_label,
                deviates=suggestion.deviates_from_history,
                selected_category_id=selected,
                correlation_id=correlation_id,
            )
        return self._state

    def select_category(self, category_id: str) -> PresentingSuggestion:
        """Change the category selected in the suggestion review."""
        state = self._require_presenting("select a category")
        category = self._ledger.get_category(category_id)
        if category is None or category.type not in (CategoryType.EXPENSE, CategoryType.ALL):
            raise ValueError(f"{category_id!r} is not an expense category")
        self._state = state.model_copy(update={"selected_category_id": category_id})
        return self._state

    async def approve(
        self,
        identity: Optional[str],
        category_id: Optional[str] = None,
    ) -> Completed:
        """
        Accept the presented suggestion with the selected (or given) category.

        The stored transaction is marked AI-categorized and needing review.

        Raises:
            EmptySelectionError: No category selected
            LedgerError: Saving failed; the workflow is back in Drafted
        """
        state = self._require_presenting("approve")
        if category_id is not None:
            state = self.select_category(category_id)
        if not state.can_approve:
            raise EmptySelectionError("Select a category before approving")

        completed = await self._finalize(
            identity,
            state.draft,
            state.editing,
            state.selected_category_id,
            ai_reviewed=True,
        )
        if self._event_logger:
            self._event_logger.log_suggestion_approved(
                completed.transaction.id,
                state.selected_category_id,
                state.correlation_id,
            )
        return completed

    def cancel(self) -> Drafted:
        """
        Dismiss a pending or presented suggestion.

        Nothing is written; the draft is kept for re-editing.
        """
        state = self._state
        if not isinstance(state, (AwaitingSuggestion, PresentingSuggestion)):
            raise InvalidTransitionError("cancel", state.stage)
        self._state = Drafted(draft=state.draft, editing=state.editing)
        self._cancel_request()
        if self._event_logger:
            self._event_logger.log_suggestion_cancelled(state.correlation_id)
        return self._state

    def reset(self) -> Idle:
        """Drop any held draft. Not allowed while a save is in progress."""
        if isinstance(self._state, Finalizing):
            raise InvalidTransitionError("reset", self._state.stage)
        self._state = Idle()
        self._cancel_request()
        return self._state

    async def _request_suggestion(self, identity: str, description: str) -> CategorizationSuggestion:
        summary = await self._ledger.get_historical_spending_patterns(identity)
        return await asyncio.wait_for(
            self._categorizer.suggest(description, summary),
            timeout=self._suggestion_timeout,
        )

    def _cancel_request(self) -> None:
        task = self._suggestion_task
        if task is not None and not task.done():
            task.cancel()

    async def _settle_previous_request(self) -> None:
        """Wait until an abandoned suggestion request has fully stopped."""
        task = self._suggestion_task
        if task is not None and not task.done():
            await asyncio.wait({task})

    def _require_presenting(self, action: str) -> PresentingSuggestion:
        if not isinstance(self._state, PresentingSuggestion):
            raise InvalidTransitionError(action, self._state.stage)
        return self._state

    async def _finalize(
        self,
        identity: Optional[str],
        draft: TransactionDraft,
        editing: Optional[Transaction],
        category_id: str,
        ai_reviewed: bool,
        notice: Optional[str] = None,
    ) -> Completed:
        self._state = Finalizing(
            draft=draft,
            editing=editing,
            category_id=category_id,
            ai_reviewed=ai_reviewed,
        )

        if ai_reviewed:
            is_ai_categorized, needs_review = True, True
        elif editing is not None:
            is_ai_categorized, needs_review = editing.is_ai_categorized, editing.needs_review
        else:
            is_ai_categorized, needs_review = False, False

        try:
            if editing is None:
                transaction = await self._ledger.add_transaction(
                    identity,
                    draft.model_copy(update={"category_id": category_id}),
                    is_ai_categorized=is_ai_categorized,
                    needs_review=needs_review,
                )
            else:
                transaction = await self._ledger.update_transaction(
                    identity,
                    Transaction(
                        id=editing.id,
                        owner_id=editing.owner_id,
                        date=draft.date,
                        description=draft.description,
                        amount=draft.signed_amount(),
                        type=draft.type,
                        category_id=category_id,
                        is_ai_categorized=is_ai_categorized,
                        needs_review=needs_review,
                    ),
                )
        except UnsavedChangeError as e:
            self._state = Completed(transaction=e.record, notice=UNSAVED_NOTICE)
            raise
        except BaseException:
            # Ledger errors and cancellation alike hand the draft back.
            self._state = Drafted(draft=draft, editing=editing)
            raise

        self._state = Completed(transaction=transaction, notice=notice)
        return self._state
