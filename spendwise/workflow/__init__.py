"""Categorization workflow package."""

from spendwise.workflow.categorization import (
    SUGGESTION_UNAVAILABLE_NOTICE,
    UNSAVED_NOTICE,
    AwaitingSuggestion,
    CategorizationWorkflow,
    Completed,
    Drafted,
    EmptySelectionError,
    Finalizing,
    Idle,
    InvalidTransitionError,
    PresentingSuggestion,
    WorkflowBusyError,
    WorkflowError,
    WorkflowStage,
    WorkflowState,
    match_suggested_category,
    needs_suggestion,
)

__all__ = [
    "AwaitingSuggestion",
    "CategorizationWorkflow",
    "Completed",
    "Drafted",
    "EmptySelectionError",
    "Finalizing",
    "Idle",
    "InvalidTransitionError",
    "PresentingSuggestion",
    "SUGGESTION_UNAVAILABLE_NOTICE",
    "UNSAVED_NOTICE",
    "WorkflowBusyError",
    "WorkflowError",
    "WorkflowStage",
    "WorkflowState",
    "match_suggested_category",
    "needs_suggestion",
]
