"""AI Agents package."""

from spendwise.agents.ai_agents import (
    GeminiCategorizationAgent,
    SuggestionUnavailableError,
    TransactionCategorizer,
    parse_suggestion_response,
)

__all__ = [
    "GeminiCategorizationAgent",
    "SuggestionUnavailableError",
    "TransactionCategorizer",
    "parse_suggestion_response",
]
