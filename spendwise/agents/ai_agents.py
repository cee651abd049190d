"""
AI Agents for SpendWise

DESIGN DECISION: The categorizer is an external function behind a small
interface:

    suggest(description, spending_summary) -> CategorizationSuggestion

so the workflow can be tested without a model and the model can be
swapped without touching the workflow.

CRITICAL BOUNDARIES:
- CAN: Suggest a category label and say whether it breaks the user's pattern
- CANNOT: Persist anything. The user approves or changes the category.
- CANNOT: Quietly invent a fallback. If the model fails or answers
  garbage, the agent raises SuggestionUnavailableError and the workflow
  falls back to the category the user picked.
"""

import json
from abc import ABC, abstractmethod
from typing import Optional, Sequence

import google.generativeai as genai

from spendwise.config import GeminiSettings, get_settings
from spendwise.models.ledger import CategorizationSuggestion


class SuggestionUnavailableError(Exception):
    """The categorization call failed, timed out or returned unusable output."""
    pass


class TransactionCategorizer(ABC):
    """Anything that can suggest a category for a transaction description."""

    @abstractmethod
    async def suggest(
        self,
        description: str,
        spending_summary: str,
    ) -> CategorizationSuggestion:
        """
        Suggest a category.

        Args:
            description: Free text the user typed for the transaction
            spending_summary: Rendered historical spending summary

        Raises:
            SuggestionUnavailableError: If no suggestion can be produced
        """
        pass


def parse_suggestion_response(text: str) -> CategorizationSuggestion:
    """
    Extract the suggestion JSON object from a model response.

    Models sometimes wrap JSON in prose or code fences, so the outermost
    {...} span is parsed.
    """
    start = text.find("{")
    end = text.rfind("}") + 1
    if start < 0 or end <= start:
        raise SuggestionUnavailableError("Model response contained no JSON object")

    try:
        data = json.loads(text[start:end])
    except ValueError as e:
        raise SuggestionUnavailableError(f"Model returned invalid JSON: {e}") from e

    label = str(data.get("suggestedCategory") or "").strip()
    if not label:
        raise SuggestionUnavailableError("Model response had no suggestedCategory")

    deviation = data.get("deviationFromPatterns", False)
    if isinstance(deviation, str):
        deviation = deviation.strip().lower() == "true"

    return CategorizationSuggestion(
        suggested_category_label=label,
        deviates_from_history=bool(deviation),
        rationale=str(data.get("reasoning") or ""),
    )


class GeminiCategorizationAgent(TransactionCategorizer):
    """
    Gemini-backed transaction categorizer.

    RESPONSIBILITIES:
    - Suggest a category from the description and spending history
    - Flag suggestions that deviate from the user's usual spending

    BOUNDARIES:
    - NEVER persists data
    - ALWAYS defers to the user for approval
    """

    def __init__(
        self,
        settings: Optional[GeminiSettings] = None,
        category_names: Sequence[str] = (),
        model=None,
    ):
        self._settings = settings or get_settings().gemini
        self._category_names = list(category_names)
        if model is None:
            self._configure_genai()
        else:
            self._model = model

    def _configure_genai(self):
        """Configure Google Generative AI."""
        genai.configure(api_key=self._settings.api_key)
        self._model = genai.GenerativeModel(
            model_name=self._settings.model_name,
            generation_config={
                "temperature": self._settings.temperature,
                "max_output_tokens": self._settings.max_tokens,
            }
        )

    def build_prompt(self, description: str, spending_summary: str) -> str:
        categories = ""
        if self._category_names:
            categories = (
                "\nPrefer one of these category names if one fits: "
                f"{', '.join(self._category_names)}\n"
            )

        return f"""You are a personal finance assistant that categorizes transactions.

Based on the transaction description and the user's historical spending patterns, suggest a category for the transaction.
Also, determine if the suggested category deviates from the user's typical spending habits.

Transaction Description: {description}
Historical Spending Patterns: {spending_summary}
{categories}
Respond with ONLY a JSON object in this exact format:
{{"suggestedCategory": "category name", "deviationFromPatterns": true or false, "reasoning": "brief explanation"}}"""

    async def suggest(
        self,
        description: str,
        spending_summary: str,
    ) -> CategorizationSuggestion:
        prompt = self.build_prompt(description, spending_summary)

        try:
            response = await self._model.generate_content_async(prompt)
            text = response.text.strip()
        except Exception as e:
            raise SuggestionUnavailableError(f"Gemini request failed: {e}") from e

        return parse_suggestion_response(text)
