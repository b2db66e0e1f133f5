"""AI text-generation capability and the try-then-fallback wrapper.

The OpenAI client turns numbers that were already computed by the core
into prose.  It never computes anything itself, and every failure mode
(network, timeout, quota, empty or malformed replies) surfaces as
``AIUnavailableError`` so callers can substitute the rule-based answer.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Callable, Optional

from openai import OpenAI, OpenAIError

from .config import AISettings
from .errors import AIUnavailableError
from .models import CATEGORIES, AggregationResult

logger = logging.getLogger(__name__)

CATEGORIZE_SYSTEM = (
    "You are a financial assistant. Categorize user expenses into one of these "
    f"categories: {', '.join(CATEGORIES)}."
)
INSIGHT_SYSTEM = (
    "You analyze personal finance data and explain it clearly and briefly. "
    "Use friendly language with numbers and percentages."
)
QUESTION_SYSTEM = (
    "You are an AI that answers questions about a user's spending patterns and budgets "
    "from their transaction history. Use only the given data."
)


class OpenAIClient:
    """Chat-completions client for summaries, answers and categorization."""

    def __init__(self, settings: AISettings, client: Optional[Any] = None):
        """Create the client from explicit settings.

        Args:
            settings: Credentials, model and limits, usually from ``load_ai_settings()``
            client: Optional pre-built ``openai.OpenAI``-compatible client (used in tests)

        Raises:
            AIUnavailableError: If no API key is configured and no client is given
        """
        self.settings = settings
        if client is None:
            if not settings.api_key:
                raise AIUnavailableError("OpenAI API key is not configured")
            client = OpenAI(
                api_key=settings.api_key,
                timeout=settings.timeout,
                max_retries=settings.max_retries,
            )
        self.client = client

    def _complete(self, system_message: str, user_message: str) -> str:
        try:
            response = self.client.chat.completions.create(
                model=self.settings.model,
                messages=[
                    {'role': 'system', 'content': system_message},
                    {'role': 'user', 'content': user_message},
                ],
                temperature=self.settings.temperature,
                max_tokens=self.settings.max_tokens,
            )
        except OpenAIError as exc:
            raise AIUnavailableError(f"OpenAI request failed: {exc}") from exc

        try:
            content = response.choices[0].message.content
        except (AttributeError, IndexError, TypeError) as exc:
            raise AIUnavailableError("Malformed response from OpenAI") from exc
        if not isinstance(content, str) or not content.strip():
            raise AIUnavailableError("Empty response from OpenAI")
        return content.strip()

    def summarize(self, aggregation: AggregationResult) -> str:
        user_message = (
            "Here is the user's expense summary as JSON:\n"
            f"{json.dumps(aggregation.as_dict())}\n\n"
            "Generate a short paragraph (4-6 lines) explaining:\n"
            "1. where they spent the most,\n"
            "2. how spending is split across categories,\n"
            "3. one simple saving suggestion."
        )
        return self._complete(INSIGHT_SYSTEM, user_message)

    def answer_free_text(self, question: str, context: str) -> str:
        user_message = (
            f"{context}\n\n"
            f"User question: \"{question}\"\n\n"
            "Answer in 3-6 lines, referring to specific amounts and categories if helpful."
        )
        return self._complete(QUESTION_SYSTEM, user_message)

    def categorize(self, description: str, amount: float) -> str:
        user_message = (
            f"Description: \"{description}\"\nAmount: {amount}\n"
            "Return only one word: the best category."
        )
        reply = self._complete(CATEGORIZE_SYSTEM, user_message)
        word = reply.strip().strip('."\'').strip()
        lookup = {c.lower(): c for c in CATEGORIES}
        category = lookup.get(word.lower())
        if category is None:
            raise AIUnavailableError(f"Unrecognized category from OpenAI: {reply!r}")
        return category


def create_ai_client(settings: AISettings) -> Optional[OpenAIClient]:
    """Build the AI client at startup, or return ``None`` when AI is off."""
    if not settings.enabled:
        logger.info("AI features disabled; using rule-based summaries and answers")
        return None
    if not settings.api_key:
        logger.info("OPENAI_API_KEY not set; using rule-based summaries and answers")
        return None
    return OpenAIClient(settings)


def call_with_fallback(
    primary: Optional[Callable[[], Any]],
    fallback: Callable[[], str],
    label: str = 'AI call',
) -> str:
    """Run ``primary`` and return its text, or ``fallback()`` if it fails.

    A missing primary, any exception, or a blank/non-string reply selects
    the fallback. Failures are logged and never re-raised.
    """
    if primary is None:
        return fallback()
    try:
        result = primary()
    except Exception as exc:
        logger.warning("%s failed, using rule-based fallback: %s", label, exc)
        return fallback()
    if not isinstance(result, str) or not result.strip():
        logger.warning("%s returned an empty reply, using rule-based fallback", label)
        return fallback()
    return result.strip()
