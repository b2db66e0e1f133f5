"""Tests for the OpenAI client wrapper and the fallback helper.

The OpenAI SDK is replaced by small stand-in objects shaped like
``client.chat.completions.create``; no network access happens.
"""

from __future__ import annotations

from types import SimpleNamespace

import openai
import pytest

from expense_insights.ai_client import OpenAIClient, call_with_fallback, create_ai_client
from expense_insights.config import AISettings
from expense_insights.errors import AIUnavailableError
from expense_insights.models import AggregationResult


class FakeCompletions:
    def __init__(self, content=None, error=None):
        self.content = content
        self.error = error
        self.calls = []

    def create(self, **kwargs):
        self.calls.append(kwargs)
        if self.error is not None:
            raise self.error
        message = SimpleNamespace(content=self.content)
        return SimpleNamespace(choices=[SimpleNamespace(message=message)])


def _client(content=None, error=None):
    completions = FakeCompletions(content, error)
    fake = SimpleNamespace(chat=SimpleNamespace(completions=completions))
    settings = AISettings(api_key=None, model='test-model', max_tokens=50, temperature=0.2)
    return OpenAIClient(settings, client=fake), completions


def test_summarize_sends_aggregation() -> None:
    client, completions = _client('  You spent most on Food.  ')
    agg = AggregationResult(period_total=10.0, category_totals={'Food': 10.0}, transaction_count=1,
                            period_label='2025-06')

    assert client.summarize(agg) == 'You spent most on Food.'
    call = completions.calls[0]
    assert call['model'] == 'test-model'
    assert call['max_tokens'] == 50
    assert call['temperature'] == 0.2
    assert '"by_category": {"Food": 10.0}' in call['messages'][1]['content']


def test_answer_free_text_includes_question_and_context() -> None:
    client, completions = _client('Answer')

    assert client.answer_free_text('Why?', 'Transactions (JSON):\n[]') == 'Answer'
    user_message = completions.calls[0]['messages'][1]['content']
    assert 'User question: "Why?"' in user_message
    assert user_message.startswith('Transactions (JSON):')


@pytest.mark.parametrize(('reply', 'expected'), [('Food', 'Food'), (' transport. ', 'Transport'), ('"Bills"', 'Bills')])
def test_categorize_normalizes_reply(reply, expected) -> None:
    client, _ = _client(reply)

    assert client.categorize('Uber', 100) == expected


def test_categorize_rejects_unknown_reply() -> None:
    client, _ = _client('Travel')

    with pytest.raises(AIUnavailableError):
        client.categorize('Flight', 100)


def test_openai_errors_become_unavailable() -> None:
    client, _ = _client(error=openai.OpenAIError('quota exceeded'))

    with pytest.raises(AIUnavailableError, match='quota exceeded'):
        client.answer_free_text('q', 'ctx')


@pytest.mark.parametrize('content', ['', '   ', None])
def test_empty_reply_is_unavailable(content) -> None:
    client, _ = _client(content)

    with pytest.raises(AIUnavailableError):
        client.answer_free_text('q', 'ctx')


def test_malformed_reply_is_unavailable() -> None:
    fake = SimpleNamespace(chat=SimpleNamespace(completions=SimpleNamespace(
        create=lambda **kwargs: SimpleNamespace(choices=[]),
    )))
    client = OpenAIClient(AISettings(), client=fake)

    with pytest.raises(AIUnavailableError):
        client.answer_free_text('q', 'ctx')


def test_missing_key_without_client() -> None:
    with pytest.raises(AIUnavailableError):
        OpenAIClient(AISettings(api_key=None))


def test_create_ai_client() -> None:
    assert create_ai_client(AISettings(api_key=None)) is None
    assert create_ai_client(AISettings(api_key='sk-test', enabled=False)) is None
    assert isinstance(create_ai_client(AISettings(api_key='sk-test')), OpenAIClient)


def test_call_with_fallback() -> None:
    assert call_with_fallback(lambda: ' primary ', lambda: 'fallback') == 'primary'
    assert call_with_fallback(None, lambda: 'fallback') == 'fallback'
    assert call_with_fallback(lambda: 42, lambda: 'fallback') == 'fallback'

    def boom():
        raise RuntimeError('network down')

    assert call_with_fallback(boom, lambda: 'fallback') == 'fallback'
