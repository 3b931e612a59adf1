"""
Tests for the budget insight agent.

The Gemini model is replaced by small fakes; no network calls are made.
"""

import asyncio
import pytest
import threading
from datetime import datetime, timezone
from decimal import Decimal

from dzbudget.agents import (
    InsightAgent,
    InsightInProgressError,
    InsightNetworkError,
    InsightTimeoutError,
    build_insight_prompt,
    fallback_message,
)
from dzbudget.audit import AuditLogger
from dzbudget.models.audit import AuditEventType
from dzbudget.models.budget import (
    AccountType,
    Language,
    Transaction,
    TransactionType,
)
from dzbudget.registry import seed_defaults
from dzbudget.services.storage import InMemoryAuditStorage


NOW = datetime(2024, 3, 15, 12, 0, tzinfo=timezone.utc)

TRANSACTIONS = [
    Transaction(date=NOW, description="Courses Uno", amount=Decimal("4500"),
                category_id="1", account_type=AccountType.CASH,
                type=TransactionType.EXPENSE),
    Transaction(date=NOW, description="Salaire", amount=Decimal("80000"),
                account_type=AccountType.SALARY, type=TransactionType.INCOME),
]


class FakeResponse:
    def __init__(self, text):
        self.text = text


class BlockedResponse:
    """Mimics a reply whose text accessor fails (safety block)."""

    @property
    def text(self):
        raise ValueError("response was blocked")


class FakeModel:
    """Returns a canned response and records the prompts it saw."""

    def __init__(self, response=None, error=None, delay=0.0):
        self.response = response
        self.error = error
        self.delay = delay
        self.prompts = []

    async def generate_content_async(self, prompt):
        self.prompts.append(prompt)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error:
            raise self.error
        return self.response


class GatedModel:
    """Waits until released, to observe a request while it is pending."""

    def __init__(self):
        self.release = None

    async def generate_content_async(self, prompt):
        self.release = asyncio.Event()
        await self.release.wait()
        return FakeResponse("Conseil")


class ThreadGatedModel:
    """Blocks a worker thread's request until the test releases it."""

    def __init__(self):
        self.started = threading.Event()
        self.release = threading.Event()

    async def generate_content_async(self, prompt):
        self.started.set()
        await asyncio.to_thread(self.release.wait, 5)
        return FakeResponse("Conseil")


def ask(agent, language=Language.FR):
    return asyncio.run(agent.get_budget_insights(
        transactions=TRANSACTIONS,
        categories=seed_defaults(),
        language=language,
    ))


class TestBuildPrompt:
    """Tests for prompt construction."""

    def test_contains_transactions_and_limits(self):
        """Test that the prompt carries the log summary and limits."""
        prompt = build_insight_prompt(TRANSACTIONS, seed_defaults(), Language.FR)
        assert "Courses Uno" in prompt
        assert "4500" in prompt
        assert "Alimentation" in prompt
        assert "30000" in prompt
        assert "Réponds en français" in prompt

    def test_arabic_answer_requested(self):
        """Test that the answer language follows the interface."""
        prompt = build_insight_prompt(TRANSACTIONS, seed_defaults(), Language.AR)
        assert "Réponds en arabe" in prompt
        assert "تغذية" in prompt


class TestInsightAgent:
    """Tests for InsightAgent.get_budget_insights."""

    def test_success(self):
        """Test that the model text is returned stripped."""
        model = FakeModel(response=FakeResponse("  Réduisez les loisirs.  "))
        agent = InsightAgent(model=model)
        assert ask(agent) == "Réduisez les loisirs."
        assert len(model.prompts) == 1

    def test_network_failure_returns_fallback(self):
        """Test that a network error becomes the localized message."""
        agent = InsightAgent(model=FakeModel(error=ConnectionError("unreachable")))
        assert ask(agent, Language.FR) == "Erreur de connexion avec l'IA."
        assert ask(agent, Language.AR) == "خطأ في الاتصال بالذكاء الاصطناعي."

    def test_empty_answer_returns_fallback(self):
        """Test that a blank answer is treated as a failure."""
        agent = InsightAgent(model=FakeModel(response=FakeResponse("   ")))
        assert ask(agent) == "Impossible de générer des analyses."

    def test_missing_text_returns_fallback(self):
        """Test that a None text is treated as empty."""
        agent = InsightAgent(model=FakeModel(response=FakeResponse(None)))
        assert ask(agent) == "Impossible de générer des analyses."

    def test_blocked_answer_returns_fallback(self):
        """Test that a text accessor error is treated as empty."""
        agent = InsightAgent(model=FakeModel(response=BlockedResponse()))
        assert ask(agent) == "Impossible de générer des analyses."

    def test_timeout_returns_fallback(self):
        """Test that a slow model is abandoned after the timeout."""
        model = FakeModel(response=FakeResponse("trop tard"), delay=1.0)
        agent = InsightAgent(model=model, timeout_seconds=0.01)
        assert ask(agent) == fallback_message(InsightTimeoutError(), Language.FR)

    def test_not_configured_returns_fallback(self, monkeypatch, tmp_path):
        """Test that a missing API key never reaches the caller as an exception."""
        monkeypatch.delenv("GEMINI_API_KEY", raising=False)
        monkeypatch.chdir(tmp_path)
        agent = InsightAgent()
        assert ask(agent) == "Les conseils IA ne sont pas configurés (clé API manquante)."

    def test_busy_flag_cleared_after_failure(self):
        """Test that a failed request does not leave the agent locked."""
        agent = InsightAgent(model=FakeModel(error=RuntimeError("boom")))
        ask(agent)
        assert agent.is_busy is False

    def test_second_request_refused_while_pending(self):
        """Test the one-request-at-a-time guard."""
        model = GatedModel()
        agent = InsightAgent(model=model)

        async def scenario():
            first = asyncio.create_task(agent.get_budget_insights(
                TRANSACTIONS, seed_defaults(), Language.FR
            ))
            while model.release is None:
                await asyncio.sleep(0)
            assert agent.is_busy is True
            with pytest.raises(InsightInProgressError):
                await agent.get_budget_insights(TRANSACTIONS, seed_defaults(), Language.FR)
            model.release.set()
            return await first

        assert asyncio.run(scenario()) == "Conseil"
        assert agent.is_busy is False

    def test_second_request_refused_from_another_thread(self):
        """Test the guard when two sessions share the agent."""
        model = ThreadGatedModel()
        agent = InsightAgent(model=model)
        answers = []
        worker = threading.Thread(target=lambda: answers.append(ask(agent)))
        worker.start()
        try:
            assert model.started.wait(5)
            assert agent.is_busy is True
            with pytest.raises(InsightInProgressError):
                ask(agent)
        finally:
            model.release.set()
            worker.join(5)

        assert answers == ["Conseil"]
        assert agent.is_busy is False

    def test_audit_trail(self):
        """Test that requests and failures are audited."""
        audit_storage = InMemoryAuditStorage()
        agent = InsightAgent(
            model=FakeModel(error=ConnectionError("unreachable")),
            audit_logger=AuditLogger(audit_storage),
        )
        ask(agent)
        events = audit_storage.events
        assert [e.event_type for e in events] == [
            AuditEventType.INSIGHT_REQUESTED,
            AuditEventType.INSIGHT_FAILED,
        ]
        assert events[1].error_code == InsightNetworkError.error_code

    def test_audit_trail_on_success(self):
        """Test that a generated insight is audited."""
        audit_storage = InMemoryAuditStorage()
        agent = InsightAgent(
            model=FakeModel(response=FakeResponse("OK")),
            audit_logger=AuditLogger(audit_storage),
        )
        ask(agent)
        assert audit_storage.events[-1].event_type == AuditEventType.INSIGHT_GENERATED


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
