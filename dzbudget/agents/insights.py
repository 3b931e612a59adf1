"""
Budget Insight Agent

Sends a compact summary of the log and the category limits to Gemini and
returns short budgeting advice in the user's language.

CRITICAL BOUNDARIES:
- The AI only READS a summary; it never changes any state
- One attempt per request, no retries, bounded by a timeout
- A failure of any kind (network, auth, timeout, empty answer) becomes a
  fixed localized message; it never reaches the UI as an exception
- One request at a time: a second call while one is pending is refused
  (InsightInProgressError) without contacting the service
"""

import asyncio
import json
import threading
from typing import Iterable, Optional
from uuid import UUID

import google.generativeai as genai
from pydantic import ValidationError as SettingsError

from dzbudget.audit import AuditLogger
from dzbudget.config import GeminiSettings, get_settings
from dzbudget.i18n import translate
from dzbudget.models.budget import Category, Language, Transaction


class ExternalServiceError(Exception):
    """Base exception for the text-generation service."""

    error_code = "external_service_error"
    fallback_key = "insight_error"


class InsightNetworkError(ExternalServiceError):
    """The request failed (connection, auth, quota, malformed reply)."""

    error_code = "network_error"


class InsightTimeoutError(ExternalServiceError):
    """No answer within the configured timeout."""

    error_code = "timeout"
    fallback_key = "insight_timeout"


class EmptyInsightError(ExternalServiceError):
    """The service answered but produced no usable text."""

    error_code = "empty_response"
    fallback_key = "insight_empty"


class InsightUnavailableError(ExternalServiceError):
    """Gemini is not configured (no API key)."""

    error_code = "not_configured"
    fallback_key = "insight_unavailable"


class InsightInProgressError(Exception):
    """A request is already pending; the trigger should stay disabled."""


def fallback_message(error: ExternalServiceError, language: Language) -> str:
    """The fixed localized text shown instead of an insight."""
    return translate(error.fallback_key, language)


def build_insight_prompt(
    transactions: Iterable[Transaction],
    categories: Iterable[Category],
    language: Language,
) -> str:
    """
    Build the prompt sent to the model.

    Per transaction: description, amount, category name, type.
    Per category: name and monthly limit.
    """
    language = Language(language)
    categories = list(categories)
    names = {c.id: c.display_name(language) for c in categories}

    summary = [
        {
            "desc": t.description,
            "amount": str(t.amount),
            "cat": names.get(t.category_id) if t.category_id else None,
            "type": t.type.value,
        }
        for t in transactions
    ]
    limits = [
        {"name": c.display_name(language), "limit": str(c.limit)}
        for c in categories
    ]
    answer_language = "arabe" if language == Language.AR else "français"

    return (
        "Agis comme un expert en finance personnelle algérien. "
        "Analyse les transactions suivantes, montants en DZD :\n"
        f"{json.dumps(summary, ensure_ascii=False)}\n\n"
        "Les limites mensuelles par catégorie sont :\n"
        f"{json.dumps(limits, ensure_ascii=False)}\n\n"
        "Donne des conseils courts et précis pour économiser et signale les "
        "limites dépassées.\n"
        f"Réponds en {answer_language}.\n"
        "Présente la réponse en texte clair avec des points clés."
    )


class InsightAgent:
    """
    AI agent producing the dashboard's budget advice.

    RESPONSIBILITIES:
    - Summarize the log and limits into a prompt
    - Call Gemini once, within the timeout
    - Turn every failure into the localized fallback text

    BOUNDARIES:
    - NEVER modifies transactions or categories
    - NEVER retries on its own
    """

    def __init__(
        self,
        model=None,
        settings: Optional[GeminiSettings] = None,
        audit_logger: Optional[AuditLogger] = None,
        timeout_seconds: Optional[float] = None,
    ):
        """
        Args:
            model: Anything with an async `generate_content_async(prompt)`.
                   Built from settings on first use when omitted.
            settings: Gemini configuration; read from the environment
                      when omitted.
            audit_logger: Where requests and failures are recorded.
            timeout_seconds: Overrides settings.request_timeout_seconds.
        """
        self._model = model
        self._settings = settings
        self._audit_logger = audit_logger
        self._timeout_seconds = timeout_seconds
        # Held for the whole request; Streamlit sessions share one agent
        self._lock = threading.Lock()

    @property
    def is_busy(self) -> bool:
        """True while a request is pending."""
        return self._lock.locked()

    def _get_settings(self) -> GeminiSettings:
        if self._settings is None:
            try:
                self._settings = get_settings().gemini
            except SettingsError as e:
                raise InsightUnavailableError(str(e)) from e
        return self._settings

    def _configure_genai(self):
        """Configure Google Generative AI."""
        settings = self._get_settings()
        genai.configure(api_key=settings.api_key)
        return genai.GenerativeModel(
            model_name=settings.model_name,
            generation_config={
                "temperature": settings.temperature,
                "max_output_tokens": settings.max_tokens,
            }
        )

    @property
    def timeout_seconds(self) -> float:
        if self._timeout_seconds is not None:
            return self._timeout_seconds
        if self._settings is not None:
            return self._settings.request_timeout_seconds
        return GeminiSettings.model_fields["request_timeout_seconds"].default

    async def _generate(self, prompt: str) -> str:
        """
        Single call to the model.

        Raises:
            ExternalServiceError: Any failure, classified
        """
        if self._model is None:
            self._model = self._configure_genai()

        try:
            response = await asyncio.wait_for(
                self._model.generate_content_async(prompt),
                timeout=self.timeout_seconds,
            )
        except asyncio.TimeoutError as e:
            raise InsightTimeoutError(
                f"No answer after {self.timeout_seconds}s"
            ) from e
        except Exception as e:
            # Client library errors vary by transport; all mean "no insight"
            raise InsightNetworkError(str(e) or type(e).__name__) from e

        try:
            text = (response.text or "").strip()
        except (AttributeError, ValueError) as e:
            # .text raises ValueError when the answer was blocked
            raise EmptyInsightError(str(e)) from e

        if not text:
            raise EmptyInsightError("Empty response")
        return text

    async def get_budget_insights(
        self,
        transactions: Iterable[Transaction],
        categories: Iterable[Category],
        language: Language,
        correlation_id: Optional[UUID] = None,
    ) -> str:
        """
        Budgeting advice for the given data, or the localized fallback.

        Raises:
            InsightInProgressError: If another request is still pending
        """
        language = Language(language)
        transactions = list(transactions)
        if not self._lock.acquire(blocking=False):
            raise InsightInProgressError("An insight request is already running")
        try:
            if self._audit_logger:
                self._audit_logger.log_insight_requested(
                    language=language.value,
                    transaction_count=len(transactions),
                    correlation_id=correlation_id,
                )

            prompt = build_insight_prompt(transactions, categories, language)
            try:
                text = await self._generate(prompt)
            except ExternalServiceError as e:
                if self._audit_logger:
                    self._audit_logger.log_insight_failed(
                        error_code=e.error_code,
                        error_message=str(e),
                        correlation_id=correlation_id,
                    )
                return fallback_message(e, language)

            if self._audit_logger:
                self._audit_logger.log_insight_generated(
                    language=language.value,
                    length=len(text),
                    correlation_id=correlation_id,
                )
            return text
        finally:
            self._lock.release()
