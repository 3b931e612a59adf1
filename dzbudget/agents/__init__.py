"""AI Agents package."""

from dzbudget.agents.insights import (
    EmptyInsightError,
    ExternalServiceError,
    InsightAgent,
    InsightInProgressError,
    InsightNetworkError,
    InsightTimeoutError,
    InsightUnavailableError,
    build_insight_prompt,
    fallback_message,
)

__all__ = [
    "EmptyInsightError",
    "ExternalServiceError",
    "InsightAgent",
    "InsightInProgressError",
    "InsightNetworkError",
    "InsightTimeoutError",
    "InsightUnavailableError",
    "build_insight_prompt",
    "fallback_message",
]
