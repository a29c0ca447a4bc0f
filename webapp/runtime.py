"""Shared runtime singletons for web/CLI entrypoints."""

from __future__ import annotations

from config import get_settings
from intelligence import Assistant, ClusterSynthesizer, SourceSummarizer, get_llm
from orchestrator import SlidingWindowRateLimiter, UsageMetrics, WorkflowCoordinator
from scrapers import PageFetcher
from storage import TTLCache


_SETTINGS = get_settings()

_LLM = get_llm()
_FETCHER = PageFetcher()
_SUMMARIZER = SourceSummarizer(
    fetcher=_FETCHER,
    llm=_LLM,
    cache=TTLCache(ttl=_SETTINGS.workflow.summary_ttl_sec),
)
_COORDINATOR = WorkflowCoordinator(
    summarizer=_SUMMARIZER,
    synthesizer=ClusterSynthesizer(_LLM),
    cache=TTLCache(ttl=_SETTINGS.workflow.workflow_ttl_sec),
)
_ASSISTANT = Assistant(_LLM)
_RATE_LIMITER = SlidingWindowRateLimiter(
    max_requests=_SETTINGS.rate_limit.max_requests,
    window_sec=_SETTINGS.rate_limit.window_sec,
)
_METRICS = UsageMetrics()


def get_coordinator() -> WorkflowCoordinator:
    return _COORDINATOR


def get_assistant() -> Assistant:
    return _ASSISTANT


def get_rate_limiter() -> SlidingWindowRateLimiter:
    return _RATE_LIMITER


def get_metrics() -> UsageMetrics:
    return _METRICS


async def shutdown() -> None:
    await _FETCHER.close()
    await _LLM.aclose()
