"""Workflow coordinator: TTL cache plus single-flight over summarize + cluster."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, List, Optional, Sequence

from aggregator import SourceAggregator, normalize_sources
from config import get_workflow_settings
from core import (
    CacheInfo,
    SourceDescriptor,
    SourceSummaryResult,
    WorkflowResponse,
    WorkflowResult,
)
from intelligence.cluster_synthesizer import ClusterSynthesizer
from intelligence.prompts import normalize_language
from intelligence.source_summarizer import SourceSummarizer
from storage import CacheEntry, CacheState, TTLCache
from utils.exceptions import NoValidInputError


logger = logging.getLogger(__name__)


def workflow_cache_key(sources: Sequence[SourceDescriptor], lang: Optional[str]) -> str:
    """Order-insensitive key over (name, url) pairs plus the normalized language."""
    pairs = sorted(f"{src.name.strip().lower()}|{src.url.strip()}" for src in sources)
    return TTLCache.make_key("\n".join(pairs), lang or "")


def _consume_exception(task: "asyncio.Future[Any]") -> None:
    # Marks the error as retrieved when every waiter was cancelled.
    if not task.cancelled():
        task.exception()


class WorkflowCoordinator:
    """
    Serves workflow results per (source set, language).

    At most one computation per key is in flight; concurrent callers for the
    same key await that computation instead of starting another one.
    """

    def __init__(
        self,
        *,
        summarizer: SourceSummarizer,
        synthesizer: ClusterSynthesizer,
        aggregator: Optional[SourceAggregator] = None,
        cache: Optional[TTLCache[WorkflowResult]] = None,
    ) -> None:
        self._summarizer = summarizer
        self._aggregator = aggregator or SourceAggregator(summarizer)
        self._synthesizer = synthesizer
        self._cache = cache or TTLCache(ttl=get_workflow_settings().workflow_ttl_sec)
        self._inflight: Dict[str, "asyncio.Task[CacheEntry[WorkflowResult]]"] = {}

    @property
    def cache(self) -> TTLCache[WorkflowResult]:
        return self._cache

    def cache_state(self, sources: Any, lang: Optional[str] = None) -> CacheState:
        descriptors = normalize_sources(sources)
        return self._state_for(workflow_cache_key(descriptors, normalize_language(lang)))

    def _state_for(self, key: str) -> CacheState:
        if key in self._inflight:
            return CacheState.COMPUTING
        return self._cache.state(key)

    async def summarize_source(self, name: Any, url: Any, lang: Optional[str] = None) -> SourceSummaryResult:
        """Single-source summary (summary cache only)."""
        return await self._summarizer.summarize(name, url, lang)

    async def summarize_and_cluster(self, sources: Any, lang: Optional[str] = None) -> WorkflowResult:
        """Fan-out + cluster without the workflow cache."""
        descriptors = normalize_sources(sources)
        return await self._build_result(descriptors, normalize_language(lang))

    async def get_workflow(
        self,
        sources: Any,
        lang: Optional[str] = None,
        force_refresh: bool = False,
    ) -> WorkflowResponse:
        descriptors = normalize_sources(sources)
        language = normalize_language(lang)
        key = workflow_cache_key(descriptors, language)

        entry = self._cache.get_entry(key)
        now = self._cache.now()
        fresh = entry is not None and self._cache.is_fresh(entry, now)

        if fresh and not force_refresh:
            logger.debug(f"Workflow cache hit ({len(descriptors)} sources, {language or 'auto'})")
            return self._respond(entry, hit=True, stale=False)

        stale = entry is not None and not fresh
        task = self._inflight.get(key)
        if task is None:
            task = asyncio.ensure_future(self._compute(key, descriptors, language))
            task.add_done_callback(_consume_exception)
            self._inflight[key] = task
            hit = False
        else:
            logger.info(f"Joining in-flight workflow ({len(descriptors)} sources)")
            hit = entry is not None

        new_entry = await asyncio.shield(task)
        return self._respond(new_entry, hit=hit, stale=stale)

    async def _compute(
        self,
        key: str,
        descriptors: List[SourceDescriptor],
        language: Optional[str],
    ) -> CacheEntry[WorkflowResult]:
        current = asyncio.current_task()
        try:
            result = await self._build_result(descriptors, language)
            return self._cache.set(key, result)
        finally:
            if self._inflight.get(key) is current:
                del self._inflight[key]

    async def _build_result(self, descriptors: List[SourceDescriptor], language: Optional[str]) -> WorkflowResult:
        aggregated = await self._aggregator.aggregate(descriptors, language)
        meta = aggregated.meta
        logger.info(
            f"Summarized {meta.total_sources} sources: usable={meta.usable_count} "
            f"hidden={meta.hidden_count} failed={meta.failed_count}"
        )

        if not aggregated.usable:
            if meta.failed_count == meta.total_sources:
                raise NoValidInputError("All sources failed to load.")
            raise NoValidInputError()

        clustered = await self._synthesizer.cluster(aggregated.usable, language)
        return WorkflowResult(
            source_summaries=aggregated.results,
            clustered=clustered,
            meta=meta,
        )

    def _respond(self, entry: CacheEntry[WorkflowResult], *, hit: bool, stale: bool) -> WorkflowResponse:
        age_sec = entry.age(self._cache.now())
        return WorkflowResponse(
            **entry.value.model_dump(),
            cache=CacheInfo(
                hit=hit,
                stale=stale,
                ttl_ms=int(self._cache.ttl * 1000),
                age_ms=int(age_sec * 1000),
            ),
        )
