"""Single-source summarization with TTL cache and an unusable-page quality gate."""

from __future__ import annotations

import logging
import re
from typing import Optional

from config import get_workflow_settings
from core import SourceSummaryResult
from scrapers.base import BaseFetcher
from storage import TTLCache
from utils.exceptions import ValidationError

from .llm import BaseLLM
from .prompts import (
    UNUSABLE_SENTINEL,
    build_summary_system_prompt,
    build_summary_user_prompt,
    normalize_language,
)


logger = logging.getLogger(__name__)

_UNUSABLE_RE = re.compile(rf"^{UNUSABLE_SENTINEL}:[ \t]*([^\r\n]*)")

EMPTY_RESPONSE_REASON = "empty model response"


def parse_summary_response(name: str, url: str, text: str) -> SourceSummaryResult:
    """Turn raw model text into a result; the sentinel must open the response."""
    answer = str(text or "").strip()
    if not answer:
        return SourceSummaryResult(
            source_name=name,
            source_url=url,
            is_displayable=False,
            unusable_reason=EMPTY_RESPONSE_REASON,
        )

    match = _UNUSABLE_RE.match(answer)
    if match:
        return SourceSummaryResult(
            source_name=name,
            source_url=url,
            summary="",
            is_displayable=False,
            unusable_reason=match.group(1).strip() or "unusable source",
        )

    return SourceSummaryResult(source_name=name, source_url=url, summary=answer)


def summary_cache_key(name: str, url: str, lang: Optional[str]) -> str:
    return TTLCache.make_key(str(name or "").strip().lower(), url, lang or "")


class SourceSummarizer:
    """Fetch one outlet page and ask the model for a bullet summary."""

    def __init__(
        self,
        fetcher: BaseFetcher,
        llm: BaseLLM,
        cache: Optional[TTLCache[SourceSummaryResult]] = None,
    ) -> None:
        self._fetcher = fetcher
        self._llm = llm
        self._cache = cache or TTLCache(ttl=get_workflow_settings().summary_ttl_sec)

    @property
    def cache(self) -> TTLCache[SourceSummaryResult]:
        return self._cache

    async def summarize(self, name: str, url: str, lang: Optional[str] = None) -> SourceSummaryResult:
        """
        Summarize one source.

        Fresh cache hits return without I/O. Fetch and model failures propagate
        and are never cached; sentinel / empty answers are cached like summaries.
        """
        source_name = str(name or "").strip()
        source_url = str(url or "").strip()
        if not source_name:
            raise ValidationError("sourceName is required.")
        if not source_url:
            raise ValidationError("sourceUrl is required.")

        language = normalize_language(lang)
        key = summary_cache_key(source_name, source_url, language)
        cached = self._cache.get(key)
        if cached is not None:
            logger.debug(f"Summary cache hit: {source_name} ({language or 'auto'})")
            return cached.model_copy(deep=True)

        page_text = await self._fetcher.fetch_text(source_url)
        answer = await self._llm.achat(
            build_summary_user_prompt(source_name, source_url, page_text),
            system_prompt=build_summary_system_prompt(language),
        )

        result = parse_summary_response(source_name, source_url, answer)
        if not result.is_displayable:
            logger.info(f"Source hidden: {source_name} ({result.unusable_reason})")
        self._cache.set(key, result)
        return result.model_copy(deep=True)
