"""Merge usable per-source summaries into ranked cross-source topic clusters."""

from __future__ import annotations

import logging
from typing import Optional, Sequence

from config import get_workflow_settings
from core import SourceSummaryResult
from utils.exceptions import NoValidInputError

from .llm import BaseLLM
from .prompts import build_cluster_system_prompt, build_cluster_user_prompt, normalize_language


logger = logging.getLogger(__name__)

EMPTY_CLUSTER_PLACEHOLDER = "No clustered output returned."


class ClusterSynthesizer:
    """
    One model call over all usable summaries.

    Ranking by source count is part of the instructions; the output is
    returned as the model wrote it.
    """

    def __init__(
        self,
        llm: BaseLLM,
        *,
        max_sources: Optional[int] = None,
        per_source_chars: Optional[int] = None,
        max_clusters: Optional[int] = None,
    ) -> None:
        settings = get_workflow_settings()
        self._llm = llm
        self.max_sources = int(max_sources or settings.cluster_max_sources)
        self.per_source_chars = int(per_source_chars or settings.cluster_summary_chars)
        self.max_clusters = int(max_clusters or settings.max_clusters)

    async def cluster(self, usable_summaries: Sequence[SourceSummaryResult], lang: Optional[str] = None) -> str:
        usable = [item for item in usable_summaries if item.is_usable]
        if not usable:
            raise NoValidInputError()

        selected = usable[: self.max_sources]
        if len(usable) > len(selected):
            logger.info(f"Clustering first {len(selected)} of {len(usable)} usable sources")

        language = normalize_language(lang)
        answer = await self._llm.achat(
            build_cluster_user_prompt(selected, self.per_source_chars),
            system_prompt=build_cluster_system_prompt(language, self.max_clusters),
        )
        return answer.strip() or EMPTY_CLUSTER_PLACEHOLDER
