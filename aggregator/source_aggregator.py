"""
Source Aggregator
并发摘要多个来源, 单个来源失败不影响整体
"""
import asyncio
from dataclasses import dataclass, field
from typing import Any, Iterable, List, Optional, Tuple
import logging

from core import SourceDescriptor, SourceSummaryResult, WorkflowMeta
from intelligence.source_summarizer import SourceSummarizer
from utils.exceptions import (
    ConfigurationError,
    DiscoverAgentError,
    InvalidUrlError,
    UnsupportedSchemeError,
    UpstreamFetchError,
    ValidationError,
)


logger = logging.getLogger(__name__)


def normalize_sources(raw_sources: Any) -> List[SourceDescriptor]:
    """
    规范化调用方提供的来源列表

    接受 SourceDescriptor 或 {"name", "url"} 字典; 名称或 URL 为空的条目被丢弃,
    结果为空时抛出 ValidationError (在任何网络调用之前)
    """
    if not isinstance(raw_sources, (list, tuple)):
        raise ValidationError("sources must be a non-empty array.")

    normalized: List[SourceDescriptor] = []
    for item in raw_sources:
        if isinstance(item, SourceDescriptor):
            candidate = item
        elif isinstance(item, dict):
            candidate = SourceDescriptor(name=item.get("name"), url=item.get("url"))
        else:
            continue
        if candidate.name and candidate.url:
            normalized.append(candidate)

    if not normalized:
        raise ValidationError("At least one source with a name and url is required.")
    return normalized


def _error_message(error: BaseException) -> str:
    if isinstance(error, DiscoverAgentError):
        return error.message
    return str(error) or error.__class__.__name__


def _is_fetch_failure(error: BaseException) -> bool:
    # 页面未取回: 网络错误 / 超时 / 非 2xx / URL 不合法
    return isinstance(error, (UpstreamFetchError, InvalidUrlError, UnsupportedSchemeError))


@dataclass
class AggregatedSummaries:
    """
    摘要结果 + 分类统计

    fetch_failures 只统计页面未取回的来源; 页面已取回但模型调用失败的来源
    计入 failed, 同时仍计入 fetched_count
    """

    results: List[SourceSummaryResult] = field(default_factory=list)
    usable: List[SourceSummaryResult] = field(default_factory=list)
    failed: List[SourceSummaryResult] = field(default_factory=list)
    hidden: List[SourceSummaryResult] = field(default_factory=list)
    fetch_failures: Optional[int] = None

    @property
    def meta(self) -> WorkflowMeta:
        total = len(self.results)
        not_fetched = len(self.failed) if self.fetch_failures is None else self.fetch_failures
        return WorkflowMeta(
            total_sources=total,
            fetched_count=total - not_fetched,
            failed_count=len(self.failed),
            hidden_count=len(self.hidden),
            usable_count=len(self.usable),
        )


def classify_results(
    results: Iterable[SourceSummaryResult],
    fetch_failures: Optional[int] = None,
) -> AggregatedSummaries:
    """按 usable / failed / hidden 分组, 保持原有顺序"""
    aggregated = AggregatedSummaries(results=list(results), fetch_failures=fetch_failures)
    for item in aggregated.results:
        if item.is_failed:
            aggregated.failed.append(item)
        elif item.is_hidden:
            aggregated.hidden.append(item)
        elif item.is_usable:
            aggregated.usable.append(item)
    return aggregated


class SourceAggregator:
    """
    来源聚合器
    每个来源一个摘要任务, 等待全部结束 (不因首个失败而中断)
    """

    def __init__(self, summarizer: SourceSummarizer):
        self._summarizer = summarizer

    async def _settle(
        self,
        sources: Any,
        lang: Optional[str],
    ) -> Tuple[List[SourceSummaryResult], int]:
        descriptors = normalize_sources(sources)

        outcomes = await asyncio.gather(
            *[self._summarizer.summarize(src.name, src.url, lang) for src in descriptors],
            return_exceptions=True,
        )

        # 配置错误与具体来源无关, 原样抛出
        for outcome in outcomes:
            if isinstance(outcome, ConfigurationError):
                raise outcome

        results: List[SourceSummaryResult] = []
        fetch_failures = 0
        for source, outcome in zip(descriptors, outcomes):
            if isinstance(outcome, SourceSummaryResult):
                results.append(outcome)
                continue
            if not isinstance(outcome, Exception):
                raise outcome
            logger.warning(f"{source.name} source failed: {outcome}")
            if _is_fetch_failure(outcome):
                fetch_failures += 1
            results.append(
                SourceSummaryResult(
                    source_name=source.name,
                    source_url=source.url,
                    summary="",
                    is_displayable=False,
                    error=_error_message(outcome),
                )
            )

        return results, fetch_failures

    async def summarize_all(
        self,
        sources: Any,
        lang: Optional[str] = None,
    ) -> List[SourceSummaryResult]:
        """
        并发摘要所有来源

        Args:
            sources: 来源列表
            lang: 目标语言标签 (可选)

        Returns:
            与输入顺序一致的结果列表, 失败来源带 error 字段

        Raises:
            ValidationError: 来源列表为空
            ConfigurationError: 模型服务未配置
        """
        results, _ = await self._settle(sources, lang)
        return results

    async def aggregate(self, sources: Any, lang: Optional[str] = None) -> AggregatedSummaries:
        """摘要并分类"""
        results, fetch_failures = await self._settle(sources, lang)
        return classify_results(results, fetch_failures)
