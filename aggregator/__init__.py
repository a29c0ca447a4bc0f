"""
Aggregator Module
多来源摘要聚合
"""
from .source_aggregator import (
    AggregatedSummaries,
    SourceAggregator,
    classify_results,
    normalize_sources,
)

__all__ = [
    "AggregatedSummaries",
    "SourceAggregator",
    "classify_results",
    "normalize_sources",
]
