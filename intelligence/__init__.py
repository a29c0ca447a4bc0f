"""
Intelligence Module
智能层 - LLM 抽象 + 来源摘要 + 主题聚类
"""
from .llm import (
    BaseLLM,
    OpenAILLM,
    get_llm,
)
from .assistant import Assistant
from .source_summarizer import SourceSummarizer, parse_summary_response
from .cluster_synthesizer import ClusterSynthesizer
from .prompts import normalize_language

__all__ = [
    # LLM
    "BaseLLM",
    "OpenAILLM",
    "get_llm",
    # Operations
    "Assistant",
    "SourceSummarizer",
    "parse_summary_response",
    "ClusterSynthesizer",
    "normalize_language",
]
