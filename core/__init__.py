"""Core contracts and shared types for the source workflow."""

from .contracts import (
    CacheInfo,
    SourceDescriptor,
    SourceSummaryResult,
    WorkflowMeta,
    WorkflowResponse,
    WorkflowResult,
)

__all__ = [
    "CacheInfo",
    "SourceDescriptor",
    "SourceSummaryResult",
    "WorkflowMeta",
    "WorkflowResponse",
    "WorkflowResult",
]
