"""Canonical data contracts for the source summary / cluster workflow."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, List

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class _WireModel(BaseModel):
    """snake_case attributes, camelCase JSON."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class SourceDescriptor(_WireModel):
    """One external outlet supplied by the caller."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    name: str
    url: str

    @field_validator("name", "url", mode="before")
    @classmethod
    def _strip_text(cls, value: Any) -> str:
        return str(value or "").strip()


class SourceSummaryResult(_WireModel):
    """Per-source summarization outcome."""

    source_name: str
    source_url: str
    summary: str = ""
    is_displayable: bool = True
    unusable_reason: str = ""
    error: str = ""

    @property
    def is_failed(self) -> bool:
        return bool(self.error)

    @property
    def is_usable(self) -> bool:
        return not self.error and bool(self.summary.strip()) and self.is_displayable

    @property
    def is_hidden(self) -> bool:
        return not self.error and not self.is_displayable


class WorkflowMeta(_WireModel):
    """Aggregate counts over one fan-out."""

    total_sources: int = 0
    fetched_count: int = 0
    failed_count: int = 0
    hidden_count: int = 0
    usable_count: int = 0


class WorkflowResult(_WireModel):
    """Summaries plus the clustered synthesis, cached as one unit."""

    source_summaries: List[SourceSummaryResult] = Field(default_factory=list)
    clustered: str = ""
    meta: WorkflowMeta = Field(default_factory=WorkflowMeta)
    generated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class CacheInfo(_WireModel):
    """Cache metadata reported alongside a workflow result."""

    hit: bool
    stale: bool
    ttl_ms: int
    age_ms: int


class WorkflowResponse(WorkflowResult):
    """Workflow result as served by the coordinator."""

    cache: CacheInfo
