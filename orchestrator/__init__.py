"""Request orchestration primitives: admission control, workflow cache, usage metrics."""

from .metrics import UsageMetrics, UsageRecord
from .rate_limiter import RateLimitDecision, SlidingWindowRateLimiter
from .service import WorkflowCoordinator, workflow_cache_key

__all__ = [
    "RateLimitDecision",
    "SlidingWindowRateLimiter",
    "UsageMetrics",
    "UsageRecord",
    "WorkflowCoordinator",
    "workflow_cache_key",
]
