"""FastAPI boundary: ask / categorize / transcribe relay and source workflow endpoints."""

from __future__ import annotations

from contextlib import asynccontextmanager
import logging
import time
from typing import Any, Dict, List, Optional

from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from config import get_server_settings
from intelligence import Assistant
from orchestrator import SlidingWindowRateLimiter, UsageMetrics, UsageRecord, WorkflowCoordinator
from utils.exceptions import DiscoverAgentError, RateLimitedError
from webapp import runtime


logger = logging.getLogger(__name__)


class _Payload(BaseModel):
    # Field checks live in the operations so error messages match across entrypoints.
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")


class AskPayload(_Payload):
    question: Any = None


class CategorizePayload(_Payload):
    question: Any = None
    answer: Any = None
    selected_sources: Optional[List[Any]] = None


class TranscribePayload(_Payload):
    audio_base64: Any = None
    mime_type: Any = None


class SourceSummaryPayload(_Payload):
    source_name: Any = None
    source_url: Any = None
    preferred_language: Optional[str] = None


class SourceClustersPayload(_Payload):
    sources: Any = None
    preferred_language: Optional[str] = None


class SourceWorkflowPayload(SourceClustersPayload):
    force_refresh: bool = Field(default=False)


def client_ip(request: Request) -> str:
    """First X-Forwarded-For hop, then X-Real-IP, then the socket peer."""
    forwarded_for = request.headers.get("x-forwarded-for", "")
    if forwarded_for.strip():
        return forwarded_for.split(",")[0].strip()
    real_ip = request.headers.get("x-real-ip", "")
    if real_ip.strip():
        return real_ip.strip()
    if request.client and request.client.host:
        return request.client.host
    return "unknown"


def enforce_rate_limit(
    request: Request,
    limiter: SlidingWindowRateLimiter = Depends(runtime.get_rate_limiter),
) -> None:
    decision = limiter.admit(client_ip(request))
    if not decision.allowed:
        raise RateLimitedError(
            decision.retry_after_sec,
            max_requests=limiter.max_requests,
            window_sec=int(limiter.window_sec),
        )


@asynccontextmanager
async def lifespan(_: FastAPI):
    yield
    await runtime.shutdown()


app = FastAPI(title="DiscoverAgent API", lifespan=lifespan)
app.add_middleware(
    CORSMiddleware,
    allow_origins=get_server_settings().cors_origin_list,
    allow_credentials=False,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Content-Type"],
)


@app.middleware("http")
async def record_usage(request: Request, call_next):
    path = request.url.path
    if not path.startswith("/api/") or request.method == "OPTIONS":
        return await call_next(request)

    metrics = runtime.get_metrics()
    started = time.perf_counter()
    status_code = 500
    try:
        response = await call_next(request)
        status_code = response.status_code
        return response
    finally:
        metrics.record(
            UsageRecord(
                endpoint=path,
                method=request.method,
                status_code=status_code,
                duration_ms=(time.perf_counter() - started) * 1000,
                cache_hit=getattr(request.state, "cache_hit", None),
            )
        )


@app.exception_handler(DiscoverAgentError)
async def handle_service_error(_: Request, exc: DiscoverAgentError) -> JSONResponse:
    headers: Dict[str, str] = {}
    if isinstance(exc, RateLimitedError):
        headers["Retry-After"] = str(exc.retry_after_sec)
    elif exc.details:
        logger.error(f"{exc.__class__.__name__}: {exc.message} | {exc.details}")
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message}, headers=headers)


@app.exception_handler(RequestValidationError)
async def handle_request_validation(_: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=400,
        content={"error": "Invalid request body.", "details": [err.get("msg", "") for err in exc.errors()]},
    )


@app.exception_handler(Exception)
async def handle_unexpected(_: Request, exc: Exception) -> JSONResponse:
    logger.exception(f"Unexpected server error: {exc}")
    return JSONResponse(
        status_code=500,
        content={"error": "Unexpected server error.", "details": str(exc)},
    )


@app.get("/api/health")
async def health() -> Dict[str, str]:
    return {"status": "ok"}


@app.post("/api/ask", dependencies=[Depends(enforce_rate_limit)])
async def ask(
    payload: AskPayload,
    assistant: Assistant = Depends(runtime.get_assistant),
) -> Dict[str, str]:
    return await assistant.ask(payload.question)


@app.post("/api/categorize", dependencies=[Depends(enforce_rate_limit)])
async def categorize(
    payload: CategorizePayload,
    assistant: Assistant = Depends(runtime.get_assistant),
) -> Dict[str, str]:
    return await assistant.categorize(payload.question, payload.answer, payload.selected_sources)


@app.post("/api/transcribe", dependencies=[Depends(enforce_rate_limit)])
async def transcribe(
    payload: TranscribePayload,
    assistant: Assistant = Depends(runtime.get_assistant),
) -> Dict[str, str]:
    return await assistant.transcribe(payload.audio_base64, payload.mime_type)


@app.post("/api/source-summary", dependencies=[Depends(enforce_rate_limit)])
async def source_summary(
    payload: SourceSummaryPayload,
    coordinator: WorkflowCoordinator = Depends(runtime.get_coordinator),
) -> Dict[str, Any]:
    result = await coordinator.summarize_source(
        payload.source_name, payload.source_url, payload.preferred_language
    )
    return result.model_dump(mode="json", by_alias=True)


@app.post("/api/source-clusters", dependencies=[Depends(enforce_rate_limit)])
async def source_clusters(
    payload: SourceClustersPayload,
    coordinator: WorkflowCoordinator = Depends(runtime.get_coordinator),
) -> Dict[str, Any]:
    result = await coordinator.summarize_and_cluster(payload.sources, payload.preferred_language)
    return result.model_dump(mode="json", by_alias=True)


@app.post("/api/source-workflow", dependencies=[Depends(enforce_rate_limit)])
async def source_workflow(
    request: Request,
    payload: SourceWorkflowPayload,
    coordinator: WorkflowCoordinator = Depends(runtime.get_coordinator),
) -> Dict[str, Any]:
    result = await coordinator.get_workflow(
        payload.sources,
        payload.preferred_language,
        force_refresh=bool(payload.force_refresh),
    )
    request.state.cache_hit = result.cache.hit
    return result.model_dump(mode="json", by_alias=True)


@app.get("/api/metrics", dependencies=[Depends(enforce_rate_limit)])
async def metrics(usage: UsageMetrics = Depends(runtime.get_metrics)) -> Dict[str, Any]:
    return usage.snapshot()
