"""Shared fakes for workflow tests."""

from __future__ import annotations

import asyncio
from typing import Callable, Dict, List, Optional, Tuple, Union

import pytest

from intelligence.llm import BaseLLM, LLMResponse, Message, MessageRole
from scrapers.base import BaseFetcher
from utils.exceptions import UpstreamFetchError


class FakeClock:
    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeFetcher(BaseFetcher):
    """Serves canned page text; an Exception value is raised instead."""

    def __init__(
        self,
        pages: Dict[str, Union[str, Exception]],
        delays: Optional[Dict[str, float]] = None,
    ) -> None:
        super().__init__()
        self.pages = dict(pages)
        self.delays = dict(delays or {})
        self.calls: List[str] = []

    @property
    def name(self) -> str:
        return "Fake Fetcher"

    async def fetch_text(self, url: str) -> str:
        self.calls.append(url)
        delay = self.delays.get(url)
        if delay:
            await asyncio.sleep(delay)
        page = self.pages.get(url)
        if page is None:
            raise UpstreamFetchError("Source fetch failed with status 404.", url=url, status=404)
        if isinstance(page, Exception):
            raise page
        return page


Responder = Callable[[str, str], str]


def default_responder(system: str, user: str) -> str:
    if "cross-source topic clusters" in system:
        return "### 1. Shared story\nSources: BBC\nSource count: 1\n- point one\n- point two"
    return "- Story one\n- Story two\n- Story three\n- Story four\n- Limits: front page only"


class FakeLLM(BaseLLM):
    """Records (system, user) pairs and answers through `responder`."""

    def __init__(self, responder: Optional[Responder] = None, delay: float = 0.0) -> None:
        super().__init__(model="fake-model")
        self.responder = responder or default_responder
        self.delay = delay
        self.calls: List[Tuple[str, str]] = []
        self.transcriptions: List[Tuple[bytes, str]] = []
        self.transcript = "hello world"

    @property
    def provider(self) -> str:
        return "fake"

    async def acomplete(self, messages: List[Message], **kwargs) -> LLMResponse:
        system = "\n".join(m.content for m in messages if m.role == MessageRole.SYSTEM)
        user = "\n".join(m.content for m in messages if m.role == MessageRole.USER)
        self.calls.append((system, user))
        if self.delay:
            await asyncio.sleep(self.delay)
        return LLMResponse(content=self.responder(system, user), model=self.model)

    async def atranscribe(self, audio: bytes, mime_type: str = "audio/webm") -> str:
        self.transcriptions.append((audio, mime_type))
        return self.transcript

    def summary_calls(self) -> List[Tuple[str, str]]:
        return [call for call in self.calls if "cross-source topic clusters" not in call[0]]

    def cluster_calls(self) -> List[Tuple[str, str]]:
        return [call for call in self.calls if "cross-source topic clusters" in call[0]]


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def fake_llm() -> FakeLLM:
    return FakeLLM()


class ComputationSpy:
    """Counts workflow builds by wrapping the coordinator's `_build_result`."""

    def __init__(self, coordinator) -> None:
        self.count = 0
        original = coordinator._build_result

        async def counting(*args, **kwargs):
            self.count += 1
            return await original(*args, **kwargs)

        coordinator._build_result = counting
