"""
Page Fetcher
限时抓取来源页面并精简为纯文本
"""
import asyncio
from typing import Optional
from urllib.parse import urlparse
import logging

import httpx

from processing import HtmlTextReducer
from utils.exceptions import (
    EmptyContentError,
    InvalidUrlError,
    UnsupportedSchemeError,
    UpstreamFetchError,
)

from .base import BaseFetcher


logger = logging.getLogger(__name__)

ALLOWED_SCHEMES = ("http", "https")


def validate_source_url(url: str) -> str:
    """
    校验来源 URL

    Returns:
        去除首尾空白后的 URL

    Raises:
        InvalidUrlError: 无法解析或缺少主机
        UnsupportedSchemeError: 非 http/https
    """
    text = str(url or "").strip()
    if not text:
        raise InvalidUrlError(text)
    try:
        parsed = urlparse(text)
        hostname = parsed.hostname
    except ValueError:
        raise InvalidUrlError(text)
    if not parsed.scheme:
        raise InvalidUrlError(text)
    if parsed.scheme.lower() not in ALLOWED_SCHEMES:
        raise UnsupportedSchemeError(text, parsed.scheme)
    if not hostname:
        raise InvalidUrlError(text)
    return text


class PageFetcher(BaseFetcher):
    """
    来源页面抓取器

    - 固定 User-Agent
    - 总耗时上限 (默认 10s), 超时即中止请求
    - 非 2xx 视为抓取失败
    - 输出截断到 max_chars
    """

    def __init__(
        self,
        timeout_sec: Optional[float] = None,
        max_chars: Optional[int] = None,
        user_agent: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        super().__init__(transport=transport)
        fetch_settings = self.settings.fetch
        self.timeout_sec = float(timeout_sec or fetch_settings.timeout_sec)
        self.max_chars = int(max_chars or fetch_settings.max_chars)
        self.user_agent = user_agent or fetch_settings.user_agent
        self._reducer = HtmlTextReducer(max_length=self.max_chars)

    @property
    def name(self) -> str:
        return "Page Fetcher"

    def _build_client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=httpx.Timeout(self.timeout_sec),
            follow_redirects=True,
            headers={"User-Agent": self.user_agent},
            transport=self._transport,
        )

    async def _get(self, url: str) -> httpx.Response:
        client = self._get_client()
        return await asyncio.wait_for(client.get(url), timeout=self.timeout_sec)

    async def fetch_text(self, url: str) -> str:
        """
        抓取页面文本

        Raises:
            InvalidUrlError, UnsupportedSchemeError: URL 不合法
            UpstreamFetchError: 网络错误 / 超时 / 非 2xx
            EmptyContentError: 精简后无文本
        """
        target = validate_source_url(url)

        try:
            response = await self._get(target)
        except asyncio.TimeoutError as exc:
            self._log_error(f"Timed out after {self.timeout_sec:g}s fetching {target}", exc)
            raise UpstreamFetchError(
                f"Source fetch timed out after {self.timeout_sec:g}s.", url=target
            ) from exc
        except httpx.TimeoutException as exc:
            self._log_error(f"Timed out fetching {target}", exc)
            raise UpstreamFetchError(
                f"Source fetch timed out after {self.timeout_sec:g}s.", url=target, details=str(exc)
            ) from exc
        except httpx.HTTPError as exc:
            self._log_error(f"Request failed for {target}", exc)
            raise UpstreamFetchError("Source fetch failed.", url=target, details=str(exc)) from exc

        if not response.is_success:
            raise UpstreamFetchError(
                f"Source fetch failed with status {response.status_code}.",
                url=target,
                status=response.status_code,
            )

        text = self._reducer.reduce(response.text)
        if not text:
            raise EmptyContentError(target)

        logger.debug(f"[{self.name}] {target} -> {len(text)} chars")
        return text


async def fetch_page_text(url: str) -> str:
    """便捷函数：一次性抓取页面文本"""
    async with PageFetcher() as fetcher:
        return await fetcher.fetch_text(url)
