"""
Base Fetcher
所有页面抓取器的抽象基类
"""
from abc import ABC, abstractmethod
from typing import Optional
import logging

import httpx

from config import get_settings


logger = logging.getLogger(__name__)


class BaseFetcher(ABC):
    """
    抓取器抽象基类
    持有一个惰性创建的 httpx.AsyncClient, 子类实现 fetch_text
    """

    def __init__(self, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.settings = get_settings()
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    @property
    @abstractmethod
    def name(self) -> str:
        """返回抓取器名称"""
        pass

    @abstractmethod
    async def fetch_text(self, url: str) -> str:
        """
        抓取页面并返回纯文本

        Args:
            url: 页面地址

        Returns:
            页面文本
        """
        pass

    def _build_client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=httpx.Timeout(self.settings.fetch.timeout_sec),
            follow_redirects=True,
            transport=self._transport,
        )

    def _get_client(self) -> httpx.AsyncClient:
        """获取或创建 HTTP 客户端"""
        if self._client is None or self._client.is_closed:
            self._client = self._build_client()
        return self._client

    async def __aenter__(self):
        """异步上下文管理器入口"""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """异步上下文管理器出口"""
        await self.close()

    async def close(self):
        """清理资源"""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    def _log_error(self, message: str, error: Exception):
        """记录错误日志"""
        logger.warning(f"[{self.name}] {message}: {error}")
