"""
Custom Exceptions
自定义异常类
"""
from typing import Optional


class DiscoverAgentError(Exception):
    """服务基础异常类, status_code 对应 HTTP 边界返回的状态码"""

    status_code: int = 500

    def __init__(self, message: str, details: str = "", status_code: Optional[int] = None):
        self.message = message
        self.details = details or ""
        if status_code is not None:
            self.status_code = status_code
        super().__init__(self.message)

    def __str__(self):
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class ValidationError(DiscoverAgentError):
    """输入缺失或格式错误"""
    status_code = 400


class InvalidUrlError(ValidationError):
    """URL 无法解析"""

    def __init__(self, url: str):
        super().__init__("Source URL is invalid.", details=url)
        self.url = url


class UnsupportedSchemeError(ValidationError):
    """URL 协议不是 http/https"""

    def __init__(self, url: str, scheme: str):
        super().__init__("Only http and https source URLs are supported.", details=url)
        self.url = url
        self.scheme = scheme


class RateLimitedError(DiscoverAgentError):
    """超出限流窗口"""
    status_code = 429

    def __init__(self, retry_after_sec: int, max_requests: int = 10, window_sec: int = 60):
        super().__init__(
            f"Rate limit exceeded. Maximum {max_requests} requests per "
            f"{'minute' if window_sec == 60 else f'{window_sec} seconds'} per IP.",
            details=str(retry_after_sec),
        )
        self.retry_after_sec = retry_after_sec


class ConfigurationError(DiscoverAgentError):
    """配置错误"""
    status_code = 500


class UpstreamError(DiscoverAgentError):
    """上游服务 (网页 / 模型) 调用失败"""
    status_code = 502


class UpstreamFetchError(UpstreamError):
    """来源页面抓取失败"""

    def __init__(self, message: str, url: str = "", status: Optional[int] = None, details: str = ""):
        super().__init__(message, details=details)
        self.url = url
        self.status = status


class EmptyContentError(UpstreamError):
    """页面清洗后没有可用文本"""

    def __init__(self, url: str):
        super().__init__("Source page returned no readable text.", details=url)
        self.url = url


class AIServiceError(UpstreamError):
    """LLM / 转写服务调用失败"""

    def __init__(self, message: str, details: str = "", provider: Optional[str] = None):
        super().__init__(message, details=details)
        self.provider = provider


class NoValidInputError(UpstreamError):
    """没有任何可用的来源摘要"""

    def __init__(self, message: str = "No usable source summaries were produced."):
        super().__init__(message)
