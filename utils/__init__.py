"""
Utils Module
通用工具函数
"""
from .logger import setup_logger, get_logger
from .exceptions import (
    DiscoverAgentError,
    ValidationError,
    InvalidUrlError,
    UnsupportedSchemeError,
    RateLimitedError,
    ConfigurationError,
    UpstreamError,
    UpstreamFetchError,
    EmptyContentError,
    AIServiceError,
    NoValidInputError,
)

__all__ = [
    "setup_logger",
    "get_logger",
    "DiscoverAgentError",
    "ValidationError",
    "InvalidUrlError",
    "UnsupportedSchemeError",
    "RateLimitedError",
    "ConfigurationError",
    "UpstreamError",
    "UpstreamFetchError",
    "EmptyContentError",
    "AIServiceError",
    "NoValidInputError",
]
