"""
Scrapers Module
来源页面抓取
"""
from .base import BaseFetcher
from .page_fetcher import PageFetcher, fetch_page_text, validate_source_url

__all__ = [
    "BaseFetcher",
    "PageFetcher",
    "fetch_page_text",
    "validate_source_url",
]
