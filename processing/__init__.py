"""
Processing Module
文档处理模块 - HTML 清洗
"""
from .cleaner import HtmlTextReducer, html_to_text

__all__ = [
    "HtmlTextReducer",
    "html_to_text",
]
