"""
HTML Cleaner
网页 HTML -> 纯文本 精简模块
"""
import re
from typing import Dict, Optional


class HtmlTextReducer:
    """
    HTML 文本精简器
    不追求无损抽取, 只为下游 LLM 调用控制输入长度
    """

    # 整块移除 (含内容) 的标签
    BLOCK_PATTERN = re.compile(
        r"<(script|style|noscript)\b[^>]*>.*?</\1\s*>",
        re.IGNORECASE | re.DOTALL,
    )
    COMMENT_PATTERN = re.compile(r"<!--.*?-->", re.DOTALL)
    TAG_PATTERN = re.compile(r"<[^>]+>")
    MULTIPLE_SPACES = re.compile(r"\s+")

    # 固定解码的实体集合
    ENTITIES: Dict[str, str] = {
        "&nbsp;": " ",
        "&lt;": "<",
        "&gt;": ">",
        "&quot;": '"',
        "&#39;": "'",
        "&apos;": "'",
        "&amp;": "&",
    }
    ENTITY_PATTERN = re.compile("|".join(re.escape(k) for k in ENTITIES), re.IGNORECASE)

    def __init__(self, max_length: Optional[int] = 16000):
        """
        初始化精简器

        Args:
            max_length: 最大文本长度 (None = 不截断)
        """
        self.max_length = max_length

    def _decode_entities(self, text: str) -> str:
        # 单次扫描, "&amp;lt;" 只解码一层
        return self.ENTITY_PATTERN.sub(lambda m: self.ENTITIES[m.group(0).lower()], text)

    def reduce(self, html: str) -> str:
        """
        HTML 转纯文本

        Args:
            html: 原始 HTML

        Returns:
            精简后的文本, 可能为空字符串
        """
        if not html:
            return ""

        text = self.BLOCK_PATTERN.sub(" ", html)
        text = self.COMMENT_PATTERN.sub(" ", text)
        text = self.TAG_PATTERN.sub(" ", text)
        text = self._decode_entities(text)
        text = self.MULTIPLE_SPACES.sub(" ", text).strip()

        if self.max_length and len(text) > self.max_length:
            text = text[: self.max_length]

        return text


_default_reducer = HtmlTextReducer()


def html_to_text(html: str, max_length: Optional[int] = None) -> str:
    """便捷函数：HTML 转纯文本"""
    if max_length is not None:
        return HtmlTextReducer(max_length=max_length).reduce(html)
    return _default_reducer.reduce(html)
