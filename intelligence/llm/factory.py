"""
LLM Factory
工厂函数 - 根据配置自动创建 LLM 实例
"""
from typing import Optional
import logging

from .base import BaseLLM
from .openai_llm import OpenAILLM


logger = logging.getLogger(__name__)


def get_llm(
    provider: str = "openai",
    model: Optional[str] = None,
    **kwargs,
) -> BaseLLM:
    """
    获取 LLM 实例

    自动从环境变量 / .env 读取配置，也可手动指定

    Args:
        provider: LLM 供应商 (目前仅 openai)
        model: 模型名称 (不传则使用配置或默认值)
        **kwargs: 额外参数 (api_key, base_url, timeout 等)

    Returns:
        BaseLLM 实例

    Example:
        llm = get_llm()
        llm = get_llm(model="gpt-4o")
    """
    from config import get_openai_settings

    settings = get_openai_settings()

    if provider != "openai":
        raise ValueError(f"Unsupported LLM provider: {provider}")

    model = model or settings.model

    return OpenAILLM(
        model=model,
        api_key=kwargs.pop("api_key", None) or settings.api_key,
        base_url=kwargs.pop("base_url", None) or settings.base_url,
        transcribe_model=kwargs.pop("transcribe_model", None) or settings.transcribe_model,
        timeout=kwargs.pop("timeout", None) or settings.timeout,
        **kwargs,
    )
