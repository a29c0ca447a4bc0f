"""
LLM Module
上游模型调用抽象层
"""
from .base import (
    BaseLLM,
    LLMResponse,
    Message,
    MessageRole,
    audio_file_extension,
    extract_answer,
)
from .openai_llm import OpenAILLM
from .factory import get_llm

__all__ = [
    "BaseLLM",
    "LLMResponse",
    "Message",
    "MessageRole",
    "OpenAILLM",
    "audio_file_extension",
    "extract_answer",
    "get_llm",
]
