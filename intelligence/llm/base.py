"""
Base LLM
LLM 抽象基类
"""
from abc import ABC, abstractmethod
from typing import List, Optional, Dict, Any
from dataclasses import dataclass
from enum import Enum


class MessageRole(str, Enum):
    """消息角色"""
    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"


@dataclass
class Message:
    """对话消息"""
    role: MessageRole
    content: str

    def to_dict(self) -> Dict[str, Any]:
        """转换为字典 (用于 API 调用)"""
        return {"role": self.role.value, "content": self.content}

    @classmethod
    def system(cls, content: str) -> "Message":
        return cls(role=MessageRole.SYSTEM, content=content)

    @classmethod
    def user(cls, content: str) -> "Message":
        return cls(role=MessageRole.USER, content=content)


@dataclass
class LLMResponse:
    """LLM 响应"""
    content: str
    model: str


def extract_answer(payload: Dict[str, Any]) -> str:
    """
    从 Responses API 的 JSON 中取出回答文本

    优先取顶层 output_text, 否则扫描 output[].content[] 中第一个
    type == "output_text" 的非空片段; 都没有时返回空字符串
    """
    if not isinstance(payload, dict):
        return ""

    direct = payload.get("output_text")
    if isinstance(direct, str) and direct.strip():
        return direct.strip()

    output = payload.get("output")
    if isinstance(output, list):
        for item in output:
            content = item.get("content") if isinstance(item, dict) else None
            if not isinstance(content, list):
                continue
            for part in content:
                if not isinstance(part, dict) or part.get("type") != "output_text":
                    continue
                text = part.get("text")
                if isinstance(text, str) and text.strip():
                    return text.strip()

    return ""


def audio_file_extension(mime_type: Optional[str]) -> str:
    """根据 MIME 类型推断录音文件扩展名"""
    if not mime_type:
        return "webm"
    mime = mime_type.lower()
    if "mp4" in mime or "m4a" in mime:
        return "m4a"
    if "mpeg" in mime or "mp3" in mime:
        return "mp3"
    if "wav" in mime:
        return "wav"
    if "ogg" in mime:
        return "ogg"
    return "webm"


class BaseLLM(ABC):
    """
    LLM 抽象基类

    所有 LLM 供应商实现需继承此类
    """

    def __init__(
        self,
        model: str,
        timeout: float = 60.0,
        **kwargs,
    ):
        self.model = model
        self.timeout = timeout
        self.extra_config = kwargs

    @property
    @abstractmethod
    def provider(self) -> str:
        """返回供应商名称"""
        pass

    @abstractmethod
    async def acomplete(self, messages: List[Message], **kwargs) -> LLMResponse:
        """
        异步生成响应

        Args:
            messages: 对话消息列表
            **kwargs: 额外参数

        Returns:
            LLMResponse
        """
        pass

    @abstractmethod
    async def atranscribe(self, audio: bytes, mime_type: str = "audio/webm") -> str:
        """
        语音转写

        Args:
            audio: 原始音频字节
            mime_type: 音频 MIME 类型

        Returns:
            转写文本 (可能为空字符串)
        """
        pass

    async def achat(self, user_message: str, system_prompt: Optional[str] = None) -> str:
        """异步简单对话接口"""
        messages = []
        if system_prompt:
            messages.append(Message.system(system_prompt))
        messages.append(Message.user(user_message))

        response = await self.acomplete(messages)
        return response.content

    async def aclose(self) -> None:
        """
        关闭底层客户端资源（默认 no-op）。
        """
        return None

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(model={self.model}, provider={self.provider})"
