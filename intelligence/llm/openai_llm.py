"""
OpenAI LLM
Responses API 文本生成 + 音频转写
"""
from typing import Any, Dict, List, Optional
import logging
import inspect

from utils.exceptions import AIServiceError, ConfigurationError

from .base import BaseLLM, Message, LLMResponse, audio_file_extension, extract_answer


logger = logging.getLogger(__name__)


def _as_dict(response: Any) -> Dict[str, Any]:
    if isinstance(response, dict):
        return response
    dump = getattr(response, "model_dump", None)
    if callable(dump):
        return dump()
    return {}


class OpenAILLM(BaseLLM):
    """
    OpenAI LLM 实现

    - acomplete: POST /v1/responses (system + user)
    - atranscribe: POST /v1/audio/transcriptions

    缺少 API Key 不会在构造时报错, 首次调用时抛出 ConfigurationError
    """

    def __init__(
        self,
        model: str = "gpt-4o-mini",
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        transcribe_model: str = "whisper-1",
        timeout: float = 60.0,
        **kwargs,
    ):
        super().__init__(model, timeout, **kwargs)
        self.api_key = api_key
        self.base_url = base_url
        self.transcribe_model = transcribe_model
        self._async_client = None

    @property
    def provider(self) -> str:
        return "openai"

    def _get_async_client(self):
        """获取异步客户端"""
        if not self.api_key:
            raise ConfigurationError("AI service is not configured.")
        if self._async_client is None:
            from openai import AsyncOpenAI
            self._async_client = AsyncOpenAI(
                api_key=self.api_key,
                base_url=self.base_url,
                timeout=self.timeout,
            )
        return self._async_client

    async def acomplete(self, messages: List[Message], **kwargs) -> LLMResponse:
        """异步生成响应"""
        import openai

        client = self._get_async_client()

        try:
            response = await client.responses.create(
                model=kwargs.get("model", self.model),
                input=[m.to_dict() for m in messages],
            )
        except openai.APIStatusError as exc:
            raise AIServiceError(
                "AI service request failed.",
                details=f"status={exc.status_code} {exc.message}",
                provider=self.provider,
            ) from exc
        except openai.APIError as exc:
            raise AIServiceError(
                "AI service request failed.", details=str(exc), provider=self.provider
            ) from exc

        payload = _as_dict(response)
        return LLMResponse(
            content=extract_answer(payload),
            model=str(payload.get("model") or self.model),
        )

    async def atranscribe(self, audio: bytes, mime_type: str = "audio/webm") -> str:
        """音频转写"""
        import openai

        client = self._get_async_client()
        mime = mime_type or "audio/webm"
        filename = f"recording.{audio_file_extension(mime)}"

        try:
            response = await client.audio.transcriptions.create(
                file=(filename, audio, mime),
                model=self.transcribe_model,
            )
        except openai.APIStatusError as exc:
            raise AIServiceError(
                "AI transcription request failed.",
                details=f"status={exc.status_code} {exc.message}",
                provider=self.provider,
            ) from exc
        except openai.APIError as exc:
            raise AIServiceError(
                "AI transcription request failed.", details=str(exc), provider=self.provider
            ) from exc

        payload = _as_dict(response)
        for key in ("text", "transcript"):
            value = payload.get(key)
            if isinstance(value, str):
                return value.strip()
        return ""

    async def aclose(self) -> None:
        client = self._async_client
        if client is None:
            return
        close_fn = getattr(client, "close", None)
        if callable(close_fn):
            maybe_awaitable = close_fn()
            if inspect.isawaitable(maybe_awaitable):
                await maybe_awaitable
        self._async_client = None
