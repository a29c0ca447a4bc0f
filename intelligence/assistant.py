"""Question answering, source categorization and audio transcription."""

from __future__ import annotations

import base64
import binascii
import logging
from typing import Any, Dict, Iterable, Optional

from utils.exceptions import ValidationError

from .llm import BaseLLM
from .prompts import (
    ASK_SYSTEM_PROMPT,
    CATEGORIZATION_SYSTEM_PROMPT,
    TRUSTED_SOURCES,
    build_categorize_prompt,
)


logger = logging.getLogger(__name__)


class Assistant:
    """Thin relay operations over the upstream model."""

    def __init__(self, llm: BaseLLM) -> None:
        self._llm = llm

    async def ask(self, question: Any) -> Dict[str, str]:
        normalized = str(question or "").strip()
        if not normalized:
            raise ValidationError("Question is required.")

        answer = await self._llm.achat(normalized, system_prompt=ASK_SYSTEM_PROMPT)
        return {"answer": answer or "No answer text returned."}

    async def categorize(
        self,
        question: Any,
        answer: Any = None,
        selected_sources: Optional[Iterable[Any]] = None,
    ) -> Dict[str, str]:
        normalized_question = str(question or "").strip()
        normalized_answer = str(answer or "").strip()
        if not normalized_question:
            raise ValidationError("Question is required.")

        chosen = [
            item.strip()
            for item in (selected_sources or [])
            if isinstance(item, str) and item.strip()
        ]
        effective_sources = chosen or list(TRUSTED_SOURCES)

        categorized = await self._llm.achat(
            build_categorize_prompt(normalized_question, normalized_answer, effective_sources),
            system_prompt=CATEGORIZATION_SYSTEM_PROMPT,
        )
        return {"categorized": categorized or "No categorized output returned."}

    async def transcribe(self, audio_base64: Any, mime_type: Any = None) -> Dict[str, str]:
        encoded = str(audio_base64 or "").strip()
        mime = str(mime_type or "audio/webm").strip() or "audio/webm"
        if not encoded:
            raise ValidationError("audioBase64 is required.")

        try:
            audio = base64.b64decode(encoded, validate=False)
        except (binascii.Error, ValueError):
            raise ValidationError("audioBase64 is not valid base64.")
        if not audio:
            raise ValidationError("Decoded audio content is empty.")

        transcript = await self._llm.atranscribe(audio, mime_type=mime)
        logger.debug(f"Transcribed {len(audio)} bytes ({mime}) -> {len(transcript)} chars")
        return {"transcript": transcript or ""}
