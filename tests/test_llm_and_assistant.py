from __future__ import annotations

import base64

import pytest

from conftest import FakeLLM
from intelligence import Assistant
from intelligence.llm import OpenAILLM, audio_file_extension, extract_answer, get_llm
from intelligence.prompts import TRUSTED_SOURCES
from utils.exceptions import ConfigurationError, ValidationError


def test_extract_answer_prefers_top_level_text() -> None:
    payload = {
        "output_text": "  direct answer ",
        "output": [{"content": [{"type": "output_text", "text": "nested"}]}],
    }
    assert extract_answer(payload) == "direct answer"


def test_extract_answer_scans_output_items() -> None:
    payload = {
        "output_text": "",
        "output": [
            {"type": "reasoning", "content": None},
            {"content": [{"type": "refusal", "text": "no"}, {"type": "output_text", "text": "  "}]},
            {"content": [{"type": "output_text", "text": "found it"}]},
        ],
    }
    assert extract_answer(payload) == "found it"


@pytest.mark.parametrize("payload", [{}, {"output": "bad"}, None, {"output": [{"content": []}]}])
def test_extract_answer_defaults_to_empty(payload) -> None:
    assert extract_answer(payload) == ""


@pytest.mark.parametrize(
    "mime, ext",
    [
        ("audio/webm;codecs=opus", "webm"),
        ("audio/mp4", "m4a"),
        ("audio/x-m4a", "m4a"),
        ("audio/mpeg", "mp3"),
        ("audio/wav", "wav"),
        ("audio/ogg", "ogg"),
        ("", "webm"),
    ],
)
def test_audio_file_extension(mime: str, ext: str) -> None:
    assert audio_file_extension(mime) == ext


@pytest.mark.asyncio
async def test_openai_without_key_is_configuration_error() -> None:
    llm = OpenAILLM(api_key=None)

    with pytest.raises(ConfigurationError):
        await llm.achat("hello")
    with pytest.raises(ConfigurationError):
        await llm.atranscribe(b"\x00\x01")


def test_factory_rejects_unknown_provider() -> None:
    with pytest.raises(ValueError):
        get_llm(provider="nope")


@pytest.mark.asyncio
async def test_ask_relays_question() -> None:
    llm = FakeLLM(responder=lambda system, user: f"answer to {user}")

    result = await Assistant(llm).ask("  What happened?  ")

    assert result == {"answer": "answer to What happened?"}
    system, _ = llm.calls[0]
    assert "Do not mention underlying model" in system


@pytest.mark.asyncio
async def test_ask_placeholder_for_empty_answer() -> None:
    result = await Assistant(FakeLLM(responder=lambda s, u: "")).ask("q")
    assert result == {"answer": "No answer text returned."}


@pytest.mark.asyncio
@pytest.mark.parametrize("question", ["", "   ", None])
async def test_ask_requires_question(question) -> None:
    llm = FakeLLM()
    with pytest.raises(ValidationError) as exc_info:
        await Assistant(llm).ask(question)
    assert exc_info.value.message == "Question is required."
    assert llm.calls == []


@pytest.mark.asyncio
async def test_categorize_defaults_to_trusted_sources() -> None:
    llm = FakeLLM(responder=lambda s, u: "### Clustered Source Views")

    result = await Assistant(llm).categorize("Why?", selected_sources=[" ", 3])

    assert result == {"categorized": "### Clustered Source Views"}
    _, user = llm.calls[0]
    assert f"{len(TRUSTED_SOURCES)}. {TRUSTED_SOURCES[-1]}" in user
    assert "No pre-generated answer was provided" in user


@pytest.mark.asyncio
async def test_categorize_uses_selected_sources_and_answer() -> None:
    llm = FakeLLM(responder=lambda s, u: "")

    result = await Assistant(llm).categorize("Why?", answer="Because.", selected_sources=["BBC", " NPR "])

    assert result == {"categorized": "No categorized output returned."}
    _, user = llm.calls[0]
    assert "1. BBC\n2. NPR" in user
    assert "Current answer to categorize:\nBecause." in user


@pytest.mark.asyncio
async def test_transcribe_decodes_audio() -> None:
    llm = FakeLLM()
    encoded = base64.b64encode(b"fake-audio").decode("ascii")

    result = await Assistant(llm).transcribe(encoded, "audio/mp4")

    assert result == {"transcript": "hello world"}
    assert llm.transcriptions == [(b"fake-audio", "audio/mp4")]


@pytest.mark.asyncio
async def test_transcribe_defaults_mime_type() -> None:
    llm = FakeLLM()
    await Assistant(llm).transcribe(base64.b64encode(b"x").decode("ascii"))
    assert llm.transcriptions[0][1] == "audio/webm"


@pytest.mark.asyncio
@pytest.mark.parametrize("payload, message", [("", "audioBase64 is required."), ("====", "Decoded audio content is empty.")])
async def test_transcribe_rejects_missing_audio(payload: str, message: str) -> None:
    with pytest.raises(ValidationError) as exc_info:
        await Assistant(FakeLLM()).transcribe(payload)
    assert exc_info.value.message == message
