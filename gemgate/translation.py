"""Conversion between the chat-completion dialect and the upstream's native shape."""

from __future__ import annotations

import time
from typing import Any, Optional

from .schemas import (
    DEFAULT_TEMPERATURE,
    ChatCompletionChoice,
    ChatCompletionMessage,
    ChatCompletionRequest,
    ChatCompletionResponse,
    Content,
    GenerateContentRequest,
    GenerationConfig,
    Part,
)

GENERATE_OPERATION = "generateContent"
STREAM_GENERATE_OPERATION = "streamGenerateContent"


def upstream_role(role: str) -> str:
    return "model" if role == "assistant" else "user"


def select_operation(stream: Optional[bool]) -> str:
    return STREAM_GENERATE_OPERATION if stream is True else GENERATE_OPERATION


def build_generate_request(chat: ChatCompletionRequest) -> GenerateContentRequest:
    contents = [
        Content(role=upstream_role(message.role), parts=[Part(text=message.content or "")])
        for message in chat.messages
    ]
    stop = chat.stop
    if isinstance(stop, str):
        stop = [stop]
    config = GenerationConfig(
        temperature=DEFAULT_TEMPERATURE if chat.temperature is None else chat.temperature,
        topP=chat.top_p,
        maxOutputTokens=chat.max_tokens,
        stopSequences=stop or None,
    )
    return GenerateContentRequest(contents=contents, generationConfig=config)


def _first(value: Any) -> Any:
    if isinstance(value, list) and value:
        return value[0]
    return None


def extract_candidate_text(payload: Any) -> str:
    """Text of the first part of the first candidate, or "" when any level is missing."""
    if not isinstance(payload, dict):
        return ""
    candidate = _first(payload.get("candidates"))
    if not isinstance(candidate, dict):
        return ""
    content = candidate.get("content")
    if not isinstance(content, dict):
        return ""
    part = _first(content.get("parts"))
    if not isinstance(part, dict):
        return ""
    text = part.get("text")
    return text if isinstance(text, str) else ""


def build_chat_response(
    request_id: str,
    requested_model: str,
    text: str,
    created: Optional[int] = None,
) -> ChatCompletionResponse:
    return ChatCompletionResponse(
        id=f"chatcmpl-{request_id}",
        created=int(time.time()) if created is None else created,
        model=requested_model,
        choices=[ChatCompletionChoice(message=ChatCompletionMessage(content=text))],
    )
