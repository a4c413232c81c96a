from typing import List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator


DEFAULT_TEMPERATURE = 0.7


class ChatMessage(BaseModel):
    model_config = ConfigDict(extra="ignore")

    role: str
    content: Optional[str] = None

    @field_validator("content", mode="before")
    @classmethod
    def _null_content_is_empty(cls, value):
        return "" if value is None else value


class ChatCompletionRequest(BaseModel):
    model_config = ConfigDict(extra="ignore")

    model: str
    messages: List[ChatMessage]
    temperature: Optional[float] = None
    top_p: Optional[float] = None
    max_tokens: Optional[int] = None
    stop: Optional[Union[str, List[str]]] = None
    stream: bool = False

    @field_validator("stream", mode="before")
    @classmethod
    def _only_literal_true_streams(cls, value):
        return value is True


class Part(BaseModel):
    text: str


class Content(BaseModel):
    role: str = Field(..., pattern="^(user|model)$")
    parts: List[Part]


class GenerationConfig(BaseModel):
    temperature: float = DEFAULT_TEMPERATURE
    topP: Optional[float] = None
    maxOutputTokens: Optional[int] = None
    stopSequences: Optional[List[str]] = None


class GenerateContentRequest(BaseModel):
    contents: List[Content]
    generationConfig: GenerationConfig


class ChatCompletionMessage(BaseModel):
    role: str = "assistant"
    content: str


class ChatCompletionChoice(BaseModel):
    index: int = 0
    message: ChatCompletionMessage
    finish_reason: str = "stop"


class Usage(BaseModel):
    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0


class ChatCompletionResponse(BaseModel):
    id: str
    object: str = "chat.completion"
    created: int
    model: str
    choices: List[ChatCompletionChoice]
    usage: Usage = Field(default_factory=Usage)
