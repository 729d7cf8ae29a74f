"""Pydantic models for the OpenAI-compatible wire format served by LM Studio."""

from __future__ import annotations

from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class _Wire(BaseModel):
    model_config = ConfigDict(extra="ignore")


class ModelEntry(_Wire):
    id: str
    owned_by: Optional[str] = None


class ModelsResponse(_Wire):
    """Body of ``GET /models``."""

    data: List[ModelEntry] = Field(default_factory=list)


class Usage(_Wire):
    prompt_tokens: Optional[int] = None
    completion_tokens: Optional[int] = None


class WireMessage(_Wire):
    role: str = "assistant"
    content: Optional[str] = None


class Choice(_Wire):
    message: Optional[WireMessage] = None
    finish_reason: Optional[str] = None


class ChatCompletion(_Wire):
    """Single-shot body of ``POST /chat/completions``."""

    model: str = ""
    choices: List[Choice] = Field(default_factory=list)
    usage: Optional[Usage] = None


class Delta(_Wire):
    content: Optional[str] = None


class StreamChoice(_Wire):
    delta: Optional[Delta] = None
    finish_reason: Optional[str] = None


class ChatCompletionChunk(_Wire):
    """One ``data:`` frame of a streamed completion."""

    model: str = ""
    choices: List[StreamChoice] = Field(default_factory=list)
    usage: Optional[Usage] = None
    error: Optional[Any] = None


class EmbeddingItem(_Wire):
    embedding: List[float] = Field(default_factory=list)
    index: int = 0


class EmbeddingsResponse(_Wire):
    """Body of ``POST /embeddings``."""

    data: List[EmbeddingItem] = Field(default_factory=list)


__all__ = [
    "ModelEntry",
    "ModelsResponse",
    "Usage",
    "WireMessage",
    "Choice",
    "ChatCompletion",
    "Delta",
    "StreamChoice",
    "ChatCompletionChunk",
    "EmbeddingItem",
    "EmbeddingsResponse",
]
