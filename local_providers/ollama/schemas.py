"""Pydantic models for the native Ollama wire format.

Only the fields the client reads are declared; everything else the daemon
sends is ignored so newer server versions keep validating.
"""

from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


class _Wire(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class TagDetails(_Wire):
    format: Optional[str] = None
    family: Optional[str] = None
    parameter_size: Optional[str] = None
    quantization_level: Optional[str] = None


class TagModel(_Wire):
    name: str
    model: Optional[str] = None
    size: int = 0
    digest: str = ""
    modified_at: str = ""
    details: Optional[TagDetails] = None


class TagsResponse(_Wire):
    """Body of ``GET /api/tags`` (also ``GET /api/ps``)."""

    models: List[TagModel] = Field(default_factory=list)


class WireMessage(_Wire):
    role: str = "assistant"
    content: str = ""


class ChatFrame(_Wire):
    """One ``/api/chat`` body: a whole response or one NDJSON stream frame."""

    model: str = ""
    message: Optional[WireMessage] = None
    done: bool = False
    done_reason: Optional[str] = None
    prompt_eval_count: Optional[int] = None
    eval_count: Optional[int] = None
    error: Optional[str] = None

    @model_validator(mode="after")
    def _require_chat_fields(self) -> "ChatFrame":
        # A frame carries at least one of these; anything else is not a chat frame.
        if not {"message", "done", "error"} & self.model_fields_set:
            raise ValueError("frame has none of message, done, error")
        return self


class PullFrame(_Wire):
    """One NDJSON frame of ``POST /api/pull``."""

    status: str = ""
    digest: Optional[str] = None
    total: Optional[int] = None
    completed: Optional[int] = None
    error: Optional[str] = None


class EmbedResponse(_Wire):
    """Body of ``POST /api/embed``; older daemons answer with ``embedding``."""

    embeddings: List[List[float]] = Field(default_factory=list)
    embedding: List[float] = Field(default_factory=list)


class VersionResponse(_Wire):
    version: Optional[str] = None


__all__ = [
    "TagDetails",
    "TagModel",
    "TagsResponse",
    "WireMessage",
    "ChatFrame",
    "PullFrame",
    "EmbedResponse",
    "VersionResponse",
]
