"""
Core provider-agnostic data types.

This module re-exports the dataclasses split into single-purpose modules
under ``local_providers.base.models_parts`` while keeping imports stable for
callers. Every type is created per call and discarded after consumption.
"""

from __future__ import annotations

from .models_parts.chat_options import ChatOptions
from .models_parts.chat_response import (
    ChatResponse,
    FinishReason,
    TokenUsage,
    normalize_finish_reason,
)
from .models_parts.message import ChatMessage, Role
from .models_parts.model_info import ModelDetails, ModelInfo
from .models_parts.provider_status import ProviderStatus
from .models_parts.pull_progress import PullProgress
from .models_parts.stream_chunk import StreamChunk

__all__ = [
    "Role",
    "ChatMessage",
    "ChatOptions",
    "FinishReason",
    "TokenUsage",
    "ChatResponse",
    "StreamChunk",
    "ModelDetails",
    "ModelInfo",
    "PullProgress",
    "ProviderStatus",
    "normalize_finish_reason",
]
