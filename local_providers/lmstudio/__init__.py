"""OpenAI-compatible (LM Studio) backend client."""

from .client import LMStudioProvider

__all__ = ["LMStudioProvider"]
