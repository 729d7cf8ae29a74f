"""Protocol parts; import from ``local_providers.base.interfaces`` instead."""

from .local_llm_provider import LocalLLMProvider, ProgressSink

__all__ = ["LocalLLMProvider", "ProgressSink"]
