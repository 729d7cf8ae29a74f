"""
Provider-agnostic interfaces for the providers layer.

Re-exports the Protocols kept in single-class modules under
``local_providers.base.interfaces_parts`` while keeping imports stable.
"""

from __future__ import annotations

from .interfaces_parts import LocalLLMProvider, ProgressSink

__all__ = [
    "LocalLLMProvider",
    "ProgressSink",
]
