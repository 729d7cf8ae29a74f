"""Typed parameter object for provider construction.

Purpose
-------
Capture the common construction parameters of a local backend client in one
validated object so the factory and the manager can pass configuration
around without long argument lists.

External dependencies
---------------------
- Pydantic v2 ``BaseModel`` for validation and ``.model_dump()``.

Notes
-----
- Pure data container: no I/O. ``None`` fields defer to the layered
  configuration (config file, environment, built-in defaults).
"""
from __future__ import annotations

from typing import Any, Dict, Optional

from pydantic import BaseModel, Field


class AdapterParams(BaseModel):
    """Common provider construction parameters.

    Attributes
    ----------
    provider:
        Provider name (``"ollama"``, ``"lm-studio"``). Optional so call sites
        that already pass the name separately can omit it.
    base_url:
        Backend root URL override.
    timeout_seconds:
        Per-call timeout override in seconds.
    max_retries:
        Total attempts per call for transport-level failures.
    extra:
        Free-form constructor kwargs forwarded as-is (e.g. a test transport).
    """

    provider: Optional[str] = None
    base_url: Optional[str] = None
    timeout_seconds: Optional[float] = Field(default=None, gt=0)
    max_retries: Optional[int] = Field(default=None, ge=1)
    extra: Dict[str, Any] = Field(default_factory=dict)

    def to_kwargs(self) -> Dict[str, Any]:
        """Return constructor kwargs for :class:`BaseLocalProvider` subclasses."""
        kwargs: Dict[str, Any] = {}
        if self.base_url is not None:
            kwargs["base_url"] = self.base_url
        if self.timeout_seconds is not None:
            kwargs["timeout"] = self.timeout_seconds
        if self.max_retries is not None:
            kwargs["max_retries"] = self.max_retries
        kwargs.update(self.extra)
        return kwargs


__all__ = ["AdapterParams"]
