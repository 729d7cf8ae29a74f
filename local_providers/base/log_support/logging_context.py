"""Per-call context attached to every structured log event.

One :class:`LogContext` is built when a call is registered and passed to
every event that call emits, so ``start``/``end``/``error`` lines can be
joined on ``request_id``.
"""
from __future__ import annotations

from dataclasses import dataclass, fields
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class LogContext:
    provider: Optional[str] = None
    model: Optional[str] = None
    request_id: Optional[str] = None
    operation: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Set fields only; unset ones are left out of the event."""
        return {f.name: getattr(self, f.name) for f in fields(self) if getattr(self, f.name) is not None}


__all__ = ["LogContext"]
