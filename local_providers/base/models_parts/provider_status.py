"""
ProviderStatus DTO: a best-effort snapshot of a backend's health.
"""
from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class ProviderStatus:
    running: bool
    version: Optional[str] = None
    loaded_model: Optional[str] = None
    models_count: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


__all__ = ["ProviderStatus"]
