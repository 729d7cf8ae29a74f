"""
PullProgress DTO emitted while a model download is in progress.
"""
from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class PullProgress:
    """One progress event of a model pull.

    Attributes:
        status: Backend status label (e.g., ``"pulling manifest"``, ``"success"``).
        completed: Bytes downloaded so far for ``digest`` (0 when not applicable).
        total: Total bytes for ``digest`` (0 when not applicable).
        digest: Layer digest the byte counts refer to, if any.
    """

    status: str
    completed: int = 0
    total: int = 0
    digest: Optional[str] = None

    @property
    def percent(self) -> Optional[float]:
        """Completion percentage for the current digest, when computable."""
        if self.total <= 0:
            return None
        return round(min(self.completed, self.total) * 100.0 / self.total, 1)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


__all__ = ["PullProgress"]
