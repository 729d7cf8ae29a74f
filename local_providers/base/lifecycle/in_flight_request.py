"""In-flight request record stored by the lifecycle registry."""

from __future__ import annotations

import time
from dataclasses import dataclass, field

from ..cancellation import CancellationToken


@dataclass(frozen=True)
class InFlightRequest:
    """One registered call: its id, the operation name, and its cancellation handle."""

    request_id: str
    operation: str
    token: CancellationToken
    started_at: float = field(default_factory=time.monotonic)


__all__ = ["InFlightRequest"]
