"""Per-client registry of in-flight requests.

Lifecycle of one entry::

    Created (id generated, handle registered)
      -> InFlight (handle passed to the transport)
      -> Completed | Failed | Cancelled (entry removed in every case)

``track`` guarantees the removal on every exit path. ``cancel`` removes the
entry before triggering the handle, so the id is gone from the registry as
soon as ``cancel`` returns. Guarded by a re-entrant lock so registration and
removal stay consistent whether callers share one event loop or several
threads.
"""

from __future__ import annotations

import uuid
from contextlib import contextmanager
from threading import RLock
from typing import Dict, Iterator, List, Optional

from ..cancellation import CancellationToken
from ..errors import InvalidRequestError
from .in_flight_request import InFlightRequest


def new_request_id() -> str:
    """Return a fresh request id."""
    return uuid.uuid4().hex


class RequestRegistry:
    """Map of request id -> :class:`InFlightRequest` owned by one client instance."""

    def __init__(self, provider: str = "local") -> None:
        self._provider = provider
        self._entries: Dict[str, InFlightRequest] = {}
        self._lock = RLock()

    def register(self, operation: str, request_id: Optional[str] = None) -> InFlightRequest:
        """Create and register an entry; a supplied id must not be in flight already."""
        rid = request_id or new_request_id()
        with self._lock:
            if rid in self._entries:
                raise InvalidRequestError(
                    f"request id {rid!r} is already in flight", provider=self._provider
                )
            entry = InFlightRequest(
                request_id=rid,
                operation=operation,
                token=CancellationToken(provider=self._provider),
            )
            self._entries[rid] = entry
        return entry

    def release(self, request_id: str, entry: Optional[InFlightRequest] = None) -> None:
        """Remove an entry (no-op when already removed).

        When ``entry`` is given, only that exact record is removed, so a late
        release never evicts a newer call that reused the id.
        """
        with self._lock:
            current = self._entries.get(request_id)
            if current is not None and (entry is None or current is entry):
                del self._entries[request_id]

    @contextmanager
    def track(self, operation: str, request_id: Optional[str] = None) -> Iterator[InFlightRequest]:
        """Register for the duration of the block; released on any outcome."""
        entry = self.register(operation, request_id)
        try:
            yield entry
        finally:
            self.release(entry.request_id, entry)

    def cancel(self, request_id: str, reason: str | None = None) -> bool:
        """Abort one registered call. Returns False if it had already settled."""
        with self._lock:
            entry = self._entries.pop(request_id, None)
        if entry is None:
            return False
        entry.token.cancel(reason or "cancelled by caller")
        return True

    def cancel_all(self, reason: str | None = None) -> int:
        """Abort every registered call, clear the map, and return how many were aborted."""
        with self._lock:
            entries = list(self._entries.values())
            self._entries.clear()
        for entry in entries:
            entry.token.cancel(reason or "cancelled by caller")
        return len(entries)

    def get(self, request_id: str) -> Optional[InFlightRequest]:
        with self._lock:
            return self._entries.get(request_id)

    def active_ids(self) -> List[str]:
        with self._lock:
            return list(self._entries)

    def __contains__(self, request_id: object) -> bool:
        with self._lock:
            return request_id in self._entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


__all__ = ["RequestRegistry", "new_request_id"]
