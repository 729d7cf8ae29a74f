"""Cooperative cancellation token implementation.

Exposes the ``CancellationToken`` class used as the cancellation handle of an
in-flight request. Awaiting code registers callbacks (typically
``task.cancel``) so that triggering the token interrupts the pending await.
"""

from __future__ import annotations

import asyncio
from threading import Lock
from typing import Callable, List

from .state import State
from .cancelled_error import CancelledError

CancelCallback = Callable[[], object]


class CancellationToken:
    """A cancellation handle for one in-flight call.

    Thread-safe for ``cancel`` + callback registration. Callbacks run once, in
    registration order, on the thread that calls ``cancel``.
    """

    def __init__(self, *, provider: str = "local") -> None:
        self._state = State()
        self._lock = Lock()
        self._callbacks: List[CancelCallback] = []
        self._event = asyncio.Event()
        self._provider = provider

    @property
    def cancelled(self) -> bool:  # noqa: D401 - short form
        """Whether cancellation has been requested."""
        return self._state.cancelled

    @property
    def reason(self) -> str | None:  # noqa: D401 - short form
        """Reason string supplied at cancel time (if any)."""
        return self._state.reason

    def cancel(self, reason: str | None = None) -> None:
        """Request cancellation and fire registered callbacks (idempotent)."""
        with self._lock:
            if self._state.cancelled:
                return
            self._state.cancelled = True
            self._state.reason = reason
            callbacks = list(self._callbacks)
            self._callbacks.clear()
        self._event.set()
        for callback in callbacks:
            callback()

    def on_cancel(self, callback: CancelCallback) -> Callable[[], None]:
        """Register ``callback`` to run on cancellation; returns a remover.

        When the token is already cancelled the callback runs immediately.
        """
        with self._lock:
            run_now = self._state.cancelled
            if not run_now:
                self._callbacks.append(callback)
        if run_now:
            callback()

        def _remove() -> None:
            with self._lock:
                if callback in self._callbacks:
                    self._callbacks.remove(callback)

        return _remove

    def raise_if_cancelled(self) -> None:
        """Raise ``CancelledError`` if token is cancelled."""
        if self._state.cancelled:
            raise CancelledError(self._state.reason or "operation cancelled", provider=self._provider)

    async def wait(self) -> None:
        """Suspend until the token is cancelled."""
        await self._event.wait()

    def __repr__(self) -> str:  # pragma: no cover - introspection aid
        return (
            f"CancellationToken(cancelled={self._state.cancelled}, "
            f"reason={self._state.reason!r}, callbacks={len(self._callbacks)})"
        )


__all__ = ["CancellationToken"]
