"""Shared wire-format helpers for the backend client tests.

Exports:
    - ndjson(*frames) / event_stream(*frames, done=True): encode bodies
    - Recorder: handler wrapper that keeps the requests it saw
    - routes(table): ``{"METHOD /path": response}`` handler
    - chunked(parts) / hanging(parts): async bodies delivered in pieces
"""
from __future__ import annotations

import asyncio
import json
from typing import Any, Callable, Dict, Iterable

import httpx


def ndjson(*frames: Dict[str, Any]) -> bytes:
    """Encode frames as newline-delimited JSON."""
    return b"".join(json.dumps(f).encode() + b"\n" for f in frames)


def event_stream(*frames: Dict[str, Any], done: bool = True) -> bytes:
    """Encode frames as ``data:`` lines, optionally followed by the sentinel."""
    body = b"".join(b"data: " + json.dumps(f).encode() + b"\n\n" for f in frames)
    return body + (b"data: [DONE]\n\n" if done else b"")


class Recorder:
    """Wrap a handler and keep the requests it saw."""

    def __init__(self, handler: Callable[[httpx.Request], Any]) -> None:
        self.handler = handler
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request):
        self.requests.append(request)
        return self.handler(request)

    @property
    def paths(self) -> list[str]:
        return [r.url.path for r in self.requests]

    def body(self, index: int = -1) -> Dict[str, Any]:
        return json.loads(self.requests[index].content or b"{}")


def routes(table: Dict[str, Any]) -> Callable[[httpx.Request], Any]:
    """Build a handler from ``{"METHOD /path": response-or-callable}``."""

    def _handler(request: httpx.Request):
        key = f"{request.method} {request.url.path}"
        if key not in table:
            return httpx.Response(404, json={"error": f"no route {key}"})
        target = table[key]
        return target(request) if callable(target) else target

    return _handler


def chunked(parts: Iterable[bytes]):
    """Async byte stream delivering ``parts`` as separate body reads."""

    async def _gen():
        for part in parts:
            yield part

    return _gen()


def hanging(parts: Iterable[bytes]):
    """Async byte stream that delivers ``parts`` and then never ends."""

    async def _gen():
        for part in parts:
            yield part
        await asyncio.Event().wait()
        yield b""  # pragma: no cover

    return _gen()
