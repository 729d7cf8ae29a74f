"""Stream consumption helpers.

Keeps stream-level conveniences separate from the per-chunk DTO and from the
wire decoders.
"""

from __future__ import annotations

from typing import AsyncIterable, List, Optional

from ..models import ChatMessage, ChatResponse, StreamChunk, TokenUsage


async def accumulate_chunks(chunks: AsyncIterable[StreamChunk]) -> ChatResponse:
    """Drain a chat stream and fold it into a :class:`ChatResponse`.

    - Concatenates text deltas in arrival order.
    - Usage and finish reason come from the terminal chunk.
    - A stream that ends without a terminal chunk (cancellation) yields the
      text received so far with zero usage and finish reason ``stop``.
    """
    parts: List[str] = []
    model = ""
    terminal: Optional[StreamChunk] = None
    async for chunk in chunks:
        model = chunk.model or model
        if chunk.delta:
            parts.append(chunk.delta)
        if chunk.done:
            terminal = chunk
    text = "".join(parts)
    usage = terminal.usage if terminal and terminal.usage else TokenUsage()
    finish = terminal.finish_reason if terminal and terminal.finish_reason else "stop"
    return ChatResponse(
        text=text,
        model=model,
        usage=usage,
        finish_reason=finish,
        message=ChatMessage(role="assistant", content=text),
    )


__all__ = ["accumulate_chunks"]
