"""Frame decoders for the two streaming wire formats.

Purpose:
    Isolate wire framing from chat/pull/embedding logic. A decoder receives
    raw text exactly as it arrives from the response body (arbitrary chunk
    boundaries, possibly splitting a line in two) and returns the JSON
    objects that became complete with that chunk.

Formats:
    - ``NDJSONDecoder``: newline-delimited JSON, one object per line.
    - ``EventStreamDecoder``: ``data:``-prefixed event lines carrying a JSON
      payload, terminated by a sentinel payload (``[DONE]``).

Failure semantics:
    Malformed frames never abort a stream: they are dropped and reported
    through the optional ``on_error(line, exc)`` callback so the caller can
    log them.
"""

from __future__ import annotations

import json
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, List, Optional

Frame = Dict[str, Any]
DecodeErrorHook = Callable[[str, Exception], None]


class FrameDecoder(ABC):
    """Line-buffering base shared by both wire formats."""

    def __init__(self, *, on_error: Optional[DecodeErrorHook] = None) -> None:
        self._buffer = ""
        self._on_error = on_error
        self._finished = False

    @property
    def finished(self) -> bool:
        """True once the decoder has seen an explicit end-of-stream marker."""
        return self._finished

    def feed(self, text: str) -> List[Frame]:
        """Consume a chunk of body text and return the frames it completed."""
        if self._finished or not text:
            return []
        self._buffer += text
        *lines, self._buffer = self._buffer.split("\n")
        return self._decode_lines(lines)

    def flush(self) -> List[Frame]:
        """Decode whatever is left in the buffer once the body has ended."""
        rest, self._buffer = self._buffer, ""
        if self._finished or not rest:
            return []
        return self._decode_lines([rest])

    def _decode_lines(self, lines: List[str]) -> List[Frame]:
        frames: List[Frame] = []
        for raw in lines:
            if self._finished:
                break
            line = raw.rstrip("\r")
            if not line.strip():
                continue
            frame = self._decode_line(line)
            if frame is not None:
                frames.append(frame)
        return frames

    def _parse_json(self, line: str, payload: str) -> Optional[Frame]:
        try:
            obj = json.loads(payload)
        except json.JSONDecodeError as exc:
            self._report(line, exc)
            return None
        if not isinstance(obj, dict):
            self._report(line, ValueError("frame is not a JSON object"))
            return None
        return obj

    def _report(self, line: str, exc: Exception) -> None:
        if self._on_error is not None:
            self._on_error(line, exc)

    @abstractmethod
    def _decode_line(self, line: str) -> Optional[Frame]:
        """Return the frame for one complete, non-blank line (or ``None``)."""


class NDJSONDecoder(FrameDecoder):
    """Newline-delimited JSON: every non-blank line is an independent object."""

    def _decode_line(self, line: str) -> Optional[Frame]:
        return self._parse_json(line, line.strip())


class EventStreamDecoder(FrameDecoder):
    """``data:``-prefixed event frames ending with a sentinel line.

    Lines without the prefix (``event:``, ``id:``, ``:`` comments) carry no
    payload and are ignored. Once the sentinel is seen the decoder is
    finished and discards any further input.
    """

    def __init__(
        self,
        *,
        prefix: str = "data:",
        sentinel: str = "[DONE]",
        on_error: Optional[DecodeErrorHook] = None,
    ) -> None:
        super().__init__(on_error=on_error)
        self._prefix = prefix
        self._sentinel = sentinel

    def _decode_line(self, line: str) -> Optional[Frame]:
        if not line.startswith(self._prefix):
            return None
        payload = line[len(self._prefix):].strip()
        if payload == self._sentinel:
            self._finished = True
            return None
        if not payload:
            return None
        return self._parse_json(line, payload)


__all__ = [
    "Frame",
    "DecodeErrorHook",
    "FrameDecoder",
    "NDJSONDecoder",
    "EventStreamDecoder",
]
