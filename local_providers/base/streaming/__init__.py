"""Streaming package: wire frame decoders and stream consumption helpers."""

from .decoders import EventStreamDecoder, FrameDecoder, NDJSONDecoder
from .streaming import accumulate_chunks

__all__ = [
    "FrameDecoder",
    "NDJSONDecoder",
    "EventStreamDecoder",
    "accumulate_chunks",
]
