"""Small presentation helpers."""

from .format import format_bytes, format_percent

__all__ = ["format_bytes", "format_percent"]
