"""Human-readable formatting helpers for sizes and progress."""

from __future__ import annotations

from typing import Optional

_UNITS = ("B", "KB", "MB", "GB", "TB")


def format_bytes(num_bytes: int, decimals: int = 1) -> str:
    """Render a byte count with a 1024 base, e.g. ``4.7 GB``.

    Values below 1 KB are printed as whole bytes; negative input is treated
    as zero. The largest unit is TB.
    """
    value = float(max(int(num_bytes or 0), 0))
    if value < 1024:
        return f"{int(value)} B"
    unit = 0
    while value >= 1024 and unit < len(_UNITS) - 1:
        value /= 1024
        unit += 1
    return f"{value:.{decimals}f} {_UNITS[unit]}"


def format_percent(value: Optional[float]) -> str:
    """``42.0%`` or ``--`` when the percentage is unknown."""
    return "--" if value is None else f"{value:.1f}%"


__all__ = ["format_bytes", "format_percent"]
