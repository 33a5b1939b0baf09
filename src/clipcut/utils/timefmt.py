"""Human-readable time formatting for the timeline and summaries."""

from __future__ import annotations

import math


def format_time(seconds: float) -> str:
    """Render *seconds* as ``MM:SS.d`` (tenths, truncated).

    Negative or non-finite input renders as ``00:00.0``.
    """
    if not math.isfinite(seconds) or seconds < 0:
        return "00:00.0"
    # Nudge so 2.3 stays 23 tenths despite binary rounding.
    tenths_total = int(seconds * 10 + 1e-6)
    minutes, tenths_rest = divmod(tenths_total, 600)
    whole, tenths = divmod(tenths_rest, 10)
    return f"{minutes:02d}:{whole:02d}.{tenths}"


def format_duration(seconds: float) -> str:
    """Render a duration as ``MM:SS``, or ``unknown`` when not positive."""
    if not math.isfinite(seconds) or seconds <= 0:
        return "unknown"
    minutes, rest = divmod(int(seconds), 60)
    return f"{minutes:02d}:{rest:02d}"


def parse_time(text: str) -> float:
    """Parse ``SS``, ``MM:SS`` or ``HH:MM:SS`` (fractions allowed) to seconds.

    Raises
    ------
    ValueError
        When *text* is not a non-negative timestamp.
    """
    parts = text.strip().split(":")
    if not 1 <= len(parts) <= 3 or any(not part for part in parts):
        raise ValueError(f"invalid timestamp: {text!r}")
    seconds = 0.0
    for part in parts:
        value = float(part)
        if not math.isfinite(value) or value < 0:
            raise ValueError(f"invalid timestamp: {text!r}")
        seconds = seconds * 60 + value
    return seconds
