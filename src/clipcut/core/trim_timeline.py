"""Pure trim-interval and playhead logic on a linear timeline track.

The track maps pointer x-coordinates linearly onto ``[0, duration]``.
Dragging the ``start``/``end`` handles changes the trim interval while
keeping at least ``MIN_TRIM_DURATION`` between them; dragging the
``playhead`` or clicking the track only moves the cursor.

Invalid input (unknown handle, zero-width track, unknown duration) is a
silent no-op: the incoming state is returned unchanged.
"""

from __future__ import annotations

from clipcut.core import playback_sync
from clipcut.core.models import (
    MIN_TRIM_DURATION,
    TrackRect,
    TrimDragResult,
    TrimDragState,
    TrimInterval,
)


# ---------------------------------------------------------------------------
# Position <-> time
# ---------------------------------------------------------------------------

def time_at(pointer_x: float, track: TrackRect, duration: float) -> float | None:
    """Map a pointer x-coordinate to a time, clamped to the track."""
    if track.width <= 0 or not duration > 0:
        return None
    fraction = (pointer_x - track.left) / track.width
    return max(0.0, min(1.0, fraction)) * duration


def hover_time(pointer_x: float, track: TrackRect, duration: float) -> float | None:
    """Preview the time under the pointer without touching any state.

    Returns ``None`` when the pointer lies outside the track.
    """
    offset = pointer_x - track.left
    if offset < 0 or offset > track.width:
        return None
    return time_at(pointer_x, track, duration)


# ---------------------------------------------------------------------------
# Gestures
# ---------------------------------------------------------------------------

def on_track_click(pointer_x: float, track: TrackRect, duration: float) -> float | None:
    """Seek target for a click on the track.  Clicks never trim."""
    return time_at(pointer_x, track, duration)


def on_drag(
    handle: str,
    pointer_x: float,
    track: TrackRect,
    state: TrimDragState,
) -> TrimDragResult:
    """Apply one pointer-move step of a trim or playhead drag."""
    unchanged = TrimDragResult(state.trim, state.cursor)
    if state.duration < MIN_TRIM_DURATION:
        return unchanged

    time = time_at(pointer_x, track, state.duration)
    if time is None:
        return unchanged

    trim = state.trim
    if handle == "playhead":
        return TrimDragResult(trim, playback_sync.clamp_seek(time, trim))

    if handle == "start":
        start = max(0.0, min(trim.end - MIN_TRIM_DURATION, time))
        trim = TrimInterval(start, trim.end)
    elif handle == "end":
        end = max(trim.start + MIN_TRIM_DURATION, min(state.duration, time))
        trim = TrimInterval(trim.start, end)
    else:
        return unchanged

    return TrimDragResult(trim, playback_sync.clamp_seek(state.cursor, trim))


# ---------------------------------------------------------------------------
# Direct edits
# ---------------------------------------------------------------------------

def full_interval(duration: float) -> TrimInterval | None:
    """The untrimmed interval, or ``None`` while the duration is unknown."""
    if not duration > 0:
        return None
    return TrimInterval(0.0, duration)


def clamp_interval(start: float, end: float, duration: float) -> TrimInterval | None:
    """Fit a requested ``[start, end]`` into ``[0, duration]``.

    The end point wins when the two collide; the start is pulled back to
    keep ``MIN_TRIM_DURATION``.  Durations shorter than the minimum
    yield the full interval.
    """
    if not duration > 0:
        return None
    if duration < MIN_TRIM_DURATION:
        return TrimInterval(0.0, duration)

    end = max(MIN_TRIM_DURATION, min(duration, end))
    start = max(0.0, min(end - MIN_TRIM_DURATION, start))
    return TrimInterval(start, end)
