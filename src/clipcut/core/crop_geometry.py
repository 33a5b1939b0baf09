"""Pure crop-rectangle geometry for interactive editing.

Every function here maps ``(state, gesture) -> state``: no I/O, no
mutation, no exceptions for out-of-range input.  A drag can be
constrained but never rejected with an error; at worst a step is
dropped and the gesture's initial rectangle is returned.

Coordinates are source pixels throughout.  Pointer input arrives in
display pixels and goes through :func:`display_to_source_delta` first.

Resize order (enforced by :func:`resize`):

1. **Drive** — pick the dimension moved by the pointer (the larger
   absolute delta for locked corner drags).
2. **Floor** — apply the minimum size.
3. **Bound** — clamp to the frame, keeping the anchor edge/corner fixed.
4. **Re-derive** — recompute the companion dimension from the clamped
   value when an aspect lock is active.
"""

from __future__ import annotations

import math
from dataclasses import replace
from typing import Literal

from clipcut.core.models import MIN_CROP_SIZE, AspectLock, CropRect

_EPSILON: float = 1e-9

# Handle -> (horizontal sign, vertical sign).  +1 moves the right/bottom
# edge, -1 moves the left/top edge, 0 leaves that axis to the lock.
_HANDLE_AXES: dict[str, tuple[int, int]] = {
    "n": (0, -1),
    "s": (0, 1),
    "e": (1, 0),
    "w": (-1, 0),
    "ne": (1, -1),
    "nw": (-1, -1),
    "se": (1, 1),
    "sw": (-1, 1),
}


# ---------------------------------------------------------------------------
# Coordinate conversion
# ---------------------------------------------------------------------------

def display_to_source_delta(
    dx: float,
    dy: float,
    display_width: float,
    source_width: float,
) -> tuple[float, float]:
    """Convert a display-space pointer delta into source pixels.

    Display rendering is aspect-correct, so one uniform scale
    (``display_width / source_width``) covers both axes.  Degenerate
    widths yield a zero delta.
    """
    if display_width <= 0 or source_width <= 0:
        return 0.0, 0.0
    scale = display_width / source_width
    return dx / scale, dy / scale


# ---------------------------------------------------------------------------
# Whole-rectangle constructors
# ---------------------------------------------------------------------------

def full_frame(frame_width: float, frame_height: float) -> CropRect:
    """Rectangle covering the entire frame (the "Original" preset)."""
    return CropRect(0.0, 0.0, float(frame_width), float(frame_height))


def preset_rect(
    ratio: float | None,
    frame_width: float,
    frame_height: float,
) -> CropRect:
    """Largest centered rectangle of *ratio* that fits the frame.

    Wider-than-frame ratios fit to width; all others fit to height.
    ``None`` (or a non-positive ratio) returns the full frame.
    """
    if ratio is None or ratio <= 0:
        return full_frame(frame_width, frame_height)

    if ratio > frame_width / frame_height:
        width = float(frame_width)
        height = frame_width / ratio
    else:
        height = float(frame_height)
        width = frame_height * ratio

    return CropRect(
        (frame_width - width) / 2,
        (frame_height - height) / 2,
        width,
        height,
    )


def clamp_rect(rect: CropRect, frame_width: float, frame_height: float) -> CropRect:
    """Fit an arbitrary requested rectangle inside the frame."""
    width = min(max(rect.width, MIN_CROP_SIZE), frame_width)
    height = min(max(rect.height, MIN_CROP_SIZE), frame_height)
    x = max(0.0, min(rect.x, frame_width - width))
    y = max(0.0, min(rect.y, frame_height - height))
    return CropRect(x, y, width, height)


def set_dimension(
    rect: CropRect,
    dimension: Literal["width", "height"],
    value: float,
    frame_width: float,
    frame_height: float,
) -> CropRect:
    """Apply a typed-in width or height, keeping the origin fixed.

    The value is clamped to ``[MIN_CROP_SIZE, frame - origin]``.  Callers
    are expected to clear any aspect lock afterwards.
    """
    if not math.isfinite(value):
        return rect
    if dimension == "width":
        return replace(rect, width=min(max(value, MIN_CROP_SIZE), frame_width - rect.x))
    if dimension == "height":
        return replace(rect, height=min(max(value, MIN_CROP_SIZE), frame_height - rect.y))
    return rect


# ---------------------------------------------------------------------------
# Drag handling
# ---------------------------------------------------------------------------

def resize(
    initial: CropRect,
    handle: str,
    dx: float,
    dy: float,
    aspect_lock: AspectLock,
    frame_width: float,
    frame_height: float,
) -> CropRect:
    """Compute the rectangle for one pointer-move step of a drag.

    Parameters
    ----------
    initial:
        The rectangle snapshotted when the gesture started.
    handle:
        ``"move"`` or one of the eight edge/corner handles.
    dx, dy:
        Total pointer movement since the gesture started, in source
        pixels.
    aspect_lock:
        Active lock; only a numeric lock constrains resizes.
    frame_width, frame_height:
        Source frame size.

    Returns
    -------
    CropRect
        A rectangle inside the frame with both sides at least
        ``MIN_CROP_SIZE``.  Unknown handles and non-finite deltas return
        *initial* unchanged.
    """
    if not (math.isfinite(dx) and math.isfinite(dy)):
        return initial

    if handle == "move":
        return _move(initial, dx, dy, frame_width, frame_height)

    axes = _HANDLE_AXES.get(handle)
    if axes is None:
        return initial

    ratio = aspect_lock.numeric
    if ratio is None:
        return _resize_free(initial, axes, dx, dy, frame_width, frame_height)
    return _resize_locked(initial, axes, dx, dy, ratio, frame_width, frame_height)


def _move(
    initial: CropRect,
    dx: float,
    dy: float,
    frame_width: float,
    frame_height: float,
) -> CropRect:
    x = max(0.0, min(frame_width - initial.width, initial.x + dx))
    y = max(0.0, min(frame_height - initial.height, initial.y + dy))
    return replace(initial, x=x, y=y)


def _resize_free(
    initial: CropRect,
    axes: tuple[int, int],
    dx: float,
    dy: float,
    frame_width: float,
    frame_height: float,
) -> CropRect:
    sx, sy = axes
    width = initial.width
    height = initial.height

    if sx:
        limit = _axis_limit(initial.x, initial.width, sx, frame_width)
        width = min(max(initial.width + sx * dx, MIN_CROP_SIZE), limit)
    if sy:
        limit = _axis_limit(initial.y, initial.height, sy, frame_height)
        height = min(max(initial.height + sy * dy, MIN_CROP_SIZE), limit)

    return CropRect(
        _anchored_origin(initial.x, initial.width, width, sx),
        _anchored_origin(initial.y, initial.height, height, sy),
        width,
        height,
    )


def _resize_locked(
    initial: CropRect,
    axes: tuple[int, int],
    dx: float,
    dy: float,
    ratio: float,
    frame_width: float,
    frame_height: float,
) -> CropRect:
    sx, sy = axes
    max_width = _axis_limit(initial.x, initial.width, sx, frame_width)
    max_height = _axis_limit(initial.y, initial.height, sy, frame_height)

    if sx and sy:
        drive_horizontal = abs(dx) > abs(dy)
    else:
        drive_horizontal = bool(sx)

    if drive_horizontal:
        width = initial.width + sx * dx
    else:
        width = (initial.height + sy * dy) * ratio

    # Width range that keeps both sides above the floor and inside the frame.
    lowest = max(MIN_CROP_SIZE, MIN_CROP_SIZE * ratio)
    highest = min(max_width, max_height * ratio)
    if highest + _EPSILON < lowest:
        return initial

    width = min(max(width, lowest), highest)
    height = min(max(width / ratio, MIN_CROP_SIZE), max_height)

    return CropRect(
        _anchored_origin(initial.x, initial.width, width, sx),
        _anchored_origin(initial.y, initial.height, height, sy),
        width,
        height,
    )


def _axis_limit(origin: float, size: float, sign: int, frame: float) -> float:
    """Largest size along one axis with the anchor edge held in place.

    A negative *sign* moves the leading edge, anchoring the trailing one;
    otherwise the leading edge is the anchor.
    """
    if sign < 0:
        return origin + size
    return frame - origin


def _anchored_origin(origin: float, size: float, new_size: float, sign: int) -> float:
    if sign < 0:
        return origin + size - new_size
    return origin
