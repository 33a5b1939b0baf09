"""Keep the playback cursor inside the trim interval.

These helpers decide; the playback owner acts.  Seek targets are clamped
*before* they are applied so the cursor never visibly overshoots the
trimmed range.  While the trim is unknown (``None``) every helper is a
pass-through.
"""

from __future__ import annotations

from clipcut.core.models import PlaybackAction, PlaybackDecision, TrimInterval

_NO_ACTION = PlaybackDecision(PlaybackAction.NONE)


def reconcile(reported: float, trim: TrimInterval | None) -> PlaybackDecision:
    """Decide how to react to a position reported during playback.

    * at or past ``end`` — stop, parked exactly on ``end``;
    * before ``start`` (after an external seek or a shrink) — jump to
      ``start``;
    * otherwise — nothing to do.
    """
    if trim is None:
        return _NO_ACTION
    if reported >= trim.end:
        return PlaybackDecision(PlaybackAction.STOP, trim.end)
    if reported < trim.start:
        return PlaybackDecision(PlaybackAction.CLAMP_TO, trim.start)
    return _NO_ACTION


def clamp_seek(target: float, trim: TrimInterval | None) -> float:
    """Clamp a seek target into ``[start, end]``."""
    if trim is None:
        return target
    return max(trim.start, min(trim.end, target))


def prepare_play(cursor: float, trim: TrimInterval | None) -> float:
    """Position to resume from when play is pressed.

    Playing from the trimmed end restarts the selection.
    """
    if trim is not None and cursor >= trim.end:
        return trim.start
    return cursor


def on_trim_change(position: float, trim: TrimInterval | None) -> PlaybackDecision:
    """Clamp the current position after the trim interval changed."""
    if trim is None:
        return _NO_ACTION
    if position < trim.start:
        return PlaybackDecision(PlaybackAction.CLAMP_TO, trim.start)
    if position > trim.end:
        return PlaybackDecision(PlaybackAction.CLAMP_TO, trim.end)
    return _NO_ACTION
