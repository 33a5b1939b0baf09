"""Editor controller — the single owner of the current edit session.

The geometry, trim and playback modules are pure; this class holds the
state they operate on and applies their proposals:

* the :class:`EditSession` and the loaded :class:`SourceMetadata`;
* the playback cursor and playing flag;
* per-gesture drag snapshots, released when the gesture ends.

Interactive handlers never raise.  Anything invalid (no media loaded,
unknown handle, degenerate display or track) is silently ignored.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, replace
from typing import Literal

from clipcut.core import crop_geometry, playback_sync, trim_timeline
from clipcut.core.models import (
    MIN_TRIM_DURATION,
    AspectLock,
    CropRect,
    EditSession,
    ExportFormat,
    ExportQuality,
    LoadResult,
    PlaybackAction,
    PlaybackDecision,
    SourceMetadata,
    TrackRect,
    TrimDragState,
    TrimInterval,
)
from clipcut.core.presets import ASPECT_PRESETS, SPEED_MAX, SPEED_MIN

logger = logging.getLogger(__name__)

_CROP_HANDLES: frozenset[str] = frozenset(
    {"move", "n", "s", "e", "w", "ne", "nw", "se", "sw"},
)
_TRIM_HANDLES: frozenset[str] = frozenset({"start", "end", "playhead"})


@dataclass(frozen=True, slots=True)
class _CropGesture:
    handle: str
    initial: CropRect
    origin_x: float
    origin_y: float
    display_width: float
    lock: AspectLock


@dataclass(frozen=True, slots=True)
class _TrimGesture:
    handle: str
    track: TrackRect


class EditorController:
    """Holds the edit session and routes gestures through the engines."""

    def __init__(self) -> None:
        self._session: EditSession | None = None
        self._metadata: SourceMetadata | None = None
        self._duration_final = False
        self._cursor = 0.0
        self._playing = False
        self._crop_gesture: _CropGesture | None = None
        self._trim_gesture: _TrimGesture | None = None

    # ------------------------------------------------------------------
    # Read access
    # ------------------------------------------------------------------

    @property
    def session(self) -> EditSession | None:
        return self._session

    @property
    def metadata(self) -> SourceMetadata | None:
        return self._metadata

    @property
    def cursor(self) -> float:
        return self._cursor

    @property
    def playing(self) -> bool:
        return self._playing

    @property
    def dragging(self) -> bool:
        return self._crop_gesture is not None or self._trim_gesture is not None

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def load(self, result: LoadResult) -> EditSession:
        """Start a fresh session for a newly loaded source."""
        metadata = result.metadata
        self._metadata = metadata
        self._duration_final = result.duration_source == "container"
        self._session = EditSession(
            crop=crop_geometry.full_frame(metadata.width, metadata.height),
            aspect_lock=AspectLock.none(),
            trim=trim_timeline.full_interval(metadata.duration_seconds),
        )
        self._cursor = 0.0
        self._playing = False
        self._crop_gesture = None
        self._trim_gesture = None
        return self._session

    def new_video(self) -> None:
        """Discard the current session and media."""
        self._session = None
        self._metadata = None
        self._duration_final = False
        self._cursor = 0.0
        self._playing = False
        self._crop_gesture = None
        self._trim_gesture = None

    def apply_duration_correction(self, seconds: float | None) -> bool:
        """Accept the late, probed duration of the loaded source.

        Applied at most once, and only while the duration is unknown or
        still the capturer's estimate.  Returns ``True`` when applied.
        """
        if self._session is None or self._metadata is None or self._duration_final:
            return False
        if seconds is None or not math.isfinite(seconds) or seconds <= 0:
            return False

        previous = self._metadata.duration_seconds
        self._metadata = replace(self._metadata, duration_seconds=seconds)
        self._duration_final = True

        trim = self._session.trim
        if trim is None or trim.end >= previous:
            # Untouched end point follows the corrected duration.
            start = trim.start if trim is not None else 0.0
            self._session.trim = trim_timeline.clamp_interval(start, seconds, seconds)
        else:
            self._session.trim = trim_timeline.clamp_interval(trim.start, trim.end, seconds)

        self._apply_decision(playback_sync.on_trim_change(self._cursor, self._session.trim))
        logger.debug("Duration corrected from %.3fs to %.3fs", previous, seconds)
        return True

    # ------------------------------------------------------------------
    # Crop
    # ------------------------------------------------------------------

    def begin_crop_drag(
        self,
        handle: str,
        pointer_x: float,
        pointer_y: float,
        display_width: float,
        *,
        keep_proportions: bool = False,
    ) -> None:
        """Snapshot the crop for a new gesture on *handle*.

        *keep_proportions* locks this gesture to the current rectangle's
        proportions when no numeric lock is active.
        """
        session = self._session
        if session is None or handle not in _CROP_HANDLES or display_width <= 0:
            return
        lock = session.aspect_lock
        if keep_proportions and lock.numeric is None:
            lock = AspectLock.from_rect(session.crop)
        self._crop_gesture = _CropGesture(
            handle=handle,
            initial=session.crop,
            origin_x=pointer_x,
            origin_y=pointer_y,
            display_width=display_width,
            lock=lock,
        )

    def drag_crop(self, pointer_x: float, pointer_y: float) -> CropRect | None:
        """Apply a pointer move to the active crop gesture."""
        gesture = self._crop_gesture
        session = self._session
        metadata = self._metadata
        if gesture is None or session is None or metadata is None:
            return None

        dx, dy = crop_geometry.display_to_source_delta(
            pointer_x - gesture.origin_x,
            pointer_y - gesture.origin_y,
            gesture.display_width,
            metadata.width,
        )
        session.crop = crop_geometry.resize(
            gesture.initial,
            gesture.handle,
            dx,
            dy,
            gesture.lock,
            metadata.width,
            metadata.height,
        )
        return session.crop

    def end_crop_drag(self) -> None:
        self._crop_gesture = None

    def select_aspect_preset(self, label: str) -> CropRect | None:
        """Apply a named preset from :data:`ASPECT_PRESETS`.

        ``"Original"`` restores the full frame and clears the lock.
        """
        if self._session is None or self._metadata is None or label not in ASPECT_PRESETS:
            return None
        ratio = ASPECT_PRESETS[label]
        self._session.aspect_lock = AspectLock.none() if ratio is None else AspectLock.of(ratio)
        self._session.crop = crop_geometry.preset_rect(
            ratio, self._metadata.width, self._metadata.height,
        )
        return self._session.crop

    def set_custom_aspect(self) -> None:
        if self._session is not None:
            self._session.aspect_lock = AspectLock.custom()

    def set_crop_dimension(
        self,
        dimension: Literal["width", "height"],
        value: float,
    ) -> CropRect | None:
        """Apply a typed-in width or height; always clears the lock."""
        if self._session is None or self._metadata is None:
            return None
        self._session.crop = crop_geometry.set_dimension(
            self._session.crop, dimension, value,
            self._metadata.width, self._metadata.height,
        )
        self._session.aspect_lock = AspectLock.custom()
        return self._session.crop

    def set_crop_rect(self, rect: CropRect) -> CropRect | None:
        """Replace the crop with *rect*, fitted into the frame."""
        if self._session is None or self._metadata is None:
            return None
        self._session.crop = crop_geometry.clamp_rect(
            rect, self._metadata.width, self._metadata.height,
        )
        self._session.aspect_lock = AspectLock.custom()
        return self._session.crop

    # ------------------------------------------------------------------
    # Trim / timeline
    # ------------------------------------------------------------------

    def begin_trim_drag(self, handle: str, track: TrackRect) -> None:
        if self._session is None or self._session.trim is None:
            return
        if handle not in _TRIM_HANDLES or track.width <= 0:
            return
        self._trim_gesture = _TrimGesture(handle=handle, track=track)

    def drag_trim(self, pointer_x: float) -> TrimInterval | None:
        """Apply a pointer move to the active trim or playhead gesture."""
        gesture = self._trim_gesture
        session = self._session
        if gesture is None or session is None or session.trim is None or self._metadata is None:
            return None

        result = trim_timeline.on_drag(
            gesture.handle,
            pointer_x,
            gesture.track,
            TrimDragState(session.trim, self._cursor, self._metadata.duration_seconds),
        )
        session.trim = result.trim
        self._cursor = result.cursor
        return session.trim

    def end_trim_drag(self) -> None:
        self._trim_gesture = None

    def click_track(self, pointer_x: float, track: TrackRect) -> float:
        """Seek to the clicked time.  Ignored while a drag is active."""
        if self._metadata is None or self._trim_gesture is not None:
            return self._cursor
        target = trim_timeline.on_track_click(
            pointer_x, track, self._metadata.duration_seconds,
        )
        if target is None:
            return self._cursor
        return self.seek(target)

    def hover(self, pointer_x: float, track: TrackRect) -> float | None:
        """Time under the pointer; read-only."""
        if self._metadata is None:
            return None
        return trim_timeline.hover_time(pointer_x, track, self._metadata.duration_seconds)

    def set_trim(self, start: float, end: float) -> TrimInterval | None:
        """Replace the trim interval with ``[start, end]``, clamped."""
        if self._session is None or self._metadata is None:
            return None
        if not (math.isfinite(start) and math.isfinite(end)):
            return self._session.trim
        if self._metadata.duration_seconds < MIN_TRIM_DURATION:
            return self._session.trim
        self._session.trim = trim_timeline.clamp_interval(
            start, end, self._metadata.duration_seconds,
        )
        self._apply_decision(playback_sync.on_trim_change(self._cursor, self._session.trim))
        return self._session.trim

    # ------------------------------------------------------------------
    # Playback
    # ------------------------------------------------------------------

    def seek(self, target: float) -> float:
        """Move the cursor, clamped to the trim interval before applying."""
        if self._session is None or not math.isfinite(target):
            return self._cursor
        self._cursor = playback_sync.clamp_seek(target, self._session.trim)
        return self._cursor

    def toggle_play(self) -> bool:
        """Flip between playing and paused; returns the new state."""
        if self._session is None:
            return False
        if self._playing:
            self._playing = False
        else:
            self._cursor = playback_sync.prepare_play(self._cursor, self._session.trim)
            self._playing = True
        return self._playing

    def report_position(self, reported: float) -> PlaybackDecision:
        """Reconcile a position reported by the player and apply it."""
        if self._session is None or not math.isfinite(reported):
            return PlaybackDecision(PlaybackAction.NONE)
        decision = playback_sync.reconcile(reported, self._session.trim)
        if decision.action is PlaybackAction.NONE:
            self._cursor = reported
        self._apply_decision(decision)
        return decision

    def _apply_decision(self, decision: PlaybackDecision) -> None:
        if decision.time is not None:
            self._cursor = decision.time
        if decision.action is PlaybackAction.STOP:
            self._playing = False

    # ------------------------------------------------------------------
    # Speed / output
    # ------------------------------------------------------------------

    def set_speed(self, speed: float) -> float:
        """Set the speed multiplier, clamped to the supported range."""
        if self._session is None:
            return 1.0
        if math.isfinite(speed):
            self._session.speed = max(SPEED_MIN, min(SPEED_MAX, speed))
        return self._session.speed

    def set_export_format(self, export_format: ExportFormat) -> None:
        if self._session is not None:
            self._session.export_format = export_format

    def set_export_quality(self, quality: ExportQuality) -> None:
        if self._session is not None:
            self._session.export_quality = quality
