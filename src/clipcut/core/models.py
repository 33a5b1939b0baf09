"""Domain models for clipcut.

Value objects are **frozen** dataclasses with no behaviour beyond data
access and trivial derived properties.  :class:`EditSession` is the one
deliberately mutable record: it is owned by
:class:`~clipcut.core.editor.EditorController` and every engine returns a
replacement value instead of mutating it.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Literal

MIN_CROP_SIZE: float = 50.0
"""Smallest crop width/height, in source pixels."""

MIN_TRIM_DURATION: float = 0.5
"""Shortest trim interval, in seconds."""


CropHandle = Literal["move", "n", "s", "e", "w", "ne", "nw", "se", "sw"]
TrimHandle = Literal["start", "end", "playhead"]
DurationSource = Literal["container", "capture", "unknown"]


# ---------------------------------------------------------------------------
# Source media
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class SourceMetadata:
    """Facts about the loaded source, as reported by the probe."""

    duration_seconds: float
    """Duration in seconds; ``0.0`` while unknown."""

    width: int
    """Frame width in pixels."""

    height: int
    """Frame height in pixels."""

    has_audio: bool = True
    """Whether the source carries at least one audio stream."""

    @property
    def duration_known(self) -> bool:
        return self.duration_seconds > 0


# ---------------------------------------------------------------------------
# Crop
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class CropRect:
    """Crop rectangle in source-pixel coordinates."""

    x: float
    y: float
    width: float
    height: float

    @property
    def right(self) -> float:
        return self.x + self.width

    @property
    def bottom(self) -> float:
        return self.y + self.height


@dataclass(frozen=True, slots=True)
class AspectLock:
    """Aspect-ratio constraint applied to interactive resizes.

    ``kind`` is one of ``"none"``, ``"ratio"`` or ``"custom"``; only the
    ``"ratio"`` kind carries a numeric ``ratio`` (width / height).
    """

    kind: Literal["none", "ratio", "custom"] = "none"
    ratio: float | None = None

    @classmethod
    def none(cls) -> AspectLock:
        return cls()

    @classmethod
    def custom(cls) -> AspectLock:
        return cls(kind="custom")

    @classmethod
    def of(cls, ratio: float) -> AspectLock:
        return cls(kind="ratio", ratio=ratio)

    @classmethod
    def from_rect(cls, rect: CropRect) -> AspectLock:
        """Lock to the proportions of *rect* (temporary, per gesture)."""
        return cls.of(rect.width / rect.height)

    @property
    def numeric(self) -> float | None:
        """The active ratio, or ``None`` when resizes are unconstrained."""
        if self.kind == "ratio" and self.ratio is not None and self.ratio > 0:
            return self.ratio
        return None


# ---------------------------------------------------------------------------
# Trim / playback
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class TrimInterval:
    """In/out points of the retained time range, in seconds."""

    start: float
    end: float

    @property
    def length(self) -> float:
        return self.end - self.start


@dataclass(frozen=True, slots=True)
class TrackRect:
    """Horizontal extent of the timeline track in pointer coordinates."""

    left: float
    width: float


@dataclass(frozen=True, slots=True)
class TrimDragState:
    """Inputs to a single trim/playhead drag step."""

    trim: TrimInterval
    cursor: float
    duration: float


@dataclass(frozen=True, slots=True)
class TrimDragResult:
    """Proposed trim interval and cursor after a drag step."""

    trim: TrimInterval
    cursor: float


class PlaybackAction(str, Enum):
    NONE = "none"
    CLAMP_TO = "clamp_to"
    STOP = "stop"


@dataclass(frozen=True, slots=True)
class PlaybackDecision:
    """What the playback owner must do with a reported position."""

    action: PlaybackAction
    time: float | None = None


# ---------------------------------------------------------------------------
# Edit session
# ---------------------------------------------------------------------------

class ExportFormat(str, Enum):
    CONTAINER = "mp4"
    ANIMATED_IMAGE = "gif"


class ExportQuality(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


@dataclass(slots=True)
class EditSession:
    """Current edit parameters for the single loaded clip."""

    crop: CropRect
    aspect_lock: AspectLock
    trim: TrimInterval | None
    """``None`` while the source duration is unknown."""

    speed: float = 1.0
    export_format: ExportFormat = ExportFormat.CONTAINER
    export_quality: ExportQuality = ExportQuality.MEDIUM


# ---------------------------------------------------------------------------
# Loading
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class LoadRequest:
    """A request to load *path* as the editing source."""

    path: Path
    known_duration_seconds: float | None = None
    """Out-of-band duration measured by a capturer, consumed once."""


@dataclass(frozen=True, slots=True)
class LoadResult:
    """Outcome of loading a source."""

    path: Path
    metadata: SourceMetadata
    duration_source: DurationSource
    needs_duration_repair: bool
    """``True`` when the container did not report a usable duration."""


# ---------------------------------------------------------------------------
# Export
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class PipelineDescription:
    """Ordered, declarative description of one encode run.

    The filter chains are kept alongside the assembled ``filter_graph``
    so callers can inspect individual stages without parsing.
    """

    video_filter_chain: tuple[str, ...]
    audio_filter_chain: tuple[str, ...] | None
    filter_graph: str
    output_maps: tuple[str, ...]
    encoder_args: tuple[str, ...]
    output_container: str
    mime_type: str
    output_duration_seconds: float
    """Expected output length, ``0.0`` when unknown (used for progress)."""


@dataclass(frozen=True, slots=True)
class ExportResult:
    """A finished export on disk."""

    path: Path
    container: str
    mime_type: str
    size_bytes: int
