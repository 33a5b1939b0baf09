"""Tunable lookup tables — configuration data, not logic.

The export compiler reads these tables but never encodes their values
itself, so tiers can be added or retuned without touching stage order.
"""

from __future__ import annotations

from dataclasses import dataclass

from clipcut.core.models import ExportQuality


@dataclass(frozen=True, slots=True)
class VideoPreset:
    """x264 rate/speed trade-off for one quality tier."""

    crf: int
    preset: str


@dataclass(frozen=True, slots=True)
class GifPreset:
    """Frame rate and maximum width for one animated-image tier."""

    fps: int
    width: int


VIDEO_QUALITY: dict[ExportQuality, VideoPreset] = {
    ExportQuality.LOW: VideoPreset(crf=28, preset="fast"),
    ExportQuality.MEDIUM: VideoPreset(crf=23, preset="medium"),
    ExportQuality.HIGH: VideoPreset(crf=18, preset="slow"),
}

GIF_QUALITY: dict[ExportQuality, GifPreset] = {
    ExportQuality.LOW: GifPreset(fps=10, width=320),
    ExportQuality.MEDIUM: GifPreset(fps=15, width=480),
    ExportQuality.HIGH: GifPreset(fps=20, width=640),
}

AUDIO_CODEC_ARGS: tuple[str, ...] = ("-c:a", "aac", "-b:a", "128k")

# Label -> width/height ratio.  ``None`` restores the full frame.
ASPECT_PRESETS: dict[str, float | None] = {
    "Original": None,
    "1:1": 1.0,
    "16:9": 16 / 9,
    "9:16": 9 / 16,
    "4:3": 4 / 3,
    "3:4": 3 / 4,
}

SPEED_MIN: float = 0.25
SPEED_MAX: float = 4.0
SPEED_STEP: float = 0.25

TEMPO_MIN: float = 0.5
TEMPO_MAX: float = 2.0
"""Valid ratio range of a single ``atempo`` stage."""


def speed_choices() -> list[float]:
    """All speeds selectable in ``SPEED_STEP`` increments."""
    count = round((SPEED_MAX - SPEED_MIN) / SPEED_STEP)
    return [SPEED_MIN + i * SPEED_STEP for i in range(count + 1)]
