"""Compile edit parameters into an ffmpeg pipeline description.

:func:`compile_pipeline` is a **pure** function of the session and the
source metadata: no I/O, no counters, identical input gives identical
output.  It never talks to the encoding engine.

Stage order (fixed — reordering changes the output):

1. **Trim** — keep ``[start, end]`` and rebase timestamps to zero.
2. **Speed** — ``setpts`` for video; a chain of ``atempo`` stages for
   audio, each within the primitive's valid range.
3. **Crop** — integer source-pixel rectangle, applied after re-timing.
4. **Finishing** — animated image: frame-rate decimation, down-scaling
   and a two-pass palette; container: codec and quality arguments.
"""

from __future__ import annotations

import math

from clipcut.core.models import (
    CropRect,
    EditSession,
    ExportFormat,
    PipelineDescription,
    SourceMetadata,
    TrimInterval,
)
from clipcut.core.presets import (
    AUDIO_CODEC_ARGS,
    GIF_QUALITY,
    TEMPO_MAX,
    TEMPO_MIN,
    VIDEO_QUALITY,
)
from clipcut.exceptions import InvalidEditError

_MIME_TYPES: dict[ExportFormat, str] = {
    ExportFormat.CONTAINER: "video/mp4",
    ExportFormat.ANIMATED_IMAGE: "image/gif",
}

_PALETTE_STAGES: str = (
    "split[s0][s1];"
    "[s0]palettegen=stats_mode=diff[p];"
    "[s1][p]paletteuse=dither=bayer:bayer_scale=5"
)


# ---------------------------------------------------------------------------
# Number formatting
# ---------------------------------------------------------------------------

def format_number(value: float) -> str:
    """Render *value* for a filter argument without exponent notation.

    ``2.0`` -> ``"2"``, ``1.25`` -> ``"1.25"``, ``0.1`` -> ``"0.1"``.
    """
    text = f"{value:.6f}".rstrip("0").rstrip(".")
    return "0" if text in ("", "-0") else text


# ---------------------------------------------------------------------------
# 1. Trim
# ---------------------------------------------------------------------------

def trim_stages(trim: TrimInterval | None) -> tuple[list[str], list[str]]:
    """Return ``(video, audio)`` trim stages, empty when trim is unknown."""
    if trim is None:
        return [], []
    bounds = f"start={format_number(trim.start)}:end={format_number(trim.end)}"
    return (
        [f"trim={bounds}", "setpts=PTS-STARTPTS"],
        [f"atrim={bounds}", "asetpts=PTS-STARTPTS"],
    )


# ---------------------------------------------------------------------------
# 2. Speed
# ---------------------------------------------------------------------------

def tempo_chain(speed: float) -> tuple[float, ...]:
    """Decompose *speed* into ``atempo`` ratios inside ``[0.5, 2.0]``.

    In-range speeds need one stage.  Outside the range the chain has
    ``k = ceil(log2(speed))`` (or ``ceil(log2(1 / speed))``) stages:
    every stage but the last takes the range limit and the last takes
    the remainder, so the product equals *speed*.  Dividing by the
    limits (powers of two) is exact, which keeps ``k`` exact as well.

    Raises
    ------
    InvalidEditError
        When *speed* is not a positive finite number.
    """
    _validate_speed(speed)
    ratios: list[float] = []
    remaining = speed
    while remaining > TEMPO_MAX:
        ratios.append(TEMPO_MAX)
        remaining /= TEMPO_MAX
    while remaining < TEMPO_MIN:
        ratios.append(TEMPO_MIN)
        remaining /= TEMPO_MIN
    ratios.append(remaining)
    return tuple(ratios)


def speed_stages(speed: float, *, with_audio: bool) -> tuple[list[str], list[str]]:
    """Return ``(video, audio)`` stages that re-time the stream."""
    _validate_speed(speed)
    if speed == 1:
        return [], []
    video = [f"setpts=PTS/{format_number(speed)}"]
    audio = (
        [f"atempo={format_number(ratio)}" for ratio in tempo_chain(speed)]
        if with_audio
        else []
    )
    return video, audio


# ---------------------------------------------------------------------------
# 3. Crop
# ---------------------------------------------------------------------------

def crop_pixels(
    crop: CropRect,
    frame_width: int,
    frame_height: int,
    *,
    even: bool = False,
) -> tuple[int, int, int, int]:
    """Round *crop* to integer ``(width, height, x, y)`` inside the frame.

    With *even*, width and height are rounded down to even numbers, as
    required by 4:2:0 H.264 output.
    """
    x = max(0, min(frame_width - 1, round(crop.x)))
    y = max(0, min(frame_height - 1, round(crop.y)))
    width = max(1, min(round(crop.width), frame_width - x))
    height = max(1, min(round(crop.height), frame_height - y))
    if even:
        width = max(2, width - width % 2)
        height = max(2, height - height % 2)
    return width, height, x, y


def crop_stage(
    crop: CropRect,
    frame_width: int,
    frame_height: int,
    *,
    even: bool = False,
) -> str:
    width, height, x, y = crop_pixels(crop, frame_width, frame_height, even=even)
    return f"crop={width}:{height}:{x}:{y}"


# ---------------------------------------------------------------------------
# 4. Finishing
# ---------------------------------------------------------------------------

def gif_stages(session: EditSession, cropped_width: int) -> list[str]:
    """Frame-rate decimation and down-scaling for animated output.

    Scaling is skipped when the cropped frame is already narrower than
    the tier's target width.
    """
    preset = GIF_QUALITY[session.export_quality]
    stages = [f"fps={preset.fps}"]
    if cropped_width > preset.width:
        stages.append(f"scale={preset.width}:-1:flags=lanczos")
    return stages


def container_encoder_args(session: EditSession, *, with_audio: bool) -> tuple[str, ...]:
    preset = VIDEO_QUALITY[session.export_quality]
    args = [
        "-c:v", "libx264",
        "-preset", preset.preset,
        "-crf", str(preset.crf),
        "-pix_fmt", "yuv420p",
    ]
    if with_audio:
        args.extend(AUDIO_CODEC_ARGS)
    else:
        args.append("-an")
    args.extend(["-movflags", "+faststart"])
    return tuple(args)


# ---------------------------------------------------------------------------
# Composite pipeline
# ---------------------------------------------------------------------------

def compile_pipeline(session: EditSession, metadata: SourceMetadata) -> PipelineDescription:
    """Translate *session* + *metadata* into a :class:`PipelineDescription`.

    Raises
    ------
    InvalidEditError
        When the speed is not a positive finite number or the trim
        interval is inverted.
    """
    _validate_speed(session.speed)
    trim = session.trim
    if trim is not None and not 0 <= trim.start < trim.end:
        raise InvalidEditError(
            f"Invalid trim interval {trim.start:.3f}-{trim.end:.3f}s.",
            hint="The trim start must come before the trim end.",
        )

    is_gif = session.export_format is ExportFormat.ANIMATED_IMAGE
    with_audio = metadata.has_audio and not is_gif

    video_trim, audio_trim = trim_stages(trim)
    video_speed, audio_speed = speed_stages(session.speed, with_audio=with_audio)

    even = not is_gif
    video_chain = [
        *video_trim,
        *video_speed,
        crop_stage(session.crop, metadata.width, metadata.height, even=even),
    ]
    cropped_width = crop_pixels(session.crop, metadata.width, metadata.height, even=even)[0]

    audio_chain: list[str] | None = None
    if with_audio:
        audio_chain = [*audio_trim, *audio_speed] or ["anull"]

    if is_gif:
        video_chain.extend(gif_stages(session, cropped_width))
        filter_graph = f"[0:v]{','.join(video_chain)},{_PALETTE_STAGES}[v]"
        encoder_args: tuple[str, ...] = ("-loop", "0")
        output_maps: tuple[str, ...] = ("[v]",)
    else:
        filter_graph = f"[0:v]{','.join(video_chain)}[v]"
        output_maps = ("[v]",)
        if audio_chain is not None:
            filter_graph += f";[0:a]{','.join(audio_chain)}[a]"
            output_maps = ("[v]", "[a]")
        encoder_args = container_encoder_args(session, with_audio=with_audio)

    return PipelineDescription(
        video_filter_chain=tuple(video_chain),
        audio_filter_chain=tuple(audio_chain) if audio_chain is not None else None,
        filter_graph=filter_graph,
        output_maps=output_maps,
        encoder_args=encoder_args,
        output_container=session.export_format.value,
        mime_type=_MIME_TYPES[session.export_format],
        output_duration_seconds=_output_duration(trim, metadata, session.speed),
    )


def _output_duration(
    trim: TrimInterval | None,
    metadata: SourceMetadata,
    speed: float,
) -> float:
    if trim is not None:
        return trim.length / speed
    if metadata.duration_known:
        return metadata.duration_seconds / speed
    return 0.0


def _validate_speed(speed: float) -> None:
    if not (math.isfinite(speed) and speed > 0):
        raise InvalidEditError(
            f"Invalid speed factor: {speed!r}.",
            hint="Speed must be a positive number (e.g. 0.5, 1, 2).",
        )
