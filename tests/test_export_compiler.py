"""Tests for the export compiler (core/export_compiler.py).

Pure functions only — the compiler never talks to ffmpeg.

Coverage:
* ``atempo`` decomposition: range, product and stage count.
* Stage order: trim, speed, crop, finishing.
* MP4 encoder arguments per quality tier, with and without audio.
* GIF frame-rate, scaling and palette stages.
* Validation of speed and trim.
* Compilation is deterministic.
"""

from __future__ import annotations

import math
from dataclasses import replace
from typing import Any

import pytest

from clipcut.core.export_compiler import (
    compile_pipeline,
    crop_pixels,
    format_number,
    tempo_chain,
)
from clipcut.core.models import (
    AspectLock,
    CropRect,
    EditSession,
    ExportFormat,
    ExportQuality,
    SourceMetadata,
    TrimInterval,
)
from clipcut.exceptions import InvalidEditError

PALETTE = (
    "split[s0][s1];[s0]palettegen=stats_mode=diff[p];"
    "[s1][p]paletteuse=dither=bayer:bayer_scale=5"
)


# ---------------------------------------------------------------------------
# Factories
# ---------------------------------------------------------------------------

def _meta(**overrides: Any) -> SourceMetadata:
    defaults: dict[str, Any] = {
        "duration_seconds": 10.0,
        "width": 1920,
        "height": 1080,
        "has_audio": True,
    }
    defaults.update(overrides)
    return SourceMetadata(**defaults)


def _session(**overrides: Any) -> EditSession:
    defaults: dict[str, Any] = {
        "crop": CropRect(0.0, 0.0, 1920.0, 1080.0),
        "aspect_lock": AspectLock.none(),
        "trim": TrimInterval(0.0, 10.0),
    }
    defaults.update(overrides)
    return EditSession(**defaults)


# ---------------------------------------------------------------------------
# Number formatting
# ---------------------------------------------------------------------------

class TestFormatNumber:
    @pytest.mark.parametrize(
        "value, expected",
        [(2.0, "2"), (1.25, "1.25"), (0.1, "0.1"), (0.0, "0"), (2.3, "2.3"), (1e-9, "0")],
    )
    def test_formats(self, value: float, expected: str) -> None:
        assert format_number(value) == expected


# ---------------------------------------------------------------------------
# Tempo chain
# ---------------------------------------------------------------------------

class TestTempoChain:
    def test_in_range_single_stage(self) -> None:
        assert tempo_chain(1.5) == (1.5,)

    def test_speed_five(self) -> None:
        assert tempo_chain(5.0) == (2.0, 2.0, 1.25)

    def test_quarter_speed(self) -> None:
        assert tempo_chain(0.25) == (0.5, 0.5)

    @pytest.mark.parametrize("speed", [0.01, 0.25, 0.3, 0.5, 0.75, 1.0, 2.0, 2.5, 4.0, 5.0, 100.0])
    def test_product_and_range(self, speed: float) -> None:
        chain = tempo_chain(speed)
        assert all(0.5 <= ratio <= 2.0 for ratio in chain)
        assert math.prod(chain) == pytest.approx(speed)

    @pytest.mark.parametrize("speed", [2.5, 5.0, 16.0, 0.3, 0.1])
    def test_stage_count(self, speed: float) -> None:
        expected = math.ceil(math.log2(speed if speed > 1 else 1 / speed))
        assert len(tempo_chain(speed)) == expected

    @pytest.mark.parametrize("speed", [0.0, -1.0, float("nan"), float("inf")])
    def test_invalid_speed_raises(self, speed: float) -> None:
        with pytest.raises(InvalidEditError):
            tempo_chain(speed)


# ---------------------------------------------------------------------------
# Crop rounding
# ---------------------------------------------------------------------------

class TestCropPixels:
    def test_rounds_to_integers(self) -> None:
        assert crop_pixels(CropRect(420.4, 0.6, 1079.6, 1079.4), 1920, 1080) == (1080, 1079, 420, 1)

    def test_even_dimensions(self) -> None:
        assert crop_pixels(CropRect(0, 0, 1001, 601), 1920, 1080, even=True) == (1000, 600, 0, 0)

    def test_never_exceeds_frame(self) -> None:
        width, height, x, y = crop_pixels(CropRect(1900.7, 1060.2, 60, 60), 1920, 1080)
        assert x + width <= 1920
        assert y + height <= 1080


# ---------------------------------------------------------------------------
# MP4 pipelines
# ---------------------------------------------------------------------------

class TestContainerPipeline:
    def test_untouched_session(self) -> None:
        pipeline = compile_pipeline(_session(), _meta())
        assert pipeline.filter_graph == (
            "[0:v]trim=start=0:end=10,setpts=PTS-STARTPTS,crop=1920:1080:0:0[v];"
            "[0:a]atrim=start=0:end=10,asetpts=PTS-STARTPTS[a]"
        )
        assert pipeline.output_maps == ("[v]", "[a]")
        assert pipeline.encoder_args == (
            "-c:v", "libx264", "-preset", "medium", "-crf", "23", "-pix_fmt", "yuv420p",
            "-c:a", "aac", "-b:a", "128k", "-movflags", "+faststart",
        )
        assert pipeline.output_container == "mp4"
        assert pipeline.mime_type == "video/mp4"
        assert pipeline.output_duration_seconds == 10.0

    def test_stage_order_trim_speed_crop(self) -> None:
        session = _session(
            trim=TrimInterval(1.0, 5.0),
            speed=2.0,
            crop=CropRect(420.0, 0.0, 1080.0, 1080.0),
        )
        pipeline = compile_pipeline(session, _meta())
        assert pipeline.video_filter_chain == (
            "trim=start=1:end=5",
            "setpts=PTS-STARTPTS",
            "setpts=PTS/2",
            "crop=1080:1080:420:0",
        )
        assert pipeline.audio_filter_chain == (
            "atrim=start=1:end=5",
            "asetpts=PTS-STARTPTS",
            "atempo=2",
        )
        assert pipeline.output_duration_seconds == pytest.approx(2.0)

    def test_speed_five_audio_chain(self) -> None:
        pipeline = compile_pipeline(_session(speed=5.0), _meta())
        assert pipeline.audio_filter_chain is not None
        assert pipeline.audio_filter_chain[-3:] == ("atempo=2", "atempo=2", "atempo=1.25")

    @pytest.mark.parametrize(
        "quality, crf, preset",
        [(ExportQuality.LOW, "28", "fast"), (ExportQuality.HIGH, "18", "slow")],
    )
    def test_quality_tiers(self, quality: ExportQuality, crf: str, preset: str) -> None:
        args = compile_pipeline(_session(export_quality=quality), _meta()).encoder_args
        assert args[args.index("-crf") + 1] == crf
        assert args[args.index("-preset") + 1] == preset

    def test_source_without_audio(self) -> None:
        pipeline = compile_pipeline(_session(), _meta(has_audio=False))
        assert pipeline.audio_filter_chain is None
        assert pipeline.output_maps == ("[v]",)
        assert "[0:a]" not in pipeline.filter_graph
        assert "-an" in pipeline.encoder_args
        assert "-c:a" not in pipeline.encoder_args

    def test_unknown_duration_has_no_trim(self) -> None:
        pipeline = compile_pipeline(_session(trim=None), _meta(duration_seconds=0.0))
        assert not any(stage.startswith("trim=") for stage in pipeline.video_filter_chain)
        assert pipeline.audio_filter_chain == ("anull",)
        assert pipeline.output_duration_seconds == 0.0

    def test_odd_crop_made_even(self) -> None:
        pipeline = compile_pipeline(_session(crop=CropRect(0, 0, 1001, 601)), _meta())
        assert "crop=1000:600:0:0" in pipeline.video_filter_chain


# ---------------------------------------------------------------------------
# GIF pipelines
# ---------------------------------------------------------------------------

class TestAnimatedImagePipeline:
    def test_square_gif_medium(self) -> None:
        session = _session(
            crop=CropRect(420.0, 0.0, 1080.0, 1080.0),
            export_format=ExportFormat.ANIMATED_IMAGE,
        )
        pipeline = compile_pipeline(session, _meta())
        assert pipeline.filter_graph == (
            "[0:v]trim=start=0:end=10,setpts=PTS-STARTPTS,crop=1080:1080:420:0,"
            "fps=15,scale=480:-1:flags=lanczos," + PALETTE + "[v]"
        )
        assert pipeline.encoder_args == ("-loop", "0")
        assert pipeline.output_maps == ("[v]",)
        assert pipeline.audio_filter_chain is None
        assert pipeline.output_container == "gif"
        assert pipeline.mime_type == "image/gif"

    def test_narrow_crop_is_not_scaled(self) -> None:
        session = _session(
            crop=CropRect(0, 0, 300, 300),
            export_format=ExportFormat.ANIMATED_IMAGE,
            export_quality=ExportQuality.LOW,
        )
        chain = compile_pipeline(session, _meta()).video_filter_chain
        assert chain[-1] == "fps=10"

    def test_odd_crop_kept_for_gif(self) -> None:
        session = _session(crop=CropRect(0, 0, 301, 301), export_format=ExportFormat.ANIMATED_IMAGE)
        assert "crop=301:301:0:0" in compile_pipeline(session, _meta()).video_filter_chain

    def test_high_tier(self) -> None:
        session = _session(export_format=ExportFormat.ANIMATED_IMAGE, export_quality=ExportQuality.HIGH)
        chain = compile_pipeline(session, _meta()).video_filter_chain
        assert chain[-2:] == ("fps=20", "scale=640:-1:flags=lanczos")


# ---------------------------------------------------------------------------
# Validation / determinism
# ---------------------------------------------------------------------------

class TestCompileValidation:
    @pytest.mark.parametrize("speed", [0.0, -2.0, float("nan")])
    def test_invalid_speed(self, speed: float) -> None:
        with pytest.raises(InvalidEditError):
            compile_pipeline(_session(speed=speed), _meta())

    def test_inverted_trim(self) -> None:
        with pytest.raises(InvalidEditError, match="Invalid trim"):
            compile_pipeline(_session(trim=TrimInterval(5.0, 2.0)), _meta())

    def test_idempotent(self) -> None:
        session = _session(speed=0.3, trim=TrimInterval(1.5, 7.25))
        assert compile_pipeline(session, _meta()) == compile_pipeline(session, _meta())

    def test_session_not_mutated(self) -> None:
        session = _session(speed=3.0)
        snapshot = replace(session)
        compile_pipeline(session, _meta())
        assert session == snapshot
