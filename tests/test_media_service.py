"""Tests for MediaService (core/media_service.py).

The :class:`MediaProbe` and :class:`ThumbnailSource` dependencies are
**mocked** — no ffprobe, no ffmpeg.  Coroutines are driven with
:func:`asyncio.run`.

Coverage:
* Path validation.
* Raw probe document -> :class:`SourceMetadata` parsing (rotation,
  audio detection, unusable durations).
* Capture-supplied durations and the repair flag.
* Exception mapping and probe timeouts.
* Duration repair never raises.
* Thumbnail sampling, failures and timeouts resolve to ``[]``.
"""

from __future__ import annotations

import asyncio
import time
from pathlib import Path
from typing import Any
from unittest.mock import MagicMock

import pytest

from clipcut.core.media_service import MediaService, thumbnail_times, valid_duration
from clipcut.core.models import LoadRequest, SourceMetadata
from clipcut.exceptions import (
    InvalidSourceError,
    MetadataProbeError,
    ThumbnailError,
)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _fake_probe(info: dict[str, Any] | Exception, measured: float | None = None) -> MagicMock:
    """Return a mock MediaProbe.

    If *info* is a dict, ``probe`` returns it.
    If *info* is an exception, ``probe`` raises it.
    """
    probe = MagicMock()
    if isinstance(info, Exception):
        probe.probe.side_effect = info
    else:
        probe.probe.return_value = info
    probe.probe_duration.return_value = measured
    return probe


def _probe_doc(
    *,
    duration: Any = "12.5",
    width: Any = 1920,
    height: Any = 1080,
    audio: bool = True,
    tags: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """Minimal ffprobe ``-show_format -show_streams`` document."""
    video: dict[str, Any] = {"codec_type": "video", "width": width, "height": height}
    if tags is not None:
        video["tags"] = tags
    streams = [video]
    if audio:
        streams.append({"codec_type": "audio"})
    return {"format": {"duration": duration}, "streams": streams}


@pytest.fixture
def video_file(tmp_path: Path) -> Path:
    path = tmp_path / "clip.webm"
    path.write_bytes(b"\x1a\x45\xdf\xa3")
    return path


def _load(service: MediaService, path: Path, known: float | None = None) -> Any:
    return asyncio.run(service.load(LoadRequest(path, known)))


# ---------------------------------------------------------------------------
# Load
# ---------------------------------------------------------------------------

class TestLoad:
    def test_container_duration(self, video_file: Path) -> None:
        result = _load(MediaService(_fake_probe(_probe_doc())), video_file)
        assert result.metadata == SourceMetadata(12.5, 1920, 1080, has_audio=True)
        assert result.duration_source == "container"
        assert result.needs_duration_repair is False

    def test_capture_duration_preferred(self, video_file: Path) -> None:
        result = _load(MediaService(_fake_probe(_probe_doc())), video_file, known=11.9)
        assert result.metadata.duration_seconds == 11.9
        assert result.duration_source == "capture"
        assert result.needs_duration_repair is True

    @pytest.mark.parametrize("raw", ["N/A", "inf", "0", None, -3])
    def test_unusable_duration_is_unknown(self, video_file: Path, raw: Any) -> None:
        result = _load(MediaService(_fake_probe(_probe_doc(duration=raw))), video_file)
        assert result.metadata.duration_seconds == 0.0
        assert result.metadata.duration_known is False
        assert result.duration_source == "unknown"
        assert result.needs_duration_repair is True

    def test_stream_duration_fallback(self, video_file: Path) -> None:
        doc = _probe_doc(duration="N/A")
        doc["streams"][0]["duration"] = "4.2"
        result = _load(MediaService(_fake_probe(doc)), video_file)
        assert result.metadata.duration_seconds == 4.2

    def test_rotation_swaps_dimensions(self, video_file: Path) -> None:
        doc = _probe_doc(width=1920, height=1080, tags={"rotate": "90"})
        result = _load(MediaService(_fake_probe(doc)), video_file)
        assert (result.metadata.width, result.metadata.height) == (1080, 1920)

    def test_side_data_rotation(self, video_file: Path) -> None:
        doc = _probe_doc()
        doc["streams"][0]["side_data_list"] = [{"rotation": -90}]
        result = _load(MediaService(_fake_probe(doc)), video_file)
        assert (result.metadata.width, result.metadata.height) == (1080, 1920)

    def test_no_audio(self, video_file: Path) -> None:
        result = _load(MediaService(_fake_probe(_probe_doc(audio=False))), video_file)
        assert result.metadata.has_audio is False

    def test_no_video_stream(self, video_file: Path) -> None:
        doc = {"format": {"duration": "3"}, "streams": [{"codec_type": "audio"}]}
        with pytest.raises(MetadataProbeError, match="No video stream"):
            _load(MediaService(_fake_probe(doc)), video_file)

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(InvalidSourceError, match="not found"):
            _load(MediaService(_fake_probe(_probe_doc())), tmp_path / "nope.mp4")

    def test_directory_rejected(self, tmp_path: Path) -> None:
        with pytest.raises(InvalidSourceError, match="not a file"):
            _load(MediaService(_fake_probe(_probe_doc())), tmp_path)

    def test_probe_error_propagates(self, video_file: Path) -> None:
        probe = _fake_probe(MetadataProbeError("ffprobe failed: bad"))
        with pytest.raises(MetadataProbeError, match="bad"):
            _load(MediaService(probe), video_file)

    def test_unexpected_error_wrapped(self, video_file: Path) -> None:
        probe = _fake_probe(RuntimeError("kaboom"))
        with pytest.raises(MetadataProbeError, match="kaboom"):
            _load(MediaService(probe), video_file)

    def test_timeout(self, video_file: Path) -> None:
        probe = MagicMock()
        probe.probe.side_effect = lambda _path: time.sleep(0.5)
        service = MediaService(probe, probe_timeout=0.05)
        with pytest.raises(MetadataProbeError, match="timed out"):
            _load(service, video_file)


# ---------------------------------------------------------------------------
# Duration repair
# ---------------------------------------------------------------------------

class TestResolveDuration:
    def test_measured(self, video_file: Path) -> None:
        service = MediaService(_fake_probe(_probe_doc(), measured=31.4))
        assert asyncio.run(service.resolve_duration(video_file)) == 31.4

    def test_nothing_measured(self, video_file: Path) -> None:
        service = MediaService(_fake_probe(_probe_doc(), measured=None))
        assert asyncio.run(service.resolve_duration(video_file)) is None

    def test_failure_is_none(self, video_file: Path) -> None:
        probe = _fake_probe(_probe_doc())
        probe.probe_duration.side_effect = MetadataProbeError("nope")
        assert asyncio.run(MediaService(probe).resolve_duration(video_file)) is None


# ---------------------------------------------------------------------------
# Thumbnails
# ---------------------------------------------------------------------------

class TestThumbnails:
    def test_sample_times(self) -> None:
        times = thumbnail_times(15.0, 15)
        assert len(times) == 15
        assert times[0] == 0.0
        assert times[1] == pytest.approx(1.0)
        assert times[-1] == pytest.approx(14.0)

    def test_last_sample_before_end(self) -> None:
        assert thumbnail_times(1.0, 1) == [0.0]
        assert thumbnail_times(0.05, 2)[-1] == 0.0

    def test_captures_strip(self, video_file: Path) -> None:
        source = MagicMock()
        source.capture.return_value = [b"jpg", None, b"jpg"]
        service = MediaService(_fake_probe(_probe_doc()), source)

        strip = asyncio.run(service.thumbnails(video_file, 9.0, count=3))

        assert strip == [b"jpg", None, b"jpg"]
        path, times = source.capture.call_args.args
        assert path == video_file
        assert times == pytest.approx([0.0, 3.0, 6.0])

    def test_unknown_duration_is_empty(self, video_file: Path) -> None:
        source = MagicMock()
        service = MediaService(_fake_probe(_probe_doc()), source)
        assert asyncio.run(service.thumbnails(video_file, 0.0)) == []
        source.capture.assert_not_called()

    def test_no_source_is_empty(self, video_file: Path) -> None:
        service = MediaService(_fake_probe(_probe_doc()))
        assert asyncio.run(service.thumbnails(video_file, 9.0)) == []

    def test_failure_is_empty(self, video_file: Path) -> None:
        source = MagicMock()
        source.capture.side_effect = ThumbnailError("ffmpeg missing")
        service = MediaService(_fake_probe(_probe_doc()), source)
        assert asyncio.run(service.thumbnails(video_file, 9.0)) == []

    def test_timeout_is_empty(self, video_file: Path) -> None:
        source = MagicMock()
        source.capture.side_effect = lambda _path, _times: time.sleep(0.5)
        service = MediaService(_fake_probe(_probe_doc()), source, thumbnail_timeout=0.05)
        assert asyncio.run(service.thumbnails(video_file, 9.0)) == []


# ---------------------------------------------------------------------------
# valid_duration
# ---------------------------------------------------------------------------

class TestValidDuration:
    @pytest.mark.parametrize("value, expected", [("2.5", 2.5), (3, 3.0), (0.1, 0.1)])
    def test_valid(self, value: Any, expected: float) -> None:
        assert valid_duration(value) == expected

    @pytest.mark.parametrize("value", [None, True, "N/A", float("nan"), float("inf"), 0, -1, [1]])
    def test_invalid(self, value: Any) -> None:
        assert valid_duration(value) is None
