"""Tests for settings (config.py) and time formatting (utils/timefmt.py)."""

from __future__ import annotations

import pytest

from clipcut.config import DEFAULT_PROBE_TIMEOUT, DEFAULT_THUMBNAIL_TIMEOUT, Settings
from clipcut.exceptions import EnvironmentCheckError
from clipcut.utils.timefmt import format_duration, format_time, parse_time


# ---------------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------------

class TestSettings:
    def test_defaults(self) -> None:
        settings = Settings.from_env({})
        assert settings.ffmpeg_path is None
        assert settings.ffprobe_path is None
        assert settings.probe_timeout == DEFAULT_PROBE_TIMEOUT
        assert settings.thumbnail_timeout == DEFAULT_THUMBNAIL_TIMEOUT

    def test_overrides(self) -> None:
        settings = Settings.from_env(
            {
                "CLIPCUT_FFMPEG": "/opt/ffmpeg/bin/ffmpeg",
                "CLIPCUT_FFPROBE": "/opt/ffmpeg/bin/ffprobe",
                "CLIPCUT_PROBE_TIMEOUT": "30",
                "CLIPCUT_THUMBNAIL_TIMEOUT": "2.5",
            }
        )
        assert settings.ffmpeg_path == "/opt/ffmpeg/bin/ffmpeg"
        assert settings.ffprobe_path == "/opt/ffmpeg/bin/ffprobe"
        assert settings.probe_timeout == 30.0
        assert settings.thumbnail_timeout == 2.5

    def test_blank_values_use_defaults(self) -> None:
        settings = Settings.from_env({"CLIPCUT_FFMPEG": "", "CLIPCUT_PROBE_TIMEOUT": "  "})
        assert settings.ffmpeg_path is None
        assert settings.probe_timeout == DEFAULT_PROBE_TIMEOUT

    def test_reads_process_environment(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("CLIPCUT_FFPROBE", "/custom/ffprobe")
        assert Settings.from_env().ffprobe_path == "/custom/ffprobe"

    @pytest.mark.parametrize("raw", ["soon", "0", "-4", "inf", "nan"])
    def test_invalid_timeout(self, raw: str) -> None:
        with pytest.raises(EnvironmentCheckError, match="CLIPCUT_PROBE_TIMEOUT"):
            Settings.from_env({"CLIPCUT_PROBE_TIMEOUT": raw})


# ---------------------------------------------------------------------------
# Time formatting
# ---------------------------------------------------------------------------

class TestFormatTime:
    @pytest.mark.parametrize(
        "seconds, expected",
        [(0.0, "00:00.0"), (2.3, "00:02.3"), (2.39, "00:02.3"), (65.0, "01:05.0"),
         (599.95, "09:59.9"), (3600.0, "60:00.0")],
    )
    def test_format(self, seconds: float, expected: str) -> None:
        assert format_time(seconds) == expected

    @pytest.mark.parametrize("seconds", [-1.0, float("nan"), float("inf")])
    def test_invalid(self, seconds: float) -> None:
        assert format_time(seconds) == "00:00.0"


class TestFormatDuration:
    def test_format(self) -> None:
        assert format_duration(125.9) == "02:05"

    @pytest.mark.parametrize("seconds", [0.0, -3.0, float("nan")])
    def test_unknown(self, seconds: float) -> None:
        assert format_duration(seconds) == "unknown"


class TestParseTime:
    @pytest.mark.parametrize(
        "text, expected",
        [("7", 7.0), ("2.5", 2.5), ("1:30", 90.0), ("01:02:03.5", 3723.5), (" 0:05 ", 5.0)],
    )
    def test_valid(self, text: str, expected: float) -> None:
        assert parse_time(text) == pytest.approx(expected)

    @pytest.mark.parametrize("text", ["", ":", "1:2:3:4", "a:b", "-1", "1:-5", "inf"])
    def test_invalid(self, text: str) -> None:
        with pytest.raises(ValueError):
            parse_time(text)
