"""Tests for ffmpeg / ffprobe detection (infra/ffmpeg_detector.py).

All tests mock :func:`shutil.which` — no system dependency.

Coverage:
* ``detect_ffmpeg`` / ``detect_ffprobe`` found and missing.
* Explicit binary overrides.
* ``require_tool`` happy path and ``FfmpegNotFoundError``.
* Platform-specific install commands (Windows / Linux / macOS).
* ``ToolStatus`` frozen dataclass.
"""

from __future__ import annotations

from pathlib import Path
from unittest.mock import patch

import pytest

from clipcut.exceptions import FfmpegNotFoundError
from clipcut.infra.ffmpeg_detector import (
    ToolStatus,
    _platform_install_commands,
    detect_ffmpeg,
    detect_ffprobe,
    require_tool,
)


# ---------------------------------------------------------------------------
# detect_*
# ---------------------------------------------------------------------------

class TestDetectTool:
    @patch("clipcut.infra.ffmpeg_detector.shutil.which")
    def test_found(self, mock_which: object) -> None:
        mock_which.return_value = "/usr/bin/ffmpeg"  # type: ignore[union-attr]
        status = detect_ffmpeg()

        assert status.name == "ffmpeg"
        assert status.found is True
        assert isinstance(status.path, Path)
        assert "found at" in status.version_hint
        assert status.install_commands == ()

    @patch("clipcut.infra.ffmpeg_detector.shutil.which")
    def test_not_found(self, mock_which: object) -> None:
        mock_which.return_value = None  # type: ignore[union-attr]
        status = detect_ffprobe()

        assert status.name == "ffprobe"
        assert status.found is False
        assert status.path is None
        assert status.version_hint == "not found"
        assert len(status.install_commands) > 0

    @patch("clipcut.infra.ffmpeg_detector.shutil.which")
    def test_override_is_looked_up(self, mock_which: object) -> None:
        mock_which.return_value = "/opt/ff/bin/ffmpeg"  # type: ignore[union-attr]
        detect_ffmpeg("/opt/ff/bin/ffmpeg")
        mock_which.assert_called_once_with("/opt/ff/bin/ffmpeg")  # type: ignore[union-attr]

    @patch("clipcut.infra.ffmpeg_detector.shutil.which", return_value=None)
    def test_missing_override_named(self, _mock_which: object) -> None:
        status = detect_ffmpeg("/opt/ff/bin/ffmpeg")
        assert status.version_hint == "/opt/ff/bin/ffmpeg not found"


# ---------------------------------------------------------------------------
# require_tool
# ---------------------------------------------------------------------------

class TestRequireTool:
    @patch("clipcut.infra.ffmpeg_detector.shutil.which", return_value="/usr/bin/ffprobe")
    def test_found_returns_path(self, _mock_which: object) -> None:
        assert isinstance(require_tool("ffprobe"), Path)

    @patch("clipcut.infra.ffmpeg_detector.shutil.which", return_value=None)
    def test_missing_raises(self, _mock_which: object) -> None:
        with pytest.raises(FfmpegNotFoundError, match="ffprobe is not installed"):
            require_tool("ffprobe")

    @patch("clipcut.infra.ffmpeg_detector.shutil.which", return_value=None)
    def test_missing_hint_contains_install_command(self, _mock_which: object) -> None:
        with pytest.raises(FfmpegNotFoundError) as exc_info:
            require_tool("ffmpeg")
        assert exc_info.value.hint is not None
        assert "Install ffmpeg" in exc_info.value.hint

    @patch("clipcut.infra.ffmpeg_detector.shutil.which", return_value=None)
    def test_missing_override_in_hint(self, _mock_which: object) -> None:
        with pytest.raises(FfmpegNotFoundError) as exc_info:
            require_tool("ffmpeg", "/nowhere/ffmpeg")
        assert exc_info.value.hint is not None
        assert "/nowhere/ffmpeg" in exc_info.value.hint


# ---------------------------------------------------------------------------
# Platform install commands
# ---------------------------------------------------------------------------

class TestPlatformInstallCommands:
    @patch("clipcut.infra.ffmpeg_detector.platform.system", return_value="Windows")
    def test_windows_commands(self, _mock_sys: object) -> None:
        cmds = _platform_install_commands()
        assert "winget install Gyan.FFmpeg" in cmds
        assert "choco install ffmpeg" in cmds

    @patch("clipcut.infra.ffmpeg_detector.platform.system", return_value="Linux")
    def test_linux_commands(self, _mock_sys: object) -> None:
        cmds = _platform_install_commands()
        assert any("apt" in c for c in cmds)
        assert any("dnf" in c for c in cmds)

    @patch("clipcut.infra.ffmpeg_detector.platform.system", return_value="Darwin")
    def test_darwin_commands(self, _mock_sys: object) -> None:
        assert _platform_install_commands() == ("brew install ffmpeg",)

    @patch("clipcut.infra.ffmpeg_detector.platform.system", return_value="Plan9")
    def test_unknown_platform(self, _mock_sys: object) -> None:
        cmds = _platform_install_commands()
        assert len(cmds) == 1
        assert "ffmpeg.org" in cmds[0]


# ---------------------------------------------------------------------------
# ToolStatus dataclass
# ---------------------------------------------------------------------------

class TestToolStatus:
    def test_frozen(self) -> None:
        status = ToolStatus(
            name="ffmpeg",
            found=True,
            path=Path("/usr/bin/ffmpeg"),
            version_hint="found",
            install_commands=(),
        )
        with pytest.raises(AttributeError):
            status.found = False  # type: ignore[misc]
