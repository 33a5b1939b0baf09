"""ffprobe backed implementation of :class:`~clipcut.core.protocols.MediaProbe`.

All subprocess and JSON errors are caught here and re-raised as
:class:`~clipcut.exceptions.MetadataProbeError` — nothing raw escapes
the infrastructure boundary.
"""

from __future__ import annotations

import json
import logging
import subprocess
from pathlib import Path
from typing import Any

from clipcut.exceptions import MetadataProbeError
from clipcut.infra.ffmpeg_detector import require_tool

logger = logging.getLogger(__name__)


class FfprobeMediaProbe:
    """Concrete :class:`MediaProbe` backed by the ffprobe binary.

    Usage::

        probe = FfprobeMediaProbe()
        info = probe.probe(Path("clip.mp4"))

    Parameters
    ----------
    ffprobe_path:
        Optional explicit binary (``CLIPCUT_FFPROBE``); ``PATH`` lookup
        otherwise.  Resolved lazily on first use.
    timeout:
        Hard limit in seconds for a single ffprobe process.
    """

    def __init__(self, ffprobe_path: str | None = None, *, timeout: float | None = None) -> None:
        self._override = ffprobe_path
        self._timeout = timeout
        self._binary: Path | None = None

    # ------------------------------------------------------------------
    # Protocol methods
    # ------------------------------------------------------------------

    def probe(self, path: Path) -> dict[str, Any]:
        """Return ffprobe's ``-show_format -show_streams`` JSON for *path*."""
        output = self._run(
            [
                "-v", "error",
                "-print_format", "json",
                "-show_format",
                "-show_streams",
                str(path),
            ]
        )
        try:
            info: Any = json.loads(output)
        except json.JSONDecodeError as exc:
            raise MetadataProbeError(
                "ffprobe returned malformed JSON.",
            ) from exc
        if not isinstance(info, dict):
            raise MetadataProbeError("ffprobe returned an unexpected data structure.")
        return info

    def probe_duration(self, path: Path) -> float | None:
        """Measure the duration from the last video packet's end time.

        Needed for containers (typically live-recorded WebM) whose
        header carries no duration.
        """
        output = self._run(
            [
                "-v", "error",
                "-select_streams", "v:0",
                "-show_entries", "packet=pts_time,duration_time",
                "-of", "csv=p=0",
                str(path),
            ]
        )
        return parse_packet_end(output)

    # ------------------------------------------------------------------
    # Subprocess boundary
    # ------------------------------------------------------------------

    def _resolve_binary(self) -> Path:
        if self._binary is None:
            self._binary = require_tool("ffprobe", self._override)
        return self._binary

    def _run(self, args: list[str]) -> str:
        command = [str(self._resolve_binary()), *args]
        logger.debug("Running %s", " ".join(command))
        try:
            completed = subprocess.run(
                command,
                capture_output=True,
                text=True,
                check=False,
                timeout=self._timeout,
            )
        except subprocess.TimeoutExpired as exc:
            raise MetadataProbeError(
                f"ffprobe timed out after {self._timeout:g}s.",
            ) from exc
        except OSError as exc:
            raise MetadataProbeError(f"Could not run ffprobe: {exc}") from exc

        if completed.returncode != 0:
            detail = _last_line(completed.stderr) or f"exit status {completed.returncode}"
            raise MetadataProbeError(
                f"ffprobe failed: {detail}",
                hint="The file may be corrupt or not a video.",
            )
        return completed.stdout


# ---------------------------------------------------------------------------
# Parsing (pure)
# ---------------------------------------------------------------------------

def parse_packet_end(output: str) -> float | None:
    """Largest ``pts + duration`` over ``pts_time,duration_time`` CSV rows."""
    end: float | None = None
    for line in output.splitlines():
        fields = [field.strip() for field in line.split(",")]
        try:
            pts = float(fields[0])
        except (IndexError, ValueError):
            continue
        try:
            duration = float(fields[1]) if len(fields) > 1 else 0.0
        except ValueError:
            duration = 0.0
        candidate = pts + duration
        if end is None or candidate > end:
            end = candidate
    return end


def _last_line(text: str) -> str:
    lines = [line.strip() for line in text.splitlines() if line.strip()]
    return lines[-1] if lines else ""
