"""ffmpeg backed implementation of :class:`~clipcut.core.protocols.ThumbnailSource`.

Each timestamp is grabbed by its own short ffmpeg run that seeks in the
input and writes one scaled JPEG frame to stdout.  The decoder is never
shared with an export or with anything else.

With a *timeout*, the whole strip shares one deadline: each run is
killed when the remaining budget expires, and no further runs start
after that.
"""

from __future__ import annotations

import logging
import subprocess
import time
from collections.abc import Sequence
from pathlib import Path

from clipcut.exceptions import ClipcutError, ThumbnailError
from clipcut.infra.ffmpeg_detector import require_tool

logger = logging.getLogger(__name__)

THUMBNAIL_HEIGHT: int = 60

_JPEG_MAGIC: bytes = b"\xff\xd8"


def frame_command(binary: str, path: Path, at: float, height: int = THUMBNAIL_HEIGHT) -> list[str]:
    """ffmpeg arguments that emit a single JPEG frame at *at* seconds."""
    return [
        binary,
        "-hide_banner",
        "-nostdin",
        "-v", "error",
        "-ss", f"{max(0.0, at):.3f}",
        "-i", str(path),
        "-frames:v", "1",
        "-vf", f"scale=-2:{height}",
        "-f", "image2pipe",
        "-vcodec", "mjpeg",
        "pipe:1",
    ]


class FfmpegThumbnailSource:
    """Concrete :class:`ThumbnailSource` using one ffmpeg run per frame."""

    def __init__(
        self,
        ffmpeg_path: str | None = None,
        *,
        height: int = THUMBNAIL_HEIGHT,
        timeout: float | None = None,
    ) -> None:
        self._override = ffmpeg_path
        self._height = height
        self._timeout = timeout

    def capture(self, path: Path, times: Sequence[float]) -> list[bytes | None]:
        """Grab one frame per timestamp; misses are ``None``.

        Timestamps left over once the deadline has passed are misses too.

        Raises
        ------
        ThumbnailError
            When ffmpeg itself cannot be located or started.
        """
        try:
            binary = str(require_tool("ffmpeg", self._override))
        except ClipcutError as exc:
            raise ThumbnailError(str(exc), hint=exc.hint) from exc

        deadline = None if self._timeout is None else time.monotonic() + self._timeout
        frames: list[bytes | None] = []
        for at in times:
            remaining = None if deadline is None else deadline - time.monotonic()
            if remaining is not None and remaining <= 0:
                logger.debug("Thumbnail budget spent after %d/%d frames", len(frames), len(times))
                frames.extend([None] * (len(times) - len(frames)))
                break
            frames.append(self._grab(binary, path, at, remaining))
        logger.debug(
            "Captured %d/%d thumbnails from %s",
            sum(frame is not None for frame in frames), len(frames), path,
        )
        return frames

    def _grab(self, binary: str, path: Path, at: float, timeout: float | None) -> bytes | None:
        try:
            completed = subprocess.run(
                frame_command(binary, path, at, self._height),
                capture_output=True,
                check=False,
                timeout=timeout,
            )
        except subprocess.TimeoutExpired:
            logger.debug("Frame grab at %.3fs in %s timed out", at, path)
            return None
        except OSError as exc:
            raise ThumbnailError(f"Could not run ffmpeg: {exc}") from exc

        data = completed.stdout
        if completed.returncode != 0 or not data.startswith(_JPEG_MAGIC):
            logger.debug("No frame at %.3fs in %s", at, path)
            return None
        return data
