"""Infrastructure layer — external system integration.

This layer wraps all interaction with ffmpeg, ffprobe, yt-dlp and the
operating system.  Every raw third-party exception must be caught here
and re-raised as a :class:`~clipcut.exceptions.ClipcutError` subclass.

Rules
-----
* No imports from ``cli``.
* No user-facing output (no ``print()``, no Rich rendering).
* Must expose clean, typed interfaces consumed by the core layer.
"""

from clipcut.infra.ffmpeg_detector import ToolStatus, detect_ffmpeg, detect_ffprobe, require_tool
from clipcut.infra.ffmpeg_engine import FfmpegEncodingEngine
from clipcut.infra.ffprobe_probe import FfprobeMediaProbe
from clipcut.infra.thumbnails import FfmpegThumbnailSource
from clipcut.infra.ytdlp_fetcher import YtDlpMediaFetcher, is_remote_source

__all__: list[str] = [
    "FfmpegEncodingEngine",
    "FfmpegThumbnailSource",
    "FfprobeMediaProbe",
    "ToolStatus",
    "YtDlpMediaFetcher",
    "detect_ffmpeg",
    "detect_ffprobe",
    "is_remote_source",
    "require_tool",
]
