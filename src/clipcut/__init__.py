"""clipcut — crop, trim and re-time a single video clip.

Pure geometry and pipeline compilation in ``core``; ffmpeg, ffprobe and
yt-dlp integration in ``infra``; a Rich-based command line in ``cli``.
"""

from clipcut.version import __version__

__all__: list[str] = ["__version__"]
