"""yt-dlp backed implementation of :class:`~clipcut.core.protocols.MediaFetcher`.

This module is the **only** place in the codebase that imports ``yt_dlp``.
All yt-dlp exceptions are caught here and re-raised as
:class:`~clipcut.exceptions.MediaFetchError` — nothing raw escapes the
infrastructure boundary.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from pathlib import Path
from typing import Any

from clipcut.core.protocols import ProgressCallback
from clipcut.exceptions import EnvironmentError, MediaFetchError

logger = logging.getLogger(__name__)

DEFAULT_FORMAT: str = "bv*+ba/b"


def is_remote_source(source: str) -> bool:
    """Return ``True`` when *source* looks like an http(s) URL."""
    return source.lower().startswith(("http://", "https://"))


class YtDlpMediaFetcher:
    """Concrete :class:`MediaFetcher` backed by the yt-dlp Python API.

    Usage::

        fetcher = YtDlpMediaFetcher()
        path = fetcher.fetch("https://example.com/clip", Path("/tmp"))
    """

    # Substrings in yt-dlp error messages that indicate the video itself
    # is unavailable (as opposed to a transient or extraction error).
    _UNAVAILABLE_SIGNALS: tuple[str, ...] = (
        "unavailable",
        "private video",
        "removed",
        "not available",
        "account terminated",
        "sign in to confirm your age",
    )

    def __init__(self, format_spec: str = DEFAULT_FORMAT) -> None:
        self._format_spec = format_spec

    def _build_opts(
        self,
        dest_dir: Path,
        *,
        progress_callback: ProgressCallback | None = None,
    ) -> dict[str, Any]:
        """Return yt-dlp options for downloading into *dest_dir*."""
        hooks: list[Callable[[dict[str, Any]], None]] = []
        if progress_callback is not None:
            hooks.append(_progress_hook(progress_callback))

        return {
            "format": self._format_spec,
            "outtmpl": str(dest_dir / "%(title).80s [%(id)s].%(ext)s"),
            "quiet": True,
            "no_warnings": True,
            "no_color": True,
            "noplaylist": True,
            "progress_hooks": hooks,
            "merge_output_format": "mp4",
        }

    # ------------------------------------------------------------------
    # Protocol method
    # ------------------------------------------------------------------

    def fetch(
        self,
        url: str,
        dest_dir: Path,
        *,
        progress_callback: ProgressCallback | None = None,
    ) -> Path:
        """Download *url* into *dest_dir* and return the written file.

        Raises
        ------
        EnvironmentError
            When yt-dlp is not installed.
        MediaFetchError
            For any yt-dlp error during the download.
        """
        opts = self._build_opts(dest_dir, progress_callback=progress_callback)

        try:
            import yt_dlp
            import yt_dlp.utils
        except ModuleNotFoundError as exc:
            raise EnvironmentError(
                "yt-dlp is not installed. Install with: pip install yt-dlp",
            ) from exc

        logger.info("Fetching %s", url)
        try:
            with yt_dlp.YoutubeDL(opts) as ydl:
                info: Any = ydl.extract_info(url, download=True)
                if not isinstance(info, dict):
                    raise MediaFetchError(
                        "yt-dlp returned no information for the given URL.",
                        hint="The URL may not point to a valid video.",
                    )
                path = _downloaded_path(info) or Path(ydl.prepare_filename(info))
        except MediaFetchError:
            raise
        except yt_dlp.utils.DownloadError as exc:
            self._raise_mapped(exc)
        except Exception as exc:
            raise MediaFetchError(
                f"Unexpected yt-dlp download error: {exc}",
            ) from exc

        if not path.is_file():
            raise MediaFetchError(f"Download finished but {path.name} is missing.")
        return path

    # ------------------------------------------------------------------
    # Exception mapping
    # ------------------------------------------------------------------

    @classmethod
    def _raise_mapped(cls, exc: Exception) -> None:
        """Translate a yt-dlp ``DownloadError`` into :class:`MediaFetchError`."""
        msg_lower = str(exc).lower()
        if any(signal in msg_lower for signal in cls._UNAVAILABLE_SIGNALS):
            raise MediaFetchError(
                str(exc),
                hint="The video may be private, removed, or geo-restricted.",
            ) from exc
        raise MediaFetchError(
            str(exc),
            hint="Check the URL and your network connection.",
        ) from exc


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _progress_hook(callback: ProgressCallback) -> Callable[[dict[str, Any]], None]:
    """Adapt a fraction callback to yt-dlp's progress-hook dict."""

    def hook(data: dict[str, Any]) -> None:
        status = data.get("status")
        if status == "finished":
            callback(1.0)
            return
        if status != "downloading":
            return
        total = data.get("total_bytes") or data.get("total_bytes_estimate")
        downloaded = data.get("downloaded_bytes")
        if total and downloaded is not None:
            callback(max(0.0, min(1.0, downloaded / total)))

    return hook


def _downloaded_path(info: dict[str, Any]) -> Path | None:
    """Final file path recorded by yt-dlp after merging, if any."""
    downloads = info.get("requested_downloads")
    if isinstance(downloads, list):
        for entry in downloads:
            if isinstance(entry, dict) and entry.get("filepath"):
                return Path(entry["filepath"])
    filepath = info.get("filepath")
    return Path(filepath) if filepath else None
