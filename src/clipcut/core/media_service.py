"""Core media service — loading, duration repair and thumbnails.

This service depends on a :class:`~clipcut.core.protocols.MediaProbe`
(and optionally a :class:`~clipcut.core.protocols.ThumbnailSource`)
injected at construction time, keeping the core free of subprocess or
ffmpeg imports.

Every operation is a coroutine: blocking probe calls run in a worker
thread and are bounded by an explicit timeout.

Guarantees
----------
* No ``print()``, no filesystem writes.
* Only :class:`~clipcut.exceptions.ClipcutError` subclasses escape
  :meth:`MediaService.load`.
* Duration repair and thumbnail capture never raise: an unknown
  duration stays unknown, a failed strip is empty.
"""

from __future__ import annotations

import asyncio
import logging
import math
from collections.abc import Callable
from dataclasses import replace
from pathlib import Path
from typing import Any, TypeVar

from clipcut.config import DEFAULT_PROBE_TIMEOUT, DEFAULT_THUMBNAIL_TIMEOUT
from clipcut.core.models import LoadRequest, LoadResult, SourceMetadata
from clipcut.core.protocols import MediaProbe, ThumbnailSource
from clipcut.exceptions import (
    ClipcutError,
    InvalidSourceError,
    MetadataProbeError,
    append_ffmpeg_upgrade_suggestion,
)

logger = logging.getLogger(__name__)

_T = TypeVar("_T")

DEFAULT_THUMBNAIL_COUNT: int = 15

# Last sample sits this far before the end so the grab lands on a frame.
_THUMBNAIL_END_MARGIN: float = 0.1


class MediaService:
    """Stateless service that loads sources and samples thumbnails.

    Parameters
    ----------
    probe:
        Any object satisfying the :class:`MediaProbe` protocol.
    thumbnail_source:
        Optional :class:`ThumbnailSource`; without one,
        :meth:`thumbnails` always returns an empty list.
    """

    def __init__(
        self,
        probe: MediaProbe,
        thumbnail_source: ThumbnailSource | None = None,
        *,
        probe_timeout: float = DEFAULT_PROBE_TIMEOUT,
        thumbnail_timeout: float = DEFAULT_THUMBNAIL_TIMEOUT,
    ) -> None:
        self._probe: MediaProbe = probe
        self._thumbnail_source: ThumbnailSource | None = thumbnail_source
        self._probe_timeout = probe_timeout
        self._thumbnail_timeout = thumbnail_timeout

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def load(self, request: LoadRequest) -> LoadResult:
        """Probe *request.path* and resolve its metadata.

        A valid ``known_duration_seconds`` (measured by a capturer) is
        preferred over the container's own duration field.  When the
        container reports no usable duration, or the duration is only a
        capturer's estimate, the result is flagged for a one-time repair
        via :meth:`resolve_duration`.

        Raises
        ------
        InvalidSourceError
            If the path does not point to a file.
        MetadataProbeError
            If probing fails, times out, or finds no video stream.
        """
        self._validate_path(request.path)
        info = await self._call(self._probe.probe, request.path)
        metadata = self._parse_metadata(info)

        known = valid_duration(request.known_duration_seconds)
        # Capture durations are estimates; the stream itself is authoritative.
        needs_repair = known is not None or not metadata.duration_known
        if known is not None:
            metadata = replace(metadata, duration_seconds=known)
            source = "capture"
        elif metadata.duration_known:
            source = "container"
        else:
            source = "unknown"

        logger.debug(
            "Loaded %s: %dx%d, %.3fs (%s)",
            request.path, metadata.width, metadata.height,
            metadata.duration_seconds, source,
        )
        return LoadResult(
            path=request.path,
            metadata=metadata,
            duration_source=source,
            needs_duration_repair=needs_repair,
        )

    async def resolve_duration(self, path: Path) -> float | None:
        """Measure the real duration of a container that reported none.

        Returns ``None`` when the duration cannot be determined; the
        failure is logged, never raised.
        """
        try:
            measured = await self._call(self._probe.probe_duration, path)
        except ClipcutError as exc:
            logger.warning("Duration repair failed for %s: %s", path, exc)
            return None
        return valid_duration(measured)

    async def thumbnails(
        self,
        path: Path,
        duration: float,
        count: int = DEFAULT_THUMBNAIL_COUNT,
    ) -> list[bytes | None]:
        """Capture *count* evenly spaced frames from a fresh decode of *path*.

        Resolves to ``[]`` when the duration is unknown, no thumbnail
        source is configured, or capture fails or times out.
        """
        if self._thumbnail_source is None or count <= 0:
            return []
        if valid_duration(duration) is None:
            logger.debug("Skipping thumbnails for %s: duration unknown", path)
            return []

        times = thumbnail_times(duration, count)
        try:
            return await asyncio.wait_for(
                asyncio.to_thread(self._thumbnail_source.capture, path, times),
                timeout=self._thumbnail_timeout,
            )
        except asyncio.TimeoutError:
            logger.warning("Thumbnail generation timed out for %s", path)
        except (ClipcutError, OSError) as exc:
            logger.warning("Thumbnail generation failed for %s: %s", path, exc)
        return []

    # ------------------------------------------------------------------
    # Path validation
    # ------------------------------------------------------------------

    @staticmethod
    def _validate_path(path: Path) -> None:
        """Raise :class:`InvalidSourceError` unless *path* is a file."""
        if not path.exists():
            raise InvalidSourceError(f"Source not found: {path}")
        if not path.is_file():
            raise InvalidSourceError(
                f"Source is not a file: {path}",
                hint="Pass a video file (mp4, webm, mov, ...) or an http(s) URL.",
            )

    # ------------------------------------------------------------------
    # Provider delegation (safe boundary)
    # ------------------------------------------------------------------

    async def _call(self, func: Callable[[Path], _T], path: Path) -> _T:
        """Run a blocking probe call off-loop; only our exceptions escape."""
        try:
            return await asyncio.wait_for(
                asyncio.to_thread(func, path),
                timeout=self._probe_timeout,
            )
        except ClipcutError:
            raise
        except asyncio.TimeoutError as exc:
            raise MetadataProbeError(
                f"Probing {path.name} timed out after {self._probe_timeout:g}s.",
                hint="Increase CLIPCUT_PROBE_TIMEOUT for very large files.",
            ) from exc
        except Exception as exc:
            raise MetadataProbeError(
                f"Unexpected probe error: {exc}",
            ) from exc

    # ------------------------------------------------------------------
    # Raw-dict -> domain-model parsers (pure)
    # ------------------------------------------------------------------

    @classmethod
    def _parse_metadata(cls, info: dict[str, Any]) -> SourceMetadata:
        """Convert a raw probe document into :class:`SourceMetadata`."""
        streams = cls._extract_streams(info)
        video = next(
            (
                stream
                for stream in streams
                if stream.get("codec_type") == "video"
                and _positive_int(stream.get("width"))
                and _positive_int(stream.get("height"))
            ),
            None,
        )
        if video is None:
            raise MetadataProbeError(
                "No video stream found in source.",
                hint=append_ffmpeg_upgrade_suggestion(
                    "The file may be audio-only, corrupt, or use an unsupported codec.",
                ),
            )

        width, height = int(video["width"]), int(video["height"])
        if _rotation(video) in (90, 270):
            width, height = height, width

        raw_format = info.get("format")
        format_info = raw_format if isinstance(raw_format, dict) else {}
        duration = valid_duration(format_info.get("duration"))
        if duration is None:
            duration = valid_duration(video.get("duration"))

        return SourceMetadata(
            duration_seconds=duration or 0.0,
            width=width,
            height=height,
            has_audio=any(stream.get("codec_type") == "audio" for stream in streams),
        )

    @staticmethod
    def _extract_streams(info: dict[str, Any]) -> list[dict[str, Any]]:
        """Safely pull the ``streams`` list from a raw probe document."""
        raw: object = info.get("streams")
        if not isinstance(raw, list):
            return []
        return [entry for entry in raw if isinstance(entry, dict)]


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def valid_duration(value: object) -> float | None:
    """Return *value* as seconds if finite and positive, else ``None``.

    Containers written by live recorders report ``"N/A"``, ``inf`` or
    ``0``; all of those count as unknown.
    """
    if value is None or isinstance(value, bool):
        return None
    try:
        seconds = float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return None
    if not math.isfinite(seconds) or seconds <= 0:
        return None
    return seconds


def thumbnail_times(duration: float, count: int) -> list[float]:
    """Evenly spaced sample times, the last one just before the end."""
    interval = duration / count
    last = max(0.0, duration - _THUMBNAIL_END_MARGIN)
    return [min(i * interval, last) for i in range(count)]


def _positive_int(value: object) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value > 0


def _rotation(stream: dict[str, Any]) -> int:
    """Display rotation in degrees (0, 90, 180, 270) for a video stream."""
    raw: object = None
    tags = stream.get("tags")
    if isinstance(tags, dict):
        raw = tags.get("rotate")
    side_data = stream.get("side_data_list")
    if raw is None and isinstance(side_data, list):
        raw = next(
            (entry.get("rotation") for entry in side_data
             if isinstance(entry, dict) and "rotation" in entry),
            None,
        )
    try:
        return int(float(raw)) % 360 if raw is not None else 0  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return 0
