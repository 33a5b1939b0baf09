"""Protocols (interfaces) consumed by the core layer.

These define the contracts that infrastructure adapters must satisfy.
Core code depends ONLY on these protocols — never on concrete
implementations — preserving the dependency inversion principle.

All protocol methods are synchronous and may block; the core services
move them off the event loop with :func:`asyncio.to_thread`.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from pathlib import Path
from typing import Any, Protocol

from clipcut.core.models import PipelineDescription

ProgressCallback = Callable[[float], None]
"""Receives a completion fraction in ``[0.0, 1.0]``."""


class MediaProbe(Protocol):
    """Contract for metadata probing backends (e.g. ffprobe)."""

    def probe(self, path: Path) -> dict[str, Any]:
        """Return the raw probe document for *path*.

        The returned dict follows ffprobe's JSON layout: a ``"format"``
        mapping (with an optional ``"duration"``) and a ``"streams"``
        list whose entries carry ``"codec_type"`` and, for video,
        ``"width"`` / ``"height"``.

        Raises
        ------
        MetadataProbeError
            When the backend cannot read the file.
        """
        ...  # pragma: no cover

    def probe_duration(self, path: Path) -> float | None:
        """Measure the duration by scanning the stream itself.

        Used once for containers whose header reports no usable
        duration.  Returns ``None`` when nothing could be measured.

        Raises
        ------
        MetadataProbeError
            When the backend cannot read the file.
        """
        ...  # pragma: no cover


class EncodingEngine(Protocol):
    """Contract for the external encoder that executes a pipeline."""

    def initialize(self) -> None:
        """Prepare the engine for use (locate binaries, verify versions).

        Raises
        ------
        EncoderInitError
            When the engine cannot be made ready.
        """
        ...  # pragma: no cover

    def run(
        self,
        pipeline: PipelineDescription,
        input_path: Path,
        output_path: Path,
        *,
        progress_callback: ProgressCallback | None = None,
    ) -> None:
        """Execute *pipeline* on *input_path*, writing *output_path*.

        Raises
        ------
        ExportFailedError
            When the engine rejects the pipeline or the input.
        """
        ...  # pragma: no cover


class ThumbnailSource(Protocol):
    """Contract for single-frame capture at given timestamps."""

    def capture(self, path: Path, times: Sequence[float]) -> list[bytes | None]:
        """Return one encoded image per timestamp (``None`` on a miss).

        Raises
        ------
        ThumbnailError
            When the source cannot be opened at all.
        """
        ...  # pragma: no cover


class MediaFetcher(Protocol):
    """Contract for backends that download a remote source."""

    def fetch(
        self,
        url: str,
        dest_dir: Path,
        *,
        progress_callback: ProgressCallback | None = None,
    ) -> Path:
        """Download *url* into *dest_dir* and return the local file path.

        Raises
        ------
        MediaFetchError
            When the download fails for any reason.
        """
        ...  # pragma: no cover
