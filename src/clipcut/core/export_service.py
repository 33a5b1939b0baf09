"""Core export service — drives one encode at a time.

The service compiles the session, lazily prepares the encoding engine
and runs it off the event loop.  It is responsible for:

* Rejecting a second export while one is in flight.
* Creating and initializing the engine on first use only, then reusing
  it for every later export.
* Turning raw engine progress into a monotonically non-decreasing
  percentage.
* Writing to a temporary file and exposing the output only on success.
* Ensuring only :class:`~clipcut.exceptions.ClipcutError` subclasses
  escape, with the in-progress flag cleared on every path.

The :class:`~clipcut.core.models.EditSession` is only ever read.
"""

from __future__ import annotations

import asyncio
import logging
import threading
from collections.abc import Callable
from datetime import date
from pathlib import Path

from clipcut.core.export_compiler import compile_pipeline
from clipcut.core.models import EditSession, ExportResult, SourceMetadata
from clipcut.core.protocols import EncodingEngine
from clipcut.exceptions import (
    ClipcutError,
    EncoderInitError,
    ExportFailedError,
    ExportInProgressError,
)

logger = logging.getLogger(__name__)

PercentCallback = Callable[[int], None]

# (upper bound exclusive, label).  Bounds are coarse and not evenly spaced.
_PHASES: tuple[tuple[int, str], ...] = (
    (30, "Processing video"),
    (70, "Applying effects"),
    (100, "Finalizing"),
)


# ---------------------------------------------------------------------------
# Pure helpers
# ---------------------------------------------------------------------------

def export_phase_label(percent: int) -> str:
    """Map a progress percentage to a human-readable phase."""
    for bound, label in _PHASES:
        if percent < bound:
            return label
    return "Done"


def build_output_filename(source_name: str, container: str, today: date) -> str:
    """``{name-without-extension}_edited_{YYYY-MM-DD}.{container}``."""
    stem = Path(source_name).stem or "clip"
    return f"{stem}_edited_{today.isoformat()}.{container}"


class MonotonicProgress:
    """Callable adapter: fraction in, non-decreasing integer percent out.

    Engines call it from a worker thread; values that would move the
    percentage backwards or repeat it are dropped.
    """

    def __init__(self, callback: PercentCallback | None) -> None:
        self._callback = callback
        self._percent = -1
        self._lock = threading.Lock()

    @property
    def percent(self) -> int:
        return max(self._percent, 0)

    def __call__(self, fraction: float) -> None:
        if not fraction >= 0:
            return
        percent = min(100, int(fraction * 100))
        with self._lock:
            if percent <= self._percent:
                return
            self._percent = percent
        if self._callback is not None:
            self._callback(percent)


# ---------------------------------------------------------------------------
# Service
# ---------------------------------------------------------------------------

class ExportService:
    """Runs exports through a lazily created, memoized engine.

    Parameters
    ----------
    engine_factory:
        Zero-argument callable returning an uninitialized
        :class:`EncodingEngine`.  Called at most once per successful
        initialization.
    """

    def __init__(self, engine_factory: Callable[[], EncodingEngine]) -> None:
        self._engine_factory = engine_factory
        self._engine: EncodingEngine | None = None
        self._in_progress = False

    @property
    def in_progress(self) -> bool:
        return self._in_progress

    @property
    def engine_ready(self) -> bool:
        return self._engine is not None

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def export(
        self,
        session: EditSession,
        metadata: SourceMetadata,
        source: Path,
        output_dir: Path,
        *,
        progress_callback: PercentCallback | None = None,
        today: date | None = None,
    ) -> ExportResult:
        """Render *session* applied to *source* into *output_dir*.

        Raises
        ------
        ExportInProgressError
            When another export on this service has not finished.
        InvalidEditError
            When the session cannot be compiled.
        ExportFailedError
            When the engine cannot be initialized or fails to encode.
        """
        if self._in_progress:
            raise ExportInProgressError(
                "An export is already running.",
                hint="Wait for it to finish before starting another.",
            )

        self._in_progress = True
        try:
            return await self._export(
                session, metadata, source, output_dir,
                progress_callback=progress_callback,
                today=today or date.today(),
            )
        finally:
            self._in_progress = False

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    async def _export(
        self,
        session: EditSession,
        metadata: SourceMetadata,
        source: Path,
        output_dir: Path,
        *,
        progress_callback: PercentCallback | None,
        today: date,
    ) -> ExportResult:
        pipeline = compile_pipeline(session, metadata)
        engine = await self._get_engine()

        filename = build_output_filename(source.name, pipeline.output_container, today)
        output_path = output_dir / filename
        partial_path = output_dir / f".{filename}.part"
        progress = MonotonicProgress(progress_callback)

        logger.info("Exporting %s -> %s", source, output_path)
        try:
            output_dir.mkdir(parents=True, exist_ok=True)
            await asyncio.to_thread(
                engine.run,
                pipeline,
                source,
                partial_path,
                progress_callback=progress,
            )
            partial_path.replace(output_path)
        except ClipcutError:
            raise
        except Exception as exc:
            raise ExportFailedError(f"Unexpected export error: {exc}") from exc
        finally:
            # No partial output survives a failed or cancelled run.
            partial_path.unlink(missing_ok=True)

        progress(1.0)
        return ExportResult(
            path=output_path,
            container=pipeline.output_container,
            mime_type=pipeline.mime_type,
            size_bytes=output_path.stat().st_size,
        )

    async def _get_engine(self) -> EncodingEngine:
        """Return the memoized engine, creating it on first use."""
        if self._engine is not None:
            return self._engine

        try:
            engine = self._engine_factory()
            await asyncio.to_thread(engine.initialize)
        except ClipcutError:
            raise
        except Exception as exc:
            raise EncoderInitError(
                f"Could not initialize the encoding engine: {exc}",
            ) from exc

        logger.debug("Encoding engine initialized: %r", engine)
        self._engine = engine
        return engine
