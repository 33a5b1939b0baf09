"""Core / service layer — pure editing logic and orchestration.

Rules
-----
* No ``print()`` calls.
* No subprocess or network I/O; services reach the outside world only
  through the protocols in :mod:`clipcut.core.protocols`.
* No imports from ``cli`` or ``infra``.
* Geometry, trim, playback and compilation functions are deterministic.
"""

from clipcut.core.editor import EditorController
from clipcut.core.export_compiler import compile_pipeline, tempo_chain
from clipcut.core.export_service import ExportService
from clipcut.core.media_service import MediaService
from clipcut.core.models import (
    AspectLock,
    CropRect,
    EditSession,
    ExportFormat,
    ExportQuality,
    LoadRequest,
    LoadResult,
    PipelineDescription,
    SourceMetadata,
    TrimInterval,
)
from clipcut.core.protocols import EncodingEngine, MediaFetcher, MediaProbe, ThumbnailSource

__all__: list[str] = [
    "AspectLock",
    "CropRect",
    "EditSession",
    "EditorController",
    "EncodingEngine",
    "ExportFormat",
    "ExportQuality",
    "ExportService",
    "LoadRequest",
    "LoadResult",
    "MediaFetcher",
    "MediaProbe",
    "MediaService",
    "PipelineDescription",
    "SourceMetadata",
    "ThumbnailSource",
    "TrimInterval",
    "compile_pipeline",
    "tempo_chain",
]
