"""Shared pytest fixtures and configuration for the clipcut test suite.

Guidelines
----------
* No internet access in any test.
* ffmpeg, ffprobe and yt-dlp must be mocked at the infra boundary.
* Core tests must be pure — no side effects.
* Tests must not depend on OS state.
* Coroutines are driven with :func:`asyncio.run`.
"""

from __future__ import annotations

import pytest

from clipcut.core.models import (
    AspectLock,
    CropRect,
    EditSession,
    SourceMetadata,
    TrimInterval,
)


@pytest.fixture
def hd_metadata() -> SourceMetadata:
    """Ten seconds of 1920x1080 video with audio."""
    return SourceMetadata(duration_seconds=10.0, width=1920, height=1080)


@pytest.fixture
def hd_session() -> EditSession:
    """Untouched session for :func:`hd_metadata`."""
    return EditSession(
        crop=CropRect(0.0, 0.0, 1920.0, 1080.0),
        aspect_lock=AspectLock.none(),
        trim=TrimInterval(0.0, 10.0),
    )
