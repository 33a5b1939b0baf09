"""Custom exception hierarchy for clipcut.

All exceptions that cross layer boundaries must inherit from
:class:`ClipcutError`.  Raw third-party exceptions (subprocess failures,
yt-dlp errors, malformed ffprobe output) must NEVER propagate beyond the
infrastructure layer — they are caught and re-raised as a typed subclass
defined here.

Interactive geometry and trim handlers never raise: boundary violations
are resolved by clamping, not reported.

Hierarchy
---------
ClipcutError
├── InvalidSourceError
├── MetadataProbeError
├── MediaFetchError
├── InvalidEditError
├── ThumbnailError
├── ExportFailedError
│   └── EncoderInitError
├── ExportInProgressError
├── PromptCancelledError
├── FfmpegNotFoundError
└── EnvironmentError
    └── EnvironmentCheckError
"""

from __future__ import annotations


class ClipcutError(Exception):
    """Base exception for all clipcut errors.

    Every user-visible error condition must map to a subclass of this
    exception so that the CLI error boundary can render a clean message
    without leaking internal stack traces.
    """

    def __init__(self, message: str, *, hint: str | None = None) -> None:
        super().__init__(message)
        self.hint: str | None = hint
        """Optional actionable guidance shown below the error message."""


# --- Source loading --------------------------------------------------------

class InvalidSourceError(ClipcutError):
    """Raised when the source path or URL cannot be used as input."""


class MetadataProbeError(ClipcutError):
    """Raised when ffprobe fails or reports no usable video stream."""


class MediaFetchError(ClipcutError):
    """Raised when a remote source cannot be downloaded."""


# --- Editing ---------------------------------------------------------------

class InvalidEditError(ClipcutError):
    """Raised when edit parameters cannot be compiled into a pipeline."""


class ThumbnailError(ClipcutError):
    """Raised by thumbnail sources; always absorbed by the media service."""


# --- Export ----------------------------------------------------------------

class ExportFailedError(ClipcutError):
    """Raised once per failed export attempt.  No partial output remains."""


class EncoderInitError(ExportFailedError):
    """Raised when the encoding engine cannot be initialized."""


class ExportInProgressError(ClipcutError):
    """Raised when an export is requested while another one is running."""


class PromptCancelledError(ClipcutError):
    """Raised when the user dismisses an interactive prompt."""


# --- Environment / tooling -------------------------------------------------

class FfmpegNotFoundError(ClipcutError):
    """Raised when ffmpeg or ffprobe cannot be located."""


class EnvironmentError(ClipcutError):
    """Raised when a required runtime dependency is not available."""


class EnvironmentCheckError(EnvironmentError):
    """Raised when a required environment precondition is not met."""


def append_ffmpeg_upgrade_suggestion(hint: str) -> str:
    """Append ffmpeg upgrade guidance to an existing hint text.

    The suggestion is appended only once and preserves the original
    hint content verbatim.
    """
    marker = "Also try a recent ffmpeg build:"
    if marker in hint:
        return hint
    return "\n".join(
        (
            hint,
            marker,
            "    https://ffmpeg.org/download.html",
        )
    )
