"""ffmpeg backed implementation of :class:`~clipcut.core.protocols.EncodingEngine`.

This module is the **only** place that turns a
:class:`~clipcut.core.models.PipelineDescription` into an ffmpeg command
line and executes it.  Every failure is re-raised as
:class:`~clipcut.exceptions.ExportFailedError` (or
:class:`~clipcut.exceptions.EncoderInitError` during initialization).

Progress is read from ``-progress pipe:1``: ffmpeg writes ``key=value``
lines to stdout, and ``out_time_us`` against the pipeline's expected
output duration gives the completion fraction.
"""

from __future__ import annotations

import logging
import subprocess
import threading
from collections import deque
from collections.abc import Iterable
from pathlib import Path

from clipcut.core.models import PipelineDescription
from clipcut.core.protocols import ProgressCallback
from clipcut.exceptions import (
    ClipcutError,
    EncoderInitError,
    ExportFailedError,
    append_ffmpeg_upgrade_suggestion,
)
from clipcut.infra.ffmpeg_detector import require_tool

logger = logging.getLogger(__name__)

_STDERR_TAIL_LINES: int = 20

_MUXERS: dict[str, str] = {"mp4": "mp4", "gif": "gif"}


def build_command(
    binary: str,
    pipeline: PipelineDescription,
    input_path: Path,
    output_path: Path,
) -> list[str]:
    """Assemble the full ffmpeg argument vector for *pipeline*."""
    command = [
        binary,
        "-hide_banner",
        "-nostdin",
        "-loglevel", "error",
        "-y",
        "-i", str(input_path),
        "-filter_complex", pipeline.filter_graph,
    ]
    for label in pipeline.output_maps:
        command.extend(["-map", label])
    command.extend(pipeline.encoder_args)
    command.extend(["-f", _MUXERS.get(pipeline.output_container, pipeline.output_container)])
    command.extend(["-progress", "pipe:1", "-nostats", str(output_path)])
    return command


def _drain_lines(stream: Iterable[str], tail: deque[str]) -> None:
    for line in stream:
        tail.append(line.rstrip("\n"))


def parse_progress_line(line: str, total_seconds: float) -> float | None:
    """Return the completion fraction encoded in one progress line.

    Only ``out_time_us`` (or the older, misnamed ``out_time_ms``, which
    is also microseconds) and ``progress=end`` carry information.
    """
    key, sep, value = line.strip().partition("=")
    if not sep:
        return None
    if key == "progress" and value == "end":
        return 1.0
    if key in ("out_time_us", "out_time_ms") and total_seconds > 0:
        try:
            micros = int(value)
        except ValueError:
            return None
        return max(0.0, min(1.0, micros / 1_000_000 / total_seconds))
    return None


class FfmpegEncodingEngine:
    """Concrete :class:`EncodingEngine` backed by the ffmpeg binary.

    Construction is cheap; :meth:`initialize` locates and verifies the
    binary and must succeed before :meth:`run` is used.
    """

    def __init__(self, ffmpeg_path: str | None = None) -> None:
        self._override = ffmpeg_path
        self._binary: Path | None = None
        self.version: str | None = None

    def __repr__(self) -> str:
        return f"FfmpegEncodingEngine(binary={self._binary}, version={self.version!r})"

    # ------------------------------------------------------------------
    # Protocol methods
    # ------------------------------------------------------------------

    def initialize(self) -> None:
        """Locate ffmpeg and read its version banner.

        Raises
        ------
        EncoderInitError
            When ffmpeg is missing or does not run.
        """
        try:
            binary = require_tool("ffmpeg", self._override)
        except ClipcutError as exc:
            raise EncoderInitError(str(exc), hint=exc.hint) from exc

        try:
            completed = subprocess.run(
                [str(binary), "-hide_banner", "-version"],
                capture_output=True,
                text=True,
                check=False,
                timeout=30,
            )
        except (OSError, subprocess.TimeoutExpired) as exc:
            raise EncoderInitError(f"Could not run ffmpeg: {exc}") from exc
        if completed.returncode != 0:
            raise EncoderInitError(
                f"ffmpeg exited with status {completed.returncode} during startup.",
            )

        first_line = completed.stdout.splitlines()[0] if completed.stdout else ""
        self.version = first_line.removeprefix("ffmpeg version ").split(" ")[0] or None
        self._binary = binary

    def run(
        self,
        pipeline: PipelineDescription,
        input_path: Path,
        output_path: Path,
        *,
        progress_callback: ProgressCallback | None = None,
    ) -> None:
        """Execute *pipeline*; blocks until ffmpeg exits.

        Raises
        ------
        ExportFailedError
            When ffmpeg cannot start or exits with a non-zero status.
        """
        if self._binary is None:
            raise ExportFailedError("Encoding engine used before initialization.")

        command = build_command(str(self._binary), pipeline, input_path, output_path)
        logger.debug("Running %s", subprocess.list2cmdline(command))

        stderr_tail: deque[str] = deque(maxlen=_STDERR_TAIL_LINES)
        try:
            with subprocess.Popen(
                command,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                text=True,
            ) as process:
                assert process.stdout is not None
                assert process.stderr is not None
                # A full stderr pipe would stall ffmpeg before stdout closes.
                reader = threading.Thread(
                    target=_drain_lines,
                    args=(process.stderr, stderr_tail),
                    name="ffmpeg-stderr",
                    daemon=True,
                )
                reader.start()
                for line in process.stdout:
                    fraction = parse_progress_line(line, pipeline.output_duration_seconds)
                    if fraction is not None and progress_callback is not None:
                        progress_callback(fraction)
                reader.join()
                returncode = process.wait()
        except OSError as exc:
            raise ExportFailedError(f"Could not run ffmpeg: {exc}") from exc

        if returncode != 0:
            detail = next((line for line in reversed(stderr_tail) if line.strip()), "")
            message = f"ffmpeg failed with status {returncode}."
            if detail:
                message = f"ffmpeg failed with status {returncode}: {detail}"
            raise ExportFailedError(
                message,
                hint=append_ffmpeg_upgrade_suggestion(
                    "Check that the source is a readable video file.",
                ),
            )
