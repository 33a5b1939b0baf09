"""CLI application entry point and command routing for clipcut.

This module is the **sole error boundary** for the entire application.
It catches :class:`~clipcut.exceptions.ClipcutError`, ``KeyboardInterrupt``,
and any unexpected ``Exception``, rendering user-friendly messages via Rich
and returning well-defined exit codes.

Architecture notes
------------------
* No business logic lives here — all work is delegated to the core/service
  and infrastructure layers.
* ``print()`` is forbidden outside the CLI layer; Rich console is used
  exclusively.
* This module is the only place that translates between the domain world
  and the OS process exit code, and the only place that starts an event
  loop.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
import tempfile
from collections.abc import Sequence
from pathlib import Path

from clipcut.cli import exit_codes
from clipcut.cli.console import configure_logging, console
from clipcut.config import Settings
from clipcut.core.editor import EditorController
from clipcut.core.models import CropRect, EditSession, ExportFormat, ExportQuality, SourceMetadata
from clipcut.core.presets import ASPECT_PRESETS
from clipcut.exceptions import ClipcutError, InvalidSourceError
from clipcut.utils.timefmt import parse_time
from clipcut.version import __version__

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Argument types
# ---------------------------------------------------------------------------

def _timestamp(text: str) -> float:
    try:
        return parse_time(text)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(str(exc)) from exc


def _crop(text: str) -> CropRect:
    """Parse ``W:H:X:Y`` (ffmpeg's crop order) into a :class:`CropRect`."""
    parts = text.split(":")
    try:
        width, height, x, y = (float(part) for part in parts)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(
            f"expected W:H:X:Y, got {text!r}",
        ) from exc
    return CropRect(x=x, y=y, width=width, height=height)


def _positive_float(text: str) -> float:
    try:
        value = float(text)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"not a number: {text!r}") from exc
    if not value > 0:
        raise argparse.ArgumentTypeError(f"must be positive: {text!r}")
    return value


# ---------------------------------------------------------------------------
# Argument parser
# ---------------------------------------------------------------------------

def _build_parser() -> argparse.ArgumentParser:
    """Construct the top-level argument parser.

    The CLI supports:
    * ``clipcut <file-or-url> [edit options]`` — crop/trim/speed and export
    * ``clipcut doctor``  — environment diagnostics
    * ``clipcut --version``
    """
    parser = argparse.ArgumentParser(
        prog="clipcut",
        description="Crop, trim and re-time a video, then export MP4 or GIF.",
    )
    parser.add_argument(
        "-V",
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "target",
        nargs="?",
        default=None,
        help="Video file or http(s) URL to edit, or 'doctor' to run diagnostics.",
    )

    edit = parser.add_argument_group("edit")
    edit.add_argument(
        "--preset",
        choices=list(ASPECT_PRESETS),
        help="Aspect-ratio preset; centres the largest fitting crop.",
    )
    edit.add_argument(
        "--crop",
        type=_crop,
        metavar="W:H:X:Y",
        help="Explicit crop rectangle in source pixels (applied after --preset).",
    )
    edit.add_argument(
        "--trim",
        nargs=2,
        type=_timestamp,
        metavar=("START", "END"),
        help="Keep only START..END (seconds, MM:SS or HH:MM:SS).",
    )
    edit.add_argument(
        "--speed",
        type=_positive_float,
        help="Playback speed multiplier (clamped to 0.25-4).",
    )
    edit.add_argument(
        "--format",
        dest="export_format",
        choices=[fmt.value for fmt in ExportFormat],
        help="Output format (default: mp4).",
    )
    edit.add_argument(
        "--quality",
        choices=[quality.value for quality in ExportQuality],
        help="Quality tier (default: medium).",
    )
    edit.add_argument(
        "--known-duration",
        type=_positive_float,
        metavar="SECONDS",
        help="Duration measured while recording; verified against the stream.",
    )

    out = parser.add_argument_group("output")
    out.add_argument(
        "-o",
        "--output-dir",
        type=Path,
        default=Path.cwd(),
        help="Directory for the exported file (default: current directory).",
    )
    out.add_argument(
        "--thumbnails",
        type=Path,
        metavar="DIR",
        help="Also write a strip of timeline thumbnails into DIR.",
    )
    parser.add_argument(
        "-i",
        "--interactive",
        action="store_true",
        help="Choose preset, trim, speed, format and quality interactively.",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Show debug logging.",
    )
    return parser


# ---------------------------------------------------------------------------
# Command dispatch
# ---------------------------------------------------------------------------

async def _resolve_source(target: str, scratch: Path) -> Path:
    """Return a local path for *target*, downloading URLs into *scratch*."""
    from clipcut.infra.ytdlp_fetcher import YtDlpMediaFetcher, is_remote_source

    if not is_remote_source(target):
        return Path(target).expanduser()

    from clipcut.cli.progress import RichFetchProgress

    console.print(f"\n[bold]Fetching…[/bold]  {target}\n")
    with RichFetchProgress() as hook:
        return await asyncio.to_thread(
            YtDlpMediaFetcher().fetch, target, scratch, progress_callback=hook,
        )


def _apply_options(controller: EditorController, args: argparse.Namespace) -> None:
    """Apply edit options in a fixed order: preset, crop, trim, speed, output."""
    if args.preset is not None:
        controller.select_aspect_preset(args.preset)
    if args.crop is not None:
        controller.set_crop_rect(args.crop)
    if args.trim is not None:
        if controller.session is not None and controller.session.trim is None:
            console.print("[yellow]Duration unknown; --trim ignored.[/yellow]")
        else:
            controller.set_trim(*args.trim)
    if args.speed is not None:
        controller.set_speed(args.speed)
    if args.export_format is not None:
        controller.set_export_format(ExportFormat(args.export_format))
    if args.quality is not None:
        controller.set_export_quality(ExportQuality(args.quality))


def _loaded(controller: EditorController) -> tuple[EditSession, SourceMetadata]:
    session, metadata = controller.session, controller.metadata
    if session is None or metadata is None:
        raise InvalidSourceError("No video is loaded in the editor.")
    return session, metadata


def _write_thumbnails(strip: Sequence[bytes | None], dest: Path) -> int:
    """Write captured frames as ``thumb_NN.jpg``; returns how many."""
    dest.mkdir(parents=True, exist_ok=True)
    written = 0
    for index, frame in enumerate(strip):
        if frame is None:
            continue
        (dest / f"thumb_{index:02d}.jpg").write_bytes(frame)
        written += 1
    return written


async def _run_edit(args: argparse.Namespace, settings: Settings) -> int:
    """Load, edit and export a single source.

    Flow:
    1. Resolve the source (download URLs via yt-dlp).
    2. Probe it and repair an unknown or estimated duration once.
    3. Optionally capture a thumbnail strip.
    4. Apply command-line options, then interactive prompts.
    5. Export with Rich progress.
    """
    from clipcut.cli.edit_prompt import display_summary, prompt_edit_options
    from clipcut.cli.progress import RichExportProgress
    from clipcut.core.export_service import ExportService
    from clipcut.core.media_service import MediaService
    from clipcut.core.models import LoadRequest
    from clipcut.infra.ffmpeg_engine import FfmpegEncodingEngine
    from clipcut.infra.ffprobe_probe import FfprobeMediaProbe
    from clipcut.infra.thumbnails import FfmpegThumbnailSource

    media = MediaService(
        FfprobeMediaProbe(settings.ffprobe_path, timeout=settings.probe_timeout),
        FfmpegThumbnailSource(settings.ffmpeg_path, timeout=settings.thumbnail_timeout),
        probe_timeout=settings.probe_timeout,
        thumbnail_timeout=settings.thumbnail_timeout,
    )
    exporter = ExportService(lambda: FfmpegEncodingEngine(settings.ffmpeg_path))
    controller = EditorController()

    with tempfile.TemporaryDirectory(prefix="clipcut-") as scratch:
        source = await _resolve_source(args.target, Path(scratch))

        result = await media.load(LoadRequest(source, args.known_duration))
        controller.load(result)
        if result.needs_duration_repair:
            measured = await media.resolve_duration(source)
            if controller.apply_duration_correction(measured):
                logger.info("Duration corrected to %.3fs", measured)

        _, metadata = _loaded(controller)

        if args.thumbnails is not None:
            strip = await media.thumbnails(source, metadata.duration_seconds)
            written = _write_thumbnails(strip, args.thumbnails)
            console.print(f"[dim]{written} thumbnails written to {args.thumbnails}[/dim]")

        _apply_options(controller, args)
        if args.interactive:
            prompt_edit_options(controller)

        session, metadata = _loaded(controller)
        display_summary(source.name, metadata, session)

        with RichExportProgress() as hook:
            exported = await exporter.export(
                session, metadata, source, args.output_dir,
                progress_callback=hook,
            )

    size_mb = exported.size_bytes / (1024 * 1024)
    console.print(
        f"\n[bold green]Export complete.[/bold green]  {exported.path} ({size_mb:.1f} MB)"
    )
    return exit_codes.SUCCESS


def _handle_edit(args: argparse.Namespace) -> int:
    settings = Settings.from_env()
    return asyncio.run(_run_edit(args, settings))


def _handle_doctor() -> int:
    """Dispatch the ``doctor`` diagnostics command."""
    from clipcut.cli.doctor import run_doctor

    return run_doctor(Settings.from_env())


# ---------------------------------------------------------------------------
# Main entry point
# ---------------------------------------------------------------------------

def main(argv: list[str] | None = None) -> int:
    """Run the clipcut CLI.

    Parameters
    ----------
    argv:
        Explicit argument list.  When ``None`` (default), ``sys.argv[1:]``
        is used.  Accepting *argv* enables deterministic testing without
        monkeypatching.

    Returns
    -------
    int
        OS process exit code.
    """
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.target is None:
        parser.print_help()
        return exit_codes.SUCCESS

    configure_logging(args.verbose)

    if args.target.lower() == "doctor":
        return _handle_doctor()

    return _handle_edit(args)


# ---------------------------------------------------------------------------
# Script-level error boundary
# ---------------------------------------------------------------------------

def cli() -> None:
    """Top-level error boundary invoked by the console-script entry point.

    This function wraps :func:`main` and guarantees the process never
    exits with a raw stack trace during normal usage.
    """
    try:
        code = main()
        sys.exit(code)
    except ClipcutError as exc:
        console.print(f"[bold red]Error:[/bold red] {exc}")
        if exc.hint:
            console.print(f"[yellow]Hint:[/yellow] {exc.hint}")
        sys.exit(exit_codes.GENERAL_ERROR)
    except KeyboardInterrupt:
        console.print("\n[yellow]Aborted by user.[/yellow]")
        sys.exit(exit_codes.KEYBOARD_INTERRUPT)
    except Exception as exc:  # noqa: BLE001
        console.print(
            "[bold red]Unexpected error.[/bold red] "
            "Please report this issue.\n"
            f"  {type(exc).__name__}: {exc}"
        )
        sys.exit(exit_codes.UNEXPECTED_ERROR)
