"""Interactive edit prompts and the edit summary table.

This module is responsible for:

* Rendering a Rich table summarising the source and the current edit.
* Prompting the user for aspect preset, trim, speed, format and quality
  via questionary.

Every prompt answer is applied through the
:class:`~clipcut.core.editor.EditorController`, so clamping rules are the
same as for command-line options.
"""

from __future__ import annotations

from typing import Any

from clipcut.cli.console import console
from clipcut.core.editor import EditorController
from clipcut.core.models import (
    AspectLock,
    CropRect,
    EditSession,
    ExportFormat,
    ExportQuality,
    SourceMetadata,
    TrimInterval,
)
from clipcut.core.presets import ASPECT_PRESETS, speed_choices
from clipcut.exceptions import EnvironmentError, PromptCancelledError
from clipcut.utils.timefmt import format_duration, format_time, parse_time


def _import_questionary() -> Any:
    """Import questionary lazily for interactive selection."""
    try:
        import questionary
    except ModuleNotFoundError as exc:
        raise EnvironmentError(
            "questionary is not installed. Install with: pip install questionary",
        ) from exc
    return questionary


def _import_rich_table() -> type[Any]:
    """Import rich table lazily for summary rendering."""
    try:
        from rich.table import Table
    except ModuleNotFoundError as exc:
        raise EnvironmentError(
            "rich is not installed. Install with: pip install rich",
        ) from exc
    return Table


# ---------------------------------------------------------------------------
# Presentation helpers (pure transforms — no I/O themselves)
# ---------------------------------------------------------------------------

def describe_crop(rect: CropRect) -> str:
    """``"1080x1080 at (420, 0)"``."""
    return f"{rect.width:.0f}x{rect.height:.0f} at ({rect.x:.0f}, {rect.y:.0f})"


def describe_aspect(lock: AspectLock) -> str:
    if lock.kind == "ratio" and lock.ratio is not None:
        label = next(
            (name for name, ratio in ASPECT_PRESETS.items()
             if ratio is not None and abs(ratio - lock.ratio) < 1e-9),
            None,
        )
        return label or f"{lock.ratio:.3f}:1"
    if lock.kind == "custom":
        return "Custom"
    return "Free"


def describe_trim(trim: TrimInterval | None) -> str:
    if trim is None:
        return "whole video"
    return f"{format_time(trim.start)} - {format_time(trim.end)}"


def speed_label(speed: float) -> str:
    """``1.0`` -> ``"1x"``, ``0.25`` -> ``"0.25x"``."""
    return f"{speed:g}x"


def summary_rows(
    source_name: str,
    metadata: SourceMetadata,
    session: EditSession,
) -> list[tuple[str, str]]:
    """Label/value pairs shown in the edit summary table."""
    if session.trim is not None:
        output = format_duration(session.trim.length / session.speed)
    else:
        output = "unknown"
    return [
        ("Source", source_name),
        ("Resolution", f"{metadata.width}x{metadata.height}"),
        ("Duration", format_duration(metadata.duration_seconds)),
        ("Audio", "yes" if metadata.has_audio else "none"),
        ("Crop", describe_crop(session.crop)),
        ("Aspect", describe_aspect(session.aspect_lock)),
        ("Trim", describe_trim(session.trim)),
        ("Speed", speed_label(session.speed)),
        ("Output length", output),
        ("Format", session.export_format.value),
        ("Quality", session.export_quality.value),
    ]


# ---------------------------------------------------------------------------
# Rich table display
# ---------------------------------------------------------------------------

def display_summary(
    source_name: str,
    metadata: SourceMetadata,
    session: EditSession,
) -> None:
    """Print a Rich table describing the pending export."""
    table_class = _import_rich_table()

    table = table_class(
        title="Edit",
        show_header=False,
        border_style="dim",
    )
    table.add_column("Field", style="bold cyan", min_width=14)
    table.add_column("Value", min_width=24)
    for label, value in summary_rows(source_name, metadata, session):
        table.add_row(label, value)

    console.print()
    console.print(table)
    console.print()


# ---------------------------------------------------------------------------
# Public prompt function
# ---------------------------------------------------------------------------

def _answer(question: Any) -> Any:
    """Ask *question*; ``None`` (Esc / Ctrl+C) cancels the whole edit."""
    answer = question.ask()
    if answer is None:
        raise PromptCancelledError(
            "Editing cancelled.",
            hint="Run again, or pass the edit as command-line options.",
        )
    return answer


def _validate_time(text: str) -> bool | str:
    try:
        parse_time(text)
    except ValueError:
        return "Enter seconds, MM:SS or HH:MM:SS"
    return True


def prompt_edit_options(controller: EditorController) -> None:
    """Walk the user through the edit, applying each answer immediately.

    Raises
    ------
    PromptCancelledError
        If the user dismisses any prompt.
    """
    session = controller.session
    metadata = controller.metadata
    if session is None or metadata is None:
        return

    questionary = _import_questionary()

    preset = _answer(
        questionary.select(
            "Aspect ratio:",
            choices=["Keep current", *ASPECT_PRESETS],
            use_arrow_keys=True,
        )
    )
    if preset != "Keep current":
        controller.select_aspect_preset(preset)

    if session.trim is not None:
        start = _answer(
            questionary.text(
                "Trim start:",
                default=f"{session.trim.start:g}",
                validate=_validate_time,
            )
        )
        end = _answer(
            questionary.text(
                "Trim end:",
                default=f"{session.trim.end:g}",
                validate=_validate_time,
            )
        )
        controller.set_trim(parse_time(start), parse_time(end))
    else:
        console.print("[yellow]Duration unknown; trimming is unavailable.[/yellow]")

    speed = _answer(
        questionary.select(
            "Speed:",
            choices=[
                questionary.Choice(title=speed_label(value), value=value)
                for value in speed_choices()
            ],
            default=next(
                (value for value in speed_choices() if value == session.speed),
                None,
            ),
            use_arrow_keys=True,
        )
    )
    controller.set_speed(speed)

    export_format = _answer(
        questionary.select(
            "Format:",
            choices=[
                questionary.Choice(title="MP4 video", value=ExportFormat.CONTAINER),
                questionary.Choice(title="Animated GIF", value=ExportFormat.ANIMATED_IMAGE),
            ],
            use_arrow_keys=True,
        )
    )
    controller.set_export_format(export_format)

    quality = _answer(
        questionary.select(
            "Quality:",
            choices=[
                questionary.Choice(title=quality.value.capitalize(), value=quality)
                for quality in ExportQuality
            ],
            default=next(
                (quality for quality in ExportQuality if quality is session.export_quality),
                None,
            ),
            use_arrow_keys=True,
        )
    )
    controller.set_export_quality(quality)
