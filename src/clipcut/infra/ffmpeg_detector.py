"""Infrastructure: ffmpeg / ffprobe detection and platform guidance.

This module is responsible for locating the ffmpeg tool binaries —
honouring explicit overrides from :class:`~clipcut.config.Settings` —
and providing platform-specific installation guidance when they are
missing.

Rules
-----
* Detection via :func:`shutil.which` only — no subprocess.
* No permanent PATH modification.
* No automatic installation.
* No ``print()`` — callers handle user-facing output.
"""

from __future__ import annotations

import platform
import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import Literal

from clipcut.exceptions import FfmpegNotFoundError

ToolName = Literal["ffmpeg", "ffprobe"]


# ---------------------------------------------------------------------------
# Detection result
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class ToolStatus:
    """Result of a tool detection probe.

    Attributes
    ----------
    name : str
        ``"ffmpeg"`` or ``"ffprobe"``.
    found : bool
        Whether the binary was located.
    path : Path | None
        Absolute path to the binary, or ``None``.
    version_hint : str
        Human-readable status string (e.g. ``"found at …"`` or ``"not found"``).
    install_commands : tuple[str, ...]
        Suggested shell commands for installing ffmpeg on the current
        platform.  Empty when the binary is already present.
    """

    name: str
    found: bool
    path: Path | None
    version_hint: str
    install_commands: tuple[str, ...]


# ---------------------------------------------------------------------------
# Detection logic
# ---------------------------------------------------------------------------

def detect_tool(name: ToolName, override: str | None = None) -> ToolStatus:
    """Probe the system for *name*, preferring an explicit *override*.

    Returns a :class:`ToolStatus` regardless of whether the binary is
    present — the caller decides whether to abort or merely warn.
    """
    result = shutil.which(override or name)

    if result is not None:
        resolved = Path(result).resolve()
        return ToolStatus(
            name=name,
            found=True,
            path=resolved,
            version_hint=f"found at {resolved}",
            install_commands=(),
        )

    return ToolStatus(
        name=name,
        found=False,
        path=None,
        version_hint=f"{override} not found" if override else "not found",
        install_commands=_platform_install_commands(),
    )


def detect_ffmpeg(override: str | None = None) -> ToolStatus:
    return detect_tool("ffmpeg", override)


def detect_ffprobe(override: str | None = None) -> ToolStatus:
    return detect_tool("ffprobe", override)


def require_tool(name: ToolName, override: str | None = None) -> Path:
    """Locate *name* or raise :class:`FfmpegNotFoundError`.

    Used by code paths that **require** the binary to proceed
    (probing, encoding, thumbnail capture).
    """
    status = detect_tool(name, override)
    if not status.found or status.path is None:
        hint_lines: list[str] = []
        if override:
            hint_lines.append(f"Check the configured path: {override}")
        if status.install_commands:
            hint_lines.append("Install ffmpeg using one of:")
            hint_lines.extend(f"  {cmd}" for cmd in status.install_commands)
        raise FfmpegNotFoundError(
            f"{name} is not installed or not on PATH.",
            hint="\n".join(hint_lines) if hint_lines else None,
        )
    return status.path


# ---------------------------------------------------------------------------
# Platform-specific install guidance
# ---------------------------------------------------------------------------

def _platform_install_commands() -> tuple[str, ...]:
    """Return install commands appropriate for the current OS."""
    system = platform.system().lower()
    if system == "windows":
        return (
            "winget install Gyan.FFmpeg",
            "choco install ffmpeg",
        )
    if system == "linux":
        return (
            "sudo apt install ffmpeg",
            "sudo dnf install ffmpeg",
            "sudo pacman -S ffmpeg",
        )
    if system == "darwin":
        return ("brew install ffmpeg",)
    # Fallback — generic guidance.
    return ("Please install ffmpeg from https://ffmpeg.org/download.html",)
