"""Runtime settings resolved from the environment.

Settings are read once at the CLI boundary and passed down explicitly —
no module-level mutable state, no ambient globals.

Environment variables
---------------------
``CLIPCUT_FFMPEG``
    Explicit path to the ffmpeg binary (default: lookup on ``PATH``).
``CLIPCUT_FFPROBE``
    Explicit path to the ffprobe binary (default: lookup on ``PATH``).
``CLIPCUT_PROBE_TIMEOUT``
    Seconds allowed for metadata probing and duration repair.
``CLIPCUT_THUMBNAIL_TIMEOUT``
    Seconds allowed for the whole thumbnail strip.
"""

from __future__ import annotations

import math
import os
from collections.abc import Mapping
from dataclasses import dataclass

from clipcut.exceptions import EnvironmentCheckError

DEFAULT_PROBE_TIMEOUT: float = 15.0
DEFAULT_THUMBNAIL_TIMEOUT: float = 10.0


@dataclass(frozen=True, slots=True)
class Settings:
    """Resolved runtime configuration."""

    ffmpeg_path: str | None = None
    """Override for the ffmpeg binary, or ``None`` to search ``PATH``."""

    ffprobe_path: str | None = None
    """Override for the ffprobe binary, or ``None`` to search ``PATH``."""

    probe_timeout: float = DEFAULT_PROBE_TIMEOUT
    thumbnail_timeout: float = DEFAULT_THUMBNAIL_TIMEOUT

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> Settings:
        """Build settings from *environ* (defaults to ``os.environ``).

        Raises
        ------
        EnvironmentCheckError
            When a timeout variable is not a positive number.
        """
        env = os.environ if environ is None else environ
        return cls(
            ffmpeg_path=env.get("CLIPCUT_FFMPEG") or None,
            ffprobe_path=env.get("CLIPCUT_FFPROBE") or None,
            probe_timeout=_positive_float(
                env, "CLIPCUT_PROBE_TIMEOUT", DEFAULT_PROBE_TIMEOUT,
            ),
            thumbnail_timeout=_positive_float(
                env, "CLIPCUT_THUMBNAIL_TIMEOUT", DEFAULT_THUMBNAIL_TIMEOUT,
            ),
        )


def _positive_float(env: Mapping[str, str], name: str, default: float) -> float:
    raw = env.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = float(raw)
    except ValueError as exc:
        raise EnvironmentCheckError(
            f"{name} must be a number, got {raw!r}.",
        ) from exc
    if not math.isfinite(value) or value <= 0:
        raise EnvironmentCheckError(
            f"{name} must be a positive number of seconds, got {raw!r}.",
        )
    return value
