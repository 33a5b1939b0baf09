"""Rich-based progress displays for fetching and exporting.

The core services report progress through plain callables: a fraction
for downloads, an integer percentage for exports.  The classes here
adapt those callbacks to a Rich :class:`~rich.progress.Progress` bar.

Design
------
* Each display manages its own Rich Progress context.
* :meth:`__call__` is the callback handed to the service.
* Shutdown-safe: if the progress bar is already stopped, calls are
  silently ignored.
* Callbacks may arrive from a worker thread; Rich's ``update`` is
  thread-safe.
* No ``print()`` — Rich handles all rendering.
"""

from __future__ import annotations

from typing import Any

from clipcut.cli.console import get_rich_console
from clipcut.core.export_service import export_phase_label
from clipcut.exceptions import EnvironmentError


class _RichBar:
    """Shared lifecycle for a single-task percentage bar."""

    def __init__(self, description: str) -> None:
        try:
            from rich.progress import (
                BarColumn,
                Progress,
                SpinnerColumn,
                TaskProgressColumn,
                TextColumn,
                TimeElapsedColumn,
            )
        except ModuleNotFoundError as exc:
            raise EnvironmentError(
                "rich is not installed. Install with: pip install rich",
            ) from exc

        self._progress: Any = Progress(
            SpinnerColumn(),
            TextColumn("[bold blue]{task.description}"),
            BarColumn(),
            TaskProgressColumn(),
            TimeElapsedColumn(),
            console=get_rich_console(),
            transient=False,
        )
        self._description = description
        self._task_id: Any = None
        self._started: bool = False

    # ------------------------------------------------------------------
    # Context manager
    # ------------------------------------------------------------------

    def __enter__(self) -> _RichBar:
        self.start()
        return self

    def __exit__(self, *_args: object) -> None:
        self.stop()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self) -> None:
        """Start the Rich progress display."""
        if not self._started:
            self._progress.start()
            self._task_id = self._progress.add_task(self._description, total=100)
            self._started = True

    def stop(self) -> None:
        """Stop the Rich progress display (idempotent)."""
        if self._started:
            self._progress.stop()
            self._started = False

    def _update(self, percent: float, description: str | None = None) -> None:
        if not self._started:
            return
        if description is None:
            self._progress.update(self._task_id, completed=percent)
        else:
            self._progress.update(self._task_id, completed=percent, description=description)


class RichFetchProgress(_RichBar):
    """Download bar driven by a completion fraction.

    Usage::

        with RichFetchProgress() as hook:
            fetcher.fetch(url, dest, progress_callback=hook)
    """

    def __init__(self, description: str = "Downloading") -> None:
        super().__init__(description)

    def __enter__(self) -> RichFetchProgress:
        self.start()
        return self

    def __call__(self, fraction: float) -> None:
        self._update(max(0.0, min(1.0, fraction)) * 100)


class RichExportProgress(_RichBar):
    """Export bar driven by an integer percentage, labelled by phase.

    Usage::

        with RichExportProgress() as hook:
            await export_service.export(..., progress_callback=hook)
    """

    def __init__(self) -> None:
        super().__init__(export_phase_label(0))

    def __enter__(self) -> RichExportProgress:
        self.start()
        return self

    def __call__(self, percent: int) -> None:
        self._update(percent, export_phase_label(percent))
