"""CLI console helpers with optional Rich support.

This module intentionally avoids module-level imports of optional UI
dependencies so bootstrap paths (``--help``, ``--version``) remain
functional even when Rich is not installed.
"""

from __future__ import annotations

import logging
import sys
from typing import Any

from clipcut.exceptions import EnvironmentError

LOG_FORMAT: str = "%(name)s: %(message)s"


def _load_rich_console_class() -> type[Any]:
	"""Return ``rich.console.Console`` class or raise ``EnvironmentError``."""
	try:
		from rich.console import Console
	except ModuleNotFoundError as exc:
		raise EnvironmentError(
			"rich is not installed. Install with: pip install rich",
		) from exc
	return Console


def get_rich_console() -> Any:
	"""Create a Rich console instance targeting stderr."""
	console_class = _load_rich_console_class()
	return console_class(stderr=True)


class _ConsoleProxy:
	"""Minimal ``print``-compatible proxy with Rich fallback."""

	def print(self, *objects: object) -> None:
		"""Render with Rich when available, else plain stderr print."""
		try:
			rich_console = get_rich_console()
		except EnvironmentError:
			print(*objects, file=sys.stderr)
			return
		rich_console.print(*objects)


console = _ConsoleProxy()


def configure_logging(verbose: bool) -> None:
	"""Route ``clipcut`` log records to stderr.

	Without *verbose* only warnings are shown.  Rich's handler is used
	when available, plain :func:`logging.basicConfig` otherwise.
	"""
	level = logging.DEBUG if verbose else logging.WARNING
	try:
		from rich.logging import RichHandler

		rich_console = get_rich_console()
	except (ModuleNotFoundError, EnvironmentError):
		logging.basicConfig(level=level, format=LOG_FORMAT, stream=sys.stderr)
	else:
		logging.basicConfig(
			level=level,
			format=LOG_FORMAT,
			handlers=[
				RichHandler(
					console=rich_console,
					show_path=False,
					rich_tracebacks=verbose,
				),
			],
		)
	# Third-party chatter stays quiet even in verbose mode.
	logging.getLogger("asyncio").setLevel(logging.WARNING)
