"""Allow ``python -m clipcut`` invocation.

This module simply delegates to the CLI error-boundary entry point so
that ``python -m clipcut`` behaves identically to the ``clipcut``
console script.
"""

from __future__ import annotations

from clipcut.cli.app import cli

if __name__ == "__main__":
    cli()
