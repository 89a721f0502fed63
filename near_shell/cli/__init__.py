"""
near_shell.cli
==============

Command-line interface for near-shell.

This package provides a Typer-based CLI exposed via the console script
entrypoint `near`. To avoid importing Typer (and the full CLI) on regular
library imports, we lazy-load the CLI only when accessed or executed.

Quick usage
-----------
- From Python:
    >>> from near_shell.cli import main
    >>> main(["state", "alice.testnet"])

- From shell (installed as a console script):
    $ near --help
"""

from __future__ import annotations

from importlib import import_module
from typing import Any, List, Optional

__all__: List[str] = ["main", "app"]

_SUBMODULE = "near_shell.cli.main"


def __getattr__(name: str) -> Any:  # PEP 562 lazy attribute access
    if name == "app":
        return import_module(_SUBMODULE).app
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


def main(argv: Optional[list[str]] = None) -> int:
    """Run the CLI and return the process exit code."""
    mod = import_module(_SUBMODULE)
    return int(mod.main(argv))
