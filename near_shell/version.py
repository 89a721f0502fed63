"""
Version helpers for near-shell.
We keep a static __version__ (PEP 440); the CLI and the RPC User-Agent read it.
"""

from __future__ import annotations

from dataclasses import dataclass

# Bump this when publishing
__version__ = "0.1.0"


@dataclass(frozen=True)
class VersionInfo:
    base: str
    user_agent: str

    def __str__(self) -> str:  # pragma: no cover - trivial
        return self.base


def version_info() -> VersionInfo:
    return VersionInfo(base=__version__, user_agent=f"near-shell-py/{__version__}")


__all__ = ["__version__", "VersionInfo", "version_info"]
