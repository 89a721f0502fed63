"""
Logging setup for the CLI process.

Library modules only call `logging.getLogger("near_shell.<area>")`; the CLI
entrypoint configures handlers once. Diagnostics go to stderr so they never
mix with command output on stdout.

Environment variables
---------------------
NEAR_LOG_LEVEL : DEBUG|INFO|WARNING|ERROR (default: WARNING; --verbose forces DEBUG)
"""

from __future__ import annotations

import logging
import os
import sys
from typing import Optional

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

# Transport libraries are chatty at DEBUG
_NOISY = ("httpx", "httpcore")


def setup_logging(verbose: bool = False, level: Optional[str] = None) -> int:
    """Configure the root logger and return the effective level."""
    if verbose:
        lvl = logging.DEBUG
    else:
        name = (level or os.getenv("NEAR_LOG_LEVEL") or "WARNING").upper()
        lvl = getattr(logging, name, logging.WARNING)

    logging.basicConfig(level=lvl, format=LOG_FORMAT, stream=sys.stderr)
    logging.getLogger("near_shell").setLevel(lvl)
    for noisy in _NOISY:
        logging.getLogger(noisy).setLevel(max(lvl, logging.INFO))
    return lvl


__all__ = ["setup_logging", "LOG_FORMAT"]
