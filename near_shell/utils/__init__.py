"""
near_shell.utils — small, dependency-light helpers.

Re-exports the commonly used pieces so callers can do:

    from near_shell.utils import BorshWriter, parse_near_amount, format_near_amount
"""

from __future__ import annotations

from .borsh import BorshWriter
from .format import (
    NEAR_NOMINATION,
    NEAR_NOMINATION_EXP,
    format_near_amount,
    format_response,
    parse_near_amount,
)

__all__ = [
    "BorshWriter",
    "NEAR_NOMINATION",
    "NEAR_NOMINATION_EXP",
    "format_near_amount",
    "format_response",
    "parse_near_amount",
]
