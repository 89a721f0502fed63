"""
Amount conversion and response pretty-printing.

Balances travel as integer strings in yoctoNEAR (10^-24 NEAR). Users type and
read human amounts such as ``"1.5"`` or ``"1,000"``.
"""

from __future__ import annotations

import json
import re
from typing import Any, Optional, Union

NEAR_NOMINATION_EXP = 24
NEAR_NOMINATION = 10 ** NEAR_NOMINATION_EXP

_TRAILING_ZEROES = re.compile(r"\.?0*$")


def parse_near_amount(amount: Optional[str]) -> Optional[str]:
    """
    Convert a human NEAR amount to a yoctoNEAR integer string.

    >>> parse_near_amount("1.5")
    '1500000000000000000000000'

    Returns None for None/empty input; raises ValueError on anything that is
    not a plain decimal with at most 24 fractional digits.
    """
    if amount is None:
        return None
    text = str(amount).replace(",", "").strip()
    if not text:
        return None
    whole, _, fraction = text.partition(".")
    whole = whole or "0"
    if len(fraction) > NEAR_NOMINATION_EXP:
        raise ValueError(f"Cannot parse {amount!r} as NEAR amount")
    digits = whole + fraction.ljust(NEAR_NOMINATION_EXP, "0")
    if not digits.isdigit():
        raise ValueError(f"Cannot parse {amount!r} as NEAR amount")
    return digits.lstrip("0") or "0"


def format_near_amount(balance: Union[str, int], frac_digits: int = NEAR_NOMINATION_EXP) -> str:
    """
    Convert a yoctoNEAR balance to a human amount with comma-grouped whole part.

    When `frac_digits` is below 24 the value is rounded half-up at that digit.

    >>> format_near_amount("1000500000000000000000000000")
    '1,000.5'
    """
    value = int(balance)
    if frac_digits != NEAR_NOMINATION_EXP:
        rounding_exp = NEAR_NOMINATION_EXP - frac_digits - 1
        if rounding_exp > 0:
            value += 5 * 10 ** rounding_exp
    digits = str(value)
    whole = digits[:-NEAR_NOMINATION_EXP] or "0"
    fraction = digits[-NEAR_NOMINATION_EXP:].rjust(NEAR_NOMINATION_EXP, "0")[:frac_digits]
    return _TRAILING_ZEROES.sub("", f"{int(whole):,}.{fraction}", count=1)


def format_response(obj: Any) -> str:
    """Pretty JSON for command output; non-JSON values fall back to str()."""
    return json.dumps(obj, indent=2, ensure_ascii=False, default=str)


__all__ = [
    "NEAR_NOMINATION",
    "NEAR_NOMINATION_EXP",
    "parse_near_amount",
    "format_near_amount",
    "format_response",
]
