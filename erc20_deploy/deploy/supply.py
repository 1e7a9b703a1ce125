"""
Supply scaling

Turns a whole-unit supply string into the integer the token constructor
expects, using exact integer arithmetic only.
"""

import re
from dataclasses import dataclass

from ..utils.exceptions import InvalidAmount

MAX_DECIMALS = 255

_DIGITS = re.compile(r"[0-9]+")


@dataclass(frozen=True)
class SupplyAmount:
    """Whole-unit supply and its base-unit representation"""
    raw_whole_units: str
    decimals: int
    scaled_integer: int


def scale_supply(raw: str, decimals: int) -> SupplyAmount:
    """
    Scale a whole-unit amount by 10**decimals.

    Args:
        raw: Non-negative integer as a string of ASCII digits
        decimals: Token decimal precision, 0-255

    Returns:
        SupplyAmount with scaled_integer == int(raw) * 10**decimals

    Raises:
        InvalidAmount: raw is empty or not all digits, or decimals out of range
    """
    if not isinstance(raw, str) or not _DIGITS.fullmatch(raw):
        raise InvalidAmount(f"Invalid supply value: {raw!r}", supply=raw)

    if isinstance(decimals, bool) or not isinstance(decimals, int) \
            or not 0 <= decimals <= MAX_DECIMALS:
        raise InvalidAmount(
            f"Decimals must be an integer in [0, {MAX_DECIMALS}], got {decimals!r}",
            decimals=decimals
        )

    try:
        whole = int(raw)
    except ValueError as e:
        # int() refuses digit strings past the interpreter's conversion limit
        raise InvalidAmount(f"Supply value too long: {len(raw)} digits", cause=e)

    return SupplyAmount(
        raw_whole_units=raw,
        decimals=decimals,
        scaled_integer=whole * 10 ** decimals
    )
