"""Integer fixed-point helpers for 18-decimal protocol amounts. No I/O."""
from __future__ import annotations

from typing import Any

from .errors import ParseError

BORROW_DECIMALS = 18
DECIMAL_SCALE = 10**BORROW_DECIMALS

# Share conversions multiply by a float rate truncated to millionths.
RATE_PRECISION = 1_000_000


def scale_down(value: int) -> int:
    """Convert an 18-decimal scaled integer to token units, rounding up.

    Rounding up never under-reports a liability or over-reports liquidity.
    """
    if value <= 0:
        return 0
    return -(-value // DECIMAL_SCALE)


def saturating_sub(a: int, b: int) -> int:
    """``a - b`` clamped at zero."""
    return a - b if a > b else 0


def mul_rate(amount: int, rate: float) -> int:
    """Multiply an integer amount by a float rate at millionths precision."""
    return amount * int(rate * RATE_PRECISION) // RATE_PRECISION


def parse_uint(value: Any, field: str) -> int:
    """Parse a non-negative integer from an int or a decimal digit string.

    Raises:
        ParseError: if the value is not a non-negative integer.
    """
    if isinstance(value, bool):
        raise ParseError(f"field {field} is not an integer: {value!r}")
    if isinstance(value, int):
        if value < 0:
            raise ParseError(f"field {field} is negative: {value}")
        return value
    if isinstance(value, str) and value.isascii() and value.isdigit():
        return int(value)
    raise ParseError(f"field {field} is not an unsigned integer: {value!r}")


def ratio(numerator: float, denominator: float) -> float:
    """``numerator / denominator``, or 0.0 when the denominator is zero."""
    if denominator == 0:
        return 0.0
    return numerator / denominator
