"""
Checked integer arithmetic for token amounts.

Amounts are modelled as unsigned 256-bit integers. Python ints never
overflow, so intermediate products such as ``amount * elapsed`` are kept at
full width and divided afterwards; the range checks here only guard the
values that enter and leave the engine.
"""

from __future__ import annotations

MAX_UINT256 = 2**256 - 1


def is_uint(value: object, bound: int = MAX_UINT256) -> bool:
    """True when ``value`` is a plain int in ``[0, bound]`` (bool excluded)."""
    return isinstance(value, int) and not isinstance(value, bool) and 0 <= value <= bound


def mul_div(a: int, b: int, denominator: int) -> int:
    """
    Calculate floor((a * b) / denominator) with full precision.

    The product is computed at full width before dividing, so it may exceed
    256 bits without truncation; only the quotient must fit.

    Args:
        a: First multiplicand
        b: Second multiplicand
        denominator: Divisor

    Returns:
        Result of (a * b) / denominator

    Raises:
        ZeroDivisionError: If denominator is zero
        OverflowError: If an operand is negative or the quotient exceeds uint256
    """
    if denominator == 0:
        raise ZeroDivisionError("mul_div: division by zero")
    if a < 0 or b < 0 or denominator < 0:
        raise OverflowError("mul_div: operands must be unsigned")

    result = (a * b) // denominator

    if result > MAX_UINT256:
        raise OverflowError("mul_div: result exceeds uint256")
    return result
