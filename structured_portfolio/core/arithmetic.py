"""Checked integer arithmetic over the unsigned 256-bit domain.

Amounts, shares and timestamps are plain ``int`` values. Python integers
never overflow on their own, so every helper here bounds its result to
``[0, MAX_UINT256]`` and raises ``ArithmeticOverflow`` instead of wrapping.
"""

from __future__ import annotations

from .errors import ArithmeticOverflow, InvalidAmount

MAX_UINT256 = 2**256 - 1


def _bounded(value: int, operation: str) -> int:
    if value < 0 or value > MAX_UINT256:
        raise ArithmeticOverflow(f"{operation} result {value} is outside the uint256 domain")
    return value


def ensure_amount(value: int, name: str = "amount") -> int:
    """Validate an externally supplied amount before it reaches the ledger."""

    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidAmount(f"{name} must be an integer, got {type(value).__name__}")
    if value < 0:
        raise InvalidAmount(f"{name} must be >= 0")
    return _bounded(value, name)


def checked_add(a: int, b: int) -> int:
    return _bounded(a + b, "addition")


def checked_sub(a: int, b: int) -> int:
    return _bounded(a - b, "subtraction")


def checked_mul(a: int, b: int) -> int:
    return _bounded(a * b, "multiplication")


def mul_div(value: int, numerator: int, denominator: int) -> int:
    """Return ``value * numerator / denominator`` truncated toward zero.

    The intermediate product is held to the uint256 domain as well, matching
    the full-width multiply-then-divide of the fee formula.
    """

    if denominator <= 0:
        raise ArithmeticOverflow("division by zero in mul_div")
    product = checked_mul(value, numerator)
    return product // denominator


__all__ = [
    "MAX_UINT256",
    "ensure_amount",
    "checked_add",
    "checked_sub",
    "checked_mul",
    "mul_div",
]
