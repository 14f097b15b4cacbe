from __future__ import annotations

import pytest

from structured_portfolio.core.arithmetic import (
    MAX_UINT256,
    checked_add,
    checked_mul,
    checked_sub,
    ensure_amount,
    mul_div,
)
from structured_portfolio.core.errors import ArithmeticOverflow, InvalidAmount


def test_checked_add_rejects_values_past_uint256():
    assert checked_add(MAX_UINT256 - 1, 1) == MAX_UINT256
    with pytest.raises(ArithmeticOverflow):
        checked_add(MAX_UINT256, 1)


def test_checked_sub_never_goes_negative():
    assert checked_sub(5, 5) == 0
    with pytest.raises(ArithmeticOverflow):
        checked_sub(1, 2)


def test_checked_mul_bounds_product():
    with pytest.raises(ArithmeticOverflow):
        checked_mul(2**200, 2**100)


def test_mul_div_truncates_toward_zero():
    assert mul_div(10, 3, 4) == 7
    assert mul_div(999, 100, 10_000) == 9
    assert mul_div(0, 123, 7) == 0


def test_mul_div_rejects_overflowing_intermediate_product():
    with pytest.raises(ArithmeticOverflow):
        mul_div(MAX_UINT256, 2, 2)


def test_mul_div_rejects_zero_denominator():
    with pytest.raises(ArithmeticOverflow):
        mul_div(1, 1, 0)


@pytest.mark.parametrize("value", [-1, 1.5, True, "10"])
def test_ensure_amount_rejects_non_amounts(value):
    with pytest.raises(InvalidAmount):
        ensure_amount(value)


def test_ensure_amount_returns_valid_amount():
    assert ensure_amount(0) == 0
    assert ensure_amount(1_000_000) == 1_000_000
