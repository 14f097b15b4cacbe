from __future__ import annotations

import pytest

from structured_portfolio.config.settings import DEFAULT_SECONDS_PER_YEAR as YEAR
from structured_portfolio.core.arithmetic import MAX_UINT256
from structured_portfolio.core.errors import ArithmeticOverflow
from structured_portfolio.services.fees import accrue_fees


def test_zero_elapsed_charges_nothing():
    accrual = accrue_fees(1_000_000, 0, 500, 500)
    assert accrual.total_fee == 0
    assert accrual.value_after == 1_000_000


def test_zero_value_charges_nothing():
    accrual = accrue_fees(0, YEAR, 500, 500)
    assert accrual.total_fee == 0
    assert accrual.value_after == 0


def test_one_year_splits_protocol_and_tranche_fee():
    accrual = accrue_fees(1_000_000, YEAR, 100, 50)
    assert accrual.protocol_fee == 5_000
    assert accrual.tranche_fee == 10_000
    assert accrual.value_after == 985_000
    assert accrual.uncollected == 0


def test_partial_year_is_pro_rata():
    accrual = accrue_fees(1_000_000, YEAR // 2, 200, 0)
    assert accrual.tranche_fee == 10_000
    assert accrual.value_after == 990_000


def test_fees_truncate_and_tranche_takes_rounding_difference():
    accrual = accrue_fees(999, YEAR, 100, 0)
    assert accrual.total_fee == 9
    assert accrual.protocol_fee == 0
    assert accrual.value_after == 990

    split = accrue_fees(1_001, YEAR, 150, 150)
    # combined 30.03 -> 30, protocol 15.015 -> 15
    assert split.protocol_fee == 15
    assert split.tranche_fee == 15


def test_fee_exceeding_value_is_clamped_with_protocol_first():
    accrual = accrue_fees(100, 200 * YEAR, 90, 10)
    assert accrual.value_after == 0
    assert accrual.protocol_fee == 20
    assert accrual.tranche_fee == 80
    assert accrual.uncollected == 100


def test_overflowing_fee_product_raises():
    with pytest.raises(ArithmeticOverflow):
        accrue_fees(MAX_UINT256, YEAR, 1, 0)
