"""Time-proportional fee accrual for a single tranche."""

from __future__ import annotations

from dataclasses import dataclass

from structured_portfolio.config.settings import DEFAULT_BASIS_POINTS, DEFAULT_SECONDS_PER_YEAR
from structured_portfolio.core.arithmetic import checked_add, checked_mul, checked_sub, mul_div


@dataclass(frozen=True)
class FeeAccrual:
    value_before: int
    protocol_fee: int
    tranche_fee: int
    value_after: int
    uncollected: int = 0

    @property
    def total_fee(self) -> int:
        return self.protocol_fee + self.tranche_fee


def accrue_fees(
    value: int,
    elapsed: int,
    tranche_fee_rate_bps: int,
    protocol_fee_rate_bps: int,
    *,
    seconds_per_year: int = DEFAULT_SECONDS_PER_YEAR,
    basis_points: int = DEFAULT_BASIS_POINTS,
) -> FeeAccrual:
    """Charge ``value`` for ``elapsed`` seconds at both per-annum rates.

    The combined fee is truncated toward zero and the protocol share is
    truncated on its own; the tranche beneficiary gets the difference. A fee
    larger than ``value`` is clamped: the tranche drops to zero and the excess
    is reported as ``uncollected``, never carried anywhere else.
    """

    if elapsed <= 0 or value == 0:
        return FeeAccrual(value_before=value, protocol_fee=0, tranche_fee=0, value_after=value)

    denominator = checked_mul(seconds_per_year, basis_points)
    combined_rate = checked_add(tranche_fee_rate_bps, protocol_fee_rate_bps)
    fee_total = mul_div(value, checked_mul(combined_rate, elapsed), denominator)
    protocol_fee = mul_div(value, checked_mul(protocol_fee_rate_bps, elapsed), denominator)
    tranche_fee = checked_sub(fee_total, protocol_fee)

    if fee_total <= value:
        return FeeAccrual(
            value_before=value,
            protocol_fee=protocol_fee,
            tranche_fee=tranche_fee,
            value_after=value - fee_total,
        )

    # The tranche cannot go into debt for its fee; protocol is served first.
    collected_protocol = min(protocol_fee, value)
    collected_tranche = value - collected_protocol
    return FeeAccrual(
        value_before=value,
        protocol_fee=collected_protocol,
        tranche_fee=collected_tranche,
        value_after=0,
        uncollected=fee_total - value,
    )


__all__ = ["FeeAccrual", "accrue_fees"]
