"""Seniority waterfall: value reallocation, fee application and checkpoints.

The waterfall runs in two steps over the portfolio's total value ``T``:

1. Seniority cascade. Starting from the most senior tranche, each tranche
   claims up to its prior nominal value (grown by its target APY, if any)
   out of whatever is left. The equity tranche at index 0 receives the
   residual, so it absorbs both losses and surplus. The allocations always
   sum to ``T``.
2. Fees. Each allocation is passed through ``accrue_fees`` on its own with
   the same elapsed time.

``calculate_waterfall`` is a pure projection over a ``PortfolioState``;
``settle_checkpoint`` writes a projection back as the new baseline and pays
the accrued fees out of uninvested capital.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Sequence

from structured_portfolio.config.settings import AccrualPolicy, PostCloseAccrual
from structured_portfolio.core.arithmetic import checked_add, checked_mul, mul_div
from structured_portfolio.models.portfolio import PortfolioState, PortfolioStatus
from structured_portfolio.services.fees import FeeAccrual, accrue_fees
from structured_portfolio.services.vaults import VaultDirectory

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AccrualWindow:
    elapsed: int
    checkpoint_time: int | None
    charge_tranche_fees: bool = True
    charge_protocol_fees: bool = True
    accrue_target_yield: bool = True


@dataclass(frozen=True)
class WaterfallResult:
    total_value: int
    elapsed: int
    allocations: tuple[int, ...]
    fees: tuple[FeeAccrual, ...]
    checkpoint_time: int | None

    @property
    def values(self) -> list[int]:
        return [fee.value_after for fee in self.fees]

    @property
    def protocol_fee(self) -> int:
        return sum(fee.protocol_fee for fee in self.fees)

    @property
    def tranche_fees(self) -> list[int]:
        return [fee.tranche_fee for fee in self.fees]


def accrual_window(
    state: PortfolioState,
    now: int,
    policy: AccrualPolicy,
    *,
    closing: bool = False,
) -> AccrualWindow:
    """Return the time span a checkpoint at ``now`` would charge for.

    While Live the span stops at ``end_date`` when the policy caps it. The
    closing checkpoint charges up to the same cap but is stamped with the
    close time itself, so post-close accrual starts from the moment the
    portfolio closed and the post-close policy picks which rates apply.
    """

    if state.status == PortfolioStatus.CAPITAL_FORMATION or state.last_checkpoint_time is None:
        return AccrualWindow(elapsed=0, checkpoint_time=state.last_checkpoint_time)

    last = state.last_checkpoint_time
    if state.status == PortfolioStatus.LIVE or closing:
        horizon = now
        if policy.cap_at_end_date and state.end_date is not None:
            horizon = min(now, state.end_date)
        stamp = max(now, last) if closing else max(horizon, last)
        return AccrualWindow(elapsed=max(0, horizon - last), checkpoint_time=stamp)

    if policy.post_close_accrual == PostCloseAccrual.NONE:
        return AccrualWindow(
            elapsed=0,
            checkpoint_time=max(now, last),
            charge_tranche_fees=False,
            charge_protocol_fees=False,
            accrue_target_yield=False,
        )
    return AccrualWindow(
        elapsed=max(0, now - last),
        checkpoint_time=max(now, last),
        charge_tranche_fees=policy.post_close_accrual == PostCloseAccrual.ALL,
        accrue_target_yield=False,
    )


def allocate_by_seniority(total: int, claims: Sequence[int]) -> list[int]:
    """Cascade ``total`` from the most senior claim down; equity keeps the rest."""

    if not claims:
        return []
    allocations = [0] * len(claims)
    remaining = total
    for index in range(len(claims) - 1, 0, -1):
        allocated = min(remaining, claims[index])
        allocations[index] = allocated
        remaining -= allocated
    allocations[0] = remaining
    return allocations


def grow_claim(value: int, target_apy_bps: int, elapsed: int, policy: AccrualPolicy) -> int:
    """Simple-interest growth of a tranche claim over ``elapsed`` seconds."""

    if target_apy_bps == 0 or elapsed <= 0:
        return value
    denominator = checked_mul(policy.seconds_per_year, policy.basis_points)
    return checked_add(value, mul_div(value, checked_mul(target_apy_bps, elapsed), denominator))


def total_portfolio_value(state: PortfolioState, vaults: VaultDirectory) -> int:
    """Uninvested capital plus vault positions, net of fees still owed."""

    total = state.virtual_token_balance
    for investment in state.investments.values():
        if investment.shares_held == 0:
            continue
        vault = vaults.get_vault(investment.vault_address)
        total = checked_add(total, vault.convert_to_assets(investment.shares_held))
    return max(0, total - state.unpaid_fees)


def calculate_waterfall(
    state: PortfolioState,
    now: int,
    vaults: VaultDirectory,
    policy: AccrualPolicy,
    *,
    closing: bool = False,
) -> WaterfallResult:
    """Project each tranche's post-fee value at ``now`` without mutating ``state``."""

    if state.status == PortfolioStatus.CAPITAL_FORMATION:
        nominal = tuple(state.nominal_values)
        return WaterfallResult(
            total_value=sum(nominal),
            elapsed=0,
            allocations=nominal,
            fees=tuple(FeeAccrual(v, 0, 0, v) for v in nominal),
            checkpoint_time=state.last_checkpoint_time,
        )

    window = accrual_window(state, now, policy, closing=closing)
    total = total_portfolio_value(state, vaults)
    yield_elapsed = window.elapsed if window.accrue_target_yield else 0
    claims = [
        grow_claim(tranche.nominal_value, tranche.target_apy_bps, yield_elapsed, policy)
        for tranche in state.tranches
    ]
    allocations = allocate_by_seniority(total, claims)
    protocol_rate = state.protocol_fee_rate_bps if window.charge_protocol_fees else 0
    fees = tuple(
        accrue_fees(
            allocated,
            window.elapsed,
            tranche.fee_rate_bps if window.charge_tranche_fees else 0,
            protocol_rate,
            seconds_per_year=policy.seconds_per_year,
            basis_points=policy.basis_points,
        )
        for tranche, allocated in zip(state.tranches, allocations)
    )
    return WaterfallResult(
        total_value=total,
        elapsed=window.elapsed,
        allocations=tuple(allocations),
        fees=fees,
        checkpoint_time=window.checkpoint_time,
    )


def settle_checkpoint(state: PortfolioState, result: WaterfallResult) -> None:
    """Record ``result`` as the new baseline and pay fees from uninvested capital.

    Fees already owed are paid before new ones, the protocol before tranche
    beneficiaries, seniors before juniors. Whatever the virtual balance cannot
    cover stays pending and is excluded from the next total value.
    """

    available = state.virtual_token_balance

    def pay(owed: int) -> int:
        nonlocal available
        paid = min(owed, available)
        available -= paid
        return paid

    paid = pay(state.pending_protocol_fees)
    state.pending_protocol_fees -= paid
    state.protocol_fees_paid = checked_add(state.protocol_fees_paid, paid)
    for tranche in reversed(state.tranches):
        paid = pay(tranche.pending_fees)
        tranche.pending_fees -= paid
        tranche.fees_paid = checked_add(tranche.fees_paid, paid)

    new_protocol_fee = result.protocol_fee
    paid = pay(new_protocol_fee)
    state.protocol_fees_paid = checked_add(state.protocol_fees_paid, paid)
    state.pending_protocol_fees = checked_add(state.pending_protocol_fees, new_protocol_fee - paid)
    for tranche, fee in reversed(list(zip(state.tranches, result.fees))):
        paid = pay(fee.tranche_fee)
        tranche.fees_paid = checked_add(tranche.fees_paid, paid)
        tranche.pending_fees = checked_add(tranche.pending_fees, fee.tranche_fee - paid)

    state.virtual_token_balance = available
    for tranche, value in zip(state.tranches, result.values):
        tranche.nominal_value = value
    state.last_checkpoint_time = result.checkpoint_time

    if state.unpaid_fees:
        logger.warning(
            "Checkpoint left %d in unpaid fees; uninvested capital is exhausted", state.unpaid_fees
        )
    logger.debug(
        "Checkpoint at %s over %ss: values=%s protocol_fee=%d",
        result.checkpoint_time,
        result.elapsed,
        result.values,
        new_protocol_fee,
    )


def distribute_by_seniority(amount: int, state: PortfolioState) -> list[int]:
    """Split redeemed ``amount`` across tranches, seniors first.

    Each non-equity tranche is capped by the part of its nominal value not
    yet backed by earlier distributions; equity takes whatever remains.
    """

    caps = [max(0, t.nominal_value - t.distributed_assets) for t in state.tranches]
    return allocate_by_seniority(amount, caps)


__all__ = [
    "PostCloseAccrual",
    "AccrualPolicy",
    "AccrualWindow",
    "WaterfallResult",
    "accrual_window",
    "allocate_by_seniority",
    "grow_claim",
    "total_portfolio_value",
    "calculate_waterfall",
    "settle_checkpoint",
    "distribute_by_seniority",
]
