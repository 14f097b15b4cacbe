from __future__ import annotations

import pytest

from structured_portfolio.config.settings import DEFAULT_SECONDS_PER_YEAR as YEAR
from structured_portfolio.models import Investment, PortfolioState, PortfolioStatus, Tranche
from structured_portfolio.services.vaults import InMemoryVault, InMemoryVaultRegistry
from structured_portfolio.services.waterfall import (
    AccrualPolicy,
    PostCloseAccrual,
    accrual_window,
    allocate_by_seniority,
    calculate_waterfall,
    grow_claim,
    settle_checkpoint,
    total_portfolio_value,
)


def live_state(nominal=(1_000_000, 2_000_000, 3_000_000), *, fees=(0, 0, 0), protocol_fee_bps=0, apys=(0, 0, 0)):
    tranches = [
        Tranche(name=name, fee_rate_bps=fee, target_apy_bps=apy, nominal_value=value)
        for name, fee, apy, value in zip(("equity", "junior", "senior"), fees, apys, nominal)
    ]
    return PortfolioState(
        portfolio_id="p",
        underlying_asset="USDC",
        manager="manager",
        duration=2 * YEAR,
        protocol_fee_rate_bps=protocol_fee_bps,
        tranches=tranches,
        status=PortfolioStatus.LIVE,
        start_date=0,
        end_date=2 * YEAR,
        last_checkpoint_time=0,
        virtual_token_balance=sum(nominal),
    )


def test_cascade_fills_senior_first():
    assert allocate_by_seniority(5_000_000, [1_000_000, 2_000_000, 3_000_000]) == [0, 2_000_000, 3_000_000]


def test_cascade_gives_surplus_to_equity():
    assert allocate_by_seniority(7_000_000, [1_000_000, 2_000_000, 3_000_000]) == [2_000_000, 2_000_000, 3_000_000]


def test_cascade_with_zero_total_is_all_zeros():
    assert allocate_by_seniority(0, [1_000_000, 2_000_000, 3_000_000]) == [0, 0, 0]


@pytest.mark.parametrize("total", [0, 1, 999_999, 2_999_999, 3_000_000, 4_500_000, 6_000_000, 9_123_457])
def test_cascade_conserves_total_and_protects_senior(total):
    claims = [1_000_000, 2_000_000, 3_000_000]
    allocations = allocate_by_seniority(total, claims)
    assert sum(allocations) == total
    assert allocations[2] == min(total, claims[2])
    if total < claims[2]:
        assert allocations[0] == 0
        assert allocations[1] == 0


def test_grow_claim_uses_simple_interest():
    policy = AccrualPolicy()
    assert grow_claim(3_000_000, 1_000, YEAR, policy) == 3_300_000
    assert grow_claim(3_000_000, 0, YEAR, policy) == 3_000_000
    assert grow_claim(3_000_000, 1_000, 0, policy) == 3_000_000


def test_total_value_includes_vault_positions_and_excludes_unpaid_fees():
    vault = InMemoryVault("vault-a", "USDC")
    vault.deposit(1_000_000, "p")
    vault.set_total_assets(1_200_000)
    registry = InMemoryVaultRegistry([vault])
    state = live_state()
    state.virtual_token_balance = 500_000
    state.investments["vault-a"] = Investment("vault-a", "USDC", shares_held=1_000_000)
    state.pending_protocol_fees = 50_000

    assert total_portfolio_value(state, registry) == 1_650_000


def test_waterfall_in_capital_formation_returns_nominal_values():
    state = live_state()
    state.status = PortfolioStatus.CAPITAL_FORMATION
    state.virtual_token_balance = 0
    result = calculate_waterfall(state, 10 * YEAR, InMemoryVaultRegistry(), AccrualPolicy())
    assert result.values == [1_000_000, 2_000_000, 3_000_000]


def test_waterfall_is_identity_without_elapsed_time():
    state = live_state(fees=(100, 200, 300), protocol_fee_bps=50)
    registry = InMemoryVaultRegistry()
    first = calculate_waterfall(state, 0, registry, AccrualPolicy())
    second = calculate_waterfall(state, 0, registry, AccrualPolicy())
    assert first == second
    assert first.values == state.nominal_values


def test_fee_clamp_on_one_tranche_leaves_others_untouched():
    state = live_state(fees=(0, 0, 20_000))
    result = calculate_waterfall(state, YEAR, InMemoryVaultRegistry(), AccrualPolicy())
    assert result.values == [1_000_000, 2_000_000, 0]
    assert result.fees[2].tranche_fee == 3_000_000
    assert result.fees[2].uncollected == 3_000_000


def test_target_apy_grows_senior_claim_at_equity_expense():
    state = live_state(apys=(0, 0, 1_000))
    result = calculate_waterfall(state, YEAR, InMemoryVaultRegistry(), AccrualPolicy())
    assert result.allocations == (700_000, 2_000_000, 3_300_000)


def test_accrual_window_caps_live_elapsed_at_end_date():
    state = live_state()
    window = accrual_window(state, 3 * YEAR, AccrualPolicy())
    assert window.elapsed == 2 * YEAR
    assert window.checkpoint_time == 2 * YEAR

    uncapped = accrual_window(state, 3 * YEAR, AccrualPolicy(cap_at_end_date=False))
    assert uncapped.elapsed == 3 * YEAR
    assert uncapped.checkpoint_time == 3 * YEAR


def test_closing_window_charges_to_end_date_but_stamps_close_time():
    state = live_state()
    window = accrual_window(state, 3 * YEAR, AccrualPolicy(), closing=True)
    assert window.elapsed == 2 * YEAR
    assert window.checkpoint_time == 3 * YEAR


def test_accrual_window_after_close_follows_policy():
    state = live_state()
    state.status = PortfolioStatus.CLOSED
    state.last_checkpoint_time = 2 * YEAR

    protocol_only = accrual_window(state, 3 * YEAR, AccrualPolicy())
    assert protocol_only.elapsed == YEAR
    assert protocol_only.charge_protocol_fees
    assert not protocol_only.charge_tranche_fees

    everything = accrual_window(state, 3 * YEAR, AccrualPolicy(post_close_accrual=PostCloseAccrual.ALL))
    assert everything.charge_tranche_fees

    nothing = accrual_window(state, 3 * YEAR, AccrualPolicy(post_close_accrual=PostCloseAccrual.NONE))
    assert nothing.elapsed == 0
    assert nothing.checkpoint_time == 3 * YEAR


def test_settle_checkpoint_pays_fees_from_virtual_balance():
    state = live_state(fees=(0, 0, 100), protocol_fee_bps=50)
    result = calculate_waterfall(state, YEAR, InMemoryVaultRegistry(), AccrualPolicy())
    settle_checkpoint(state, result)

    assert state.nominal_values == [995_000, 1_990_000, 2_955_000]
    assert state.protocol_fees_paid == 30_000
    assert state.tranches[2].fees_paid == 30_000
    assert state.virtual_token_balance == sum(state.nominal_values)
    assert state.last_checkpoint_time == YEAR


def test_settle_checkpoint_records_unpayable_fees_as_pending():
    vault = InMemoryVault("vault-a", "USDC")
    vault.deposit(1_000_000, "p")
    registry = InMemoryVaultRegistry([vault])
    state = live_state(nominal=(0, 0, 1_000_000), protocol_fee_bps=100)
    state.virtual_token_balance = 0
    state.investments["vault-a"] = Investment("vault-a", "USDC", shares_held=1_000_000)

    settle_checkpoint(state, calculate_waterfall(state, YEAR, registry, AccrualPolicy()))
    assert state.nominal_values == [0, 0, 990_000]
    assert state.pending_protocol_fees == 10_000
    assert state.protocol_fees_paid == 0
    assert total_portfolio_value(state, registry) == sum(state.nominal_values)

    state.virtual_token_balance = 20_000
    settle_checkpoint(state, calculate_waterfall(state, YEAR, registry, AccrualPolicy()))
    assert state.pending_protocol_fees == 0
    assert state.protocol_fees_paid == 10_000
    assert state.virtual_token_balance == 10_000
    assert state.nominal_values == [20_000, 0, 990_000]
    assert total_portfolio_value(state, registry) == sum(state.nominal_values)
