from __future__ import annotations

from structured_portfolio.config.settings import DEFAULT_SECONDS_PER_YEAR as YEAR
from structured_portfolio.services.fees import accrue_fees

MANAGER = "manager"


def test_three_tranches_without_fees_keep_their_deposits(make_portfolio, clock):
    portfolio = make_portfolio(start=False)
    assert portfolio.calculate_waterfall() == [1_000_000, 2_000_000, 3_000_000]

    portfolio.start(MANAGER)
    clock.advance(YEAR)
    assert portfolio.calculate_waterfall() == [1_000_000, 2_000_000, 3_000_000]


def test_senior_shortfall_wipes_out_junior_and_equity(make_portfolio, clock):
    portfolio = make_portfolio(tranche_fees=(100, 200, 300), protocol_fee_bps=50)
    portfolio.state.virtual_token_balance = 3_000_000 - 10_000
    clock.advance(portfolio.state.duration // 2)

    expected_senior = accrue_fees(2_990_000, YEAR, 300, 50).value_after
    assert expected_senior == 2_885_350
    assert portfolio.calculate_waterfall() == [0, 0, expected_senior]


def test_calculate_waterfall_is_read_only(make_portfolio, clock):
    portfolio = make_portfolio(tranche_fees=(100, 200, 300), protocol_fee_bps=50)
    clock.advance(YEAR)
    before = portfolio.snapshot()

    first = portfolio.calculate_waterfall()
    second = portfolio.calculate_waterfall()

    assert first == second
    assert portfolio.snapshot() == before


def test_projection_is_identity_right_after_checkpoint(make_portfolio, clock):
    portfolio = make_portfolio(tranche_fees=(100, 200, 300), protocol_fee_bps=50)
    clock.advance(YEAR // 4)
    values = portfolio.update_checkpoint(MANAGER)

    assert portfolio.calculate_waterfall() == values
    assert portfolio.calculate_waterfall() == portfolio.state.nominal_values


def test_waterfall_reflects_vault_gains_and_losses(make_portfolio, vault):
    portfolio = make_portfolio()
    portfolio.register_and_execute_deposit(MANAGER, "vault-a", 6_000_000)

    vault.set_total_assets(6_600_000)
    assert portfolio.calculate_waterfall() == [1_600_000, 2_000_000, 3_000_000]

    vault.set_total_assets(2_500_000)
    assert portfolio.calculate_waterfall() == [0, 0, 2_500_000]


def test_checkpoint_keeps_value_and_nominals_in_sync(make_portfolio, clock, vault):
    portfolio = make_portfolio(tranche_fees=(0, 100, 200), protocol_fee_bps=25)
    portfolio.register_and_execute_deposit(MANAGER, "vault-a", 4_000_000)
    vault.set_total_assets(4_400_000)
    clock.advance(YEAR // 2)
    portfolio.update_checkpoint(MANAGER)

    state = portfolio.state
    held = vault.convert_to_assets(state.investments["vault-a"].shares_held)
    assert state.virtual_token_balance + held - state.unpaid_fees == sum(state.nominal_values)
