"""Simulate a three-tranche portfolio and print its waterfall."""

from __future__ import annotations

import argparse
import logging

from structured_portfolio.config.settings import DEFAULT_SECONDS_PER_YEAR
from structured_portfolio.core.logging import setup_logging
from structured_portfolio.models import TrancheInput
from structured_portfolio.services import (
    AccrualPolicy,
    InMemoryVault,
    InMemoryVaultRegistry,
    ManualClock,
    StructuredPortfolio,
)

MANAGER = "manager"
VAULT = "vault-1"
ASSET = "USDC"


def _run(args: argparse.Namespace) -> None:
    vault = InMemoryVault(VAULT, ASSET)
    registry = InMemoryVaultRegistry([vault])
    clock = ManualClock(start=0)
    portfolio = StructuredPortfolio.create(
        portfolio_id="simulation",
        underlying_asset=ASSET,
        manager=MANAGER,
        duration=args.duration_days * 86_400,
        tranches=[
            TrancheInput("equity", fee_rate_bps=args.equity_fee_bps),
            TrancheInput("junior", fee_rate_bps=args.junior_fee_bps, target_apy_bps=args.junior_apy_bps),
            TrancheInput("senior", fee_rate_bps=args.senior_fee_bps, target_apy_bps=args.senior_apy_bps),
        ],
        protocol_fee_rate_bps=args.protocol_fee_bps,
        eligibility=registry,
        vaults=registry,
        clock=clock,
        policy=AccrualPolicy(),
    )

    for index, amount in enumerate(args.deposits):
        portfolio.deposit(MANAGER, index, amount)
    portfolio.start(MANAGER)

    invested = portfolio.state.virtual_token_balance * args.invest_pct // 100
    if invested:
        portfolio.register_and_execute_deposit(MANAGER, VAULT, invested)
        vault.set_total_assets(max(0, vault.total_assets + args.vault_change))

    clock.advance(args.elapsed_days * 86_400)
    result = portfolio.waterfall()

    print(f"Elapsed: {result.elapsed}s ({result.elapsed / DEFAULT_SECONDS_PER_YEAR:.4f} years)")
    print(f"Total value: {result.total_value}")
    for tranche, allocated, fee in zip(portfolio.state.tranches, result.allocations, result.fees):
        print(
            f"  {tranche.name:<8} nominal={tranche.nominal_value:>14} allocated={allocated:>14} "
            f"fees={fee.total_fee:>10} value={fee.value_after:>14}"
        )
    print(f"Protocol fee: {result.protocol_fee}")


def main() -> None:
    parser = argparse.ArgumentParser(description="Simulate a tranche waterfall with in-memory vaults")
    parser.add_argument(
        "--deposits",
        type=int,
        nargs=3,
        default=[1_000_000, 2_000_000, 3_000_000],
        metavar=("EQUITY", "JUNIOR", "SENIOR"),
    )
    parser.add_argument("--invest-pct", type=int, default=100, help="Share of capital deployed into the vault")
    parser.add_argument("--vault-change", type=int, default=0, help="Gain (+) or loss (-) applied to the vault")
    parser.add_argument("--elapsed-days", type=int, default=365)
    parser.add_argument("--duration-days", type=int, default=730)
    parser.add_argument("--protocol-fee-bps", type=int, default=0)
    parser.add_argument("--equity-fee-bps", type=int, default=0)
    parser.add_argument("--junior-fee-bps", type=int, default=0)
    parser.add_argument("--senior-fee-bps", type=int, default=0)
    parser.add_argument("--junior-apy-bps", type=int, default=0)
    parser.add_argument("--senior-apy-bps", type=int, default=0)
    parser.add_argument("--log-level", default="WARNING")
    args = parser.parse_args()
    if not 0 <= args.invest_pct <= 100:
        parser.error("--invest-pct must be between 0 and 100")

    setup_logging(getattr(logging, args.log_level.upper(), logging.WARNING))
    _run(args)


if __name__ == "__main__":
    main()
