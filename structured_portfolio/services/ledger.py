"""Capital movements between uninvested capital, tranches and vaults.

Every method here mutates the ``PortfolioState`` it is handed and assumes
the caller already settled a checkpoint on that same state. The portfolio
facade is the only caller; it works on a copy and commits on success.
"""

from __future__ import annotations

import logging

from structured_portfolio.core.arithmetic import checked_add, checked_sub, ensure_amount
from structured_portfolio.core.errors import InsufficientBalance, InvalidAmount
from structured_portfolio.models.events import EventObserver, ExecutedDeposit, ExecutedRedeem
from structured_portfolio.models.portfolio import PortfolioState
from structured_portfolio.services.registry import InvestmentRegistry
from structured_portfolio.services.vaults import VaultDirectory
from structured_portfolio.services.waterfall import distribute_by_seniority

logger = logging.getLogger(__name__)


class CapitalLedger:
    def __init__(self, vaults: VaultDirectory, registry: InvestmentRegistry) -> None:
        self._vaults = vaults
        self._registry = registry

    def deposit_to_tranche(self, state: PortfolioState, tranche_index: int, assets: int) -> None:
        """Add lender capital to a tranche and to uninvested capital."""

        ensure_amount(assets, "assets")
        if isinstance(tranche_index, bool) or not 0 <= tranche_index < len(state.tranches):
            raise InvalidAmount(f"tranche index {tranche_index} is out of range")
        tranche = state.tranches[tranche_index]
        tranche.nominal_value = checked_add(tranche.nominal_value, assets)
        state.virtual_token_balance = checked_add(state.virtual_token_balance, assets)
        logger.info("Deposited %d into tranche %s", assets, tranche.name)

    def execute_deposit(
        self,
        state: PortfolioState,
        vault_address: str,
        amount: int,
        emit: EventObserver,
    ) -> int:
        """Move ``amount`` of uninvested capital into a registered vault; return shares minted."""

        ensure_amount(amount)
        investment = self._registry.get(state, vault_address)
        if amount > state.virtual_token_balance:
            raise InsufficientBalance(
                f"Cannot deposit {amount}; only {state.virtual_token_balance} is uninvested"
            )

        vault = self._vaults.get_vault(vault_address)
        shares = vault.deposit(amount, state.portfolio_id)
        state.virtual_token_balance = checked_sub(state.virtual_token_balance, amount)
        investment.shares_held = checked_add(investment.shares_held, shares)

        emit(ExecutedDeposit(vault=vault_address, assets=amount, shares=shares))
        logger.info("Deposited %d into vault %s for %d shares", amount, vault_address, shares)
        return shares

    def execute_redeem(
        self,
        state: PortfolioState,
        vault_address: str,
        asset_amount: int,
        emit: EventObserver,
    ) -> int:
        """Redeem ``asset_amount`` worth of shares and attribute the proceeds to tranches.

        Proceeds go to senior tranches first, each capped at the part of its
        nominal value not yet distributed; equity takes whatever is left. A
        position redeemed down to zero shares is unregistered.
        """

        ensure_amount(asset_amount, "asset_amount")
        investment = self._registry.get(state, vault_address)
        vault = self._vaults.get_vault(vault_address)

        shares = vault.preview_withdraw(asset_amount)
        if shares > investment.shares_held:
            raise InsufficientBalance(
                f"Redeeming {asset_amount} needs {shares} shares; only {investment.shares_held} are held"
            )

        assets = vault.redeem(shares, state.portfolio_id, state.portfolio_id)
        investment.shares_held -= shares
        state.virtual_token_balance = checked_add(state.virtual_token_balance, assets)
        for tranche, share in zip(state.tranches, distribute_by_seniority(assets, state)):
            tranche.distributed_assets = checked_add(tranche.distributed_assets, share)

        emit(ExecutedRedeem(vault=vault_address, shares=shares, assets=assets))
        logger.info("Redeemed %d shares from vault %s for %d", shares, vault_address, assets)

        if investment.shares_held == 0:
            self._registry.unregister(state, vault_address, emit)
        return assets


__all__ = ["CapitalLedger"]
