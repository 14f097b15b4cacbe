"""Registry of vault positions held by a portfolio."""

from __future__ import annotations

import logging

from structured_portfolio.core.errors import (
    AlreadyRegistered,
    AssetMismatch,
    NotRegistered,
    NotWhitelisted,
)
from structured_portfolio.models.events import EventObserver, InvestmentRegistered, InvestmentUnregistered
from structured_portfolio.models.portfolio import Investment, PortfolioState
from structured_portfolio.services.vaults import EligibilityRegistry, VaultDirectory

logger = logging.getLogger(__name__)


class InvestmentRegistry:
    """Validates vaults against the eligibility list and tracks one position per vault."""

    def __init__(self, eligibility: EligibilityRegistry, vaults: VaultDirectory) -> None:
        self._eligibility = eligibility
        self._vaults = vaults

    def validate(self, state: PortfolioState, vault_address: str) -> None:
        if not self._eligibility.contains(vault_address):
            raise NotWhitelisted(f"Vault {vault_address} is not eligible")
        vault_asset = self._vaults.get_vault(vault_address).asset()
        if vault_asset != state.underlying_asset:
            raise AssetMismatch(
                f"Vault {vault_address} holds {vault_asset}, portfolio holds {state.underlying_asset}"
            )
        if vault_address in state.investments:
            raise AlreadyRegistered(f"Vault {vault_address} is already registered")

    def register(self, state: PortfolioState, vault_address: str, emit: EventObserver) -> Investment:
        self.validate(state, vault_address)
        investment = Investment(vault_address=vault_address, asset_address=state.underlying_asset)
        state.investments[vault_address] = investment
        emit(InvestmentRegistered(vault=vault_address))
        logger.info("Registered vault %s for portfolio %s", vault_address, state.portfolio_id)
        return investment

    def get(self, state: PortfolioState, vault_address: str) -> Investment:
        try:
            return state.investments[vault_address]
        except KeyError:
            raise NotRegistered(f"Vault {vault_address} is not registered") from None

    def unregister(self, state: PortfolioState, vault_address: str, emit: EventObserver) -> None:
        investment = self.get(state, vault_address)
        if investment.shares_held:
            raise ValueError(f"Vault {vault_address} still holds {investment.shares_held} shares")
        del state.investments[vault_address]
        emit(InvestmentUnregistered(vault=vault_address))
        logger.info("Unregistered vault %s from portfolio %s", vault_address, state.portfolio_id)


__all__ = ["InvestmentRegistry"]
