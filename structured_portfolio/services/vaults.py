"""Vault collaborators and in-memory doubles.

The engine only talks to vaults through the ``Vault`` protocol, an
ERC-4626-style "shares <-> assets" contract. ``InMemoryVault`` is a
deterministic stand-in for tests, scripts and the default API app; it keeps
a log of every call so callers can verify the arguments they passed.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Protocol


class Vault(Protocol):
    """External yield-bearing vault."""

    def asset(self) -> str:
        ...

    def convert_to_assets(self, shares: int) -> int:
        ...

    def convert_to_shares(self, assets: int) -> int:
        ...

    def preview_withdraw(self, assets: int) -> int:
        """Shares needed to withdraw exactly ``assets``, rounded up."""
        ...

    def deposit(self, assets: int, receiver: str) -> int:
        ...

    def redeem(self, shares: int, receiver: str, owner: str) -> int:
        ...


class EligibilityRegistry(Protocol):
    """Set of vault addresses the portfolio may invest in."""

    def contains(self, vault_address: str) -> bool:
        ...


class VaultDirectory(Protocol):
    """Resolves a vault address to a callable vault."""

    def get_vault(self, vault_address: str) -> Vault:
        ...


@dataclass(frozen=True)
class VaultCall:
    method: str
    args: tuple


class InMemoryVault:
    """Vault double with proportional share pricing.

    An empty vault prices shares 1:1. ``set_total_assets`` moves the vault's
    value without minting shares, which is how tests simulate gains and
    losses of a deployed position.
    """

    def __init__(self, address: str, asset: str) -> None:
        self.address = address
        self._asset = asset
        self.total_assets = 0
        self.total_supply = 0
        self.balances: Dict[str, int] = {}
        self.calls: list[VaultCall] = []

    def asset(self) -> str:
        return self._asset

    def convert_to_shares(self, assets: int) -> int:
        if self.total_supply == 0 or self.total_assets == 0:
            return assets
        return assets * self.total_supply // self.total_assets

    def preview_withdraw(self, assets: int) -> int:
        if self.total_supply == 0 or self.total_assets == 0:
            return assets
        return -(-assets * self.total_supply // self.total_assets)

    def convert_to_assets(self, shares: int) -> int:
        if self.total_supply == 0:
            return shares
        return shares * self.total_assets // self.total_supply

    def deposit(self, assets: int, receiver: str) -> int:
        self.calls.append(VaultCall("deposit", (assets, receiver)))
        shares = self.convert_to_shares(assets)
        self.total_assets += assets
        self.total_supply += shares
        self.balances[receiver] = self.balances.get(receiver, 0) + shares
        return shares

    def redeem(self, shares: int, receiver: str, owner: str) -> int:
        self.calls.append(VaultCall("redeem", (shares, receiver, owner)))
        held = self.balances.get(owner, 0)
        if shares > held:
            raise ValueError(f"{owner} holds {held} shares, cannot redeem {shares}")
        assets = self.convert_to_assets(shares)
        self.total_assets -= assets
        self.total_supply -= shares
        self.balances[owner] = held - shares
        return assets

    def set_total_assets(self, total_assets: int) -> None:
        if total_assets < 0:
            raise ValueError("total_assets must be >= 0")
        self.total_assets = total_assets

    def calls_to(self, method: str) -> list[tuple]:
        return [call.args for call in self.calls if call.method == method]


class InMemoryVaultRegistry:
    """Eligibility registry that also resolves vault objects.

    Removing a vault only revokes eligibility; positions already registered
    against it keep resolving.
    """

    def __init__(self, vaults: list[InMemoryVault] | None = None) -> None:
        self._vaults: Dict[str, Vault] = {}
        self._eligible: set[str] = set()
        for vault in vaults or []:
            self.add_vault(vault)

    def add_vault(self, vault: InMemoryVault) -> None:
        self._vaults[vault.address] = vault
        self._eligible.add(vault.address)

    def remove_vault(self, vault_address: str) -> None:
        self._eligible.discard(vault_address)

    def contains(self, vault_address: str) -> bool:
        return vault_address in self._eligible

    def get_vault(self, vault_address: str) -> Vault:
        if vault_address not in self._vaults:
            raise KeyError(f"Unknown vault {vault_address}")
        return self._vaults[vault_address]


__all__ = [
    "Vault",
    "EligibilityRegistry",
    "VaultDirectory",
    "VaultCall",
    "InMemoryVault",
    "InMemoryVaultRegistry",
]
