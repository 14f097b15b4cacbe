"""Waterfall engine, capital ledger and the portfolio facade."""

from .environment import Clock, LifecycleGate, ManualClock, PauseSwitch, SystemClock
from .fees import FeeAccrual, accrue_fees
from .portfolio import StructuredPortfolio
from .vaults import EligibilityRegistry, InMemoryVault, InMemoryVaultRegistry, Vault, VaultDirectory
from .waterfall import AccrualPolicy, PostCloseAccrual, WaterfallResult, calculate_waterfall

__all__ = [
    "AccrualPolicy",
    "Clock",
    "EligibilityRegistry",
    "FeeAccrual",
    "InMemoryVault",
    "InMemoryVaultRegistry",
    "LifecycleGate",
    "ManualClock",
    "PauseSwitch",
    "PostCloseAccrual",
    "StructuredPortfolio",
    "SystemClock",
    "Vault",
    "VaultDirectory",
    "WaterfallResult",
    "accrue_fees",
    "calculate_waterfall",
]
