"""Domain models for the portfolio engine."""

from .events import (
    CheckpointUpdated,
    EventObserver,
    ExecutedDeposit,
    ExecutedRedeem,
    InvestmentRegistered,
    InvestmentUnregistered,
    PortfolioEvent,
    PortfolioStatusChanged,
)
from .portfolio import Investment, PortfolioState, PortfolioStatus, Tranche, TrancheInput

__all__ = [
    "CheckpointUpdated",
    "EventObserver",
    "ExecutedDeposit",
    "ExecutedRedeem",
    "Investment",
    "InvestmentRegistered",
    "InvestmentUnregistered",
    "PortfolioEvent",
    "PortfolioState",
    "PortfolioStatus",
    "PortfolioStatusChanged",
    "Tranche",
    "TrancheInput",
]
