"""Notifications surfaced once per committed state mutation."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Tuple, Union

from .portfolio import PortfolioStatus


@dataclass(frozen=True)
class InvestmentRegistered:
    vault: str


@dataclass(frozen=True)
class InvestmentUnregistered:
    vault: str


@dataclass(frozen=True)
class ExecutedDeposit:
    vault: str
    assets: int
    shares: int


@dataclass(frozen=True)
class ExecutedRedeem:
    vault: str
    shares: int
    assets: int


@dataclass(frozen=True)
class PortfolioStatusChanged:
    status: PortfolioStatus


@dataclass(frozen=True)
class CheckpointUpdated:
    """New nominal baseline recorded by a checkpoint."""

    timestamp: int
    nominal_values: Tuple[int, ...]
    protocol_fee: int
    tranche_fees: Tuple[int, ...]


PortfolioEvent = Union[
    InvestmentRegistered,
    InvestmentUnregistered,
    ExecutedDeposit,
    ExecutedRedeem,
    PortfolioStatusChanged,
    CheckpointUpdated,
]

EventObserver = Callable[[PortfolioEvent], None]


__all__ = [
    "InvestmentRegistered",
    "InvestmentUnregistered",
    "ExecutedDeposit",
    "ExecutedRedeem",
    "PortfolioStatusChanged",
    "CheckpointUpdated",
    "PortfolioEvent",
    "EventObserver",
]
