"""Domain records for the tranche ledger, investments and portfolio aggregate."""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional


class PortfolioStatus(str, Enum):
    CAPITAL_FORMATION = "CapitalFormation"
    LIVE = "Live"
    CLOSED = "Closed"


@dataclass(frozen=True)
class TrancheInput:
    """Static configuration of a tranche, fixed at portfolio creation."""

    name: str
    fee_rate_bps: int = 0
    target_apy_bps: int = 0


@dataclass
class Tranche:
    """A seniority class and its running ledger counters."""

    name: str
    fee_rate_bps: int = 0
    target_apy_bps: int = 0
    nominal_value: int = 0
    distributed_assets: int = 0
    fees_paid: int = 0
    pending_fees: int = 0


@dataclass
class Investment:
    """A registered position in an external vault."""

    vault_address: str
    asset_address: str
    shares_held: int = 0


@dataclass
class PortfolioState:
    """Aggregate root mutated by every checkpointed operation.

    ``tranches[0]`` is the most junior (equity) tranche and the last entry is
    the most senior. ``investments`` is keyed by vault address.
    """

    portfolio_id: str
    underlying_asset: str
    manager: str
    duration: int
    protocol_fee_rate_bps: int = 0
    tranches: List[Tranche] = field(default_factory=list)
    investments: Dict[str, Investment] = field(default_factory=dict)
    status: PortfolioStatus = PortfolioStatus.CAPITAL_FORMATION
    start_date: Optional[int] = None
    end_date: Optional[int] = None
    virtual_token_balance: int = 0
    last_checkpoint_time: Optional[int] = None
    protocol_fees_paid: int = 0
    pending_protocol_fees: int = 0

    @property
    def nominal_values(self) -> list[int]:
        return [tranche.nominal_value for tranche in self.tranches]

    @property
    def distributed_assets(self) -> list[int]:
        return [tranche.distributed_assets for tranche in self.tranches]

    @property
    def unpaid_fees(self) -> int:
        return self.pending_protocol_fees + sum(t.pending_fees for t in self.tranches)


__all__ = [
    "PortfolioStatus",
    "TrancheInput",
    "Tranche",
    "Investment",
    "PortfolioState",
]
