"""Pydantic schemas for portfolio state, waterfall projections and capital moves."""

from __future__ import annotations

from pydantic import BaseModel, Field

from structured_portfolio.models import Investment, PortfolioState, PortfolioStatus, Tranche
from structured_portfolio.services.waterfall import WaterfallResult


class TrancheSchema(BaseModel):
    index: int
    name: str
    fee_rate_bps: int
    target_apy_bps: int
    nominal_value: int
    distributed_assets: int
    fees_paid: int
    pending_fees: int

    @classmethod
    def from_tranche(cls, index: int, tranche: Tranche) -> "TrancheSchema":
        return cls(
            index=index,
            name=tranche.name,
            fee_rate_bps=tranche.fee_rate_bps,
            target_apy_bps=tranche.target_apy_bps,
            nominal_value=tranche.nominal_value,
            distributed_assets=tranche.distributed_assets,
            fees_paid=tranche.fees_paid,
            pending_fees=tranche.pending_fees,
        )


class InvestmentSchema(BaseModel):
    vault: str
    asset: str
    shares_held: int

    @classmethod
    def from_investment(cls, investment: Investment) -> "InvestmentSchema":
        return cls(
            vault=investment.vault_address,
            asset=investment.asset_address,
            shares_held=investment.shares_held,
        )


class PortfolioSchema(BaseModel):
    portfolio_id: str
    underlying_asset: str
    manager: str
    status: PortfolioStatus
    start_date: int | None = None
    end_date: int | None = None
    last_checkpoint_time: int | None = None
    virtual_token_balance: int
    protocol_fee_rate_bps: int
    protocol_fees_paid: int
    pending_protocol_fees: int
    tranches: list[TrancheSchema]
    investments: list[InvestmentSchema]

    class Config:
        json_schema_extra = {
            "example": {
                "portfolio_id": "portfolio",
                "underlying_asset": "USDC",
                "manager": "manager",
                "status": "Live",
                "start_date": 1_700_000_000,
                "end_date": 1_763_072_000,
                "last_checkpoint_time": 1_700_000_000,
                "virtual_token_balance": 6_000_000,
                "protocol_fee_rate_bps": 50,
                "protocol_fees_paid": 0,
                "pending_protocol_fees": 0,
                "tranches": [],
                "investments": [],
            }
        }

    @classmethod
    def from_state(cls, state: PortfolioState) -> "PortfolioSchema":
        return cls(
            portfolio_id=state.portfolio_id,
            underlying_asset=state.underlying_asset,
            manager=state.manager,
            status=state.status,
            start_date=state.start_date,
            end_date=state.end_date,
            last_checkpoint_time=state.last_checkpoint_time,
            virtual_token_balance=state.virtual_token_balance,
            protocol_fee_rate_bps=state.protocol_fee_rate_bps,
            protocol_fees_paid=state.protocol_fees_paid,
            pending_protocol_fees=state.pending_protocol_fees,
            tranches=[TrancheSchema.from_tranche(i, t) for i, t in enumerate(state.tranches)],
            investments=[InvestmentSchema.from_investment(inv) for inv in state.investments.values()],
        )


class WaterfallSchema(BaseModel):
    total_value: int
    elapsed: int
    allocations: list[int] = Field(..., description="Pre-fee cascade allocation per tranche")
    values: list[int] = Field(..., description="Post-fee value per tranche, junior first")
    protocol_fee: int
    tranche_fees: list[int]

    @classmethod
    def from_result(cls, result: WaterfallResult) -> "WaterfallSchema":
        return cls(
            total_value=result.total_value,
            elapsed=result.elapsed,
            allocations=list(result.allocations),
            values=result.values,
            protocol_fee=result.protocol_fee,
            tranche_fees=result.tranche_fees,
        )


class TrancheDepositRequest(BaseModel):
    assets: int = Field(..., ge=0, examples=[1_000_000])


class RegisterInvestmentRequest(BaseModel):
    vault: str = Field(..., min_length=1, examples=["vault-a"])


class InvestmentDepositRequest(BaseModel):
    vault: str = Field(..., min_length=1, examples=["vault-a"])
    amount: int = Field(..., ge=0, examples=[1_000_000])


class AmountRequest(BaseModel):
    amount: int = Field(..., ge=0, examples=[1_000_000])


class DepositResultSchema(BaseModel):
    vault: str
    assets: int
    shares: int


class RedeemResultSchema(BaseModel):
    vault: str
    requested_assets: int
    assets: int
    registered: bool


class CheckpointSchema(BaseModel):
    timestamp: int | None = None
    nominal_values: list[int]
