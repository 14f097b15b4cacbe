"""Pydantic schemas exposed by the HTTP API."""

from .portfolio import (
    AmountRequest,
    CheckpointSchema,
    DepositResultSchema,
    InvestmentDepositRequest,
    InvestmentSchema,
    PortfolioSchema,
    RedeemResultSchema,
    RegisterInvestmentRequest,
    TrancheDepositRequest,
    TrancheSchema,
    WaterfallSchema,
)

__all__ = [
    "AmountRequest",
    "CheckpointSchema",
    "DepositResultSchema",
    "InvestmentDepositRequest",
    "InvestmentSchema",
    "PortfolioSchema",
    "RedeemResultSchema",
    "RegisterInvestmentRequest",
    "TrancheDepositRequest",
    "TrancheSchema",
    "WaterfallSchema",
]
