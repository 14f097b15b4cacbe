"""Portfolio endpoints backed by the in-process waterfall engine.

Handlers are plain ``def`` functions: the engine is synchronous and
serialises writers with a lock, so FastAPI runs them in its threadpool.
Engine errors propagate to the ``PortfolioError`` handler in ``api.main``.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, status

from structured_portfolio.api.dependencies import get_caller, get_portfolio
from structured_portfolio.schemas import (
    AmountRequest,
    CheckpointSchema,
    DepositResultSchema,
    InvestmentDepositRequest,
    InvestmentSchema,
    PortfolioSchema,
    RedeemResultSchema,
    RegisterInvestmentRequest,
    TrancheDepositRequest,
    WaterfallSchema,
)
from structured_portfolio.services.portfolio import StructuredPortfolio

router = APIRouter()


@router.get("", response_model=PortfolioSchema)
def get_portfolio_state(portfolio: StructuredPortfolio = Depends(get_portfolio)) -> PortfolioSchema:
    return PortfolioSchema.from_state(portfolio.snapshot())


@router.get("/waterfall", response_model=WaterfallSchema)
def get_waterfall(portfolio: StructuredPortfolio = Depends(get_portfolio)) -> WaterfallSchema:
    """Project tranche values at the current time without settling a checkpoint."""

    return WaterfallSchema.from_result(portfolio.waterfall())


@router.get("/investments", response_model=list[InvestmentSchema])
def list_investments(portfolio: StructuredPortfolio = Depends(get_portfolio)) -> list[InvestmentSchema]:
    return [InvestmentSchema.from_investment(item) for item in portfolio.investments()]


@router.post("/tranches/{index}/deposits", response_model=PortfolioSchema)
def post_tranche_deposit(
    index: int,
    payload: TrancheDepositRequest,
    caller: str = Depends(get_caller),
    portfolio: StructuredPortfolio = Depends(get_portfolio),
) -> PortfolioSchema:
    portfolio.deposit(caller, index, payload.assets)
    return PortfolioSchema.from_state(portfolio.snapshot())


@router.post("/start", response_model=PortfolioSchema)
def post_start(
    caller: str = Depends(get_caller),
    portfolio: StructuredPortfolio = Depends(get_portfolio),
) -> PortfolioSchema:
    portfolio.start(caller)
    return PortfolioSchema.from_state(portfolio.snapshot())


@router.post("/close", response_model=PortfolioSchema)
def post_close(
    caller: str = Depends(get_caller),
    portfolio: StructuredPortfolio = Depends(get_portfolio),
) -> PortfolioSchema:
    portfolio.close(caller)
    return PortfolioSchema.from_state(portfolio.snapshot())


@router.post("/checkpoint", response_model=CheckpointSchema)
def post_checkpoint(
    caller: str = Depends(get_caller),
    portfolio: StructuredPortfolio = Depends(get_portfolio),
) -> CheckpointSchema:
    values = portfolio.update_checkpoint(caller)
    return CheckpointSchema(timestamp=portfolio.state.last_checkpoint_time, nominal_values=values)


@router.post("/investments", response_model=InvestmentSchema, status_code=status.HTTP_201_CREATED)
def post_investment(
    payload: RegisterInvestmentRequest,
    caller: str = Depends(get_caller),
    portfolio: StructuredPortfolio = Depends(get_portfolio),
) -> InvestmentSchema:
    portfolio.register(caller, payload.vault)
    return InvestmentSchema.from_investment(portfolio.state.investments[payload.vault])


@router.post("/investments/deposits", response_model=DepositResultSchema, status_code=status.HTTP_201_CREATED)
def post_register_and_deposit(
    payload: InvestmentDepositRequest,
    caller: str = Depends(get_caller),
    portfolio: StructuredPortfolio = Depends(get_portfolio),
) -> DepositResultSchema:
    shares = portfolio.register_and_execute_deposit(caller, payload.vault, payload.amount)
    return DepositResultSchema(vault=payload.vault, assets=payload.amount, shares=shares)


@router.post("/investments/{vault}/deposits", response_model=DepositResultSchema)
def post_investment_deposit(
    vault: str,
    payload: AmountRequest,
    caller: str = Depends(get_caller),
    portfolio: StructuredPortfolio = Depends(get_portfolio),
) -> DepositResultSchema:
    shares = portfolio.execute_deposit(caller, vault, payload.amount)
    return DepositResultSchema(vault=vault, assets=payload.amount, shares=shares)


@router.post("/investments/{vault}/redemptions", response_model=RedeemResultSchema)
def post_investment_redemption(
    vault: str,
    payload: AmountRequest,
    caller: str = Depends(get_caller),
    portfolio: StructuredPortfolio = Depends(get_portfolio),
) -> RedeemResultSchema:
    assets = portfolio.execute_redeem_and_unregister(caller, vault, payload.amount)
    return RedeemResultSchema(
        vault=vault,
        requested_assets=payload.amount,
        assets=assets,
        registered=vault in portfolio.state.investments,
    )
