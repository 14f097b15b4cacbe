"""Tranche waterfall accounting for structured portfolios."""

from structured_portfolio.core.errors import PortfolioError
from structured_portfolio.models import PortfolioState, PortfolioStatus, TrancheInput
from structured_portfolio.services import AccrualPolicy, StructuredPortfolio

__version__ = "0.1.0"

__all__ = [
    "AccrualPolicy",
    "PortfolioError",
    "PortfolioState",
    "PortfolioStatus",
    "StructuredPortfolio",
    "TrancheInput",
]
