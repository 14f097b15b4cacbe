"""FastAPI application factory."""

from __future__ import annotations

import logging
from datetime import datetime

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from structured_portfolio.api.routes import api_router
from structured_portfolio.config import PortfolioSettings, get_settings
from structured_portfolio.core.errors import (
    AlreadyRegistered,
    ArithmeticOverflow,
    AssetMismatch,
    InsufficientBalance,
    InvalidAmount,
    InvalidLifecycleState,
    NotRegistered,
    NotWhitelisted,
    PortfolioError,
    PortfolioPaused,
    Unauthorized,
)
from structured_portfolio.core.logging import setup_logging
from structured_portfolio.core.telemetry import setup_telemetry
from structured_portfolio.services.portfolio import StructuredPortfolio
from structured_portfolio.services.vaults import InMemoryVaultRegistry

logger = logging.getLogger(__name__)

ERROR_STATUS: dict[type[PortfolioError], int] = {
    Unauthorized: status.HTTP_403_FORBIDDEN,
    PortfolioPaused: status.HTTP_423_LOCKED,
    InvalidLifecycleState: status.HTTP_409_CONFLICT,
    AlreadyRegistered: status.HTTP_409_CONFLICT,
    InsufficientBalance: status.HTTP_409_CONFLICT,
    NotRegistered: status.HTTP_404_NOT_FOUND,
    NotWhitelisted: status.HTTP_400_BAD_REQUEST,
    AssetMismatch: status.HTTP_400_BAD_REQUEST,
    InvalidAmount: status.HTTP_422_UNPROCESSABLE_ENTITY,
    ArithmeticOverflow: status.HTTP_422_UNPROCESSABLE_ENTITY,
}


async def _portfolio_error_handler(request: Request, exc: PortfolioError) -> JSONResponse:
    status_code = ERROR_STATUS.get(type(exc), status.HTTP_400_BAD_REQUEST)
    return JSONResponse(status_code=status_code, content={"detail": exc.message, "error": exc.code})


def create_app(
    portfolio: StructuredPortfolio | None = None,
    settings: PortfolioSettings | None = None,
) -> FastAPI:
    """Build the API around ``portfolio``.

    Without an explicit portfolio one is created from settings with an empty
    in-memory vault registry, which is enough to drive tranche deposits and
    the lifecycle but not to invest.
    """

    settings = settings or get_settings()
    setup_logging(settings.log_level)
    logger.info("Starting %s with settings %s", settings.app_name, settings.dict_for_logging())

    if portfolio is None:
        vaults = InMemoryVaultRegistry()
        portfolio = StructuredPortfolio.from_settings(settings, eligibility=vaults, vaults=vaults)

    app = FastAPI(title=settings.app_name, version="0.1.0")
    app.state.portfolio = portfolio
    app.state.settings = settings
    app.add_exception_handler(PortfolioError, _portfolio_error_handler)
    app.include_router(api_router)

    @app.get("/health", tags=["health"])
    async def health() -> dict[str, str]:
        """Return service readiness metadata."""

        return {
            "status": "ok",
            "timestamp": datetime.now().isoformat(),
            "portfolio_status": app.state.portfolio.status.value,
        }

    setup_telemetry(app, settings)
    return app


__all__ = ["create_app", "ERROR_STATUS"]
