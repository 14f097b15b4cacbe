"""Request-scoped access to the portfolio and the calling identity."""

from __future__ import annotations

from fastapi import Header, HTTPException, Request, status

from structured_portfolio.services.portfolio import StructuredPortfolio


def get_portfolio(request: Request) -> StructuredPortfolio:
    portfolio = getattr(request.app.state, "portfolio", None)
    if portfolio is None:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Portfolio not configured")
    return portfolio


async def get_caller(x_caller_id: str | None = Header(default=None)) -> str:
    if not x_caller_id or not x_caller_id.strip():
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing X-Caller-Id header")
    return x_caller_id.strip()


__all__ = ["get_portfolio", "get_caller"]
