"""Error taxonomy for the portfolio engine.

Every failure surfaces synchronously as a distinct ``PortfolioError``
subclass. Operations that raise leave the committed portfolio state
untouched; callers re-issue the call after fixing the triggering condition.
"""

from __future__ import annotations


class PortfolioError(Exception):
    """Base class for engine failures."""

    code = "portfolio_error"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.code)
        self.message = message or self.code


class InvalidLifecycleState(PortfolioError):
    code = "invalid_lifecycle_state"


class Unauthorized(PortfolioError):
    code = "unauthorized"


class PortfolioPaused(PortfolioError):
    code = "portfolio_paused"


class NotWhitelisted(PortfolioError):
    code = "not_whitelisted"


class AssetMismatch(PortfolioError):
    code = "asset_mismatch"


class AlreadyRegistered(PortfolioError):
    code = "already_registered"


class NotRegistered(PortfolioError):
    code = "not_registered"


class InsufficientBalance(PortfolioError):
    code = "insufficient_balance"


class ArithmeticOverflow(PortfolioError):
    code = "arithmetic_overflow"


class InvalidAmount(PortfolioError):
    code = "invalid_amount"


__all__ = [
    "PortfolioError",
    "InvalidLifecycleState",
    "Unauthorized",
    "PortfolioPaused",
    "NotWhitelisted",
    "AssetMismatch",
    "AlreadyRegistered",
    "NotRegistered",
    "InsufficientBalance",
    "ArithmeticOverflow",
    "InvalidAmount",
]
