"""Engine configuration and environment helpers."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from functools import lru_cache
from typing import Any

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings

DEFAULT_SECONDS_PER_YEAR = 365 * 24 * 60 * 60
DEFAULT_BASIS_POINTS = 10_000
DEFAULT_PORTFOLIO_DURATION = 2 * DEFAULT_SECONDS_PER_YEAR


class PostCloseAccrual(str, Enum):
    ALL = "all"
    PROTOCOL_ONLY = "protocol_only"
    NONE = "none"


@dataclass(frozen=True)
class AccrualPolicy:
    """How elapsed time is measured around the portfolio's end date."""

    seconds_per_year: int = DEFAULT_SECONDS_PER_YEAR
    basis_points: int = DEFAULT_BASIS_POINTS
    cap_at_end_date: bool = True
    post_close_accrual: PostCloseAccrual = PostCloseAccrual.PROTOCOL_ONLY


class PortfolioSettings(BaseSettings):
    """Configuration options for a structured portfolio instance."""

    app_name: str = Field(default="Structured Portfolio Waterfall Engine")
    portfolio_id: str = Field(default="portfolio", description="Identity used as vault receiver/owner.")
    underlying_asset: str = Field(default="USDC")
    manager: str = Field(default="manager", description="Sole caller allowed to move capital.")

    portfolio_duration_seconds: int = Field(default=DEFAULT_PORTFOLIO_DURATION, gt=0)
    protocol_fee_rate_bps: int = Field(default=0, ge=0)

    tranche_names: list[str] = Field(default_factory=lambda: ["equity", "junior", "senior"])
    tranche_fee_rates_bps: list[int] = Field(default_factory=lambda: [0, 0, 0])
    tranche_target_apys_bps: list[int] = Field(default_factory=lambda: [0, 0, 0])

    seconds_per_year: int = Field(default=DEFAULT_SECONDS_PER_YEAR, gt=0)
    basis_points: int = Field(default=DEFAULT_BASIS_POINTS, gt=0)

    cap_accrual_at_end_date: bool = Field(
        default=True,
        description="Stop charging Live fees past the portfolio end date.",
    )
    post_close_accrual: PostCloseAccrual = Field(
        default=PostCloseAccrual.PROTOCOL_ONLY,
        description="Which fee rates keep accruing after the portfolio is closed.",
    )

    log_level: str = Field(default="INFO")

    telemetry_enabled: bool = Field(default=False)
    telemetry_service_name: str = Field(default="structured-portfolio")
    telemetry_otlp_endpoint: str | None = Field(default=None)
    telemetry_otlp_insecure: bool = Field(default=True)
    telemetry_sample_ratio: float = Field(default=1.0, ge=0.0, le=1.0)

    class Config:
        env_prefix = "SIP_"
        env_file = ".env"
        env_file_encoding = "utf-8"

    @model_validator(mode="after")
    def _check_tranche_vectors(self) -> "PortfolioSettings":
        count = len(self.tranche_names)
        if count == 0:
            raise ValueError("at least one tranche is required")
        if len(self.tranche_fee_rates_bps) != count or len(self.tranche_target_apys_bps) != count:
            raise ValueError("tranche names, fee rates and target APYs must have the same length")
        if any(rate < 0 for rate in self.tranche_fee_rates_bps + self.tranche_target_apys_bps):
            raise ValueError("tranche rates must be >= 0")
        return self

    def accrual_policy(self) -> AccrualPolicy:
        """Build the accrual window policy used by the waterfall engine."""

        return AccrualPolicy(
            seconds_per_year=self.seconds_per_year,
            basis_points=self.basis_points,
            cap_at_end_date=self.cap_accrual_at_end_date,
            post_close_accrual=self.post_close_accrual,
        )

    def dict_for_logging(self) -> dict[str, Any]:
        """Return a sanitized dict for logging purposes."""

        hidden: set[str] = set()
        return {k: ("***" if k in hidden else v) for k, v in self.model_dump().items()}


@lru_cache(maxsize=1)
def get_settings(**overrides: Any) -> PortfolioSettings:
    """Return cached settings with optional overrides."""

    if overrides:
        return PortfolioSettings(**overrides)
    return PortfolioSettings()


__all__ = [
    "AccrualPolicy",
    "PortfolioSettings",
    "PostCloseAccrual",
    "DEFAULT_SECONDS_PER_YEAR",
    "DEFAULT_BASIS_POINTS",
    "DEFAULT_PORTFOLIO_DURATION",
    "get_settings",
]
