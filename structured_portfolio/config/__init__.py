"""Configuration package for the structured portfolio engine."""

from .settings import PortfolioSettings, get_settings

__all__ = ["PortfolioSettings", "get_settings"]
