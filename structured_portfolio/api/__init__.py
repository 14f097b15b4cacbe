"""HTTP surface for the portfolio engine."""

from .main import create_app

__all__ = ["create_app"]
