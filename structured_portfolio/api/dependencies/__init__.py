"""FastAPI dependencies shared by the route modules."""

from .portfolio import get_caller, get_portfolio

__all__ = ["get_caller", "get_portfolio"]
