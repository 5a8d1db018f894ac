"""API module for CoverWise endpoints."""
from .routes import analysis

__all__ = ["analysis"]
