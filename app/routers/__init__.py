"""Routers package for API endpoints.

This package contains the FastAPI routers for the prospect list generator.
"""

from app.routers import prospects

__all__ = ["prospects"]
