"""HTTP API (FastAPI)."""

from .app import AuthError, create_app

__all__ = ["AuthError", "create_app"]
