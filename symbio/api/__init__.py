"""HTTP API for the Symbio marketplace."""

from .routes import create_app

__all__ = ["create_app"]
