"""Symbio: freelance marketplace core services."""

__version__ = "0.1.0"
