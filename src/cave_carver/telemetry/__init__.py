"""Logging setup for the cave carver."""

from .logging import configure_logging

__all__ = ["configure_logging"]
