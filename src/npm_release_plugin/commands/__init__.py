"""Command modules for the npm release CLI."""

from . import lifecycle

__all__ = ["lifecycle"]
