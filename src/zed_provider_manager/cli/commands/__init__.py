"""CLI commands package."""

from . import models, providers

__all__ = ["providers", "models"]
