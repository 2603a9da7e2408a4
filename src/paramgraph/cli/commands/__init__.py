"""CLI command modules."""

from .initialize import init

__all__ = ["init"]
