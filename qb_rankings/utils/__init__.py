"""Utility functions."""
from .helpers import safe_divide
from .roster_cache import RosterCache

__all__ = ["safe_divide", "RosterCache"]
