"""Scoring rules for table tennis games and matches."""

from . import outcomes, rules, serve

__all__ = [
    "outcomes",
    "rules",
    "serve",
]
