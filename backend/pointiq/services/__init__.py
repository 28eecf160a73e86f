"""Application services: live match tracking and the match archive."""

from .tracker import MatchTracker, point_to_record
from .matches import archive_match, delete_match, get_match, list_matches
from .stats import compute_archive_stats

__all__ = [
    "MatchTracker",
    "point_to_record",
    "archive_match",
    "delete_match",
    "get_match",
    "list_matches",
    "compute_archive_stats",
]
