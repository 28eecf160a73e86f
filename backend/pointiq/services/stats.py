"""Totals over the archive of finished matches."""

from __future__ import annotations

from typing import Dict, Iterable, Union

from ..models import Match


def _rate(won: int, lost: int) -> float:
    total = won + lost
    return won / total * 100 if total else 0.0


def compute_archive_stats(matches: Iterable[Match]) -> Dict[str, Union[int, float]]:
    """Aggregate finished matches into the history totals.

    Matches without an ``end_date`` are ignored. A match never has a winner
    of its own, so one counts as won when more games were won than lost.
    Win rates are percentages in ``[0, 100]``.
    """

    stats: Dict[str, Union[int, float]] = {
        "matches": 0,
        "matches_won": 0,
        "games_won": 0,
        "games_lost": 0,
        "points_won": 0,
        "points_lost": 0,
        "total_duration_seconds": 0.0,
    }
    for match in matches:
        if match.end_date is None:
            continue
        stats["matches"] += 1
        if match.games_won > match.games_lost:
            stats["matches_won"] += 1
        stats["games_won"] += match.games_won
        stats["games_lost"] += match.games_lost
        stats["points_won"] += match.points_won
        stats["points_lost"] += match.points_lost
        stats["total_duration_seconds"] += match.duration_seconds or 0.0

    stats["match_win_rate"] = _rate(
        int(stats["matches_won"]), int(stats["matches"] - stats["matches_won"])
    )
    stats["game_win_rate"] = _rate(int(stats["games_won"]), int(stats["games_lost"]))
    stats["point_win_rate"] = _rate(int(stats["points_won"]), int(stats["points_lost"]))
    return stats
