"""Serve rotation and end changes.

Before either side reaches the deuce threshold the serve changes every two
points; from then on it changes after every point. Everything here is
derived from the current score, nothing is stored.
"""

from typing import Optional

from .rules import DEUCE_THRESHOLD, SERVE_ROTATION_POINTS


def server_is_initial(total_points: int, per_point: bool) -> bool:
    """Return ``True`` if the side that served first serves the next point."""

    if per_point:
        return total_points % 2 == 0
    block = total_points // SERVE_ROTATION_POINTS
    return block % 2 == 0


def is_player_serving_next(
    player_points: int, opponent_points: int, player_served_first: bool
) -> bool:
    per_point = (
        player_points >= DEUCE_THRESHOLD or opponent_points >= DEUCE_THRESHOLD
    )
    initial = server_is_initial(player_points + opponent_points, per_point)
    return initial if player_served_first else not initial


def should_swap_sides(game_number: int, manual_override: bool) -> bool:
    """Return ``True`` when the opponent is shown on the player's usual side.

    Even-numbered games are swapped automatically; the manual override flips
    whatever the automatic rule says.
    """

    return (game_number % 2 == 0) != manual_override


def player_serves_first_for(
    previous_served_first: Optional[bool] = None,
    game_number: Optional[int] = None,
) -> bool:
    if game_number == 1:
        return True
    if previous_served_first is not None:
        return not previous_served_first
    if game_number is not None:
        return game_number % 2 == 1
    return True
