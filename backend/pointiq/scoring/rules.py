"""Table tennis game rules.

Rally-point scoring to 11 points with a win-by-2 requirement and a hard
cap at 30 points. Matches never complete on their own: a match only ends
when the user ends it.
"""

POINTS_TO_WIN_GAME = 11
MINIMUM_LEAD_TO_WIN = 2
MAXIMUM_GAME_POINTS = 30
DEUCE_THRESHOLD = 10
SERVE_ROTATION_POINTS = 2

GAME_WON = "Game Won"
GAME_LOST = "Game Lost"
DEUCE = "Deuce"
GAME_POINT = "Game Point"
IN_PROGRESS = "In Progress"


def is_game_complete(player_points: int, opponent_points: int) -> bool:
    high = max(player_points, opponent_points)
    low = min(player_points, opponent_points)

    if high >= POINTS_TO_WIN_GAME and high - low >= MINIMUM_LEAD_TO_WIN:
        return True

    return high >= MAXIMUM_GAME_POINTS


def game_winner(player_points: int, opponent_points: int) -> bool | None:
    """Return ``True`` if the player won, ``False`` if the opponent did.

    ``None`` means the game is still open.
    """

    if not is_game_complete(player_points, opponent_points):
        return None
    return player_points > opponent_points


def is_deuce(player_points: int, opponent_points: int) -> bool:
    return (
        player_points >= DEUCE_THRESHOLD
        and opponent_points >= DEUCE_THRESHOLD
        and player_points == opponent_points
    )


def game_status(player_points: int, opponent_points: int) -> str:
    """Return the status line shown under the scoreboard.

    A finished game always reports its result, even at scores that would
    otherwise read as deuce or game point.
    """

    winner = game_winner(player_points, opponent_points)
    if winner is not None:
        return GAME_WON if winner else GAME_LOST

    if is_deuce(player_points, opponent_points):
        return DEUCE

    difference = abs(player_points - opponent_points)
    if (
        difference >= MINIMUM_LEAD_TO_WIN
        and max(player_points, opponent_points) >= POINTS_TO_WIN_GAME - 1
    ):
        return GAME_POINT

    return IN_PROGRESS


def format_game_score(player_points: int, opponent_points: int) -> str:
    if is_deuce(player_points, opponent_points):
        return DEUCE
    return f"{player_points} - {opponent_points}"


def is_match_complete(player_games_won: int, opponent_games_won: int) -> bool:
    # Matches end only when the user ends them.
    return False


def match_winner(player_games_won: int, opponent_games_won: int) -> bool | None:
    return None

