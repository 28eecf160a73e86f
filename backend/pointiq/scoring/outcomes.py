"""Point outcomes and the table deciding who is credited each point."""

from enum import Enum
from typing import Dict, Iterable, Optional, Tuple, Union


class Outcome(str, Enum):
    MY_WINNER = "my_winner"
    OPPONENT_ERROR = "opponent_error"
    MY_ERROR = "my_error"
    I_MISSED = "i_missed"
    UNLUCKY = "unlucky"
    BAD_SERVE_RECEIVE = "bad_serve_receive"


class Credit(str, Enum):
    PLAYER = "player"
    OPPONENT = "opponent"
    NEITHER = "neither"


# bad_serve_receive is credited to the opponent pending product confirmation.
OUTCOME_CREDIT: Dict[Outcome, Credit] = {
    Outcome.MY_WINNER: Credit.PLAYER,
    Outcome.OPPONENT_ERROR: Credit.PLAYER,
    Outcome.MY_ERROR: Credit.OPPONENT,
    Outcome.I_MISSED: Credit.OPPONENT,
    Outcome.UNLUCKY: Credit.OPPONENT,
    Outcome.BAD_SERVE_RECEIVE: Credit.OPPONENT,
}


def credit_for(outcome: Union[Outcome, str]) -> Credit:
    """Return who is credited for ``outcome``.

    Unknown outcome strings credit neither side rather than raising, so a
    stray legacy value cannot break score aggregation.
    """

    try:
        return OUTCOME_CREDIT[Outcome(outcome)]
    except ValueError:
        return Credit.NEITHER


def tally(outcomes: Iterable[Union[Outcome, str]]) -> Tuple[int, int]:
    """Return ``(player_points, opponent_points)`` for a sequence of outcomes."""

    player = opponent = 0
    for outcome in outcomes:
        credit = credit_for(outcome)
        if credit is Credit.PLAYER:
            player += 1
        elif credit is Credit.OPPONENT:
            opponent += 1
    return player, opponent


def point_facts(outcome: Union[Outcome, str]) -> Tuple[str, bool, Optional[str]]:
    """Derive ``(point_winner, contact_made, luck_factor)`` from an outcome.

    These are the objective facts stored alongside each remote point row.
    """

    try:
        value = Outcome(outcome)
    except ValueError:
        value = None

    if value in (Outcome.MY_WINNER, Outcome.OPPONENT_ERROR):
        return "me", True, "none"
    if value is Outcome.I_MISSED:
        return "opponent", False, "none"
    if value is Outcome.UNLUCKY:
        return "opponent", True, "net or edge"
    return "opponent", True, "none"
