import pytest

from pointiq.scoring import serve


@pytest.mark.parametrize(
    "player,opponent,expected",
    [
        (0, 0, True),
        (1, 0, True),
        (1, 1, False),
        (2, 1, False),
        (2, 2, True),
        (3, 2, True),
        (5, 5, False),
        (9, 9, False),
    ],
)
def test_serve_changes_every_two_points_early(player, opponent, expected):
    assert serve.is_player_serving_next(player, opponent, True) is expected
    assert serve.is_player_serving_next(player, opponent, False) is (not expected)


def test_serve_changes_every_point_once_a_side_reaches_ten():
    # 10 points played, all to the player: per-point cadence, even total.
    assert serve.is_player_serving_next(10, 0, True) is True
    assert serve.is_player_serving_next(10, 1, True) is False
    assert serve.is_player_serving_next(10, 9, True) is False
    assert serve.is_player_serving_next(10, 10, True) is True
    assert serve.is_player_serving_next(11, 10, True) is False
    assert serve.is_player_serving_next(11, 11, True) is True
    assert serve.is_player_serving_next(12, 11, True) is False


def test_opponent_serving_first_mirrors_player():
    for player, opponent in [(0, 0), (4, 3), (10, 10), (11, 10)]:
        assert serve.is_player_serving_next(player, opponent, False) is not (
            serve.is_player_serving_next(player, opponent, True)
        )


def test_server_is_initial():
    assert [serve.server_is_initial(n, per_point=False) for n in range(6)] == [
        True,
        True,
        False,
        False,
        True,
        True,
    ]
    assert [serve.server_is_initial(n, per_point=True) for n in range(4)] == [
        True,
        False,
        True,
        False,
    ]


@pytest.mark.parametrize(
    "game_number,override,expected",
    [
        (1, False, False),
        (2, False, True),
        (3, False, False),
        (1, True, True),
        (2, True, False),
        (3, True, True),
    ],
)
def test_should_swap_sides(game_number, override, expected):
    assert serve.should_swap_sides(game_number, override) is expected


def test_first_server_alternates_between_games():
    assert serve.player_serves_first_for() is True
    assert serve.player_serves_first_for(previous_served_first=True) is False
    assert serve.player_serves_first_for(previous_served_first=False) is True

    served_first = [serve.player_serves_first_for(game_number=1)]
    for number in range(2, 5):
        served_first.append(
            serve.player_serves_first_for(served_first[-1], game_number=number)
        )
    assert served_first == [True, False, True, False]


def test_first_server_without_previous_game_follows_game_number():
    assert serve.player_serves_first_for(game_number=1) is True
    assert serve.player_serves_first_for(game_number=3) is True
    assert serve.player_serves_first_for(game_number=4) is False
