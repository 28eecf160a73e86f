from pointiq.scoring.outcomes import Credit, Outcome, OUTCOME_CREDIT, credit_for, point_facts, tally


def test_every_outcome_has_a_credit():
    assert set(OUTCOME_CREDIT) == set(Outcome)


def test_credit_table():
    assert credit_for(Outcome.MY_WINNER) is Credit.PLAYER
    assert credit_for(Outcome.OPPONENT_ERROR) is Credit.PLAYER
    assert credit_for(Outcome.I_MISSED) is Credit.OPPONENT
    assert credit_for(Outcome.MY_ERROR) is Credit.OPPONENT
    assert credit_for(Outcome.UNLUCKY) is Credit.OPPONENT
    assert credit_for(Outcome.BAD_SERVE_RECEIVE) is Credit.OPPONENT


def test_credit_accepts_wire_values_and_ignores_unknown():
    assert credit_for("my_winner") is Credit.PLAYER
    assert credit_for("unknown") is Credit.NEITHER


def test_tally():
    outcomes = ["my_winner", Outcome.OPPONENT_ERROR, "i_missed", "unlucky", "bogus"]
    assert tally(outcomes) == (2, 2)
    assert tally([]) == (0, 0)


def test_point_facts():
    assert point_facts(Outcome.MY_WINNER) == ("me", True, "none")
    assert point_facts("opponent_error") == ("me", True, "none")
    assert point_facts(Outcome.I_MISSED) == ("opponent", False, "none")
    assert point_facts(Outcome.MY_ERROR) == ("opponent", True, "none")
    assert point_facts(Outcome.UNLUCKY) == ("opponent", True, "net or edge")
    assert point_facts("something_else") == ("opponent", True, "none")
