import json

from pickem.scoring import (
    DEFAULT_RULES,
    MatchResult,
    ScoringRules,
    calculate_points,
    preview_points,
    sanitize_rules,
)
from tests.util import finished, pick, team

A = team(1, "Alpha")
B = team(2, "Bravo")

RULES = {"winner": 2, "exact": 5, "underdog_25": 1}


def _result(**kw) -> MatchResult:
    base = {"winner_id": B.id, "score_a": 1, "score_b": 2, "underdog_team_id": B.id, "underdog_tier": 1}
    base.update(kw)
    return MatchResult(**base)


def test_worked_example_wrong_winner_scores_nothing():
    pts = calculate_points(pick(1, A, 2, 1), _result(), RULES)
    assert pts.points == 0
    assert not pts.is_perfect_pick
    assert not pts.is_underdog_pick


def test_worked_example_exact_underdog_pick():
    # exact replaces winner points: 5 + underdog 1, never 2 + 5 + 1
    pts = calculate_points(pick(1, B, 1, 2), _result(), RULES)
    assert pts.points == 6
    assert pts.is_perfect_pick
    assert pts.is_underdog_pick


def test_worked_example_winner_only_underdog_pick():
    pts = calculate_points(pick(1, B, 0, 2), _result(), RULES)
    assert pts.points == 3
    assert not pts.is_perfect_pick
    assert pts.is_underdog_pick


def test_exact_score_never_stacks_with_winner_points():
    rules = ScoringRules(winner=10, exact=4, underdog_25=0, underdog_50=0)
    pts = calculate_points(pick(1, B, 1, 2), _result(underdog_team_id=None, underdog_tier=None), rules)
    assert pts.points == 4


def test_moderate_underdog_uses_underdog_50():
    rules = {"winner": 1, "exact": 3, "underdog_25": 5, "underdog_50": 2}
    pts = calculate_points(pick(1, B, 0, 2), _result(underdog_tier=2), rules)
    assert pts.points == 1 + 2


def test_no_bonus_when_underdog_lost():
    res = _result(winner_id=A.id, score_a=2, score_b=0, underdog_team_id=B.id)
    pts = calculate_points(pick(1, A, 2, 0), res, RULES)
    assert pts.points == 5
    assert not pts.is_underdog_pick


def test_unfinished_result_scores_zero_without_raising():
    pts = calculate_points(pick(1, A, 2, 0), MatchResult(), RULES)
    assert pts.points == 0
    assert not pts.is_perfect_pick

    pts = calculate_points(pick(1, None, 0, 0), _result(), RULES)
    assert pts.points == 0


def test_calculate_points_is_pure():
    p = pick(1, B, 1, 2)
    res = _result()
    first = calculate_points(p, res, RULES)
    for _ in range(5):
        assert calculate_points(p, res, RULES) == first


def test_sanitize_rules_falls_back_per_field():
    r = sanitize_rules({"winner": "lots", "exact": 7, "underdog_25": None, "underdog_50": float("nan")})
    assert r.winner == DEFAULT_RULES.winner
    assert r.exact == 7
    assert r.underdog_25 == DEFAULT_RULES.underdog_25
    assert r.underdog_50 == DEFAULT_RULES.underdog_50

    assert sanitize_rules(None) == DEFAULT_RULES
    assert sanitize_rules("not json") == DEFAULT_RULES
    assert sanitize_rules(json.dumps({"winner": 4})).winner == 4


def test_preview_derives_pick_from_predicted_score():
    m = finished(7, A, B, 1, 2, underdog_team_id=B.id, underdog_tier=1)
    assert preview_points(m, 1, 2, RULES).points == 6
    assert preview_points(m, 0, 2, RULES).points == 3
    assert preview_points(m, 2, 1, RULES).points == 0
    # tie picks nobody
    assert preview_points(m, 1, 1, RULES).points == 0
