from __future__ import annotations

import json
import math
from dataclasses import asdict, dataclass
from typing import Any, Iterable

from .snapshots import Prediction

TIER_EXTREME = 1  # <= 25% of picks
TIER_MODERATE = 2  # > 25% and < 50% of picks

EXTREME_SHARE = 0.25
MODERATE_SHARE = 0.50


@dataclass(frozen=True)
class ScoringRules:
    winner: float = 1
    exact: float = 3
    underdog_25: float = 2
    underdog_50: float = 1

    def as_dict(self) -> dict[str, float]:
        return asdict(self)


DEFAULT_RULES = ScoringRules()


@dataclass(frozen=True)
class MatchResult:
    winner_id: int | None = None
    score_a: int | None = None
    score_b: int | None = None
    underdog_team_id: int | None = None
    underdog_tier: int | None = None


@dataclass(frozen=True)
class PointsBreakdown:
    points: float
    is_perfect_pick: bool
    is_underdog_pick: bool


@dataclass(frozen=True)
class Underdog:
    team_id: int
    tier: int


def _number(v: Any) -> float | None:
    if isinstance(v, bool) or not isinstance(v, (int, float)):
        return None
    if isinstance(v, float) and not math.isfinite(v):
        return None
    return v


def sanitize_rules(raw: Any) -> ScoringRules:
    """
    Accepts ScoringRules, a dict, the JSON text stored on tournaments/stages, or None.
    Every missing or non-numeric field falls back to its default.
    """
    if isinstance(raw, ScoringRules):
        return raw
    if isinstance(raw, (str, bytes)):
        try:
            raw = json.loads(raw or "{}")
        except ValueError:
            raw = {}
    if not isinstance(raw, dict):
        raw = {}

    vals: dict[str, float] = {}
    for key, default in DEFAULT_RULES.as_dict().items():
        n = _number(raw.get(key))
        vals[key] = default if n is None else n
    return ScoringRules(**vals)


def has_rules(raw: Any) -> bool:
    """True if raw (JSON text or dict) carries at least one rule field."""
    if isinstance(raw, (str, bytes)):
        try:
            raw = json.loads(raw or "{}")
        except ValueError:
            return False
    return isinstance(raw, dict) and any(k in raw for k in DEFAULT_RULES.as_dict())


def calculate_points(prediction: Any, result: Any, rules: Any = None) -> PointsBreakdown:
    """
    Points for one prediction against one result.

    Exact score REPLACES the winner points (rules.exact, not winner + exact).
    The underdog bonus is added on top when the pick was the winning underdog.
    Unfinished results (no winner / no scores) simply score 0; never raises.

    `prediction` needs predicted_winner_id/predicted_score_a/predicted_score_b and
    `result` needs winner_id/score_a/score_b/underdog_team_id/underdog_tier, so
    Bet rows, Prediction snapshots, MatchSnapshot and MatchResult all work.
    """
    r = sanitize_rules(rules)

    picked = getattr(prediction, "predicted_winner_id", None)
    pred_a = getattr(prediction, "predicted_score_a", None)
    pred_b = getattr(prediction, "predicted_score_b", None)

    winner_id = getattr(result, "winner_id", None)
    score_a = getattr(result, "score_a", None)
    score_b = getattr(result, "score_b", None)
    underdog_id = getattr(result, "underdog_team_id", None)
    underdog_tier = getattr(result, "underdog_tier", None)

    winner_correct = winner_id is not None and picked == winner_id
    exact_correct = score_a is not None and score_b is not None and pred_a == score_a and pred_b == score_b

    points: float = 0
    is_perfect = False
    is_underdog = False

    if winner_correct and exact_correct:
        points = r.exact
        is_perfect = True
    elif winner_correct:
        points = r.winner

    if winner_correct and underdog_id is not None and underdog_id == winner_id:
        if underdog_tier == TIER_EXTREME:
            points += r.underdog_25
        elif underdog_tier == TIER_MODERATE:
            points += r.underdog_50
        is_underdog = True

    if math.isnan(points):
        points = 0

    return PointsBreakdown(points=points, is_perfect_pick=is_perfect, is_underdog_pick=is_underdog)


def classify_underdog(bets: Iterable[Any], team_a_id: int | None, team_b_id: int | None) -> Underdog | None:
    """
    Underdog from the crowd's pick distribution.

    Picks naming neither team are ignored. A side with <= 25% of the picks is a
    tier 1 underdog, one with < 50% is tier 2. An exact 50/50 split is not an
    underdog situation. At most one side qualifies since the shares sum to 1.
    """
    if team_a_id is None or team_b_id is None or team_a_id == team_b_id:
        return None

    votes_a = 0
    votes_b = 0
    for b in bets:
        picked = getattr(b, "predicted_winner_id", None)
        if picked == team_a_id:
            votes_a += 1
        elif picked == team_b_id:
            votes_b += 1

    total = votes_a + votes_b
    if total == 0:
        return None

    share_a = votes_a / total
    share_b = votes_b / total

    if share_a <= EXTREME_SHARE:
        return Underdog(team_id=team_a_id, tier=TIER_EXTREME)
    if share_b <= EXTREME_SHARE:
        return Underdog(team_id=team_b_id, tier=TIER_EXTREME)
    if share_a < MODERATE_SHARE:
        return Underdog(team_id=team_a_id, tier=TIER_MODERATE)
    if share_b < MODERATE_SHARE:
        return Underdog(team_id=team_b_id, tier=TIER_MODERATE)
    return None


def preview_points(match: Any, predicted_score_a: int, predicted_score_b: int, rules: Any = None) -> PointsBreakdown:
    """
    Admin compensation preview: what a hypothetical score would have earned.

    The predicted winner follows the higher predicted score; a tied prediction
    or a match without a final result previews as zero.
    """
    nothing = PointsBreakdown(points=0, is_perfect_pick=False, is_underdog_pick=False)

    if (
        getattr(match, "winner_id", None) is None
        or getattr(match, "score_a", None) is None
        or getattr(match, "score_b", None) is None
    ):
        return nothing

    if predicted_score_a > predicted_score_b:
        picked = getattr(match, "team_a_id", None)
    elif predicted_score_b > predicted_score_a:
        picked = getattr(match, "team_b_id", None)
    else:
        return nothing

    return calculate_points(
        Prediction(
            match_id=int(getattr(match, "id", 0) or 0),
            predicted_winner_id=picked,
            predicted_score_a=predicted_score_a,
            predicted_score_b=predicted_score_b,
        ),
        match,
        rules,
    )
