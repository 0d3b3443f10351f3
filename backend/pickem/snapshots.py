from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable

from sqlmodel import Session, select

from .models import Bet, Match, Team


@dataclass(frozen=True)
class TeamRef:
    id: int
    name: str
    slug: str | None = None
    region: str | None = None
    logo_url: str | None = None


@dataclass
class MatchSnapshot:
    """
    In-memory copy of one match row with its teams resolved.

    Projections mutate copies of these, never the ORM rows.
    """

    id: int
    team_a: TeamRef | None = None
    team_b: TeamRef | None = None
    status: str = "scheduled"
    winner_id: int | None = None
    score_a: int | None = None
    score_b: int | None = None
    underdog_team_id: int | None = None
    underdog_tier: int | None = None
    round_index: int = 0
    bracket_side: str | None = None
    display_order: int = 0
    label: str = ""
    name: str | None = None
    label_team_a: str | None = None
    label_team_b: str | None = None
    slot_role: str | None = None
    stage_id: int | None = None
    team_a_previous_match_id: int | None = None
    team_a_previous_match_result: str | None = None
    team_b_previous_match_id: int | None = None
    team_b_previous_match_result: str | None = None

    @property
    def is_finished(self) -> bool:
        return self.status == "finished"

    @property
    def team_a_id(self) -> int | None:
        return self.team_a.id if self.team_a else None

    @property
    def team_b_id(self) -> int | None:
        return self.team_b.id if self.team_b else None


@dataclass(frozen=True)
class Prediction:
    """
    One user's pick for one match.

    `score` is the free-text "A - B" form some views submit; when present it wins
    over the numeric fields for standings.
    """

    match_id: int
    predicted_winner_id: int | None
    predicted_score_a: int | None = None
    predicted_score_b: int | None = None
    user_id: str | None = None
    score: str | None = None


def team_ref(t: Team) -> TeamRef:
    return TeamRef(id=int(t.id), name=t.name, slug=t.slug, region=t.region, logo_url=t.logo_url)


def match_snapshot(m: Match, teams_by_id: dict[int, TeamRef]) -> MatchSnapshot:
    return MatchSnapshot(
        id=int(m.id),
        team_a=teams_by_id.get(m.team_a_id) if m.team_a_id is not None else None,
        team_b=teams_by_id.get(m.team_b_id) if m.team_b_id is not None else None,
        status=m.status,
        winner_id=m.winner_id,
        score_a=m.score_a,
        score_b=m.score_b,
        underdog_team_id=m.underdog_team_id,
        underdog_tier=m.underdog_tier,
        round_index=int(m.round_index or 0),
        bracket_side=m.bracket_side,
        display_order=int(m.display_order or 0),
        label=m.label or "",
        name=m.name,
        label_team_a=m.label_team_a,
        label_team_b=m.label_team_b,
        slot_role=m.slot_role,
        stage_id=m.stage_id,
        team_a_previous_match_id=m.team_a_previous_match_id,
        team_a_previous_match_result=m.team_a_previous_match_result,
        team_b_previous_match_id=m.team_b_previous_match_id,
        team_b_previous_match_result=m.team_b_previous_match_result,
    )


def prediction_from_bet(b: Bet) -> Prediction:
    return Prediction(
        match_id=int(b.match_id),
        predicted_winner_id=b.predicted_winner_id,
        predicted_score_a=b.predicted_score_a,
        predicted_score_b=b.predicted_score_b,
        user_id=b.user_id,
    )


def predictions_by_match(predictions: Iterable[Prediction]) -> dict[int, Prediction]:
    # last one wins if a caller passes duplicates
    return {int(p.match_id): p for p in predictions}


def load_match_snapshots(s: Session, tournament_id: int) -> list[MatchSnapshot]:
    matches = s.exec(
        select(Match)
        .where(Match.tournament_id == tournament_id)
        .order_by(Match.round_index, Match.display_order, Match.id)
    ).all()

    team_ids: set[int] = set()
    for m in matches:
        for tid in (m.team_a_id, m.team_b_id):
            if tid is not None:
                team_ids.add(int(tid))

    teams_by_id: dict[int, TeamRef] = {}
    if team_ids:
        for t in s.exec(select(Team).where(Team.id.in_(team_ids))).all():
            teams_by_id[int(t.id)] = team_ref(t)

    return [match_snapshot(m, teams_by_id) for m in matches]


def load_user_predictions(s: Session, tournament_id: int, user_id: str) -> list[Prediction]:
    rows = s.exec(
        select(Bet)
        .join(Match, Match.id == Bet.match_id)
        .where(Match.tournament_id == tournament_id, Bet.user_id == user_id)
    ).all()
    return [prediction_from_bet(b) for b in rows]


def team_dict(t: TeamRef | None) -> dict[str, Any] | None:
    if t is None:
        return None
    return {"id": t.id, "name": t.name, "slug": t.slug, "region": t.region, "logo_url": t.logo_url}


def match_dict(m: MatchSnapshot) -> dict[str, Any]:
    return {
        "id": m.id,
        "label": m.label,
        "name": m.name,
        "status": m.status,
        "team_a": team_dict(m.team_a),
        "team_b": team_dict(m.team_b),
        "label_team_a": m.label_team_a,
        "label_team_b": m.label_team_b,
        "winner_id": m.winner_id,
        "score_a": m.score_a,
        "score_b": m.score_b,
        "underdog_team_id": m.underdog_team_id,
        "underdog_tier": m.underdog_tier,
        "round_index": m.round_index,
        "bracket_side": m.bracket_side,
        "display_order": m.display_order,
        "slot_role": m.slot_role,
        "stage_id": m.stage_id,
        "team_a_previous_match_id": m.team_a_previous_match_id,
        "team_a_previous_match_result": m.team_a_previous_match_result,
        "team_b_previous_match_id": m.team_b_previous_match_id,
        "team_b_previous_match_result": m.team_b_previous_match_result,
    }
