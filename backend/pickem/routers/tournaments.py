import json
import logging

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from sqlmodel import Session, select

from ..auth import require_admin
from ..bracket import project_views, projected_open_matches
from ..db import get_session
from ..models import Stage, Tournament
from ..schemas import ScoringRulesBody
from ..scoring import sanitize_rules
from ..snapshots import (
    load_match_snapshots,
    load_user_predictions,
    match_dict,
    predictions_by_match,
    team_dict,
)
from ..standings import compute_standings, group_matches

log = logging.getLogger(__name__)
router = APIRouter(prefix="/tournaments", tags=["tournaments"])


def _tournament_or_404(s: Session, tournament_id: int) -> Tournament:
    t = s.get(Tournament, tournament_id)
    if not t:
        raise HTTPException(status_code=404, detail="Tournament not found")
    return t


def _tournament_dict(t: Tournament) -> dict:
    return {
        "id": t.id,
        "name": t.name,
        "slug": t.slug,
        "status": t.status,
        "created_at": t.created_at,
        "scoring_rules": sanitize_rules(t.scoring_rules_json).as_dict(),
    }


def _stage_dict(st: Stage) -> dict:
    return {
        "id": st.id,
        "name": st.name,
        "scoring_rules": sanitize_rules(st.scoring_rules_json).as_dict() if st.scoring_rules_json else None,
    }


@router.get("")
def list_tournaments(s: Session = Depends(get_session)) -> list[dict]:
    rows = s.exec(select(Tournament).order_by(Tournament.created_at.desc(), Tournament.id.desc())).all()
    return [_tournament_dict(t) for t in rows]


@router.get("/{tournament_id}")
def get_tournament(tournament_id: int, s: Session = Depends(get_session)) -> dict:
    t = _tournament_or_404(s, tournament_id)
    stages = s.exec(select(Stage).where(Stage.tournament_id == t.id).order_by(Stage.id)).all()
    matches = load_match_snapshots(s, t.id)

    out = _tournament_dict(t)
    out["stages"] = [_stage_dict(st) for st in stages]
    out["matches"] = [match_dict(m) for m in matches]
    return out


@router.put("/{tournament_id}/scoring-rules", dependencies=[Depends(require_admin)])
def put_scoring_rules(tournament_id: int, body: ScoringRulesBody, s: Session = Depends(get_session)) -> dict:
    t = _tournament_or_404(s, tournament_id)

    # only what was sent is stored; gaps fall back to defaults when scoring
    raw = {k: v for k, v in body.model_dump().items() if v is not None}
    t.scoring_rules_json = json.dumps(raw)
    s.add(t)
    s.commit()
    s.refresh(t)

    log.info("Tournament id=%s scoring rules set to %s", t.id, raw)
    return _tournament_dict(t)


@router.get("/{tournament_id}/bracket")
def get_bracket(
    request: Request,
    tournament_id: int,
    user_id: str | None = Query(None, description="Include this user's predicted path"),
    s: Session = Depends(get_session),
) -> dict:
    """
    Two projections of the same bracket: `real` from confirmed results only and
    `predicted` that also assumes the user's picks come true.
    """
    t = _tournament_or_404(s, tournament_id)
    matches = load_match_snapshots(s, t.id)
    predictions = load_user_predictions(s, t.id, user_id) if user_id else []

    max_passes = request.app.state.settings.bracket_max_passes
    views = project_views(matches, predictions, max_passes=max_passes)
    open_matches = projected_open_matches(views.predicted, predictions) if user_id else []

    return {
        "tournament_id": t.id,
        "user_id": user_id,
        "real": [match_dict(m) for m in views.real],
        "predicted": [match_dict(m) for m in views.predicted],
        "open_match_ids": [m.id for m in open_matches],
    }


@router.get("/{tournament_id}/standings")
def get_standings(
    tournament_id: int,
    user_id: str | None = Query(None, description="Fill unfinished matches with this user's picks"),
    s: Session = Depends(get_session),
) -> dict:
    t = _tournament_or_404(s, tournament_id)
    matches = load_match_snapshots(s, t.id)
    picks = predictions_by_match(load_user_predictions(s, t.id, user_id)) if user_id else None

    groups = []
    for name, members in group_matches(matches).items():
        rows = compute_standings(members, picks)
        groups.append(
            {
                "group": name,
                "rows": [
                    {**r.as_dict(), "team": team_dict(r.team), "position": idx + 1}
                    for idx, r in enumerate(rows)
                ],
            }
        )

    return {"tournament_id": t.id, "user_id": user_id, "groups": groups}
