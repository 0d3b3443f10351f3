import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import Session

from ..auth import require_admin, require_editor
from ..db import get_session
from ..models import Match, Team
from ..schemas import MatchResultBody
from ..services.results import advance_bracket, finish_match
from ..services.settlement import (
    MatchNotFinishedError,
    MatchNotFoundError,
    SettlementResult,
    settle_match,
)
from ..snapshots import match_dict, match_snapshot, team_ref
from ..ws import EVENT_BETS_SETTLED, EVENT_MATCH_FINISHED, feed

log = logging.getLogger(__name__)
router = APIRouter(prefix="/matches", tags=["matches"])


def _match_or_404(s: Session, match_id: int) -> Match:
    m = s.get(Match, match_id)
    if not m:
        raise HTTPException(status_code=404, detail="Match not found")
    return m


def _settlement_dict(r: SettlementResult) -> dict:
    return {
        "match_id": r.match_id,
        "bets_settled": r.bets_settled,
        "bets_failed": r.bets_failed,
        "underdog_team_id": r.underdog_team_id,
        "underdog_tier": r.underdog_tier,
        "rules": r.rules.as_dict(),
    }


def _settle_or_http(s: Session, match_id: int) -> SettlementResult:
    try:
        return settle_match(s, match_id)
    except MatchNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except MatchNotFinishedError as e:
        raise HTTPException(status_code=409, detail=str(e))


@router.get("/{match_id}")
def get_match(match_id: int, s: Session = Depends(get_session)) -> dict:
    m = _match_or_404(s, match_id)
    teams = {}
    for tid in (m.team_a_id, m.team_b_id):
        t = s.get(Team, tid) if tid is not None else None
        if t is not None:
            teams[int(t.id)] = team_ref(t)
    return match_dict(match_snapshot(m, teams))


@router.patch("/{match_id}/result", dependencies=[Depends(require_editor)])
async def patch_result(match_id: int, body: MatchResultBody, s: Session = Depends(get_session)) -> dict:
    """
    Final result: finish the match, settle its bets, push teams into dependent matches.
    """
    m = _match_or_404(s, match_id)
    if m.status == "finished":
        raise HTTPException(status_code=409, detail="Match is already finished")

    try:
        m = finish_match(s, m, body.score_a, body.score_b, body.winner_id)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    settlement = _settle_or_http(s, match_id)
    advanced = advance_bracket(s, m)

    payload = {
        "match_id": match_id,
        "winner_id": m.winner_id,
        "score_a": m.score_a,
        "score_b": m.score_b,
        "advanced_match_ids": advanced,
    }
    await feed.publish(m.tournament_id, EVENT_MATCH_FINISHED, payload)

    return {**payload, "settlement": _settlement_dict(settlement)}


@router.post("/{match_id}/settle", dependencies=[Depends(require_admin)])
async def post_settle(match_id: int, s: Session = Depends(get_session)) -> dict:
    """Re-run settlement, e.g. after rules changed. Idempotent."""
    settlement = _settle_or_http(s, match_id)

    m = _match_or_404(s, match_id)
    await feed.publish(
        m.tournament_id,
        EVENT_BETS_SETTLED,
        {"match_id": match_id, "bets_settled": settlement.bets_settled},
    )
    return _settlement_dict(settlement)
