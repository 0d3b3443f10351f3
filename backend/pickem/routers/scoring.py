from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import Session

from ..auth import require_admin
from ..db import get_session
from ..models import Match
from ..scoring import preview_points
from ..schemas import ScoringPreviewBody
from ..services.settlement import rules_for_match

router = APIRouter(prefix="/scoring", tags=["scoring"])


@router.post("/preview", dependencies=[Depends(require_admin)])
def post_preview(body: ScoringPreviewBody, s: Session = Depends(get_session)) -> dict:
    """
    What a hypothetical score would have earned on a finished match.
    Used before committing a manual compensation.
    """
    m = s.get(Match, body.match_id)
    if not m:
        raise HTTPException(status_code=404, detail="Match not found")

    rules = rules_for_match(s, m)
    pts = preview_points(m, body.predicted_score_a, body.predicted_score_b, rules)
    return {
        "match_id": m.id,
        "points": pts.points,
        "is_perfect_pick": pts.is_perfect_pick,
        "is_underdog_pick": pts.is_underdog_pick,
        "rules": rules.as_dict(),
    }
