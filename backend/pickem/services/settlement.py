from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from ..models import Bet, Match, Stage, Tournament
from ..scoring import MatchResult, ScoringRules, calculate_points, classify_underdog, has_rules, sanitize_rules

log = logging.getLogger(__name__)


class MatchNotFoundError(LookupError):
    pass


class MatchNotFinishedError(ValueError):
    pass


@dataclass(frozen=True)
class SettlementResult:
    match_id: int
    bets_settled: int
    bets_failed: int
    underdog_team_id: Optional[int]
    underdog_tier: Optional[int]
    rules: ScoringRules


def rules_for_match(session: Session, m: Match) -> ScoringRules:
    """
    Stage rules win over tournament rules; defaults fill whatever is missing.
    """
    if m.stage_id is not None:
        stage = session.get(Stage, m.stage_id)
        if stage is not None and has_rules(stage.scoring_rules_json):
            return sanitize_rules(stage.scoring_rules_json)

    t = session.get(Tournament, m.tournament_id)
    return sanitize_rules(t.scoring_rules_json if t else None)


def settle_match(session: Session, match_id: int) -> SettlementResult:
    """
    Score every bet of a finished match and store points + flags on the bet rows.

    - match missing / not finished => raises before anything is written
    - underdog is re-derived from the final pick distribution and stored on the match
    - each bet is committed on its own: one failing write does not stop the rest
    - re-running overwrites with the same values (never accumulates)
    """
    m = session.get(Match, match_id)
    if m is None:
        raise MatchNotFoundError(f"Match id={match_id} not found")
    if m.status != "finished":
        raise MatchNotFinishedError(f"Match id={match_id} is not finished (status={m.status})")

    rules = rules_for_match(session, m)
    bets = session.exec(select(Bet).where(Bet.match_id == match_id).order_by(Bet.id)).all()

    underdog_id, underdog_tier = m.underdog_team_id, m.underdog_tier
    if m.team_a_id is not None and m.team_b_id is not None:
        u = classify_underdog(bets, m.team_a_id, m.team_b_id)
        underdog_id = u.team_id if u else None
        underdog_tier = u.tier if u else None

        if (underdog_id, underdog_tier) != (m.underdog_team_id, m.underdog_tier):
            m.underdog_team_id = underdog_id
            m.underdog_tier = underdog_tier
            session.add(m)
            session.commit()
            log.info("Match id=%s underdog set to team=%s tier=%s", match_id, underdog_id, underdog_tier)

    result = MatchResult(
        winner_id=m.winner_id,
        score_a=m.score_a,
        score_b=m.score_b,
        underdog_team_id=underdog_id,
        underdog_tier=underdog_tier,
    )

    # compute everything before the first per-bet commit expires the rows
    scored = [(b, calculate_points(b, result, rules)) for b in bets]

    settled = 0
    failed = 0
    for bet, pts in scored:
        bet_id = bet.id
        try:
            bet.points_earned = pts.points
            bet.is_perfect_pick = pts.is_perfect_pick
            bet.is_underdog_pick = pts.is_underdog_pick
            session.add(bet)
            session.commit()
            settled += 1
        except SQLAlchemyError:
            session.rollback()
            failed += 1
            log.exception("Settlement write failed for bet id=%s (match id=%s)", bet_id, match_id)

    log.info(
        "Settled match id=%s: %d bets written, %d failed (rules=%s)",
        match_id,
        settled,
        failed,
        rules.as_dict(),
    )
    return SettlementResult(
        match_id=int(match_id),
        bets_settled=settled,
        bets_failed=failed,
        underdog_team_id=underdog_id,
        underdog_tier=underdog_tier,
        rules=rules,
    )
