from __future__ import annotations

import logging
from datetime import datetime

from sqlalchemy import or_
from sqlmodel import Session, select

from ..models import Match

log = logging.getLogger(__name__)


def finish_match(
    session: Session,
    m: Match,
    score_a: int,
    score_b: int,
    winner_id: int | None = None,
) -> Match:
    """
    Store the final result. winner/scores/status are always written together.

    Without an explicit winner the higher score wins; a drawn score needs one.
    Raises ValueError on anything that would break the result invariant.
    """
    if m.team_a_id is None or m.team_b_id is None:
        raise ValueError("Both teams must be set before a result can be recorded")
    if score_a < 0 or score_b < 0:
        raise ValueError("Scores must be non-negative")

    if winner_id is None:
        if score_a == score_b:
            raise ValueError("Drawn score needs an explicit winner_id")
        winner_id = m.team_a_id if score_a > score_b else m.team_b_id

    if winner_id not in (m.team_a_id, m.team_b_id):
        raise ValueError(f"winner_id {winner_id} is not playing in match {m.id}")

    m.score_a = int(score_a)
    m.score_b = int(score_b)
    m.winner_id = int(winner_id)
    m.status = "finished"
    if m.finished_at is None:
        m.finished_at = datetime.utcnow()

    session.add(m)
    session.commit()
    session.refresh(m)
    return m


def _slot_team(tag: str | None, winner_id: int, loser_id: int | None) -> int | None:
    tag = tag or "winner"
    if tag == "winner":
        return winner_id
    if tag == "loser":
        return loser_id
    return None


def advance_bracket(session: Session, m: Match) -> list[int]:
    """
    Write the winner/loser of a finished match into the slots of the matches
    that link back to it. Finished dependents are left alone.

    Returns the ids of the matches that were changed.
    """
    if m.status != "finished" or m.winner_id is None:
        return []

    winner_id = int(m.winner_id)
    loser_id = m.team_b_id if winner_id == m.team_a_id else m.team_a_id

    dependents = session.exec(
        select(Match).where(
            or_(
                Match.team_a_previous_match_id == m.id,
                Match.team_b_previous_match_id == m.id,
            )
        )
    ).all()

    updated: list[int] = []
    for d in dependents:
        if d.status == "finished":
            continue

        changed = False
        if d.team_a_previous_match_id == m.id:
            team_id = _slot_team(d.team_a_previous_match_result, winner_id, loser_id)
            if team_id is not None and d.team_a_id != team_id:
                d.team_a_id = team_id
                d.label_team_a = None
                changed = True
        if d.team_b_previous_match_id == m.id:
            team_id = _slot_team(d.team_b_previous_match_result, winner_id, loser_id)
            if team_id is not None and d.team_b_id != team_id:
                d.team_b_id = team_id
                d.label_team_b = None
                changed = True

        if changed:
            session.add(d)
            updated.append(int(d.id))

    if updated:
        session.commit()
        log.info("Match id=%s advanced into matches %s", m.id, updated)
    return updated
