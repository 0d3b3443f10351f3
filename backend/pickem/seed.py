import json
import logging
from pathlib import Path
from typing import Any

from sqlmodel import Session, select

from .models import Bet, Match, Stage, Team, Tournament

log = logging.getLogger(__name__)

MATCH_STATUSES = ("scheduled", "live", "finished")


def load_seed_file(path: str) -> dict[str, Any]:
    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(path)
    return json.loads(p.read_text(encoding="utf-8"))


def _slugify(name: str) -> str:
    return "-".join(name.lower().split())


def upsert_teams(s: Session, teams: list[dict[str, Any]]) -> dict[str, int]:
    created = 0
    updated = 0

    for item in teams:
        name = (item.get("name") or "").strip()
        if not name:
            raise ValueError("Team name missing/empty")
        slug = (item.get("slug") or _slugify(name)).strip()

        existing = s.exec(select(Team).where(Team.slug == slug)).first()
        if existing:
            existing.name = name
            existing.region = item.get("region", existing.region)
            existing.logo_url = item.get("logo_url", existing.logo_url)
            s.add(existing)
            updated += 1
            continue

        s.add(Team(name=name, slug=slug, region=item.get("region"), logo_url=item.get("logo_url")))
        created += 1

    s.commit()
    return {"created": created, "updated": updated}


def _team_id(teams_by_slug: dict[str, Team], slug: str | None, where: str) -> int | None:
    if slug in (None, ""):
        return None
    t = teams_by_slug.get(str(slug))
    if t is None:
        raise ValueError(f"{where}: unknown team '{slug}'")
    return int(t.id)


def _link(m: dict[str, Any], side: str) -> tuple[str | None, str | None]:
    src = m.get(f"team_{side}_from") or {}
    return (src.get("match"), src.get("result"))


def create_tournament(s: Session, data: dict[str, Any]) -> dict[str, Any]:
    """
    One tournament with stages, matches (linked by seed-local keys) and bets.
    Skipped if the slug already exists.
    """
    name = (data.get("name") or "").strip()
    if not name:
        raise ValueError("Tournament name missing/empty")
    slug = (data.get("slug") or _slugify(name)).strip()

    if s.exec(select(Tournament).where(Tournament.slug == slug)).first():
        log.info("Tournament '%s' already seeded, skipping", slug)
        return {"slug": slug, "skipped": True}

    t = Tournament(
        name=name,
        slug=slug,
        status=data.get("status", "upcoming"),
        scoring_rules_json=json.dumps(data.get("scoring_rules") or {}),
    )
    s.add(t)
    s.flush()

    stage_ids: dict[str, int] = {}
    for st in data.get("stages") or []:
        key = str(st.get("key") or st.get("name") or "").strip()
        if not key:
            raise ValueError(f"{slug}: stage key/name missing")
        rules = st.get("scoring_rules")
        stage = Stage(
            tournament_id=t.id,
            name=st.get("name") or key,
            scoring_rules_json=json.dumps(rules) if rules else None,
        )
        s.add(stage)
        s.flush()
        stage_ids[key] = int(stage.id)

    teams_by_slug = {tm.slug: tm for tm in s.exec(select(Team)).all()}

    # pass 1: rows; pass 2: backward links (keys -> ids)
    match_by_key: dict[str, Match] = {}
    raw_matches = data.get("matches") or []
    for idx, m in enumerate(raw_matches):
        key = str(m.get("key") or idx)
        where = f"{slug}/match {key}"
        status = m.get("status", "scheduled")
        if status not in MATCH_STATUSES:
            raise ValueError(f"{where}: invalid status '{status}'")

        stage_key = m.get("stage")
        if stage_key is not None and stage_key not in stage_ids:
            raise ValueError(f"{where}: unknown stage '{stage_key}'")

        row = Match(
            tournament_id=t.id,
            stage_id=stage_ids.get(stage_key) if stage_key is not None else None,
            label=m.get("label") or "",
            name=m.get("name"),
            team_a_id=_team_id(teams_by_slug, m.get("team_a"), where),
            team_b_id=_team_id(teams_by_slug, m.get("team_b"), where),
            label_team_a=m.get("label_team_a"),
            label_team_b=m.get("label_team_b"),
            status=status,
            round_index=int(m.get("round_index") or 0),
            bracket_side=m.get("bracket_side"),
            display_order=int(m.get("display_order") if m.get("display_order") is not None else idx),
            slot_role=m.get("slot_role"),
        )
        if status == "finished":
            row.winner_id = _team_id(teams_by_slug, m.get("winner"), where)
            row.score_a = m.get("score_a")
            row.score_b = m.get("score_b")
            if row.winner_id is None or row.score_a is None or row.score_b is None:
                raise ValueError(f"{where}: finished match needs winner, score_a and score_b")
            if row.winner_id not in (row.team_a_id, row.team_b_id):
                raise ValueError(f"{where}: winner is not one of the two teams")

        s.add(row)
        match_by_key[key] = row
    s.flush()

    for idx, m in enumerate(raw_matches):
        key = str(m.get("key") or idx)
        row = match_by_key[key]
        for side in ("a", "b"):
            src_key, result = _link(m, side)
            if src_key is None:
                continue
            src = match_by_key.get(str(src_key))
            if src is None:
                raise ValueError(f"{slug}/match {key}: unknown source match '{src_key}'")
            setattr(row, f"team_{side}_previous_match_id", src.id)
            setattr(row, f"team_{side}_previous_match_result", result or "winner")
        s.add(row)

    bets = 0
    for b in data.get("bets") or []:
        src = match_by_key.get(str(b.get("match")))
        if src is None:
            raise ValueError(f"{slug}: bet for unknown match '{b.get('match')}'")
        user_id = str(b.get("user_id") or "").strip()
        if not user_id:
            raise ValueError(f"{slug}: bet without user_id")
        s.add(
            Bet(
                match_id=src.id,
                user_id=user_id,
                predicted_winner_id=_team_id(teams_by_slug, b.get("winner"), f"{slug}/bet"),
                predicted_score_a=int(b.get("score_a") or 0),
                predicted_score_b=int(b.get("score_b") or 0),
            )
        )
        bets += 1

    s.commit()
    return {"slug": slug, "skipped": False, "matches": len(match_by_key), "bets": bets}


def seed_from_json(s: Session, data: dict[str, Any]) -> dict[str, Any]:
    """
    Idempotent: safe to run multiple times.
    """
    out: dict[str, Any] = {"teams": None, "tournaments": []}

    teams = data.get("teams") or []
    tournaments = data.get("tournaments") or []

    if not isinstance(teams, list) or not isinstance(tournaments, list):
        raise ValueError("'teams' and 'tournaments' must be lists")

    if teams:
        out["teams"] = upsert_teams(s, teams)
        log.info("Seeded teams: %s", out["teams"])

    for t in tournaments:
        try:
            res = create_tournament(s, t)
        except Exception:
            # drop the half-written tournament before the next commit picks it up
            s.rollback()
            raise
        out["tournaments"].append(res)
        log.info("Seeded tournament: %s", res)

    return out
