from __future__ import annotations

import re
from dataclasses import asdict, dataclass
from typing import Any, Iterable, Mapping

from .snapshots import MatchSnapshot, Prediction, TeamRef

# placeholder entries ("TBD", "Winner of QF1", "Seed 3") never get a table row
GHOST_MARKERS = ("WINNER", "LOSER", "TBD", "SEED")

GROUP_NAME_RE = re.compile(r"Group\s+(\w+)", re.IGNORECASE)
DEFAULT_GROUP = "Group Stage"


@dataclass
class Standing:
    team: TeamRef
    played: int = 0
    wins: int = 0
    losses: int = 0
    map_wins: int = 0
    map_losses: int = 0
    map_diff: int = 0
    points: int = 0

    def as_dict(self) -> dict[str, Any]:
        return asdict(self)


def is_ghost_team(team: TeamRef | None) -> bool:
    if team is None:
        return True
    name = (team.name or "").upper()
    return any(marker in name for marker in GHOST_MARKERS)


def parse_score(text: str | None) -> tuple[int, int]:
    """
    "2 - 1" -> (2, 1). Anything else -> (0, 0).
    """
    if not text:
        return (0, 0)
    parts = [p.strip() for p in str(text).split("-")]
    if len(parts) != 2:
        return (0, 0)
    try:
        return (int(parts[0]), int(parts[1]))
    except ValueError:
        return (0, 0)


def _predicted_score(p: Prediction) -> tuple[int, int]:
    if p.score is not None:
        return parse_score(p.score)
    return (int(p.predicted_score_a or 0), int(p.predicted_score_b or 0))


def is_group_match(m: MatchSnapshot) -> bool:
    return m.bracket_side == "groups" or "Group" in (m.label or "")


def group_name(m: MatchSnapshot) -> str:
    label = m.label or ""
    hit = GROUP_NAME_RE.search(label)
    if hit:
        return hit.group(0)
    return label or DEFAULT_GROUP


def group_matches(matches: Iterable[MatchSnapshot]) -> dict[str, list[MatchSnapshot]]:
    """Group-stage matches keyed by group name, in first-seen order."""
    out: dict[str, list[MatchSnapshot]] = {}
    for m in matches:
        if is_group_match(m):
            out.setdefault(group_name(m), []).append(m)
    return out


def compute_standings(
    matches: Iterable[MatchSnapshot],
    predictions: Mapping[int, Prediction] | None = None,
) -> list[Standing]:
    """
    Group table from finished results, topped up with predictions for the rest.

    A finished match counts with its real winner and map score. An unfinished
    match counts only if `predictions` has an entry for it. Ghost teams get no
    row and matches involving one count for nobody.

    Sorted by wins, map diff, map wins (all desc); remaining ties keep the order
    in which teams first appeared.
    """
    predictions = predictions or {}
    table: dict[int, Standing] = {}

    for m in matches:
        a, b = m.team_a, m.team_b
        if a is None or b is None:
            continue

        for t in (a, b):
            if not is_ghost_team(t) and t.id not in table:
                table[t.id] = Standing(team=t)

        if is_ghost_team(a) or is_ghost_team(b):
            continue

        pred = predictions.get(m.id)
        if m.is_finished:
            winner_id = m.winner_id
        else:
            winner_id = pred.predicted_winner_id if pred else None

        if winner_id is None or winner_id not in (a.id, b.id):
            continue

        if m.is_finished:
            score_a, score_b = int(m.score_a or 0), int(m.score_b or 0)
        else:
            score_a, score_b = _predicted_score(pred)

        if winner_id == a.id:
            winner, loser = table[a.id], table[b.id]
            winner_maps, loser_maps = score_a, score_b
        else:
            winner, loser = table[b.id], table[a.id]
            winner_maps, loser_maps = score_b, score_a

        winner.played += 1
        winner.wins += 1
        winner.points += 1
        winner.map_wins += winner_maps
        winner.map_losses += loser_maps

        loser.played += 1
        loser.losses += 1
        loser.map_wins += loser_maps
        loser.map_losses += winner_maps

    for row in table.values():
        row.map_diff = row.map_wins - row.map_losses

    rows = list(table.values())
    rows.sort(key=lambda r: (-r.wins, -r.map_diff, -r.map_wins))
    return rows
