from __future__ import annotations

import copy
import logging
from dataclasses import dataclass
from typing import Iterable, Mapping

from .config import BRACKET_MAX_PASSES
from .snapshots import MatchSnapshot, Prediction, TeamRef, predictions_by_match
from .standings import group_matches, is_group_match

log = logging.getLogger(__name__)

ROLE_OPENING = "opening"
ROLE_WINNERS = "winners"
ROLE_ELIMINATION = "elimination"
ROLE_DECIDER = "decider"

# Legacy data has no slot_role; fall back to the wording of name/label.
# Checked in this order, first hit wins.
ROLE_KEYWORDS: tuple[tuple[str, tuple[str, ...]], ...] = (
    (ROLE_OPENING, ("opening", "abertura", "rodada 1")),
    (ROLE_DECIDER, ("decider", "decisiva", "decisivo")),
    (ROLE_ELIMINATION, ("elimination", "eliminação", "loser")),
    (ROLE_WINNERS, ("winners", "vencedores", "winner")),
)

Picks = Mapping[int, Prediction]


@dataclass(frozen=True)
class BracketViews:
    real: list[MatchSnapshot]
    predicted: list[MatchSnapshot]


def slot_role(m: MatchSnapshot) -> str | None:
    if m.slot_role:
        return m.slot_role.lower()
    text = (m.name or m.label or "").lower()
    for role, words in ROLE_KEYWORDS:
        if any(w in text for w in words):
            return role
    return None


def _as_picks(predictions: Iterable[Prediction] | Picks | None) -> dict[int, Prediction]:
    if predictions is None:
        return {}
    if isinstance(predictions, Mapping):
        return dict(predictions)
    return predictions_by_match(predictions)


def _team_pool(matches: Iterable[MatchSnapshot]) -> dict[int, TeamRef]:
    pool: dict[int, TeamRef] = {}
    for m in matches:
        for t in (m.team_a, m.team_b):
            if t is not None:
                pool[t.id] = t
    return pool


def _outcome(
    m: MatchSnapshot,
    picks: Picks,
    include_predictions: bool,
    pool: Mapping[int, TeamRef],
) -> tuple[TeamRef | None, TeamRef | None]:
    """
    (winner, loser) of m: the real result first, the user's pick only if allowed.
    """
    winner_id = m.winner_id
    if winner_id is None and include_predictions:
        pick = picks.get(m.id)
        winner_id = pick.predicted_winner_id if pick else None
    if winner_id is None:
        return (None, None)

    if winner_id == m.team_a_id:
        return (m.team_a, m.team_b)
    if winner_id == m.team_b_id:
        return (m.team_b, m.team_a)

    # winner not in either slot (e.g. a pick made before the slots moved); no loser known
    return (pool.get(winner_id), None)


def _fill(m: MatchSnapshot, side: str, team: TeamRef | None) -> bool:
    if team is None or m.is_finished:
        return False

    if side == "a":
        if m.team_a is not None and m.team_a.id == team.id and m.label_team_a is None:
            return False
        m.team_a = team
        m.label_team_a = None
    else:
        if m.team_b is not None and m.team_b.id == team.id and m.label_team_b is None:
            return False
        m.team_b = team
        m.label_team_b = None
    return True


def _by_result(tag: str | None, winner: TeamRef | None, loser: TeamRef | None) -> TeamRef | None:
    tag = tag or "winner"
    if tag == "winner":
        return winner
    if tag == "loser":
        return loser
    return None


def _elimination_pass(
    ordered: list[MatchSnapshot],
    all_matches: list[MatchSnapshot],
    picks: Picks,
    include_predictions: bool,
    pool: Mapping[int, TeamRef],
) -> bool:
    changed = False
    for m in ordered:
        winner, loser = _outcome(m, picks, include_predictions, pool)
        if winner is None:
            continue

        # forward links are not reliably stored, so look for matches pointing back at m
        for child in all_matches:
            if child.is_finished:
                continue
            if child.team_a_previous_match_id == m.id:
                team = _by_result(child.team_a_previous_match_result, winner, loser)
                changed |= _fill(child, "a", team)
            if child.team_b_previous_match_id == m.id:
                team = _by_result(child.team_b_previous_match_result, winner, loser)
                changed |= _fill(child, "b", team)
    return changed


def _first(matches: list[MatchSnapshot], role: str) -> MatchSnapshot | None:
    for m in matches:
        if slot_role(m) == role:
            return m
    return None


def _group_pass(
    all_matches: list[MatchSnapshot],
    picks: Picks,
    include_predictions: bool,
    pool: Mapping[int, TeamRef],
) -> bool:
    """
    GSL groups: two openings -> winners' match + elimination match -> decider.
    """
    changed = False
    for members in group_matches(all_matches).values():
        members = sorted(members, key=lambda m: m.id)

        openings = [m for m in members if slot_role(m) == ROLE_OPENING]
        if not openings:
            openings = [m for m in members if slot_role(m) is None]

        winners_match = _first(members, ROLE_WINNERS)
        elim_match = _first(members, ROLE_ELIMINATION)
        decider = _first(members, ROLE_DECIDER)

        if len(openings) == 2:
            w1, l1 = _outcome(openings[0], picks, include_predictions, pool)
            w2, l2 = _outcome(openings[1], picks, include_predictions, pool)

            if winners_match is not None:
                changed |= _fill(winners_match, "a", w1)
                changed |= _fill(winners_match, "b", w2)
            if elim_match is not None:
                changed |= _fill(elim_match, "a", l1)
                changed |= _fill(elim_match, "b", l2)

        if winners_match is not None and elim_match is not None and decider is not None:
            _, winners_loser = _outcome(winners_match, picks, include_predictions, pool)
            elim_winner, _ = _outcome(elim_match, picks, include_predictions, pool)
            changed |= _fill(decider, "a", winners_loser)
            changed |= _fill(decider, "b", elim_winner)
    return changed


def project_bracket(
    matches: Iterable[MatchSnapshot],
    predictions: Iterable[Prediction] | Picks | None,
    include_predictions: bool,
    max_passes: int = BRACKET_MAX_PASSES,
) -> list[MatchSnapshot]:
    """
    Fill unresolved slots of a copy of `matches` from results (and optionally picks).

    Every pass walks elimination links in (round_index, display_order, id) order
    and then the GSL groups; passes repeat until nothing changes, or until
    `max_passes` (at least one) as a guard against cyclic links. Finished matches are never
    touched. Anything that cannot be resolved stays as it was.

    Returns new snapshots in input order; the input is not modified.
    """
    max_passes = max(1, int(max_passes))
    projected = copy.deepcopy(list(matches))
    picks = _as_picks(predictions)
    pool = _team_pool(projected)

    ordered = sorted(
        (m for m in projected if not is_group_match(m)),
        key=lambda m: (m.round_index or 0, m.display_order or 0, m.id),
    )

    passes = 0
    while passes < max_passes:
        passes += 1
        changed = _elimination_pass(ordered, projected, picks, include_predictions, pool)
        changed |= _group_pass(projected, picks, include_predictions, pool)
        if not changed:
            break
    else:
        log.warning(
            "bracket projection still changing after %d passes (%d matches); check for cyclic links",
            max_passes,
            len(projected),
        )

    log.debug("bracket projection: %d passes, include_predictions=%s", passes, include_predictions)
    return projected


def project_views(
    matches: Iterable[MatchSnapshot],
    predictions: Iterable[Prediction] | Picks | None,
    max_passes: int = BRACKET_MAX_PASSES,
) -> BracketViews:
    matches = list(matches)
    return BracketViews(
        real=project_bracket(matches, predictions, False, max_passes=max_passes),
        predicted=project_bracket(matches, predictions, True, max_passes=max_passes),
    )


def projected_open_matches(
    projected: Iterable[MatchSnapshot],
    predictions: Iterable[Prediction] | Picks | None,
) -> list[MatchSnapshot]:
    """
    Matches of a predicted projection that hold a team the user's own picks sent
    there, and that the user has not bet on yet.
    """
    picks = _as_picks(predictions)
    out: list[MatchSnapshot] = []
    for m in projected:
        if m.id in picks or m.is_finished:
            continue
        for prev_id, team in (
            (m.team_a_previous_match_id, m.team_a),
            (m.team_b_previous_match_id, m.team_b),
        ):
            pick = picks.get(prev_id) if prev_id is not None else None
            if pick is not None and team is not None and pick.predicted_winner_id == team.id:
                out.append(m)
                break
    return out
