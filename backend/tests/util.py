from pickem.snapshots import MatchSnapshot, Prediction, TeamRef


def team(tid: int, name: str | None = None) -> TeamRef:
    return TeamRef(id=tid, name=name or f"Team {tid}")


def match(mid: int, a: TeamRef | None = None, b: TeamRef | None = None, **kw) -> MatchSnapshot:
    return MatchSnapshot(id=mid, team_a=a, team_b=b, **kw)


def finished(mid: int, a: TeamRef, b: TeamRef, score_a: int, score_b: int, **kw) -> MatchSnapshot:
    winner = a if score_a > score_b else b
    return MatchSnapshot(
        id=mid,
        team_a=a,
        team_b=b,
        status="finished",
        winner_id=winner.id,
        score_a=score_a,
        score_b=score_b,
        **kw,
    )


def pick(mid: int, winner: TeamRef | None, a: int = 0, b: int = 0, user_id: str = "u1") -> Prediction:
    return Prediction(
        match_id=mid,
        predicted_winner_id=winner.id if winner else None,
        predicted_score_a=a,
        predicted_score_b=b,
        user_id=user_id,
    )


def by_id(matches) -> dict:
    return {m.id: m for m in matches}


def slot_ids(m: MatchSnapshot) -> tuple:
    return (m.team_a_id, m.team_b_id)


def four_team_bracket_seed(status_sf1: str = "scheduled") -> dict:
    """
    Seed JSON: 4-team single elimination (two semis + final) with a handful of bets.
    """
    sf1 = {
        "key": "sf1",
        "label": "Semi-Final #1",
        "team_a": "alpha",
        "team_b": "bravo",
        "round_index": 0,
        "bracket_side": "upper",
        "status": status_sf1,
    }
    if status_sf1 == "finished":
        sf1.update({"winner": "alpha", "score_a": 2, "score_b": 1})

    return {
        "teams": [
            {"name": "Alpha", "slug": "alpha"},
            {"name": "Bravo", "slug": "bravo"},
            {"name": "Charlie", "slug": "charlie"},
            {"name": "Delta", "slug": "delta"},
        ],
        "tournaments": [
            {
                "name": "Spring Cup",
                "slug": "spring-cup",
                "scoring_rules": {"winner": 2, "exact": 5, "underdog_25": 1, "underdog_50": 1},
                "stages": [{"key": "playoffs", "name": "Playoffs"}],
                "matches": [
                    {**sf1, "stage": "playoffs"},
                    {
                        "key": "sf2",
                        "label": "Semi-Final #2",
                        "stage": "playoffs",
                        "team_a": "charlie",
                        "team_b": "delta",
                        "round_index": 0,
                        "bracket_side": "upper",
                    },
                    {
                        "key": "final",
                        "label": "Final",
                        "stage": "playoffs",
                        "round_index": 1,
                        "bracket_side": "upper",
                        "label_team_a": "Winner of SF1",
                        "label_team_b": "Winner of SF2",
                        "team_a_from": {"match": "sf1", "result": "winner"},
                        "team_b_from": {"match": "sf2", "result": "winner"},
                    },
                ],
                "bets": [
                    {"match": "sf1", "user_id": "ana", "winner": "alpha", "score_a": 2, "score_b": 1},
                    {"match": "sf1", "user_id": "ben", "winner": "alpha", "score_a": 2, "score_b": 0},
                    {"match": "sf1", "user_id": "cid", "winner": "alpha", "score_a": 2, "score_b": 0},
                    {"match": "sf1", "user_id": "dot", "winner": "bravo", "score_a": 1, "score_b": 2},
                    {"match": "sf2", "user_id": "ana", "winner": "delta", "score_a": 0, "score_b": 2},
                ],
            }
        ],
    }
