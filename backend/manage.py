import argparse
import logging
import sys

from pickem.bracket import project_views
from pickem.db import configure_db, init_db, session_scope
from pickem.logging_config import setup_logging
from pickem.seed import load_seed_file, seed_from_json
from pickem.services.settlement import MatchNotFinishedError, MatchNotFoundError, settle_match
from pickem.settings import load_settings
from pickem.snapshots import load_match_snapshots, load_user_predictions

log = logging.getLogger("manage")


def parse_args() -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Pick'em management commands")
    sub = p.add_subparsers(dest="cmd", required=True)

    p.add_argument("--secrets", default="./secrets.json")
    p.add_argument("--db-url")
    p.add_argument("--log-level")

    seed = sub.add_parser("seed", help="Seed DB from JSON (idempotent)")
    seed.add_argument("--file", required=True, help="Path to seed JSON file")

    settle = sub.add_parser("settle", help="Re-run bet settlement for finished matches")
    settle.add_argument("match_ids", nargs="+", type=int)

    bracket = sub.add_parser("bracket", help="Print the real (and a user's predicted) bracket")
    bracket.add_argument("tournament_id", type=int)
    bracket.add_argument("--user", help="user_id whose picks feed the predicted view")
    bracket.add_argument("--max-passes", type=int)

    return p.parse_args()


def _slot(team, label) -> str:
    if team is not None:
        return team.name
    return label or "?"


def cmd_settle(match_ids: list[int]) -> int:
    failures = 0
    with session_scope() as s:
        for mid in match_ids:
            try:
                res = settle_match(s, mid)
            except (MatchNotFoundError, MatchNotFinishedError) as e:
                log.error("Match %s skipped: %s", mid, e)
                failures += 1
                continue
            log.info("Match %s: %d settled, %d failed", mid, res.bets_settled, res.bets_failed)
            failures += res.bets_failed
    return 1 if failures else 0


def cmd_bracket(tournament_id: int, user_id: str | None, max_passes: int) -> int:
    with session_scope() as s:
        matches = load_match_snapshots(s, tournament_id)
        predictions = load_user_predictions(s, tournament_id, user_id) if user_id else []

    if not matches:
        log.error("Tournament %s has no matches", tournament_id)
        return 1

    views = project_views(matches, predictions, max_passes=max_passes)
    for real, predicted in zip(views.real, views.predicted):
        line = f"[{real.round_index}] {real.label or real.id}: {_slot(real.team_a, real.label_team_a)} vs {_slot(real.team_b, real.label_team_b)}"
        if user_id and (predicted.team_a, predicted.team_b) != (real.team_a, real.team_b):
            line += f"  (predicted: {_slot(predicted.team_a, None)} vs {_slot(predicted.team_b, None)})"
        print(line)
    return 0


def main() -> None:
    args = parse_args()

    settings = load_settings(
        secrets_path=args.secrets,
        db_url=args.db_url,
        log_level=args.log_level,
    )
    setup_logging(settings.log_level)

    configure_db(settings.db_url)
    init_db()

    if args.cmd == "seed":
        data = load_seed_file(args.file)
        with session_scope() as s:
            res = seed_from_json(s, data)
        log.info("Seed complete: %s", res)

    elif args.cmd == "settle":
        sys.exit(cmd_settle(args.match_ids))

    elif args.cmd == "bracket":
        sys.exit(cmd_bracket(args.tournament_id, args.user, args.max_passes or settings.bracket_max_passes))


if __name__ == "__main__":
    main()
