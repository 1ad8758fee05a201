"""CLI entry point – play / simulate / score / replay subcommands."""

from __future__ import annotations

import argparse
import glob
import json
import logging
import sys
from pathlib import Path

from monster_league.ai import GreedyAI, HumanAgent, RandomAI
from monster_league.codec import result_to_dict
from monster_league.config import CLIENT_RULES, BattleRules, ScoringConfig
from monster_league.display import render_log, render_scores, render_state, render_stats
from monster_league.engine import DEFAULT_RULES, init_match
from monster_league.loader import (
    load_assignments, load_entries, load_performances, load_roster,
)
from monster_league.replay import ReplayWriter, render_replay
from monster_league.scoring import (
    GameweekAlreadyScoredError, GameweekScorer, ScoreLedger,
)
from monster_league.simulation import aggregate, run_batch, run_match
from monster_league.telemetry import MatchTelemetry


DATA_DIR = Path(__file__).resolve().parent.parent / "data"


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(
        prog="monster-league", description="Fantasy Monster League engines",
    )
    parser.add_argument("-v", "--verbose", action="count", default=0,
                        help="-v for INFO logging, -vv for DEBUG")
    sub = parser.add_subparsers(dest="command")

    # --- play ---
    p_play = sub.add_parser("play", help="Play a single battle")
    p_play.add_argument("--roster-a", default=str(DATA_DIR / "rosters" / "alice.json"))
    p_play.add_argument("--roster-b", default=str(DATA_DIR / "rosters" / "bob.json"))
    p_play.add_argument("--seed", type=int, default=42)
    p_play.add_argument("--mode", choices=["ava", "hva", "hvh", "random"], default="ava",
                        help="ava=AI vs AI, hva=Human vs AI, hvh=Human vs Human, "
                             "random=random agents")
    p_play.add_argument("--trace", action="store_true", help="Print play trace")
    p_play.add_argument("--replay", default=None, help="Write a JSONL replay to this path")
    _add_rules_args(p_play)

    # --- simulate ---
    p_sim = sub.add_parser("simulate", help="Run a round-robin batch of AI battles")
    p_sim.add_argument("--rosters", nargs="+",
                       default=[str(DATA_DIR / "rosters" / "*.json")],
                       help="Roster JSON files (glob supported)")
    p_sim.add_argument("--matches", type=int, default=50, help="Matches per pair")
    p_sim.add_argument("--seed", type=int, default=42)
    p_sim.add_argument("--output", default="output/", help="Output directory")
    p_sim.add_argument("--trace", action="store_true", help="Include play traces in log")
    p_sim.add_argument("--telemetry", choices=["on", "off"], default="off",
                       help="Enable match telemetry collection")
    _add_rules_args(p_sim)

    # --- score ---
    p_score = sub.add_parser("score", help="Score a gameweek")
    p_score.add_argument("--gameweek", type=int, required=True)
    p_score.add_argument("--rosters", nargs="+",
                         default=[str(DATA_DIR / "rosters" / "*.json")],
                         help="Roster JSON files (glob supported)")
    p_score.add_argument("--performances", required=True, help="Stat lines JSON")
    p_score.add_argument("--entries", required=True, help="Gameweek entries JSON")
    p_score.add_argument("--chips", default=None, help="Chips and assignments JSON")
    p_score.add_argument("--config", default=None, help="Scoring config JSON")
    p_score.add_argument("--ledger", default=None,
                         help="Score ledger JSON; guards against scoring twice")
    p_score.add_argument("--force", action="store_true",
                         help="Re-score a gameweek already in the ledger")
    p_score.add_argument("--output", default=None, help="Write the result as JSON")

    # --- replay ---
    p_replay = sub.add_parser("replay", help="Render a JSONL replay")
    p_replay.add_argument("path")
    p_replay.add_argument("--from-turn", type=int, default=None)
    p_replay.add_argument("--to-turn", type=int, default=None)
    p_replay.add_argument("--compact", action="store_true")

    args = parser.parse_args(argv)

    level = logging.WARNING
    if args.verbose == 1:
        level = logging.INFO
    elif args.verbose >= 2:
        level = logging.DEBUG
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")

    if args.command is None:
        parser.print_help()
        sys.exit(1)

    if args.command == "play":
        _cmd_play(args)
    elif args.command == "simulate":
        _cmd_simulate(args)
    elif args.command == "score":
        _cmd_score(args)
    elif args.command == "replay":
        render_replay(args.path, args.from_turn, args.to_turn, args.compact)


def _add_rules_args(p: argparse.ArgumentParser) -> None:
    p.add_argument("--rules", default=None, help="Battle rules JSON")
    p.add_argument("--client-rules", action="store_true",
                   help="Use the client-side rule variant")


def _rules(args: argparse.Namespace) -> BattleRules:
    if args.rules:
        return BattleRules.from_json(args.rules)
    if args.client_rules:
        return CLIENT_RULES
    return DEFAULT_RULES


def _expand(patterns: list[str]) -> list[str]:
    paths: list[str] = []
    for pattern in patterns:
        expanded = glob.glob(pattern)
        paths.extend(expanded if expanded else [pattern])
    return sorted(set(paths))


def _cmd_play(args: argparse.Namespace) -> None:
    rules = _rules(args)
    roster_a = load_roster(args.roster_a)
    roster_b = load_roster(args.roster_b)

    if args.mode == "ava":
        agents = (GreedyAI(rules), GreedyAI(rules))
    elif args.mode == "hva":
        agents = (HumanAgent(), GreedyAI(rules))
    elif args.mode == "random":
        agents = (RandomAI(args.seed), RandomAI(args.seed + 1))
    else:
        agents = (HumanAgent(), HumanAgent())

    state = init_match(roster_a, roster_b, rules=rules, seed=args.seed)
    telemetry = MatchTelemetry()
    if args.replay:
        with ReplayWriter(Path(args.replay)) as replay:
            replay.write({
                "type": "meta",
                "seed": args.seed,
                "roster_ids": [Path(args.roster_a).stem, Path(args.roster_b).stem],
            })
            state, log = run_match(state, agents, rules, trace=args.trace,
                                   telemetry=telemetry, replay=replay)
        print(f"Replay written to: {args.replay}")
    else:
        state, log = run_match(state, agents, rules, trace=args.trace,
                               telemetry=telemetry)

    render_state(state)
    render_log(state)
    print(f"Result: {log.winner} ({log.reason})")
    print(f"Turns: {log.turns}  Final HP: player={log.final_hp[0]} "
          f"opponent={log.final_hp[1]}")
    summary = telemetry.to_summary()
    for side in ("player", "opponent"):
        print(f"  {side}: cards={summary[f'{side}_cards_played']} "
              f"mana={summary[f'{side}_mana_spent']} "
              f"hero_damage={summary[f'{side}_hero_damage']} "
              f"rejected={summary[f'{side}_rejected_actions']}")

    if log.play_trace:
        print(f"\nTrace ({len(log.play_trace)} actions):")
        for entry in log.play_trace:
            print(f"  T{entry['turn']} {entry['side']}: {entry['action']}")


def _cmd_simulate(args: argparse.Namespace) -> None:
    rules = _rules(args)
    rosters = {Path(p).stem: load_roster(p) for p in _expand(args.rosters)}
    print(f"Loaded {len(rosters)} rosters: {sorted(rosters)}")
    if len(rosters) < 2:
        print("Need at least two rosters to simulate.", file=sys.stderr)
        sys.exit(1)

    logs = run_batch(
        rosters, args.matches, args.seed, args.output, rules,
        trace=args.trace, telemetry_enabled=args.telemetry == "on",
    )
    render_stats(aggregate(logs))
    print(f"Logs written to: {Path(args.output) / 'match_logs.json'}")


def _cmd_score(args: argparse.Namespace) -> None:
    config = ScoringConfig.from_json(args.config) if args.config else ScoringConfig()
    monsters = {}
    for path in _expand(args.rosters):
        for m in load_roster(path):
            monsters[m.id] = m

    performances = load_performances(args.performances)
    entries = load_entries(args.entries, monsters)
    assignments = load_assignments(args.chips, config.default_chip_tries) if args.chips else []

    ledger = ScoreLedger.load(args.ledger) if args.ledger else ScoreLedger()
    scorer = GameweekScorer(ledger, config)
    try:
        result = scorer.score(
            args.gameweek, performances, assignments, entries, force=args.force,
        )
    except GameweekAlreadyScoredError as e:
        print(f"{e} (use --force to re-score)", file=sys.stderr)
        sys.exit(1)

    if args.ledger:
        ledger.save(args.ledger)
    render_scores(result)

    if args.output:
        out = Path(args.output)
        out.parent.mkdir(parents=True, exist_ok=True)
        with open(out, "w", encoding="utf-8") as f:
            json.dump(result_to_dict(result), f, indent=2, ensure_ascii=False)
        print(f"Result written to: {out}")


if __name__ == "__main__":
    main()
