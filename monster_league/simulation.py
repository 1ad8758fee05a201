"""Match runner, batch simulation and aggregation."""

from __future__ import annotations

import json
import logging
from collections import Counter, defaultdict
from dataclasses import replace
from itertools import combinations
from pathlib import Path
from typing import Any, Sequence

from monster_league.actions import EndTurn, apply_action, get_legal_actions
from monster_league.ai import Agent, GreedyAI
from monster_league.config import BattleRules
from monster_league.engine import DEFAULT_RULES, init_match
from monster_league.models import (
    DRAW, BattleState, MatchLog, MonsterRecord, Side,
)
from monster_league.replay import ReplayWriter, snapshot_player
from monster_league.telemetry import MatchTelemetry

logger = logging.getLogger(__name__)

MAX_TURNS = 40
MAX_ACTIONS_PER_TURN = 60


def _winner_str(state: BattleState) -> str:
    if isinstance(state.winner, Side):
        return state.winner.value
    return DRAW


def _turn_limit_winner(state: BattleState) -> BattleState:
    hp_p, hp_o = state.player.hero.hp, state.opponent.hero.hp
    if hp_p > hp_o:
        winner = Side.PLAYER
    elif hp_o > hp_p:
        winner = Side.OPPONENT
    else:
        winner = DRAW
    return replace(
        state,
        winner=winner,
        log=state.log + (f"Turn limit reached after {state.turn - 1} turns.",),
    )


def _describe(action: Any) -> str:
    return type(action).__name__ + (
        f"({', '.join(f'{k}={v}' for k, v in vars(action).items())})"
    )


def run_match(
    state: BattleState,
    agents: tuple[Agent, Agent],
    rules: BattleRules = DEFAULT_RULES,
    trace: bool = False,
    telemetry: MatchTelemetry | None = None,
    replay: ReplayWriter | None = None,
    max_turns: int = MAX_TURNS,
) -> tuple[BattleState, MatchLog]:
    """Drive a match to completion; ``agents`` are (player, opponent)."""
    play_trace: list[dict] | None = [] if trace else None
    seats = {Side.PLAYER: agents[0], Side.OPPONENT: agents[1]}
    reason = "knockout"

    if telemetry:
        telemetry.on_match_start(state)
    if replay:
        replay.write({
            "type": "match_start",
            "turn": state.turn,
            "active": state.active.value,
            "player": snapshot_player(state.player),
            "opponent": snapshot_player(state.opponent),
        })

    while not state.is_over:
        if state.turn > max_turns:
            state = _turn_limit_winner(state)
            reason = "turn_limit"
            break

        side = state.active
        if replay:
            replay.write({
                "type": "turn_start",
                "turn": state.turn,
                "active": side.value,
                "player": snapshot_player(state.player),
                "opponent": snapshot_player(state.opponent),
            })

        for _ in range(MAX_ACTIONS_PER_TURN):
            legal = get_legal_actions(state, rules)
            action = seats[side].choose_action(state, legal)
            if play_trace is not None:
                play_trace.append({
                    "turn": state.turn,
                    "side": side.value,
                    "action": _describe(action),
                })

            before = state
            state = apply_action(state, side, action, rules)
            if telemetry:
                telemetry.on_action(before, state, side, action)
            if replay:
                replay.write({
                    "type": "action",
                    "turn": before.turn,
                    "side": side.value,
                    "action": _describe(action),
                    "log": list(state.log[len(before.log):]),
                })
            if isinstance(action, EndTurn) or state.is_over:
                break
        else:
            logger.warning(
                "%s exceeded %d actions on turn %d; ending turn",
                state.side(side).label, MAX_ACTIONS_PER_TURN, state.turn,
            )
            state = apply_action(state, side, EndTurn(), rules)

    if telemetry:
        telemetry.on_match_end(state, reason)

    final_hp = (state.player.hero.hp, state.opponent.hero.hp)
    if replay:
        replay.write({
            "type": "match_end",
            "turn": state.turn,
            "winner": _winner_str(state),
            "reason": reason,
            "final_hp": list(final_hp),
            "turns": state.turn,
        })

    log = MatchLog(
        seed=0,
        roster_ids=("player", "opponent"),
        winner=_winner_str(state),
        turns=state.turn,
        final_hp=final_hp,
        reason=reason,
        play_trace=play_trace,
        telemetry=telemetry.to_summary() if telemetry else None,
    )
    logger.debug("Match finished: %s after %d turns (%s)", log.winner, log.turns, reason)
    return state, log


def run_batch(
    rosters: dict[str, Sequence[MonsterRecord]],
    n_matches: int,
    base_seed: int,
    output_dir: str | Path | None = None,
    rules: BattleRules = DEFAULT_RULES,
    trace: bool = False,
    telemetry_enabled: bool = False,
) -> list[MatchLog]:
    """Round robin: every pair of rosters plays ``n_matches`` seeded matches.

    Seeds run consecutively from ``base_seed`` across the whole batch, so any
    single match can be replayed from its log entry.
    """
    agents = (GreedyAI(rules), GreedyAI(rules))
    pairings = list(combinations(sorted(rosters), 2))
    logs: list[MatchLog] = []

    for seed, (a, b) in enumerate(
        (pair for pair in pairings for _ in range(n_matches)), start=base_seed,
    ):
        state = init_match(rosters[a], rosters[b], rules=rules, seed=seed)
        telemetry = MatchTelemetry() if telemetry_enabled else None
        _, log = run_match(state, agents, rules, trace=trace, telemetry=telemetry)
        log.seed = seed
        log.roster_ids = (a, b)
        logs.append(log)

    logger.info("Simulated %d matches over %d pairings", len(logs), len(pairings))

    if output_dir is not None:
        out = Path(output_dir)
        out.mkdir(parents=True, exist_ok=True)
        write_logs(logs, out / "match_logs.json")

    return logs


def log_to_dict(match_id: int, log: MatchLog) -> dict[str, Any]:
    entry: dict[str, Any] = {
        "match_id": match_id,
        "seed": log.seed,
        "roster_ids": list(log.roster_ids),
        "winner": log.winner,
        "reason": log.reason,
        "turns": log.turns,
        "final_hp": list(log.final_hp),
    }
    # optional sections are omitted rather than written as null
    for key in ("play_trace", "telemetry"):
        value = getattr(log, key)
        if value is not None:
            entry[key] = value
    return entry


def write_logs(logs: list[MatchLog], path: str | Path) -> None:
    with open(path, "w", encoding="utf-8") as f:
        json.dump(
            [log_to_dict(i, log) for i, log in enumerate(logs)],
            f, indent=2, ensure_ascii=False,
        )


def aggregate(logs: list[MatchLog]) -> dict[str, Any]:
    """Per-roster records plus how often each seat won."""
    records: dict[str, Counter] = defaultdict(Counter)
    seats: Counter = Counter()

    for log in logs:
        first, second = log.roster_ids
        seats[log.winner] += 1
        if log.winner == Side.PLAYER.value:
            outcome = {first: "wins", second: "losses"}
        elif log.winner == Side.OPPONENT.value:
            outcome = {first: "losses", second: "wins"}
        else:
            outcome = {first: "draws", second: "draws"}
        for rid, key in outcome.items():
            records[rid][key] += 1
            records[rid]["games"] += 1

    rosters: dict[str, dict[str, Any]] = {}
    for rid in sorted(records):
        rec = records[rid]
        rosters[rid] = {
            "games": rec["games"],
            "wins": rec["wins"],
            "losses": rec["losses"],
            "draws": rec["draws"],
            "win_rate": round(100 * rec["wins"] / rec["games"], 1),
        }

    return {
        "rosters": rosters,
        "total_matches": len(logs),
        "first_player_wins": seats[Side.PLAYER.value],
        "second_player_wins": seats[Side.OPPONENT.value],
        "draws": len(logs) - seats[Side.PLAYER.value] - seats[Side.OPPONENT.value],
        "average_turns": (
            round(sum(log.turns for log in logs) / len(logs), 1) if logs else 0
        ),
    }
