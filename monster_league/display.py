"""CLI display – pitch state, actions, simulation stats and gameweek scores."""

from __future__ import annotations

from typing import Any

from monster_league.actions import (
    Action, AttackHero, AttackMinion, EndTurn, HeroPower, PassBall, PlayCard,
)
from monster_league.models import (
    BattleMonsterCard, BattleState, GameweekResult, PlayerState, Side,
)


def _card_label(m: BattleMonsterCard) -> str:
    flags = ""
    if m.keywords:
        flags += " " + "/".join(k.value for k in m.keywords)
    if m.can_attack:
        flags += "*"
    return f"[{m.name} {m.position.value} {m.attack}/{m.health}{flags}]"


def _render_side(p: PlayerState, active: bool) -> None:
    marker = " <<" if active else ""
    armor = f" (+{p.hero.armor} armor)" if p.hero.armor else ""
    print(f"  {p.label}: GK {p.hero.name} HP={p.hero.hp}{armor}  "
          f"Mana={p.mana}/{p.max_mana}  Hand={len(p.hand)}  Deck={len(p.deck)}{marker}")
    if p.board:
        print(f"      Pitch: {'  '.join(_card_label(m) for m in p.board)}")
    else:
        print("      Pitch: (empty)")


def render_state(state: BattleState) -> None:
    print(f"\n{'='*60}")
    print(f"  Turn {state.turn}  |  Active: {state.active_player().label}")
    print(f"{'='*60}")
    for side in Side:
        _render_side(state.side(side), side == state.active)
    if state.winner is not None:
        print(f"  Winner: {state.winner.value if isinstance(state.winner, Side) else state.winner}")
    print()


def render_log(state: BattleState, last: int = 10) -> None:
    for line in state.log[-last:]:
        print(f"  > {line}")


def render_actions(actions: list[Action], state: BattleState) -> None:
    me = state.active_player()
    opp = state.inactive_player()
    print("  Actions:")
    for i, action in enumerate(actions):
        match action:
            case PlayCard(hand_index=idx):
                card = me.hand[idx]
                print(f"    [{i}] Play: {card.name} (cost {card.mana_cost})")
            case AttackHero(attacker_index=idx):
                print(f"    [{i}] {me.board[idx].name} shoots at {opp.hero.name}")
            case AttackMinion(attacker_index=idx, target_index=t):
                print(f"    [{i}] {me.board[idx].name} attacks {opp.board[t].name}")
            case HeroPower():
                print(f"    [{i}] Hero Power (draw)")
            case PassBall():
                print(f"    [{i}] Pass")
            case EndTurn():
                print(f"    [{i}] End Turn")
    print()


def render_stats(stats: dict[str, Any]) -> None:
    print(f"\n{'='*60}")
    print(f"  Simulation Results  ({stats['total_matches']} matches)")
    print(f"{'='*60}")

    for rid, rs in stats["rosters"].items():
        print(f"  {rid:20s}  W={rs['wins']:4d}  L={rs['losses']:4d}  "
              f"D={rs['draws']:4d}  WR={rs['win_rate']:5.1f}%")

    print(f"\n  First player wins: {stats['first_player_wins']}  |  "
          f"Second player wins: {stats['second_player_wins']}  |  "
          f"Draws: {stats['draws']}  |  Avg turns: {stats['average_turns']}")
    print()


def render_scores(result: GameweekResult) -> None:
    print(f"\n{'='*60}")
    print(f"  Gameweek {result.gameweek}")
    print(f"{'='*60}")
    for s in result.monster_scores:
        tag = "DNP" if not s.played else ("BIG FAIL" if s.is_big_fail else
                                          ("blank" if s.is_blank else ""))
        print(f"  {s.user_id:12s} {s.monster_id:12s} base={s.base_points:3d} "
              f"x{s.multiplier:.2f} = {s.final_points:3d}  {tag}")

    if result.evolution_events:
        print("\n  Evolution:")
        for ev in result.evolution_events:
            print(f"    {ev.monster_id}: {ev.old_level} -> {ev.new_level} ({ev.reason})")

    if result.chip_resolutions:
        print("\n  Chips:")
        for a in result.chip_resolutions:
            outcome = "success" if a.was_successful else "failed"
            print(f"    {a.chip.id} on {a.monster_id}: {outcome}, "
                  f"{a.chip.remaining_tries} tries left")

    print("\n  Totals:")
    for row in result.score_rows():
        print(f"    {row.user_id:12s} {row.points:4d}")
    print()
