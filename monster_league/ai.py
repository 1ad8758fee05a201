"""Battle agents – ABC, GreedyAI, RandomAI, HumanAgent."""

from __future__ import annotations

import random
from abc import ABC, abstractmethod

from monster_league.actions import Action, EndTurn, apply_action
from monster_league.config import BattleRules
from monster_league.engine import DEFAULT_RULES
from monster_league.models import BattleState, Side


class Agent(ABC):
    @abstractmethod
    def choose_action(self, state: BattleState, legal_actions: list[Action]) -> Action:
        ...


# ---------------------------------------------------------------------------
# GreedyAI
# ---------------------------------------------------------------------------

def evaluate(state: BattleState, side: Side) -> float:
    """Heuristic value of ``state`` from ``side``'s point of view."""
    if state.winner == side:
        return 1000.0
    if state.winner == side.other:
        return -1000.0

    me = state.side(side)
    opp = state.side(side.other)

    score = 0.0
    score += (opp.hero.max_hp - opp.hero.hp) * 3.0
    score -= (me.hero.max_hp - me.hero.hp) * 2.0
    score += (me.hero.armor - opp.hero.armor) * 1.0
    score += sum(m.attack for m in me.board) * 1.5
    score -= sum(m.attack for m in opp.board) * 1.5
    score += sum(m.health for m in me.board) * 0.5
    score -= sum(m.health for m in opp.board) * 0.5
    score += len(me.hand) * 0.5
    return score


class GreedyAI(Agent):
    """Takes whichever action scores best one step ahead; ends the turn otherwise."""

    def __init__(self, rules: BattleRules = DEFAULT_RULES) -> None:
        self.rules = rules

    def choose_action(self, state: BattleState, legal_actions: list[Action]) -> Action:
        side = state.active
        best_action: Action = EndTurn()
        best_score = evaluate(state, side)

        for action in legal_actions:
            if isinstance(action, EndTurn):
                continue
            score = evaluate(apply_action(state, side, action, self.rules), side)
            if score > best_score:
                best_score = score
                best_action = action

        return best_action


class RandomAI(Agent):
    def __init__(self, seed: int | None = None) -> None:
        self.rng = random.Random(seed)

    def choose_action(self, state: BattleState, legal_actions: list[Action]) -> Action:
        return self.rng.choice(legal_actions)


# ---------------------------------------------------------------------------
# HumanAgent (stdin)
# ---------------------------------------------------------------------------

class HumanAgent(Agent):
    def choose_action(self, state: BattleState, legal_actions: list[Action]) -> Action:
        from monster_league.display import render_actions, render_state
        render_state(state)
        render_actions(legal_actions, state)

        while True:
            try:
                raw = input("Choose action number: ").strip()
                idx = int(raw)
                if 0 <= idx < len(legal_actions):
                    return legal_actions[idx]
                print(f"  Invalid index. Enter 0-{len(legal_actions)-1}.")
            except ValueError:
                print("  Enter a number.")
