"""Match telemetry – per-match event counters for balance analytics."""

from __future__ import annotations

from typing import Any, TYPE_CHECKING

from monster_league.models import BattleMonsterCard, BattleSpellCard, Side

if TYPE_CHECKING:
    from monster_league.actions import Action
    from monster_league.models import BattleState

PER_SIDE_FIELDS = (
    "cards_played", "monsters_played", "spells_cast", "mana_spent",
    "mana_wasted", "hero_damage", "armor_gained", "attacks",
    "monsters_lost", "hero_powers", "passes", "rejected_actions",
)


class MatchTelemetry:
    """Collects per-match statistics via on_*() hooks called by the match runner.

    Counters are dicts keyed by ``Side``. Everything is derived by comparing
    the state before and after each action, so the engine itself stays free
    of telemetry calls.
    """

    def __init__(self) -> None:
        for name in PER_SIDE_FIELDS:
            setattr(self, name, {Side.PLAYER: 0, Side.OPPONENT: 0})
        self._total_turns: int = 0
        self._winner: str = ""
        self._reason: str = ""

    # ------------------------------------------------------------------
    # Hook methods
    # ------------------------------------------------------------------

    def on_match_start(self, state: "BattleState") -> None:
        pass

    def on_action(
        self,
        before: "BattleState",
        after: "BattleState",
        side: Side,
        action: "Action",
    ) -> None:
        from monster_league.actions import (
            AttackHero, AttackMinion, EndTurn, HeroPower, PassBall, PlayCard,
        )

        me_before, me_after = before.side(side), after.side(side)
        opp_before, opp_after = before.side(side.other), after.side(side.other)

        if isinstance(action, EndTurn):
            self.mana_wasted[side] += max(me_before.mana, 0)
            return

        if (me_before == me_after and opp_before == opp_after
                and before.winner == after.winner):
            self.rejected_actions[side] += 1
            return

        match action:
            case PlayCard(hand_index=idx):
                card = me_before.hand[idx]
                self.cards_played[side] += 1
                self.mana_spent[side] += card.mana_cost
                if isinstance(card, BattleMonsterCard):
                    self.monsters_played[side] += 1
                elif isinstance(card, BattleSpellCard):
                    self.spells_cast[side] += 1
            case AttackHero() | AttackMinion():
                self.attacks[side] += 1
            case HeroPower():
                self.hero_powers[side] += 1
                self.mana_spent[side] += me_before.mana - me_after.mana
            case PassBall():
                self.passes[side] += 1

        self.hero_damage[side] += max(opp_before.hero.hp - opp_after.hero.hp, 0)
        self.armor_gained[side] += max(me_after.hero.armor - me_before.hero.armor, 0)
        for key, b, a in ((side, me_before, me_after),
                          (side.other, opp_before, opp_after)):
            after_ids = {m.id for m in a.board}
            self.monsters_lost[key] += sum(1 for m in b.board if m.id not in after_ids)

    def on_match_end(self, state: "BattleState", reason: str) -> None:
        self._total_turns = state.turn
        winner = state.winner
        self._winner = winner.value if isinstance(winner, Side) else str(winner)
        self._reason = reason

    # ------------------------------------------------------------------
    # Summary export
    # ------------------------------------------------------------------

    def to_summary(self) -> dict[str, Any]:
        """Return a flat dict summarizing this match's telemetry."""
        summary: dict[str, Any] = {
            "total_turns": self._total_turns,
            "winner": self._winner,
            "reason": self._reason,
        }
        for fname in PER_SIDE_FIELDS:
            vals = getattr(self, fname)
            for side in Side:
                summary[f"{side.value}_{fname}"] = vals[side]
        return summary
