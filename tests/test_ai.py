"""Tests for the battle agents."""

import unittest
from dataclasses import replace

from monster_league.actions import AttackHero, EndTurn, PlayCard, get_legal_actions
from monster_league.ai import GreedyAI, RandomAI, evaluate
from monster_league.models import (
    BattleMonsterCard, BattleSpellCard, BattleState, HeroState, PlayerState,
    Position, RarityTier, Side, SpellEffect,
)


def _fwd(attack=5) -> BattleMonsterCard:
    return BattleMonsterCard(
        id="f1", source_monster_id="m-f1", name="Striker", position=Position.FWD,
        rarity_tier=RarityTier.RARE, mana_cost=2, attack=attack, health=4,
        max_health=4, magic=1, has_summoning_sickness=False, can_attack=True,
    )


def _state(board=(), hand=(), mana=0, opp_hp=300) -> BattleState:
    player = PlayerState(
        key=Side.PLAYER, label="Player 1", hero=HeroState(name="A"),
        hand=tuple(hand), board=tuple(board), mana=mana, max_mana=mana,
    )
    opponent = PlayerState(
        key=Side.OPPONENT, label="Player 2", hero=HeroState(name="B", hp=opp_hp),
    )
    return BattleState(player=player, opponent=opponent)


class TestEvaluate(unittest.TestCase):
    def test_win_and_loss(self):
        state = _state()
        self.assertEqual(evaluate(replace(state, winner=Side.PLAYER), Side.PLAYER), 1000.0)
        self.assertEqual(evaluate(replace(state, winner=Side.PLAYER), Side.OPPONENT), -1000.0)

    def test_damage_is_good(self):
        state = _state()
        hurt = replace(state, opponent=replace(
            state.opponent, hero=HeroState(name="B", hp=290)))
        self.assertGreater(evaluate(hurt, Side.PLAYER), evaluate(state, Side.PLAYER))
        self.assertLess(evaluate(hurt, Side.OPPONENT), evaluate(state, Side.OPPONENT))


class TestGreedyAI(unittest.TestCase):
    def test_takes_lethal(self):
        state = _state(board=[_fwd(attack=5)], opp_hp=5)
        action = GreedyAI().choose_action(state, get_legal_actions(state))
        self.assertEqual(action, AttackHero(attacker_index=0))

    def test_casts_damage_spell(self):
        shot = BattleSpellCard(id="s", name="Power Shot", description="",
                               mana_cost=2, effect=SpellEffect.DAMAGE_HERO, value=3)
        state = _state(hand=[shot], mana=2)
        action = GreedyAI().choose_action(state, get_legal_actions(state))
        self.assertEqual(action, PlayCard(hand_index=0))

    def test_ends_turn_when_nothing_helps(self):
        state = _state()
        self.assertEqual(GreedyAI().choose_action(state, get_legal_actions(state)), EndTurn())


class TestRandomAI(unittest.TestCase):
    def test_choices_are_legal_and_seeded(self):
        state = _state(board=[_fwd()], mana=0)
        legal = get_legal_actions(state)
        a, b = RandomAI(seed=3), RandomAI(seed=3)
        picks_a = [a.choose_action(state, legal) for _ in range(20)]
        picks_b = [b.choose_action(state, legal) for _ in range(20)]
        self.assertEqual(picks_a, picks_b)
        for pick in picks_a:
            self.assertIn(pick, legal)


if __name__ == "__main__":
    unittest.main()
