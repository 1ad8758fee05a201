"""Tests for battle actions: play, attack, hero power, pass, end turn."""

import unittest
from dataclasses import replace

from monster_league.actions import (
    AttackHero, AttackMinion, EndTurn, HeroPower, MalformedActionError,
    PassBall, PlayCard, TargetType, apply_action, attack, get_legal_actions,
    hero_power, pass_ball, play_card,
)
from monster_league.config import CLIENT_RULES
from monster_league.models import (
    DRAW, BattleMonsterCard, BattleSpellCard, BattleState, HeroState, Keyword,
    PlayerState, Position, RarityTier, Side, SpellEffect,
)


def _card(cid, position, attack=3, health=5, keywords=(), can_attack=True,
          mana_cost=1, **kwargs) -> BattleMonsterCard:
    return BattleMonsterCard(
        id=cid, source_monster_id=f"m-{cid}", name=cid.title(),
        position=position, rarity_tier=RarityTier.COMMON, mana_cost=mana_cost,
        attack=attack, health=health, max_health=health, magic=0,
        keywords=tuple(keywords), has_summoning_sickness=not can_attack,
        can_attack=can_attack, **kwargs,
    )


def _spell(effect=SpellEffect.DAMAGE_HERO, value=3, cost=2) -> BattleSpellCard:
    name = "Power Shot" if effect == SpellEffect.DAMAGE_HERO else "Wall of Roots"
    return BattleSpellCard(
        id="s1", name=name, description="", mana_cost=cost, effect=effect, value=value,
    )


def _make_state(
    hand=(), board=(), opp_board=(), mana=5, opp_hp=300, opp_armor=0,
    deck=(), active=Side.PLAYER,
) -> BattleState:
    player = PlayerState(
        key=Side.PLAYER, label="Player 1", hero=HeroState(name="Keeper A"),
        deck=tuple(deck), hand=tuple(hand), board=tuple(board),
        mana=mana, max_mana=mana,
    )
    opponent = PlayerState(
        key=Side.OPPONENT, label="Player 2",
        hero=HeroState(name="Keeper B", hp=opp_hp, armor=opp_armor),
        board=tuple(opp_board),
    )
    return BattleState(player=player, opponent=opponent, active=active, turn=5)


# ---------------------------------------------------------------------------
# PLAY_CARD
# ---------------------------------------------------------------------------

class TestPlayCard(unittest.TestCase):
    def test_play_monster(self):
        mid = _card("mid", Position.MID, can_attack=False, mana_cost=2)
        state = _make_state(hand=[mid], mana=3)
        after = play_card(state, Side.PLAYER, 0)
        self.assertEqual(after.player.mana, 1)
        self.assertEqual(after.player.hand, ())
        self.assertEqual(len(after.player.board), 1)
        played = after.player.board[0]
        self.assertTrue(played.has_summoning_sickness)
        self.assertFalse(played.can_attack)

    def test_rush_forward_can_attack_immediately(self):
        fwd = _card("fwd", Position.FWD, keywords=[Keyword.RUSH], can_attack=False)
        state = _make_state(hand=[fwd], board=[_card("mid", Position.MID)])
        after = play_card(state, Side.PLAYER, 0)
        played = after.player.board[-1]
        self.assertFalse(played.has_summoning_sickness)
        self.assertTrue(played.can_attack)

    def test_defender_never_ready(self):
        d = _card("def", Position.DEF, keywords=[Keyword.TAUNT, Keyword.RUSH], can_attack=False)
        after = play_card(_make_state(hand=[d]), Side.PLAYER, 0)
        self.assertFalse(after.player.board[0].can_attack)

    def test_not_enough_mana(self):
        card = _card("mid", Position.MID, mana_cost=4)
        state = _make_state(hand=[card], mana=3)
        after = play_card(state, Side.PLAYER, 0)
        self.assertEqual(after.player, state.player)
        self.assertEqual(after.log[-1], "Player 1 does not have enough mana to play Mid.")

    def test_board_full(self):
        board = [_card(f"m{i}", Position.MID) for i in range(3)]
        state = _make_state(hand=[_card("extra", Position.MID)], board=board)
        after = play_card(state, Side.PLAYER, 0)
        self.assertEqual(after.player, state.player)
        self.assertIn("maximum 3 monsters", after.log[-1])

    def test_forward_needs_midfielder(self):
        state = _make_state(hand=[_card("fwd", Position.FWD)], board=[_card("d", Position.DEF)])
        after = play_card(state, Side.PLAYER, 0)
        self.assertEqual(after.player.mana, state.player.mana)
        self.assertEqual(
            after.log[-1],
            "Player 1 tried to play a Forward but has no Midfielder on the pitch.",
        )

    def test_lethal_power_shot(self):
        state = _make_state(hand=[_spell()], opp_hp=3)
        after = play_card(state, Side.PLAYER, 0)
        self.assertEqual(after.opponent.hero.hp, 0)
        self.assertEqual(after.winner, Side.PLAYER)
        self.assertEqual(after.player.mana, 3)

    def test_armor_absorbs_first(self):
        state = _make_state(hand=[_spell(value=3)], opp_hp=10, opp_armor=2)
        after = play_card(state, Side.PLAYER, 0)
        self.assertEqual(after.opponent.hero.armor, 0)
        self.assertEqual(after.opponent.hero.hp, 9)

    def test_wall_of_roots(self):
        state = _make_state(hand=[_spell(SpellEffect.SHIELD_HERO)])
        after = play_card(state, Side.PLAYER, 0)
        self.assertEqual(after.player.hero.armor, 3)
        self.assertIsNone(after.winner)

    def test_out_of_turn(self):
        state = _make_state(hand=[_spell()])
        after = play_card(state, Side.OPPONENT, 0)
        self.assertEqual(after.log[-1], "It is not Player 2's turn.")
        self.assertEqual(after.player, state.player)

    def test_bad_index(self):
        with self.assertRaises(MalformedActionError):
            play_card(_make_state(), Side.PLAYER, 0)
        with self.assertRaises(ValueError):
            play_card(_make_state(hand=[_spell()]), Side.PLAYER, -1)

    def test_side_accepts_string(self):
        after = play_card(_make_state(hand=[_spell()]), "player", 0)
        self.assertEqual(after.opponent.hero.hp, 297)


# ---------------------------------------------------------------------------
# ATTACK
# ---------------------------------------------------------------------------

class TestAttackMinion(unittest.TestCase):
    def test_forward_ignores_taunt_counter_damage(self):
        fwd = _card("fwd", Position.FWD, attack=90, health=10)
        taunt = _card("wall", Position.DEF, attack=50, health=40, keywords=[Keyword.TAUNT])
        state = _make_state(board=[fwd], opp_board=[taunt])
        after = attack(state, Side.PLAYER, 0, TargetType.MINION, 0)
        self.assertEqual(after.opponent.board, ())
        attacker = after.player.board[0]
        self.assertEqual(attacker.health, 10)
        self.assertFalse(attacker.can_attack)

    def test_mutual_damage_and_removal(self):
        a = _card("a", Position.MID, attack=4, health=4)
        t = _card("t", Position.MID, attack=5, health=3)
        after = attack(_make_state(board=[a], opp_board=[t]), Side.PLAYER, 0, "MINION", 0)
        self.assertEqual(after.player.board, ())
        self.assertEqual(after.opponent.board, ())

    def test_defender_priority(self):
        a = _card("a", Position.MID)
        opp = [_card("d", Position.DEF), _card("m", Position.MID)]
        state = _make_state(board=[a], opp_board=opp)
        after = attack(state, Side.PLAYER, 0, TargetType.MINION, 1)
        self.assertEqual(after.opponent, state.opponent)
        self.assertIn("must attack a defender", after.log[-1])

    def test_client_rules_allow_any_target(self):
        a = _card("a", Position.MID, attack=3, health=10)
        opp = [_card("d", Position.DEF), _card("m", Position.MID, health=3)]
        after = attack(_make_state(board=[a], opp_board=opp), Side.PLAYER, 0,
                       TargetType.MINION, 1, rules=CLIENT_RULES)
        self.assertEqual(len(after.opponent.board), 1)

    def test_forward_vs_plain_defender_depends_on_rules(self):
        fwd = _card("fwd", Position.FWD, attack=2, health=10)
        d = _card("d", Position.DEF, attack=4, health=10)
        state = _make_state(board=[fwd], opp_board=[d])
        server = attack(state, Side.PLAYER, 0, TargetType.MINION, 0)
        client = attack(state, Side.PLAYER, 0, TargetType.MINION, 0, rules=CLIENT_RULES)
        self.assertEqual(server.player.board[0].health, 10)
        self.assertEqual(client.player.board[0].health, 6)

    def test_not_ready(self):
        a = _card("a", Position.MID, can_attack=False)
        state = _make_state(board=[a], opp_board=[_card("t", Position.MID)])
        after = attack(state, Side.PLAYER, 0, TargetType.MINION, 0)
        self.assertEqual(after.log[-1], "Player 1's A cannot attack right now.")

    def test_missing_target_index(self):
        state = _make_state(board=[_card("a", Position.MID)], opp_board=[_card("t", Position.MID)])
        with self.assertRaises(MalformedActionError):
            attack(state, Side.PLAYER, 0, TargetType.MINION)


class TestAttackHero(unittest.TestCase):
    def test_wall_blocks_goalkeeper(self):
        state = _make_state(board=[_card("f", Position.FWD)], opp_board=[_card("d", Position.DEF)])
        after = attack(state, Side.PLAYER, 0, TargetType.HERO)
        self.assertEqual(after.opponent.hero.hp, 300)
        self.assertEqual(after.player, state.player)

    def test_taunt_anywhere_blocks_goalkeeper(self):
        taunt_mid = _card("t", Position.MID, keywords=[Keyword.TAUNT])
        state = _make_state(board=[_card("f", Position.FWD)], opp_board=[taunt_mid])
        after = attack(state, Side.PLAYER, 0, TargetType.HERO)
        self.assertEqual(after.opponent.hero.hp, 300)

    def test_forward_hits_goalkeeper(self):
        state = _make_state(board=[_card("f", Position.FWD, attack=7)])
        after = attack(state, Side.PLAYER, 0, TargetType.HERO)
        self.assertEqual(after.opponent.hero.hp, 293)
        self.assertFalse(after.player.board[0].can_attack)

    def test_midfielder_dispossessed(self):
        state = _make_state(board=[_card("m", Position.MID, attack=4)])
        after = attack(state, Side.PLAYER, 0, TargetType.HERO)
        self.assertEqual(after.opponent.hero.hp, 296)
        self.assertEqual(after.player.board, ())

    def test_client_midfielder_counter_hit(self):
        mid = _card("m", Position.MID, attack=4, health=5)
        opp = [_card("d", Position.DEF, attack=2), _card("x", Position.MID, attack=3)]
        state = _make_state(board=[mid], opp_board=opp)
        after = attack(state, Side.PLAYER, 0, TargetType.HERO, rules=CLIENT_RULES)
        self.assertEqual(after.opponent.hero.hp, 296)
        self.assertEqual(after.player.board[0].health, 2)

    def test_lethal_attack_sets_winner(self):
        state = _make_state(board=[_card("f", Position.FWD, attack=9)], opp_hp=5)
        after = attack(state, Side.PLAYER, 0, TargetType.HERO)
        self.assertEqual(after.winner, Side.PLAYER)


# ---------------------------------------------------------------------------
# HERO_POWER, PASS
# ---------------------------------------------------------------------------

class TestHeroPowerAndPass(unittest.TestCase):
    def test_hero_power_draws_two(self):
        deck = [_spell(), _spell(), _spell()]
        after = hero_power(_make_state(deck=deck, mana=3), Side.PLAYER)
        self.assertEqual(after.player.mana, 0)
        self.assertEqual(len(after.player.hand), 2)
        self.assertEqual(len(after.player.deck), 1)
        self.assertEqual(after.log[-1], "Player 1 used Hero Power and drew 2 cards")

    def test_hero_power_logs_short_draw(self):
        after = hero_power(_make_state(deck=[_spell()], mana=3), Side.PLAYER)
        self.assertEqual(len(after.player.hand), 1)
        self.assertEqual(after.player.deck, ())
        self.assertEqual(after.log[-1], "Player 1 used Hero Power and drew 1 card")

    def test_hero_power_needs_mana(self):
        state = _make_state(deck=[_spell()], mana=2)
        after = hero_power(state, Side.PLAYER)
        self.assertEqual(after.player, state.player)

    def test_pass_lets_forward_through_wall_once(self):
        mid = _card("m", Position.MID)
        weak = _card("w", Position.FWD, attack=2)
        strong = _card("s", Position.FWD, attack=6)
        state = _make_state(board=[mid, weak, strong], opp_board=[_card("d", Position.DEF)])
        passed = pass_ball(state, Side.PLAYER)
        self.assertFalse(passed.player.board[0].can_attack)
        self.assertTrue(passed.player.board[2].bypass_defenders_once)
        self.assertFalse(passed.player.board[1].bypass_defenders_once)

        shot = attack(passed, Side.PLAYER, 2, TargetType.HERO)
        self.assertEqual(shot.opponent.hero.hp, 294)
        self.assertFalse(shot.player.board[2].bypass_defenders_once)

    def test_pass_needs_midfielder_and_forward(self):
        state = _make_state(board=[_card("m", Position.MID)])
        after = pass_ball(state, Side.PLAYER)
        self.assertEqual(after.player, state.player)


# ---------------------------------------------------------------------------
# Legal actions, dispatch, termination
# ---------------------------------------------------------------------------

class TestLegalActions(unittest.TestCase):
    def test_empty_state_only_end_turn(self):
        self.assertEqual(get_legal_actions(_make_state(mana=0)), [EndTurn()])

    def test_walled_goalkeeper_not_offered(self):
        state = _make_state(board=[_card("f", Position.FWD)], opp_board=[_card("d", Position.DEF)])
        actions = get_legal_actions(state)
        self.assertNotIn(AttackHero(attacker_index=0), actions)
        self.assertIn(AttackMinion(attacker_index=0, target_index=0), actions)

    def test_every_legal_action_changes_state(self):
        board = [_card("m", Position.MID), _card("f", Position.FWD)]
        state = _make_state(
            hand=[_spell(), _card("x", Position.MID)], board=board,
            opp_board=[_card("t", Position.MID)], deck=[_spell()],
        )
        for action in get_legal_actions(state):
            if isinstance(action, EndTurn):
                continue
            after = apply_action(state, Side.PLAYER, action)
            self.assertTrue(
                after.player != state.player or after.opponent != state.opponent,
                f"{action} was rejected",
            )

    def test_no_actions_when_over(self):
        state = replace(_make_state(), winner=DRAW)
        self.assertEqual(get_legal_actions(state), [])


class TestApplyAction(unittest.TestCase):
    def test_end_turn_dispatch(self):
        after = apply_action(_make_state(), Side.PLAYER, EndTurn())
        self.assertEqual(after.active, Side.OPPONENT)

    def test_end_turn_out_of_turn(self):
        state = _make_state()
        after = apply_action(state, Side.OPPONENT, EndTurn())
        self.assertEqual(after.active, Side.PLAYER)

    def test_unknown_action(self):
        with self.assertRaises(MalformedActionError):
            apply_action(_make_state(), Side.PLAYER, "shoot")

    def test_terminal_state_is_frozen(self):
        state = replace(
            _make_state(hand=[_spell()], board=[_card("f", Position.FWD)]),
            winner=Side.OPPONENT,
        )
        for action in (PlayCard(0), AttackHero(0), HeroPower(), PassBall(), EndTurn()):
            after = apply_action(state, Side.PLAYER, action)
            self.assertIs(after, state)


if __name__ == "__main__":
    unittest.main()
