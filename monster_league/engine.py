"""Match initialization, turn machinery and win condition checks."""

from __future__ import annotations

import logging
import random
from dataclasses import replace
from typing import Sequence

from monster_league.cards import (
    build_hero, build_monster_card, create_spell_cards, placeholder_hero,
)
from monster_league.config import BattleRules
from monster_league.models import (
    DRAW, BattleCard, BattleState, Keyword, MonsterRecord, PlayerState,
    Position, Side, Winner,
)

logger = logging.getLogger(__name__)

DEFAULT_RULES = BattleRules()


# ---------------------------------------------------------------------------
# Deck building
# ---------------------------------------------------------------------------

def auto_pick_xi(
    outfield: Sequence[MonsterRecord], size: int = 11,
) -> list[MonsterRecord]:
    """Top ``size`` monsters by stat total; stable, so ties keep roster order."""
    if len(outfield) <= size:
        return list(outfield)
    ranked = sorted(outfield, key=lambda m: m.stat_total, reverse=True)
    return ranked[:size]


def shuffle(cards: Sequence[BattleCard], rng: random.Random) -> list[BattleCard]:
    """Fisher–Yates shuffle returning a new list."""
    deck = list(cards)
    for i in range(len(deck) - 1, 0, -1):
        j = rng.randint(0, i)
        deck[i], deck[j] = deck[j], deck[i]
    return deck


def build_deck(
    roster: Sequence[MonsterRecord],
    rng: random.Random,
    rules: BattleRules = DEFAULT_RULES,
) -> list[BattleCard]:
    outfield = [m for m in roster if m.position != Position.GK]
    xi = auto_pick_xi(outfield, rules.squad_size)
    cards: list[BattleCard] = [build_monster_card(m, rng) for m in xi]
    cards.extend(create_spell_cards(rng, rules.spell_count))
    return shuffle(cards, rng)


def _new_player(
    key: Side,
    number: int,
    roster: Sequence[MonsterRecord],
    rng: random.Random,
    rules: BattleRules,
) -> PlayerState:
    hero = build_hero(roster, hp=rules.hero_hp)
    if hero is None:
        logger.debug("No goalkeeper for player %d, using placeholder hero", number)
        hero = placeholder_hero(number, hp=rules.hero_hp)
    return PlayerState(
        key=key,
        label=f"Player {number}",
        hero=hero,
        deck=tuple(build_deck(roster, rng, rules)),
    )


# ---------------------------------------------------------------------------
# Turn helpers
# ---------------------------------------------------------------------------

def draw_card(p: PlayerState, n: int = 1) -> PlayerState:
    """Move up to ``n`` cards from the front of the deck to the hand.

    Drawing from an empty deck is a no-op.
    """
    n = min(n, len(p.deck))
    if n <= 0:
        return p
    return replace(p, deck=p.deck[n:], hand=p.hand + p.deck[:n])


def start_turn(
    p: PlayerState, turn: int, rules: BattleRules = DEFAULT_RULES,
) -> PlayerState:
    max_mana = min(rules.mana_cap, turn)
    # readiness is judged on the sickness carried into this turn
    board = tuple(
        replace(
            m,
            has_summoning_sickness=False,
            can_attack=m.position != Position.DEF and (
                not m.has_summoning_sickness or m.has_keyword(Keyword.RUSH)
            ),
        )
        for m in p.board
    )
    return draw_card(replace(p, max_mana=max_mana, mana=max_mana, board=board))


def start_turn_for_active(
    state: BattleState, rules: BattleRules = DEFAULT_RULES,
) -> BattleState:
    started = start_turn(state.active_player(), state.turn, rules)
    if state.active == Side.PLAYER:
        return replace(state, player=started)
    return replace(state, opponent=started)


def check_winner(state: BattleState) -> Winner:
    player_dead = state.player.hero.hp <= 0
    opponent_dead = state.opponent.hero.hp <= 0
    if player_dead and opponent_dead:
        return DRAW
    if player_dead:
        return Side.OPPONENT
    if opponent_dead:
        return Side.PLAYER
    return None


def with_winner(state: BattleState) -> BattleState:
    winner = check_winner(state)
    if winner is None or state.winner is not None:
        return state
    return replace(state, winner=winner)


def end_turn(state: BattleState, rules: BattleRules = DEFAULT_RULES) -> BattleState:
    """Hand the turn to the other side.

    ``turn`` counts rounds: it only advances when play returns to ``player``.
    """
    if state.is_over:
        return state
    nxt = state.active.other
    switched = replace(
        state,
        active=nxt,
        turn=state.turn + (1 if nxt == Side.PLAYER else 0),
        log=state.log + (f"{state.side(nxt).label}'s turn begins.",),
    )
    return start_turn_for_active(switched, rules)


# ---------------------------------------------------------------------------
# Match creation
# ---------------------------------------------------------------------------

def init_match(
    roster_a: Sequence[MonsterRecord],
    roster_b: Sequence[MonsterRecord],
    rng: random.Random | None = None,
    rules: BattleRules = DEFAULT_RULES,
    seed: int | None = None,
) -> BattleState:
    """Create the opening state of a match between two rosters.

    Goalkeepers become heroes and never enter a deck. Each deck holds the
    outfield XI plus sampled spells. Both players draw an opening hand, then
    ``player`` takes the first turn.
    """
    if rng is None:
        rng = random.Random(seed)

    player = _new_player(Side.PLAYER, 1, roster_a, rng, rules)
    opponent = _new_player(Side.OPPONENT, 2, roster_b, rng, rules)

    for _ in range(rules.opening_hand):
        player = draw_card(player)
        opponent = draw_card(opponent)

    state = BattleState(
        player=player,
        opponent=opponent,
        active=Side.PLAYER,
        turn=1,
        winner=None,
        log=("Battle started. Player 1's turn.",),
    )
    state = start_turn_for_active(state, rules)
    return replace(state, log=state.log + ("Player 1's first turn begins.",))
