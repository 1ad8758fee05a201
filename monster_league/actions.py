"""Actions – types, legal-move generation, and application.

Every action returns a new ``BattleState``. Illegal moves (not enough mana,
full board, blocked target, out of turn) never raise: they come back as the
same state, usually with a log line explaining the rejection. Malformed input
such as an out-of-range index raises ``MalformedActionError``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from enum import Enum
from typing import Union

from monster_league.config import BattleRules
from monster_league.effects import damage_hero, resolve_effect, with_side
from monster_league.engine import DEFAULT_RULES, draw_card, end_turn, with_winner
from monster_league.models import (
    BattleMonsterCard, BattleSpellCard, BattleState, Keyword, PlayerState,
    Position, Side,
)

logger = logging.getLogger(__name__)


class MalformedActionError(ValueError):
    """Raised for input the HTTP boundary should have rejected."""


class TargetType(str, Enum):
    HERO = "HERO"
    MINION = "MINION"


# ---------------------------------------------------------------------------
# Action types (frozen dataclasses)
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class PlayCard:
    hand_index: int


@dataclass(frozen=True)
class AttackHero:
    attacker_index: int


@dataclass(frozen=True)
class AttackMinion:
    attacker_index: int
    target_index: int


@dataclass(frozen=True)
class HeroPower:
    pass


@dataclass(frozen=True)
class PassBall:
    pass


@dataclass(frozen=True)
class EndTurn:
    pass


Action = Union[PlayCard, AttackHero, AttackMinion, HeroPower, PassBall, EndTurn]


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _reject(state: BattleState, message: str) -> BattleState:
    logger.debug("Rejected action: %s", message)
    return replace(state, log=state.log + (message,))


def _guard(state: BattleState, side: Side) -> BattleState | None:
    """Return a rejection state when ``side`` may not act, else None."""
    if state.is_over:
        return state
    if side != state.active:
        return _reject(state, f"It is not {state.side(side).label}'s turn.")
    return None


def _check_index(seq: tuple, index: int, what: str) -> None:
    if not isinstance(index, int) or isinstance(index, bool):
        raise MalformedActionError(f"{what} must be an integer, got {index!r}")
    if index < 0 or index >= len(seq):
        raise MalformedActionError(f"{what} {index} out of range [0,{len(seq)})")


def _has_position(board: tuple[BattleMonsterCard, ...], position: Position) -> bool:
    return any(m.position == position for m in board)


def _has_taunt(board: tuple[BattleMonsterCard, ...]) -> bool:
    return any(m.has_keyword(Keyword.TAUNT) for m in board)


def _put_sides(
    state: BattleState,
    side: Side,
    acting: PlayerState,
    other: PlayerState,
    lines: list[str],
) -> BattleState:
    if side == Side.PLAYER:
        nxt = replace(state, player=acting, opponent=other)
    else:
        nxt = replace(state, player=other, opponent=acting)
    return replace(nxt, log=state.log + tuple(lines))


# ---------------------------------------------------------------------------
# PLAY_CARD
# ---------------------------------------------------------------------------

def play_card(
    state: BattleState,
    side: Side | str,
    hand_index: int,
    rules: BattleRules = DEFAULT_RULES,
) -> BattleState:
    side = Side(side)
    blocked = _guard(state, side)
    if blocked is not None:
        return blocked

    acting = state.side(side)
    _check_index(acting.hand, hand_index, "hand_index")
    card = acting.hand[hand_index]

    if card.mana_cost > acting.mana:
        return _reject(
            state,
            f"{acting.label} does not have enough mana to play {card.name}.",
        )

    if isinstance(card, BattleMonsterCard):
        if len(acting.board) >= rules.board_limit:
            return _reject(
                state,
                f"{acting.label} tried to play {card.name} but already has the "
                f"maximum {rules.board_limit} monsters on the pitch.",
            )
        if card.position == Position.FWD and not _has_position(acting.board, Position.MID):
            return _reject(
                state,
                f"{acting.label} tried to play a Forward but has no Midfielder on the pitch.",
            )

    hand = acting.hand[:hand_index] + acting.hand[hand_index + 1:]
    acting = replace(acting, hand=hand, mana=acting.mana - card.mana_cost)

    if isinstance(card, BattleMonsterCard):
        rush = card.has_keyword(Keyword.RUSH)
        monster = replace(
            card,
            has_summoning_sickness=not rush,
            can_attack=card.position != Position.DEF and rush,
        )
        acting = replace(acting, board=acting.board + (monster,))
        return with_side(
            state, side, acting,
            f"{acting.label} played {monster.name} ({monster.position.value})",
        )

    assert isinstance(card, BattleSpellCard)
    paid = with_side(state, side, acting)
    return with_winner(resolve_effect(paid, side, card))


# ---------------------------------------------------------------------------
# ATTACK
# ---------------------------------------------------------------------------

def attack(
    state: BattleState,
    side: Side | str,
    attacker_index: int,
    target: TargetType | str,
    target_index: int | None = None,
    rules: BattleRules = DEFAULT_RULES,
) -> BattleState:
    side = Side(side)
    target = TargetType(target)
    blocked = _guard(state, side)
    if blocked is not None:
        return blocked

    acting = state.side(side)
    defending = state.side(side.other)
    _check_index(acting.board, attacker_index, "attacker_index")
    attacker = acting.board[attacker_index]

    if not attacker.can_attack:
        return _reject(state, f"{acting.label}'s {attacker.name} cannot attack right now.")

    if target == TargetType.HERO:
        return _attack_hero(state, side, acting, defending, attacker_index, rules)

    if target_index is None:
        raise MalformedActionError("target_index is required for a MINION attack")
    _check_index(defending.board, target_index, "target_index")
    return _attack_minion(
        state, side, acting, defending, attacker_index, target_index, rules,
    )


def _attack_hero(
    state: BattleState,
    side: Side,
    acting: PlayerState,
    defending: PlayerState,
    attacker_index: int,
    rules: BattleRules,
) -> BattleState:
    attacker = acting.board[attacker_index]
    lines: list[str] = []

    walled = rules.defender_wall and (
        _has_position(defending.board, Position.DEF) or _has_taunt(defending.board)
    )
    if walled and not attacker.bypass_defenders_once:
        return _reject(
            state,
            f"{acting.label}'s {attacker.name} tried to attack the Goalkeeper "
            f"but must attack a defender first.",
        )

    defending = replace(defending, hero=damage_hero(defending.hero, attacker.attack))
    lines.append(
        f"{acting.label}'s {attacker.name} hit {defending.label}'s GK "
        f"for {attacker.attack} damage"
    )

    if attacker.bypass_defenders_once:
        attacker = replace(attacker, bypass_defenders_once=False)
        lines.append(
            f"{acting.label}'s {attacker.name} used Pass to slip past the defensive wall!"
        )

    if attacker.position == Position.MID and rules.midfielder_counter_hit and defending.board:
        strongest = defending.board[0]
        for card in defending.board[1:]:
            if card.attack > strongest.attack:
                strongest = card
        attacker = replace(attacker, health=attacker.health - strongest.attack)
        lines.append(
            f"{acting.label}'s {attacker.name} is hit for {strongest.attack} damage by "
            f"{defending.label}'s {strongest.name} while shooting at goal."
        )

    board = list(acting.board)
    if attacker.position == Position.MID and rules.midfielder_dispossessed:
        lines.append(
            f"{acting.label}'s {attacker.name} is a Midfielder and is removed from "
            f"play after shooting at the Goalkeeper."
        )
        del board[attacker_index]
    elif attacker.health <= 0:
        del board[attacker_index]
    else:
        board[attacker_index] = replace(attacker, can_attack=False)

    acting = replace(acting, board=tuple(board))
    return with_winner(_put_sides(state, side, acting, defending, lines))


def _attack_minion(
    state: BattleState,
    side: Side,
    acting: PlayerState,
    defending: PlayerState,
    attacker_index: int,
    target_index: int,
    rules: BattleRules,
) -> BattleState:
    attacker = acting.board[attacker_index]
    target = defending.board[target_index]
    lines: list[str] = []

    if (rules.defender_priority
            and _has_position(defending.board, Position.DEF)
            and target.position != Position.DEF):
        return _reject(
            state,
            f"{acting.label}'s {attacker.name} must attack a defender while any "
            f"defenders are on the pitch.",
        )

    shielded = target.has_keyword(Keyword.TAUNT) or (
        rules.forward_ignores_defender and target.position == Position.DEF
    )
    target = replace(target, health=target.health - attacker.attack)
    if attacker.position == Position.FWD and shielded:
        lines.append(
            f"{acting.label}'s {attacker.name} is a Forward and takes no damage "
            f"from the defender."
        )
    else:
        attacker = replace(attacker, health=attacker.health - target.attack)

    lines.append(
        f"{acting.label}'s {attacker.name} traded with {defending.label}'s {target.name}"
    )

    defender_board = list(defending.board)
    if target.health <= 0:
        del defender_board[target_index]
    else:
        defender_board[target_index] = target

    attacker_board = list(acting.board)
    if attacker.health <= 0:
        del attacker_board[attacker_index]
    else:
        attacker_board[attacker_index] = replace(attacker, can_attack=False)

    acting = replace(acting, board=tuple(attacker_board))
    defending = replace(defending, board=tuple(defender_board))
    return with_winner(_put_sides(state, side, acting, defending, lines))


# ---------------------------------------------------------------------------
# HERO_POWER and PASS
# ---------------------------------------------------------------------------

def hero_power(
    state: BattleState, side: Side | str, rules: BattleRules = DEFAULT_RULES,
) -> BattleState:
    """Spend mana to draw cards."""
    side = Side(side)
    blocked = _guard(state, side)
    if blocked is not None:
        return blocked

    acting = state.side(side)
    if acting.mana < rules.hero_power_cost:
        return _reject(
            state,
            f"{acting.label} needs {rules.hero_power_cost} mana to use the Hero Power.",
        )
    paid = replace(acting, mana=acting.mana - rules.hero_power_cost)
    acting = draw_card(paid, rules.hero_power_draw)
    drawn = len(acting.hand) - len(paid.hand)
    return with_side(
        state, side, acting,
        f"{acting.label} used Hero Power and drew {drawn} card{'' if drawn == 1 else 's'}",
    )


def pass_ball(
    state: BattleState, side: Side | str, rules: BattleRules = DEFAULT_RULES,
) -> BattleState:
    """A ready midfielder spends its attack so the best forward can shoot past the wall once."""
    side = Side(side)
    blocked = _guard(state, side)
    if blocked is not None:
        return blocked

    acting = state.side(side)
    mid_index = next(
        (i for i, m in enumerate(acting.board)
         if m.position == Position.MID and m.can_attack),
        None,
    )
    fwd_index = None
    for i, m in enumerate(acting.board):
        if m.position != Position.FWD:
            continue
        if fwd_index is None or m.attack > acting.board[fwd_index].attack:
            fwd_index = i

    if mid_index is None or fwd_index is None:
        return _reject(
            state,
            f"{acting.label} tried to use Pass but needs a ready Midfielder and "
            f"a Forward on the pitch.",
        )

    board = list(acting.board)
    mid, fwd = board[mid_index], board[fwd_index]
    board[mid_index] = replace(mid, can_attack=False)
    board[fwd_index] = replace(fwd, bypass_defenders_once=True)
    acting = replace(acting, board=tuple(board))
    return with_side(
        state, side, acting,
        f"{acting.label}'s {mid.name} used PASS to {fwd.name}, letting them "
        f"shoot past the defenders once!",
    )


# ---------------------------------------------------------------------------
# Legal action generation
# ---------------------------------------------------------------------------

def get_legal_actions(
    state: BattleState, rules: BattleRules = DEFAULT_RULES,
) -> list[Action]:
    """Actions for the active side that would not be rejected."""
    if state.is_over:
        return []

    actions: list[Action] = []
    me = state.active_player()
    opp = state.inactive_player()

    for i, card in enumerate(me.hand):
        if card.mana_cost > me.mana:
            continue
        if isinstance(card, BattleMonsterCard):
            if len(me.board) >= rules.board_limit:
                continue
            if card.position == Position.FWD and not _has_position(me.board, Position.MID):
                continue
        actions.append(PlayCard(hand_index=i))

    opp_has_def = _has_position(opp.board, Position.DEF)
    walled = rules.defender_wall and (opp_has_def or _has_taunt(opp.board))
    for i, m in enumerate(me.board):
        if not m.can_attack:
            continue
        if not walled or m.bypass_defenders_once:
            actions.append(AttackHero(attacker_index=i))
        for j, t in enumerate(opp.board):
            if rules.defender_priority and opp_has_def and t.position != Position.DEF:
                continue
            actions.append(AttackMinion(attacker_index=i, target_index=j))

    if me.mana >= rules.hero_power_cost and me.deck:
        actions.append(HeroPower())

    ready_mid = any(m.position == Position.MID and m.can_attack for m in me.board)
    if ready_mid and _has_position(me.board, Position.FWD):
        actions.append(PassBall())

    actions.append(EndTurn())
    return actions


# ---------------------------------------------------------------------------
# Action application
# ---------------------------------------------------------------------------

def apply_action(
    state: BattleState,
    side: Side | str,
    action: Action,
    rules: BattleRules = DEFAULT_RULES,
) -> BattleState:
    match action:
        case PlayCard(hand_index=idx):
            return play_card(state, side, idx, rules)
        case AttackHero(attacker_index=idx):
            return attack(state, side, idx, TargetType.HERO, rules=rules)
        case AttackMinion(attacker_index=idx, target_index=target):
            return attack(state, side, idx, TargetType.MINION, target, rules=rules)
        case HeroPower():
            return hero_power(state, side, rules)
        case PassBall():
            return pass_ball(state, side, rules)
        case EndTurn():
            blocked = _guard(state, Side(side))
            if blocked is not None:
                return blocked
            return end_turn(state, rules)
        case _:
            raise MalformedActionError(f"Unknown action: {action}")
