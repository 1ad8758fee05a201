"""JSON-friendly dict conversion for battle state and gameweek results."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from monster_league.models import (
    DRAW, BattleCard, BattleMonsterCard, BattleSpellCard, BattleState,
    GameweekResult, HeroState, Keyword, PlayerState, Position, RarityTier,
    Side, SpellEffect, Winner,
)


def card_to_dict(card: BattleCard) -> dict[str, Any]:
    if isinstance(card, BattleSpellCard):
        return {
            "kind": card.kind,
            "id": card.id,
            "name": card.name,
            "description": card.description,
            "manaCost": card.mana_cost,
            "effect": card.effect.value,
            "value": card.value,
        }
    return {
        "kind": card.kind,
        "id": card.id,
        "sourceMonsterId": card.source_monster_id,
        "name": card.name,
        "position": card.position.value,
        "rarityTier": card.rarity_tier.value,
        "manaCost": card.mana_cost,
        "attack": card.attack,
        "health": card.health,
        "maxHealth": card.max_health,
        "magic": card.magic,
        "keywords": [k.value for k in card.keywords],
        "hasSummoningSickness": card.has_summoning_sickness,
        "canAttack": card.can_attack,
        "bypassDefendersOnce": card.bypass_defenders_once,
        "displayName": card.display_name,
        "realPlayerName": card.real_player_name,
        "club": card.club,
        "rarity": card.rarity,
        "evolutionLevel": card.evolution_level,
        "artUrl": card.art_url,
    }


def card_from_dict(raw: dict[str, Any]) -> BattleCard:
    kind = raw.get("kind")
    if kind == "SPELL":
        return BattleSpellCard(
            id=raw["id"],
            name=raw["name"],
            description=raw.get("description", ""),
            mana_cost=raw["manaCost"],
            effect=SpellEffect(raw["effect"]),
            value=raw["value"],
        )
    if kind != "MONSTER":
        raise ValueError(f"Card {raw.get('id')}: unknown kind '{kind}'")
    return BattleMonsterCard(
        id=raw["id"],
        source_monster_id=raw["sourceMonsterId"],
        name=raw["name"],
        position=Position(raw["position"]),
        rarity_tier=RarityTier(raw["rarityTier"]),
        mana_cost=raw["manaCost"],
        attack=raw["attack"],
        health=raw["health"],
        max_health=raw["maxHealth"],
        magic=raw.get("magic", 0),
        keywords=tuple(Keyword(k) for k in raw.get("keywords", ())),
        has_summoning_sickness=raw.get("hasSummoningSickness", True),
        can_attack=raw.get("canAttack", False),
        bypass_defenders_once=raw.get("bypassDefendersOnce", False),
        display_name=raw.get("displayName"),
        real_player_name=raw.get("realPlayerName"),
        club=raw.get("club"),
        rarity=raw.get("rarity"),
        evolution_level=raw.get("evolutionLevel", 0),
        art_url=raw.get("artUrl"),
    )


def hero_to_dict(hero: HeroState) -> dict[str, Any]:
    return {
        "name": hero.name,
        "hp": hero.hp,
        "maxHp": hero.max_hp,
        "armor": hero.armor,
        "artUrl": hero.art_url,
    }


def player_to_dict(p: PlayerState) -> dict[str, Any]:
    return {
        "key": p.key.value,
        "label": p.label,
        "deck": [card_to_dict(c) for c in p.deck],
        "hand": [card_to_dict(c) for c in p.hand],
        "board": [card_to_dict(c) for c in p.board],
        "hero": hero_to_dict(p.hero),
        "mana": p.mana,
        "maxMana": p.max_mana,
    }


def player_from_dict(raw: dict[str, Any]) -> PlayerState:
    board = tuple(card_from_dict(c) for c in raw.get("board", ()))
    for card in board:
        if not isinstance(card, BattleMonsterCard):
            raise ValueError(f"Board card {card.id} is not a monster")
    hero = raw["hero"]
    return PlayerState(
        key=Side(raw["key"]),
        label=raw["label"],
        hero=HeroState(
            name=hero["name"],
            hp=hero["hp"],
            max_hp=hero.get("maxHp", hero["hp"]),
            armor=hero.get("armor", 0),
            art_url=hero.get("artUrl"),
        ),
        deck=tuple(card_from_dict(c) for c in raw.get("deck", ())),
        hand=tuple(card_from_dict(c) for c in raw.get("hand", ())),
        board=board,  # type: ignore[arg-type]
        mana=raw.get("mana", 0),
        max_mana=raw.get("maxMana", 0),
    )


def _winner_to_str(winner: Winner) -> str | None:
    if winner is None:
        return None
    if isinstance(winner, Side):
        return winner.value
    return DRAW


def _winner_from_str(raw: str | None) -> Winner:
    if raw is None:
        return None
    if raw == DRAW:
        return DRAW
    return Side(raw)


def state_to_dict(state: BattleState) -> dict[str, Any]:
    return {
        "player": player_to_dict(state.player),
        "opponent": player_to_dict(state.opponent),
        "active": state.active.value,
        "turn": state.turn,
        "winner": _winner_to_str(state.winner),
        "log": list(state.log),
    }


def state_from_dict(raw: dict[str, Any]) -> BattleState:
    return BattleState(
        player=player_from_dict(raw["player"]),
        opponent=player_from_dict(raw["opponent"]),
        active=Side(raw["active"]),
        turn=raw["turn"],
        winner=_winner_from_str(raw.get("winner")),
        log=tuple(raw.get("log", ())),
    )


# ---------------------------------------------------------------------------
# Gameweek results
# ---------------------------------------------------------------------------

def _iso(value: datetime | None) -> str | None:
    return value.isoformat() if value else None


def result_to_dict(result: GameweekResult) -> dict[str, Any]:
    """Flatten a scoring result into the rows the persistence layer writes."""
    return {
        "gameweek": result.gameweek,
        "scores": [
            {"userId": r.user_id, "gameweek": r.gameweek, "points": r.points}
            for r in result.score_rows()
        ],
        "monsters": [
            {
                "id": m.id,
                "evolutionLevel": m.evolution_level,
                "blankStreak": m.blank_streak,
                "totalGoals": m.total_goals,
                "totalAssists": m.total_assists,
                "totalCleanSheets": m.total_clean_sheets,
                "totalFantasyPoints": m.total_fantasy_points,
            }
            for m in result.monster_updates
        ],
        "monsterScores": [
            {
                "monsterId": s.monster_id,
                "userId": s.user_id,
                "basePoints": s.base_points,
                "multiplier": s.multiplier,
                "finalPoints": s.final_points,
                "isBlank": s.is_blank,
                "isBigFail": s.is_big_fail,
                "played": s.played,
            }
            for s in result.monster_scores
        ],
        "evolutionEvents": [
            {
                "monsterId": e.monster_id,
                "gameweek": e.gameweek,
                "oldLevel": e.old_level,
                "newLevel": e.new_level,
                "reason": e.reason,
            }
            for e in result.evolution_events
        ],
        "chipResolutions": [
            {
                "assignmentId": a.id,
                "chipId": a.chip.id,
                "monsterId": a.monster_id,
                "wasSuccessful": a.was_successful,
                "resolvedAt": _iso(a.resolved_at),
                "remainingTries": a.chip.remaining_tries,
                "isConsumed": a.chip.is_consumed,
                "consumedAt": _iso(a.chip.consumed_at),
            }
            for a in result.chip_resolutions
        ],
    }
