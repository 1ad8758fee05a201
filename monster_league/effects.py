"""Spell effects – decorator-based registry."""

from __future__ import annotations

from dataclasses import replace
from typing import Callable, TYPE_CHECKING

from monster_league.models import HeroState, Side, SpellEffect

if TYPE_CHECKING:
    from monster_league.models import BattleSpellCard, BattleState, PlayerState

EffectHandler = Callable[["BattleState", "Side", "BattleSpellCard"], "BattleState"]

EFFECT_REGISTRY: dict[SpellEffect, EffectHandler] = {}


def register_effect(effect: SpellEffect):
    """Decorator to register a spell effect handler."""
    def decorator(fn: EffectHandler) -> EffectHandler:
        EFFECT_REGISTRY[effect] = fn
        return fn
    return decorator


def resolve_effect(
    state: "BattleState", caster: "Side", spell: "BattleSpellCard",
) -> "BattleState":
    handler = EFFECT_REGISTRY.get(spell.effect)
    if handler is None:
        raise ValueError(f"Unknown spell effect: {spell.effect}")
    return handler(state, caster, spell)


# ---------------------------------------------------------------------------
# Utility
# ---------------------------------------------------------------------------

def damage_hero(hero: HeroState, amount: int) -> HeroState:
    """Apply damage to armor first, then hp."""
    absorbed = min(hero.armor, max(amount, 0))
    remaining = amount - absorbed
    return replace(
        hero,
        armor=hero.armor - absorbed,
        hp=hero.hp - remaining if remaining > 0 else hero.hp,
    )


def with_side(
    state: "BattleState", key: "Side", player: "PlayerState", *lines: str,
) -> "BattleState":
    """Return state with one side replaced and log lines appended."""
    if key == Side.PLAYER:
        return replace(state, player=player, log=state.log + lines)
    return replace(state, opponent=player, log=state.log + lines)


# ---------------------------------------------------------------------------
# Spell effects
# ---------------------------------------------------------------------------

@register_effect(SpellEffect.DAMAGE_HERO)
def _damage_hero(
    state: "BattleState", caster: "Side", spell: "BattleSpellCard",
) -> "BattleState":
    target = state.side(caster.other)
    target = replace(target, hero=damage_hero(target.hero, spell.value))
    label = state.side(caster).label
    return with_side(
        state, caster.other, target,
        f"{label} cast {spell.name} for {spell.value} hero damage",
    )


@register_effect(SpellEffect.SHIELD_HERO)
def _shield_hero(
    state: "BattleState", caster: "Side", spell: "BattleSpellCard",
) -> "BattleState":
    me = state.side(caster)
    me = replace(me, hero=replace(me.hero, armor=me.hero.armor + spell.value))
    return with_side(
        state, caster, me,
        f"{me.label} cast {spell.name} for {spell.value} armor",
    )
