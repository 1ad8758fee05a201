"""Card builder: persisted monsters -> battle cards and goalkeeper heroes."""

from __future__ import annotations

import random
from dataclasses import replace
from typing import Iterable

from monster_league.models import (
    BattleMonsterCard, BattleSpellCard, HeroState, Keyword, MonsterRecord,
    Position, RarityTier, SpellEffect,
)

MANA_BY_RARITY: dict[RarityTier, int] = {
    RarityTier.COMMON: 1,
    RarityTier.RARE: 2,
    RarityTier.EPIC: 3,
    RarityTier.LEGENDARY: 4,
    RarityTier.MYTHIC: 5,
}

# Checked in order; first substring hit wins.
_RARITY_MARKERS: tuple[tuple[str, RarityTier], ...] = (
    ("MYTH", RarityTier.MYTHIC),
    ("LEGEND", RarityTier.LEGENDARY),
    ("EPIC", RarityTier.EPIC),
    ("RARE", RarityTier.RARE),
)

RUSH_ATTACK_THRESHOLD = 8
RUSH_STAT_THRESHOLD = 20


def new_id(prefix: str, rng: random.Random) -> str:
    alphabet = "abcdefghijklmnopqrstuvwxyz0123456789"
    return f"{prefix}_{''.join(rng.choice(alphabet) for _ in range(8))}"


def normalize_rarity(rarity: str | None) -> RarityTier:
    upper = (rarity or "").upper().strip()
    for marker, tier in _RARITY_MARKERS:
        if marker in upper:
            return tier
    return RarityTier.COMMON


def mana_from_rarity(tier: RarityTier) -> int:
    return MANA_BY_RARITY[tier]


def art_url_for(monster: MonsterRecord) -> str:
    if monster.art_base_path:
        return monster.art_base_path
    if monster.template_code:
        return f"/cards/base/{monster.template_code}.png"
    return "/cards/base/test.png"


def keywords_for(monster: MonsterRecord) -> tuple[Keyword, ...]:
    if monster.position == Position.DEF:
        return (Keyword.TAUNT,)
    if monster.position == Position.FWD:
        if (monster.base_attack >= RUSH_ATTACK_THRESHOLD
                or monster.stat_total >= RUSH_STAT_THRESHOLD):
            return (Keyword.RUSH,)
    return ()


def build_monster_card(
    monster: MonsterRecord, rng: random.Random | None = None,
) -> BattleMonsterCard:
    rng = rng or random.Random()
    tier = normalize_rarity(monster.rarity)
    evo_bonus = monster.evolution_level // 2

    attack = monster.base_attack + evo_bonus
    if tier in (RarityTier.LEGENDARY, RarityTier.MYTHIC):
        attack += 1

    health = monster.base_defense + 5 + evo_bonus
    if tier == RarityTier.MYTHIC:
        health += 3

    return BattleMonsterCard(
        id=new_id("card", rng),
        source_monster_id=monster.id,
        name=monster.display_name,
        position=monster.position,
        rarity_tier=tier,
        mana_cost=mana_from_rarity(tier),
        attack=attack,
        health=health,
        max_health=health,
        magic=monster.base_magic,
        keywords=keywords_for(monster),
        has_summoning_sickness=True,
        can_attack=False,
        display_name=monster.display_name,
        real_player_name=monster.real_player_name,
        club=monster.club,
        rarity=monster.rarity,
        evolution_level=monster.evolution_level,
        art_url=art_url_for(monster),
    )


# ---------------------------------------------------------------------------
# Heroes
# ---------------------------------------------------------------------------

def build_hero(
    roster: Iterable[MonsterRecord], hp: int = 300,
) -> HeroState | None:
    """Build a hero from the strongest goalkeeper, or None without one."""
    best: MonsterRecord | None = None
    for m in roster:
        if m.position != Position.GK:
            continue
        if best is None or (
            m.base_defense + m.evolution_level
            > best.base_defense + best.evolution_level
        ):
            best = m
    if best is None:
        return None
    return HeroState(
        name=best.display_name or best.real_player_name,
        hp=hp,
        max_hp=hp,
        armor=0,
        art_url=art_url_for(best),
    )


def placeholder_hero(number: int, hp: int = 300) -> HeroState:
    return HeroState(name=f"Mysterious GK {number}", hp=hp, max_hp=hp, armor=0)


# ---------------------------------------------------------------------------
# Spells
# ---------------------------------------------------------------------------

SPELL_POOL: tuple[BattleSpellCard, ...] = (
    BattleSpellCard(
        id="power_shot",
        name="Power Shot",
        description="Deal 3 damage to the enemy Goalkeeper.",
        mana_cost=2,
        effect=SpellEffect.DAMAGE_HERO,
        value=3,
    ),
    BattleSpellCard(
        id="wall_of_roots",
        name="Wall of Roots",
        description="Give your Goalkeeper 3 armor this turn.",
        mana_cost=2,
        effect=SpellEffect.SHIELD_HERO,
        value=3,
    ),
)


def create_spell_cards(
    rng: random.Random, count: int = 4,
) -> list[BattleSpellCard]:
    """Sample spells uniformly with replacement; duplicates are allowed."""
    spells: list[BattleSpellCard] = []
    for _ in range(count):
        pick = rng.choice(SPELL_POOL)
        spells.append(replace(pick, id=new_id("spell", rng)))
    return spells
