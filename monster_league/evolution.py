"""Evolution rules: per-rarity caps, point multipliers and devolution."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal

from monster_league.config import ScoringConfig
from monster_league.models import RarityTier

DEFAULT_CONFIG = ScoringConfig()

_NOISE = Decimal("1e-9")


def evolution_cap(tier: RarityTier, config: ScoringConfig = DEFAULT_CONFIG) -> int:
    return config.evolution_caps.get(tier.value, 0)


def point_multiplier(
    tier: RarityTier, level: int, config: ScoringConfig = DEFAULT_CONFIG,
) -> float:
    """Multiplier applied to base points.

    Mythics are flat. Everything else climbs the shared step table and stops
    at its rarity's cap.
    """
    if tier == RarityTier.MYTHIC:
        return config.mythic_multiplier
    step = max(0, min(level, evolution_cap(tier, config)))
    return config.level_multipliers[step]


def round_points(value: float) -> int:
    """Round half away from zero; float noise below 1e-9 is ignored."""
    exact = Decimal(repr(value)).quantize(_NOISE)
    return int(exact.quantize(Decimal(1), rounding=ROUND_HALF_UP))


def chip_evolve(
    tier: RarityTier, level: int, config: ScoringConfig = DEFAULT_CONFIG,
) -> int:
    if tier == RarityTier.MYTHIC:
        return level
    return min(level + 1, evolution_cap(tier, config))


@dataclass(frozen=True)
class FormOutcome:
    level: int
    blank_streak: int
    reason: str | None = None


def apply_form(
    tier: RarityTier,
    level: int,
    blank_streak: int,
    is_blank: bool,
    is_big_fail: bool,
    config: ScoringConfig = DEFAULT_CONFIG,
) -> FormOutcome:
    """Update the blank streak and devolve on poor form.

    A big fail drops one level at once. Otherwise the streak grows on blanks
    and resets on anything better; hitting the limit drops one level and
    clears the streak. Mythics and level-0 monsters keep counting but never
    devolve.
    """
    streak = blank_streak + 1 if is_blank else 0
    can_devolve = tier != RarityTier.MYTHIC and level > 0

    if not can_devolve:
        return FormOutcome(level=level, blank_streak=streak)

    if is_big_fail:
        return FormOutcome(
            level=level - 1,
            blank_streak=0,
            reason="Devolved after a big fail gameweek",
        )
    if streak >= config.blank_streak_limit:
        return FormOutcome(
            level=level - 1,
            blank_streak=0,
            reason=f"Devolved after {streak} consecutive blank gameweeks",
        )
    return FormOutcome(level=level, blank_streak=streak)
