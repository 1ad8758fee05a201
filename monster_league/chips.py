"""Chip conditions – decorator-based registry, evaluation and resolution."""

from __future__ import annotations

import logging
import re
from dataclasses import replace
from datetime import datetime
from typing import Callable

from monster_league.cards import normalize_rarity
from monster_league.models import (
    ChipAssignment, GameweekPerformance, MonsterRecord, RarityTier, UserChip,
)
from monster_league.points import FULL_APPEARANCE_MINUTES

logger = logging.getLogger(__name__)

ConditionHandler = Callable[[GameweekPerformance, int, int], bool]

# code -> (handler, default threshold)
CONDITION_REGISTRY: dict[str, tuple[ConditionHandler, int]] = {}

RARITY_ORDER: tuple[RarityTier, ...] = (
    RarityTier.COMMON,
    RarityTier.RARE,
    RarityTier.EPIC,
    RarityTier.LEGENDARY,
    RarityTier.MYTHIC,
)


def register_condition(code: str, default_threshold: int):
    """Decorator to register a chip condition under ``code``."""
    def decorator(fn: ConditionHandler) -> ConditionHandler:
        CONDITION_REGISTRY[code] = (fn, default_threshold)
        return fn
    return decorator


def normalize_condition(code: str) -> str:
    return re.sub(r"[\s\-]+", "_", (code or "").strip().upper())


# ---------------------------------------------------------------------------
# Conditions
# ---------------------------------------------------------------------------

@register_condition("GOAL_SURGE", 1)
def _goal_surge(perf: GameweekPerformance, points: int, threshold: int) -> bool:
    return perf.goals >= threshold


@register_condition("PLAYMAKER", 2)
def _playmaker(perf: GameweekPerformance, points: int, threshold: int) -> bool:
    return perf.goals + perf.assists >= threshold


@register_condition("WALL", FULL_APPEARANCE_MINUTES)
def _wall(perf: GameweekPerformance, points: int, threshold: int) -> bool:
    """Clean sheet while playing at least ``threshold`` minutes."""
    return perf.clean_sheet and perf.minutes >= threshold


@register_condition("HEROIC_HAUL", 12)
def _heroic_haul(perf: GameweekPerformance, points: int, threshold: int) -> bool:
    return points >= threshold


@register_condition("STEADY_FORM", 5)
def _steady_form(perf: GameweekPerformance, points: int, threshold: int) -> bool:
    return points >= threshold


# ---------------------------------------------------------------------------
# Evaluation
# ---------------------------------------------------------------------------

def evaluate_chip(
    chip: UserChip,
    perf: GameweekPerformance | None,
    base_points: int,
) -> bool:
    """True when the chip's condition holds. No performance always fails."""
    if perf is None:
        return False
    code = normalize_condition(chip.condition_type)
    entry = CONDITION_REGISTRY.get(code)
    if entry is None:
        logger.warning(
            "Chip %s has unknown condition %r; treating as failed",
            chip.id, chip.condition_type,
        )
        return False
    handler, default_threshold = entry
    threshold = chip.threshold if chip.threshold is not None else default_threshold
    return handler(perf, base_points, threshold)


def resolve_assignment(
    assignment: ChipAssignment, success: bool, now: datetime,
) -> ChipAssignment:
    """Mark an assignment resolved and charge the chip.

    Success consumes the chip outright. Failure costs one try; the chip is
    only consumed once no tries remain.
    """
    chip = assignment.chip
    if success:
        remaining = 0
    else:
        remaining = max(chip.remaining_tries - 1, 0)
    consumed = remaining == 0
    chip = replace(
        chip,
        remaining_tries=remaining,
        is_consumed=consumed,
        consumed_at=now if consumed else chip.consumed_at,
    )
    return replace(
        assignment, chip=chip, resolved_at=now, was_successful=success,
    )


def chip_is_eligible(chip: UserChip, monster: MonsterRecord) -> bool:
    """Whether ``chip`` may be attached to ``monster`` (rarity band, positions)."""
    if chip.is_consumed or chip.remaining_tries <= 0:
        return False
    rank = RARITY_ORDER.index(normalize_rarity(monster.rarity))
    if chip.min_rarity and rank < RARITY_ORDER.index(normalize_rarity(chip.min_rarity)):
        return False
    if chip.max_rarity and rank > RARITY_ORDER.index(normalize_rarity(chip.max_rarity)):
        return False
    if chip.allowed_positions and monster.position not in chip.allowed_positions:
        return False
    return True
