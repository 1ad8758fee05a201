"""Tunable rule sets for battles and gameweek scoring."""

from __future__ import annotations

import json
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any


def _load_json(
    path: str | Path, overrides: dict[str, Any], cls: type,
) -> dict[str, Any]:
    path = Path(path)
    with open(path, encoding="utf-8") as f:
        raw = json.load(f)
    if not isinstance(raw, dict):
        raise ValueError(f"Config {path}: expected a JSON object")
    raw.update({k: v for k, v in overrides.items() if v is not None})
    known = {fld.name for fld in fields(cls)}
    unknown = sorted(set(raw) - known)
    if unknown:
        raise ValueError(f"Config {path}: unknown key(s) {', '.join(unknown)}")
    return raw


@dataclass(frozen=True)
class BattleRules:
    """Battle constants plus the rule switches that differ between engines.

    The defaults reproduce the server-side engine: defenders wall off the
    goalkeeper, midfielders leave the pitch after a shot on goal, and any
    defender on the pitch must be attacked first.
    """

    board_limit: int = 3
    mana_cap: int = 10
    hero_hp: int = 300
    opening_hand: int = 3
    squad_size: int = 11
    spell_count: int = 4
    hero_power_cost: int = 3
    hero_power_draw: int = 2

    defender_wall: bool = True
    defender_priority: bool = True
    midfielder_dispossessed: bool = True
    forward_ignores_defender: bool = True
    midfielder_counter_hit: bool = False

    @classmethod
    def from_json(cls, path: str | Path, **overrides: Any) -> "BattleRules":
        raw = _load_json(path, overrides, cls)
        rules = cls(**raw)
        rules.validate()
        return rules

    def validate(self) -> None:
        if self.board_limit < 1:
            raise ValueError(f"board_limit must be >= 1, got {self.board_limit}")
        if self.mana_cap < 1:
            raise ValueError(f"mana_cap must be >= 1, got {self.mana_cap}")
        if self.hero_hp < 1:
            raise ValueError(f"hero_hp must be >= 1, got {self.hero_hp}")
        if self.spell_count < 0 or self.opening_hand < 0:
            raise ValueError("spell_count and opening_hand must be non-negative")


# Client-side rule set: the goalkeeper is never walled off, only TAUNT spares
# a forward from counter damage, and a midfielder shooting at goal is hit by
# the strongest card on the defending board.
CLIENT_RULES = BattleRules(
    defender_wall=False,
    defender_priority=False,
    midfielder_dispossessed=False,
    forward_ignores_defender=False,
    midfielder_counter_hit=True,
)


@dataclass(frozen=True)
class ScoringConfig:
    blank_threshold: int = 2
    big_fail_threshold: int = 0
    blank_streak_limit: int = 3
    mythic_multiplier: float = 1.8
    level_multipliers: tuple[float, ...] = (1.0, 1.15, 1.35, 1.65, 2.0)
    evolution_caps: dict[str, int] = field(
        default_factory=lambda: {
            "COMMON": 1, "RARE": 2, "EPIC": 3, "LEGENDARY": 4, "MYTHIC": 0,
        }
    )
    default_chip_tries: int = 2

    @classmethod
    def from_json(cls, path: str | Path, **overrides: Any) -> "ScoringConfig":
        raw = _load_json(path, overrides, cls)
        if "level_multipliers" in raw and isinstance(raw["level_multipliers"], list):
            raw["level_multipliers"] = tuple(raw["level_multipliers"])
        config = cls(**raw)
        config.validate()
        return config

    def validate(self) -> None:
        if not self.level_multipliers or self.level_multipliers[0] != 1.0:
            raise ValueError("level_multipliers must start at 1.0")
        if any(b < a for a, b in zip(self.level_multipliers, self.level_multipliers[1:])):
            raise ValueError("level_multipliers must be non-decreasing")
        if self.blank_streak_limit < 1:
            raise ValueError(
                f"blank_streak_limit must be >= 1, got {self.blank_streak_limit}"
            )
        for tier, cap in self.evolution_caps.items():
            if cap < 0 or cap >= len(self.level_multipliers):
                raise ValueError(f"evolution cap for {tier} out of range: {cap}")
