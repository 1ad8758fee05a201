"""JSON loading and validation for rosters, stat lines, chips and entries."""

from __future__ import annotations

import json
from datetime import datetime
from pathlib import Path
from typing import Any

from monster_league.models import (
    ChipAssignment, GameweekEntry, GameweekPerformance, MonsterRecord,
    Position, UserChip,
)

MAX_EVOLUTION_LEVEL = 4


def _read(path: str | Path) -> Any:
    path = Path(path)
    with open(path, encoding="utf-8") as f:
        return json.load(f)


def _position(raw: Any, owner: str) -> Position:
    try:
        return Position(str(raw).upper())
    except ValueError:
        raise ValueError(f"{owner}: invalid position '{raw}'") from None


def _timestamp(raw: str | None) -> datetime | None:
    return datetime.fromisoformat(raw) if raw else None


# ---------------------------------------------------------------------------
# Rosters
# ---------------------------------------------------------------------------

def monster_from_dict(entry: dict[str, Any], user_id: str | None = None) -> MonsterRecord:
    monster = MonsterRecord(
        id=entry["id"],
        template_code=str(entry["template_code"]),
        display_name=entry["display_name"],
        real_player_name=entry.get("real_player_name", entry["display_name"]),
        position=_position(entry["position"], f"Monster {entry['id']}"),
        club=entry.get("club", ""),
        rarity=entry.get("rarity", "COMMON"),
        base_attack=entry["base_attack"],
        base_magic=entry.get("base_magic", 0),
        base_defense=entry["base_defense"],
        evolution_level=entry.get("evolution_level", 0),
        blank_streak=entry.get("blank_streak", 0),
        total_goals=entry.get("total_goals", 0),
        total_assists=entry.get("total_assists", 0),
        total_clean_sheets=entry.get("total_clean_sheets", 0),
        total_fantasy_points=entry.get("total_fantasy_points", 0),
        user_id=entry.get("user_id", user_id),
        art_base_path=entry.get("art_base_path"),
        set_code=entry.get("set_code"),
        edition_type=entry.get("edition_type"),
        edition_label=entry.get("edition_label"),
        serial_number=entry.get("serial_number"),
    )
    _validate_monster(monster)
    return monster


def _validate_monster(m: MonsterRecord) -> None:
    for name in ("base_attack", "base_magic", "base_defense", "blank_streak"):
        if getattr(m, name) < 0:
            raise ValueError(f"Monster {m.id}: {name} must be non-negative")
    if not 0 <= m.evolution_level <= MAX_EVOLUTION_LEVEL:
        raise ValueError(
            f"Monster {m.id}: evolution_level {m.evolution_level} "
            f"not in [0,{MAX_EVOLUTION_LEVEL}]"
        )


def load_roster(path: str | Path) -> list[MonsterRecord]:
    """Load ``{"user_id": ..., "monsters": [...]}`` into monster records."""
    raw = _read(path)
    if isinstance(raw, list):
        raw = {"monsters": raw}
    user_id = raw.get("user_id")
    roster: list[MonsterRecord] = []
    seen: set[str] = set()
    for entry in raw.get("monsters", ()):
        monster = monster_from_dict(entry, user_id)
        if monster.id in seen:
            raise ValueError(f"Roster {path}: duplicate monster id '{monster.id}'")
        seen.add(monster.id)
        roster.append(monster)
    return roster


# ---------------------------------------------------------------------------
# Gameweek inputs
# ---------------------------------------------------------------------------

def load_performances(path: str | Path) -> list[GameweekPerformance]:
    raw = _read(path)
    if isinstance(raw, dict):
        raw = raw.get("performances", ())
    perfs: list[GameweekPerformance] = []
    for entry in raw:
        perf = GameweekPerformance(
            template_code=str(entry["template_code"]),
            goals=entry.get("goals", 0),
            assists=entry.get("assists", 0),
            minutes=entry.get("minutes", 0),
            clean_sheet=bool(entry.get("clean_sheet", False)),
            saves=entry.get("saves", 0),
            penalties_saved=entry.get("penalties_saved", 0),
            total_points=entry.get("total_points"),
        )
        if min(perf.goals, perf.assists, perf.minutes, perf.saves, perf.penalties_saved) < 0:
            raise ValueError(f"Performance {perf.template_code}: negative stat")
        perfs.append(perf)
    return perfs


def chip_from_dict(entry: dict[str, Any], default_tries: int = 2) -> UserChip:
    positions = entry.get("allowed_positions")
    chip = UserChip(
        id=entry["id"],
        user_id=entry["user_id"],
        condition_type=entry["condition_type"],
        remaining_tries=entry.get("remaining_tries", default_tries),
        is_consumed=entry.get("is_consumed", False),
        consumed_at=_timestamp(entry.get("consumed_at")),
        threshold=entry.get("threshold"),
        min_rarity=entry.get("min_rarity"),
        max_rarity=entry.get("max_rarity"),
        allowed_positions=(
            tuple(_position(p, f"Chip {entry['id']}") for p in positions)
            if positions else None
        ),
    )
    if chip.remaining_tries < 0:
        raise ValueError(f"Chip {chip.id}: remaining_tries must be non-negative")
    return chip


def load_assignments(
    path: str | Path, default_tries: int = 2,
) -> list[ChipAssignment]:
    """Load ``{"chips": [...], "assignments": [...]}``.

    Assignments reference chips by ``chip_id``.
    """
    raw = _read(path)
    chips = {c.id: c for c in (chip_from_dict(e, default_tries) for e in raw.get("chips", ()))}
    assignments: list[ChipAssignment] = []
    for entry in raw.get("assignments", ()):
        chip_id = entry["chip_id"]
        if chip_id not in chips:
            raise ValueError(f"Assignment {entry['id']}: unknown chip_id '{chip_id}'")
        gameweek = entry["gameweek"]
        if gameweek < 1:
            raise ValueError(f"Assignment {entry['id']}: invalid gameweek {gameweek}")
        assignments.append(ChipAssignment(
            id=entry["id"],
            monster_id=entry["monster_id"],
            chip=chips[chip_id],
            gameweek=gameweek,
            resolved_at=_timestamp(entry.get("resolved_at")),
            was_successful=entry.get("was_successful"),
        ))
    return assignments


def load_entries(
    path: str | Path, monsters: dict[str, MonsterRecord],
) -> list[GameweekEntry]:
    """Load ``[{"user_id", "gameweek", "monster_ids"}]`` against a monster db."""
    raw = _read(path)
    entries: list[GameweekEntry] = []
    for e in raw:
        user_id = e["user_id"]
        picked: list[MonsterRecord] = []
        for monster_id in e.get("monster_ids", ()):
            if monster_id not in monsters:
                raise ValueError(f"Entry {user_id}: unknown monster_id '{monster_id}'")
            picked.append(monsters[monster_id])
        entries.append(GameweekEntry(
            user_id=user_id, gameweek=e["gameweek"], monsters=tuple(picked),
        ))
    return entries
