"""Gameweek scoring: base points, chip resolution, evolution and user totals.

``score_gameweek`` is a pure transform from a gameweek's inputs to a
``GameweekResult``. Persisting the result and guarding against scoring the
same gameweek twice is the job of ``GameweekScorer`` and ``ScoreLedger``.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Iterable

from monster_league.cards import normalize_rarity
from monster_league.chips import evaluate_chip, resolve_assignment
from monster_league.config import ScoringConfig
from monster_league.evolution import (
    apply_form, chip_evolve, point_multiplier, round_points,
)
from monster_league.models import (
    ChipAssignment, EvolutionEvent, GameweekEntry, GameweekPerformance,
    GameweekResult, MonsterRecord, MonsterScore, UserGameweekScore,
)
from monster_league.points import base_points

logger = logging.getLogger(__name__)


class GameweekAlreadyScoredError(RuntimeError):
    pass


def _fielded_monsters(
    gameweek: int, entries: Iterable[GameweekEntry],
) -> list[tuple[str, MonsterRecord]]:
    """(user_id, monster) pairs for the gameweek, each monster once."""
    seen: set[str] = set()
    fielded: list[tuple[str, MonsterRecord]] = []
    for entry in entries:
        if entry.gameweek != gameweek:
            logger.debug(
                "Skipping entry of %s for gameweek %d", entry.user_id, entry.gameweek,
            )
            continue
        for monster in entry.monsters:
            if monster.id in seen:
                continue
            seen.add(monster.id)
            fielded.append((entry.user_id, monster))
    return fielded


def _score_monster(
    gameweek: int,
    user_id: str,
    monster: MonsterRecord,
    perf: GameweekPerformance | None,
    assignments: list[ChipAssignment],
    config: ScoringConfig,
    now: datetime,
    result: GameweekResult,
) -> None:
    tier = normalize_rarity(monster.rarity)
    played = perf is not None
    if played:
        base = base_points(perf, monster.position)
        is_blank = base <= config.blank_threshold
        is_big_fail = base <= config.big_fail_threshold
    else:
        logger.info(
            "No performance for %s (%s) in gameweek %d; scoring as did not play",
            monster.display_name, monster.template_code, gameweek,
        )
        base = 0
        is_blank = True
        is_big_fail = False

    level = monster.evolution_level
    form = apply_form(
        tier, level, monster.blank_streak, is_blank, is_big_fail, config,
    )
    if form.level != level:
        result.evolution_events.append(EvolutionEvent(
            monster_id=monster.id,
            gameweek=gameweek,
            old_level=level,
            new_level=form.level,
            reason=form.reason or "Devolved",
        ))
        level = form.level

    for assignment in assignments:
        success = evaluate_chip(assignment.chip, perf, base)
        result.chip_resolutions.append(resolve_assignment(assignment, success, now))
        if not success:
            continue
        new_level = chip_evolve(tier, level, config)
        if new_level != level:
            result.evolution_events.append(EvolutionEvent(
                monster_id=monster.id,
                gameweek=gameweek,
                old_level=level,
                new_level=new_level,
                reason=f"Chip {assignment.chip.condition_type} succeeded",
            ))
            level = new_level

    mult = point_multiplier(tier, level, config)
    final = round_points(base * mult) if played else 0

    if played:
        monster = replace(
            monster,
            total_goals=monster.total_goals + perf.goals,
            total_assists=monster.total_assists + perf.assists,
            total_clean_sheets=monster.total_clean_sheets + int(perf.clean_sheet),
            total_fantasy_points=monster.total_fantasy_points + final,
        )
    result.monster_updates.append(
        replace(monster, evolution_level=level, blank_streak=form.blank_streak)
    )
    result.monster_scores.append(MonsterScore(
        monster_id=monster.id,
        user_id=user_id,
        base_points=base,
        multiplier=mult,
        final_points=final,
        is_blank=is_blank,
        is_big_fail=is_big_fail,
        played=played,
    ))
    result.user_totals[user_id] = result.user_totals.get(user_id, 0) + final


def score_gameweek(
    gameweek: int,
    performances: Iterable[GameweekPerformance],
    assignments: Iterable[ChipAssignment],
    entries: Iterable[GameweekEntry],
    config: ScoringConfig | None = None,
    now: datetime | None = None,
) -> GameweekResult:
    """Score every monster fielded in ``gameweek``.

    Each monster is devolved for poor form first, then its chips for this
    gameweek are resolved (successes evolve it), and finally its base points
    are multiplied using the resulting level. Chips pointing at a monster
    nobody fielded are resolved as failures.
    """
    if gameweek <= 0:
        raise ValueError(f"Invalid gameweek number: {gameweek}")
    config = config or ScoringConfig()
    now = now or datetime.now(timezone.utc)

    perf_by_code = {p.template_code: p for p in performances}
    pending: dict[str, list[ChipAssignment]] = {}
    for assignment in assignments:
        if assignment.gameweek != gameweek or assignment.is_resolved:
            continue
        pending.setdefault(assignment.monster_id, []).append(assignment)

    result = GameweekResult(gameweek=gameweek)
    for user_id, monster in _fielded_monsters(gameweek, entries):
        _score_monster(
            gameweek,
            user_id,
            monster,
            perf_by_code.get(monster.template_code),
            pending.pop(monster.id, []),
            config,
            now,
            result,
        )

    for monster_id, leftovers in pending.items():
        logger.info(
            "Chip assignment for unfielded monster %s in gameweek %d failed",
            monster_id, gameweek,
        )
        for assignment in leftovers:
            result.chip_resolutions.append(resolve_assignment(assignment, False, now))

    logger.info(
        "Scored gameweek %d for %d users.", gameweek, len(result.user_totals),
    )
    return result


# ---------------------------------------------------------------------------
# Persistence
# ---------------------------------------------------------------------------

@dataclass
class ScoreLedger:
    """In-memory store of user scores and the gameweeks already scored."""

    scores: dict[tuple[str, int], int] = field(default_factory=dict)
    processed: set[int] = field(default_factory=set)

    def upsert(self, row: UserGameweekScore) -> None:
        self.scores[(row.user_id, row.gameweek)] = row.points

    def points_for(self, user_id: str, gameweek: int) -> int | None:
        return self.scores.get((user_id, gameweek))

    def season_total(self, user_id: str) -> int:
        return sum(
            pts for (uid, _), pts in self.scores.items() if uid == user_id
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "processed": sorted(self.processed),
            "scores": [
                {"user_id": uid, "gameweek": gw, "points": pts}
                for (uid, gw), pts in sorted(self.scores.items())
            ],
        }

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> "ScoreLedger":
        return cls(
            scores={
                (row["user_id"], row["gameweek"]): row["points"]
                for row in raw.get("scores", ())
            },
            processed=set(raw.get("processed", ())),
        )

    @classmethod
    def load(cls, path: str | Path) -> "ScoreLedger":
        path = Path(path)
        if not path.exists():
            return cls()
        with open(path, encoding="utf-8") as f:
            return cls.from_dict(json.load(f))

    def save(self, path: str | Path) -> None:
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            json.dump(self.to_dict(), f, indent=2)


class GameweekScorer:
    """Scores gameweeks into a ledger, refusing to score one twice."""

    def __init__(
        self,
        ledger: ScoreLedger | None = None,
        config: ScoringConfig | None = None,
    ):
        self.ledger = ledger if ledger is not None else ScoreLedger()
        self.config = config or ScoringConfig()

    def score(
        self,
        gameweek: int,
        performances: Iterable[GameweekPerformance],
        assignments: Iterable[ChipAssignment],
        entries: Iterable[GameweekEntry],
        force: bool = False,
        now: datetime | None = None,
    ) -> GameweekResult:
        if gameweek in self.ledger.processed and not force:
            raise GameweekAlreadyScoredError(
                f"Gameweek {gameweek} has already been scored"
            )
        if force and gameweek in self.ledger.processed:
            logger.warning("Re-scoring gameweek %d", gameweek)

        result = score_gameweek(
            gameweek, performances, assignments, entries, self.config, now,
        )
        for row in result.score_rows():
            self.ledger.upsert(row)
        self.ledger.processed.add(gameweek)
        return result
