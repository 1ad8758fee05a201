"""Data models for the battle engine and the gameweek scoring engine."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Union


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------

class Position(str, Enum):
    GK = "GK"
    DEF = "DEF"
    MID = "MID"
    FWD = "FWD"


class RarityTier(str, Enum):
    COMMON = "COMMON"
    RARE = "RARE"
    EPIC = "EPIC"
    LEGENDARY = "LEGENDARY"
    MYTHIC = "MYTHIC"


class Keyword(str, Enum):
    TAUNT = "TAUNT"
    RUSH = "RUSH"


class SpellEffect(str, Enum):
    DAMAGE_HERO = "DAMAGE_HERO"
    SHIELD_HERO = "SHIELD_HERO"


class Side(str, Enum):
    PLAYER = "player"
    OPPONENT = "opponent"

    @property
    def other(self) -> "Side":
        return Side.OPPONENT if self == Side.PLAYER else Side.PLAYER


DRAW = "DRAW"

Winner = Union[Side, str, None]   # Side, DRAW or None


# ---------------------------------------------------------------------------
# Persisted monster (read-only input)
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class MonsterRecord:
    id: str
    template_code: str
    display_name: str
    real_player_name: str
    position: Position
    club: str
    rarity: str                     # free text, e.g. "MYTHICAL"
    base_attack: int
    base_magic: int
    base_defense: int
    evolution_level: int = 0
    blank_streak: int = 0
    total_goals: int = 0
    total_assists: int = 0
    total_clean_sheets: int = 0
    total_fantasy_points: int = 0
    user_id: str | None = None
    art_base_path: str | None = None
    set_code: str | None = None
    edition_type: str | None = None
    edition_label: str | None = None
    serial_number: int | None = None

    @property
    def stat_total(self) -> int:
        """Sum used to rank monsters when picking an XI and granting RUSH."""
        return (
            self.base_attack + self.base_magic + self.base_defense
            + self.evolution_level * 2
        )


# ---------------------------------------------------------------------------
# Battle cards
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class BattleMonsterCard:
    id: str
    source_monster_id: str
    name: str
    position: Position
    rarity_tier: RarityTier
    mana_cost: int
    attack: int
    health: int
    max_health: int
    magic: int
    keywords: tuple[Keyword, ...] = ()
    has_summoning_sickness: bool = True
    can_attack: bool = False
    bypass_defenders_once: bool = False

    # display / edition info
    display_name: str | None = None
    real_player_name: str | None = None
    club: str | None = None
    rarity: str | None = None
    evolution_level: int = 0
    art_url: str | None = None

    kind = "MONSTER"

    def has_keyword(self, keyword: Keyword) -> bool:
        return keyword in self.keywords


@dataclass(frozen=True)
class BattleSpellCard:
    id: str
    name: str
    description: str
    mana_cost: int
    effect: SpellEffect
    value: int

    kind = "SPELL"


BattleCard = Union[BattleMonsterCard, BattleSpellCard]


# ---------------------------------------------------------------------------
# Match state (immutable; transitions return new values)
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class HeroState:
    name: str
    hp: int = 300
    max_hp: int = 300
    armor: int = 0
    art_url: str | None = None


@dataclass(frozen=True)
class PlayerState:
    key: Side
    label: str
    hero: HeroState
    deck: tuple[BattleCard, ...] = ()
    hand: tuple[BattleCard, ...] = ()
    board: tuple[BattleMonsterCard, ...] = ()
    mana: int = 0
    max_mana: int = 0


@dataclass(frozen=True)
class BattleState:
    player: PlayerState
    opponent: PlayerState
    active: Side = Side.PLAYER
    turn: int = 1
    winner: Winner = None
    log: tuple[str, ...] = ()

    @property
    def is_over(self) -> bool:
        return self.winner is not None

    def side(self, key: Side) -> PlayerState:
        return self.player if key == Side.PLAYER else self.opponent

    def active_player(self) -> PlayerState:
        return self.side(self.active)

    def inactive_player(self) -> PlayerState:
        return self.side(self.active.other)


# ---------------------------------------------------------------------------
# Gameweek scoring inputs / outputs
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class GameweekPerformance:
    template_code: str
    goals: int = 0
    assists: int = 0
    minutes: int = 0
    clean_sheet: bool = False
    saves: int = 0
    penalties_saved: int = 0
    total_points: int | None = None


@dataclass(frozen=True)
class UserChip:
    id: str
    user_id: str
    condition_type: str
    remaining_tries: int = 2
    is_consumed: bool = False
    consumed_at: datetime | None = None
    threshold: int | None = None
    min_rarity: str | None = None
    max_rarity: str | None = None
    allowed_positions: tuple[Position, ...] | None = None


@dataclass(frozen=True)
class ChipAssignment:
    id: str
    monster_id: str
    chip: UserChip
    gameweek: int
    resolved_at: datetime | None = None
    was_successful: bool | None = None

    @property
    def is_resolved(self) -> bool:
        return self.resolved_at is not None


@dataclass(frozen=True)
class GameweekEntry:
    user_id: str
    gameweek: int
    monsters: tuple[MonsterRecord, ...] = ()


@dataclass(frozen=True)
class EvolutionEvent:
    monster_id: str
    gameweek: int
    old_level: int
    new_level: int
    reason: str


@dataclass(frozen=True)
class MonsterScore:
    monster_id: str
    user_id: str
    base_points: int
    multiplier: float
    final_points: int
    is_blank: bool
    is_big_fail: bool
    played: bool


@dataclass(frozen=True)
class UserGameweekScore:
    user_id: str
    gameweek: int
    points: int


@dataclass
class GameweekResult:
    gameweek: int
    user_totals: dict[str, int] = field(default_factory=dict)
    monster_updates: list[MonsterRecord] = field(default_factory=list)
    monster_scores: list[MonsterScore] = field(default_factory=list)
    evolution_events: list[EvolutionEvent] = field(default_factory=list)
    chip_resolutions: list[ChipAssignment] = field(default_factory=list)

    def score_rows(self) -> list[UserGameweekScore]:
        return [
            UserGameweekScore(user_id=uid, gameweek=self.gameweek, points=pts)
            for uid, pts in sorted(self.user_totals.items())
        ]


# ---------------------------------------------------------------------------
# Simulation output
# ---------------------------------------------------------------------------

@dataclass
class MatchLog:
    seed: int
    roster_ids: tuple[str, str]
    winner: str                     # "player", "opponent" or DRAW
    turns: int
    final_hp: tuple[int, int]
    reason: str = "knockout"
    play_trace: list[dict[str, Any]] | None = None
    telemetry: dict[str, Any] | None = None
