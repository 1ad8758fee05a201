"""Fantasy base points for one gameweek stat line."""

from __future__ import annotations

from monster_league.models import GameweekPerformance, Position

GOAL_POINTS: dict[Position, int] = {
    Position.GK: 6,
    Position.DEF: 6,
    Position.MID: 5,
    Position.FWD: 4,
}

CLEAN_SHEET_POINTS: dict[Position, int] = {
    Position.GK: 4,
    Position.DEF: 4,
    Position.MID: 1,
    Position.FWD: 0,
}

ASSIST_POINTS = 3
PENALTY_SAVE_POINTS = 5
SAVES_PER_POINT = 3
FULL_APPEARANCE_MINUTES = 60


def appearance_points(minutes: int) -> int:
    if minutes >= FULL_APPEARANCE_MINUTES:
        return 2
    if minutes >= 1:
        return 1
    return 0


def base_points(perf: GameweekPerformance, position: Position) -> int:
    """Base points for ``perf``; a provider-supplied total wins when present."""
    if perf.total_points is not None:
        return perf.total_points

    position = Position(position)
    points = appearance_points(perf.minutes)
    points += perf.goals * GOAL_POINTS[position]
    points += perf.assists * ASSIST_POINTS
    if perf.clean_sheet and perf.minutes >= FULL_APPEARANCE_MINUTES:
        points += CLEAN_SHEET_POINTS[position]
    if position == Position.GK:
        points += perf.saves // SAVES_PER_POINT
    points += perf.penalties_saved * PENALTY_SAVE_POINTS
    return points
