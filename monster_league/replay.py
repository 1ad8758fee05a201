"""Replay recording and playback.

A replay is a JSONL file of events: ``meta`` (written by the caller), then
``match_start``, one ``turn_start`` per side per round, an ``action`` per
applied action carrying the log lines it produced, and ``match_end``.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import IO, TYPE_CHECKING, Any

from monster_league.codec import card_to_dict

if TYPE_CHECKING:
    from monster_league.models import BattleMonsterCard, PlayerState

# Event types shown regardless of the --from-turn / --to-turn window.
_ALWAYS_SHOWN = frozenset({"meta", "match_start", "match_end"})


def snapshot_board(board: "tuple[BattleMonsterCard, ...]") -> list[dict]:
    return [card_to_dict(m) for m in board]


def snapshot_player(player: "PlayerState") -> dict[str, Any]:
    """Public view of a side: hand and deck are reported as counts."""
    hero = player.hero
    return {
        "label": player.label,
        "hero": hero.name,
        "hp": hero.hp,
        "armor": hero.armor,
        "mana": player.mana,
        "max_mana": player.max_mana,
        "hand_count": len(player.hand),
        "deck_count": len(player.deck),
        "board": snapshot_board(player.board),
    }


class ReplayWriter:
    """Appends match events to a JSONL file, one object per line."""

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._out: IO[str] | None = self._path.open("w", encoding="utf-8")
        self.events_written = 0

    @property
    def path(self) -> Path:
        return self._path

    @property
    def closed(self) -> bool:
        return self._out is None

    def write(self, event: dict[str, Any]) -> None:
        if self._out is None:
            raise RuntimeError(f"Replay {self._path} is already closed")
        print(json.dumps(event, ensure_ascii=False), file=self._out)
        self.events_written += 1

    def close(self) -> None:
        if self._out is not None:
            self._out.close()
            self._out = None

    def __enter__(self) -> "ReplayWriter":
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()


def read_replay(path: str | Path) -> list[dict[str, Any]]:
    text = Path(path).read_text(encoding="utf-8")
    return [json.loads(line) for line in text.splitlines() if line.strip()]


# ---------------------------------------------------------------------------
# Playback
# ---------------------------------------------------------------------------

def _side_lines(name: str, snap: dict[str, Any], compact: bool) -> list[str]:
    lines = [
        f"  {name}: GK={snap.get('hero')} HP={snap.get('hp')} "
        f"Armor={snap.get('armor')} Mana={snap.get('mana')}/{snap.get('max_mana')} "
        f"Hand={snap.get('hand_count')} Deck={snap.get('deck_count')}"
    ]
    if not compact:
        pitch = ", ".join(
            f"{m['name']}[{m['position']}]({m['attack']}/{m['health']})"
            for m in snap.get("board", [])
        )
        lines.append(f"    Pitch: {pitch or '(empty)'}")
    return lines


def _render_event(ev: dict[str, Any], compact: bool) -> list[str]:
    etype = ev.get("type")
    if etype == "meta":
        lines = [f"=== REPLAY: seed={ev.get('seed')} ==="]
        rosters = ev.get("roster_ids") or []
        if len(rosters) == 2:
            lines.append(f"  Rosters: {rosters[0]} vs {rosters[1]}")
        return lines
    if etype in ("match_start", "turn_start"):
        if etype == "match_start" and compact:
            return []
        lines = []
        if etype == "turn_start":
            lines.append(f"\n--- Turn {ev.get('turn')} ({ev.get('active')}) ---")
        lines += _side_lines("player", ev.get("player", {}), compact)
        lines += _side_lines("opponent", ev.get("opponent", {}), compact)
        return lines
    if etype == "action":
        return [f"  {line}" for line in ev.get("log", [])]
    if etype == "match_end":
        lines = [
            "\n=== MATCH END ===",
            f"  Winner: {ev.get('winner')} (reason: {ev.get('reason')})",
        ]
        final = ev.get("final_hp") or []
        if len(final) == 2:
            lines.append(f"  Final HP: player={final[0]} opponent={final[1]}")
        lines.append(f"  Turns: {ev.get('turns')}")
        return lines
    return []


def render_replay(
    path: str | Path,
    from_turn: int | None = None,
    to_turn: int | None = None,
    compact: bool = False,
) -> None:
    """Print a replay; turn-scoped events outside the window are skipped."""
    for ev in read_replay(path):
        turn = ev.get("turn")
        if turn is not None and ev.get("type") not in _ALWAYS_SHOWN:
            if from_turn is not None and turn < from_turn:
                continue
            if to_turn is not None and turn > to_turn:
                continue
        for line in _render_event(ev, compact):
            print(line)
