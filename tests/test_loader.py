"""Tests for roster and gameweek input loading."""

import json
import os
import tempfile
import unittest

from monster_league.loader import (
    chip_from_dict, load_assignments, load_entries, load_performances,
    load_roster,
)
from monster_league.models import Position


DATA_DIR = os.path.join(os.path.dirname(__file__), "..", "data")
GW_DIR = os.path.join(DATA_DIR, "gameweeks")


def _write_json(data) -> str:
    with tempfile.NamedTemporaryFile("w", suffix=".json", delete=False) as f:
        json.dump(data, f)
    return f.name


def _monster_entry(**overrides):
    entry = {"id": "m1", "template_code": 9, "display_name": "Imp",
             "position": "mid", "base_attack": 3, "base_defense": 2}
    entry.update(overrides)
    return entry


class TestLoadRoster(unittest.TestCase):
    def test_sample_rosters(self):
        alice = load_roster(os.path.join(DATA_DIR, "rosters", "alice.json"))
        bob = load_roster(os.path.join(DATA_DIR, "rosters", "bob.json"))
        self.assertEqual(len(alice), 13)
        self.assertEqual(len(bob), 10)
        self.assertTrue(all(m.user_id == "alice" for m in alice))
        gk = alice[0]
        self.assertEqual(gk.position, Position.GK)
        self.assertEqual(gk.display_name, "Glovebeast")

    def test_defaults_and_list_form(self):
        path = _write_json([_monster_entry()])
        try:
            roster = load_roster(path)
        finally:
            os.unlink(path)
        m = roster[0]
        self.assertEqual(m.template_code, "9")
        self.assertEqual(m.position, Position.MID)
        self.assertEqual(m.rarity, "COMMON")
        self.assertEqual(m.real_player_name, "Imp")
        self.assertIsNone(m.user_id)

    def test_duplicate_ids(self):
        path = _write_json({"monsters": [_monster_entry(), _monster_entry()]})
        try:
            with self.assertRaises(ValueError):
                load_roster(path)
        finally:
            os.unlink(path)

    def test_bad_position(self):
        path = _write_json([_monster_entry(position="WING")])
        try:
            with self.assertRaises(ValueError):
                load_roster(path)
        finally:
            os.unlink(path)

    def test_evolution_level_range(self):
        path = _write_json([_monster_entry(evolution_level=5)])
        try:
            with self.assertRaises(ValueError):
                load_roster(path)
        finally:
            os.unlink(path)

    def test_negative_stat(self):
        path = _write_json([_monster_entry(base_attack=-1)])
        try:
            with self.assertRaises(ValueError):
                load_roster(path)
        finally:
            os.unlink(path)


class TestGameweekInputs(unittest.TestCase):
    def test_performances(self):
        perfs = load_performances(os.path.join(GW_DIR, "gw1_performances.json"))
        self.assertEqual(len(perfs), 11)
        by_code = {p.template_code: p for p in perfs}
        self.assertTrue(by_code["1001"].clean_sheet)
        self.assertEqual(by_code["2301"].total_points, 0)
        self.assertIsNone(by_code["1301"].total_points)

    def test_negative_performance(self):
        path = _write_json([{"template_code": "1", "goals": -1}])
        try:
            with self.assertRaises(ValueError):
                load_performances(path)
        finally:
            os.unlink(path)

    def test_assignments(self):
        assignments = load_assignments(os.path.join(GW_DIR, "gw1_chips.json"))
        self.assertEqual([a.id for a in assignments], ["as-a1", "as-a2", "as-b1", "as-b2"])
        wall = assignments[1].chip
        self.assertEqual(wall.allowed_positions, (Position.GK, Position.DEF))
        self.assertEqual(wall.remaining_tries, 2)
        self.assertEqual(assignments[2].chip.remaining_tries, 1)
        self.assertFalse(any(a.is_resolved for a in assignments))

    def test_default_tries(self):
        chip = chip_from_dict({"id": "c", "user_id": "u", "condition_type": "WALL"}, 3)
        self.assertEqual(chip.remaining_tries, 3)

    def test_unknown_chip_id(self):
        path = _write_json({"chips": [], "assignments": [
            {"id": "x", "monster_id": "m1", "chip_id": "ghost", "gameweek": 1},
        ]})
        try:
            with self.assertRaises(ValueError):
                load_assignments(path)
        finally:
            os.unlink(path)

    def test_resolved_timestamp(self):
        path = _write_json({
            "chips": [{"id": "c", "user_id": "u", "condition_type": "WALL"}],
            "assignments": [{"id": "x", "monster_id": "m1", "chip_id": "c",
                             "gameweek": 2, "resolved_at": "2025-01-06T09:00:00+00:00",
                             "was_successful": False}],
        })
        try:
            assignment = load_assignments(path)[0]
        finally:
            os.unlink(path)
        self.assertTrue(assignment.is_resolved)
        self.assertEqual(assignment.resolved_at.year, 2025)

    def test_entries(self):
        monsters = {
            m.id: m
            for name in ("alice", "bob")
            for m in load_roster(os.path.join(DATA_DIR, "rosters", f"{name}.json"))
        }
        entries = load_entries(os.path.join(GW_DIR, "gw1_entries.json"), monsters)
        self.assertEqual([e.user_id for e in entries], ["alice", "bob"])
        self.assertEqual(len(entries[0].monsters), 6)
        self.assertEqual(entries[1].monsters[0].id, "b-gk1")

    def test_entry_unknown_monster(self):
        path = _write_json([{"user_id": "u", "gameweek": 1, "monster_ids": ["nope"]}])
        try:
            with self.assertRaises(ValueError):
                load_entries(path, {})
        finally:
            os.unlink(path)


if __name__ == "__main__":
    unittest.main()
