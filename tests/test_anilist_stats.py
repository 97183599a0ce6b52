from __future__ import annotations

import unittest

from clients.anilist_stats import affinity
from clients.anilist_stats import compare_lines
from clients.anilist_stats import completed_count
from clients.anilist_stats import level_for_xp
from clients.anilist_stats import user_xp
from clients.anilist_stats import xp_required_for_level


def _user(name: str, *, anime=None, manga=None) -> dict:
    return {"name": name, "statistics": {"anime": anime or {}, "manga": manga or {}}}


class LevelTests(unittest.TestCase):
    def test_curve_starts_at_one_hundred_and_grows(self):
        self.assertEqual(xp_required_for_level(0), 0.0)
        self.assertEqual(xp_required_for_level(1), 100.0)
        self.assertAlmostEqual(xp_required_for_level(2), 112.0)
        self.assertGreater(xp_required_for_level(26), xp_required_for_level(25))
        self.assertGreater(xp_required_for_level(76), xp_required_for_level(75))

    def test_level_for_xp_reports_progress_inside_the_level(self):
        self.assertEqual(level_for_xp(0), (0, 0.0, 100.0))
        level, actual, span = level_for_xp(150)
        self.assertEqual(level, 2)
        self.assertAlmostEqual(actual, 38.0)
        self.assertAlmostEqual(span, 125.44 - 112.0)

    def test_level_caps_at_one_hundred(self):
        level, _actual, span = level_for_xp(1e12)
        self.assertEqual((level, span), (100, 0.0))

    def test_user_xp_weighs_completed_chapters_and_minutes(self):
        user = _user(
            "Alice",
            anime={"minutesWatched": 100, "statuses": [{"status": "CURRENT", "count": 4}, {"status": "COMPLETED", "count": 10}]},
            manga={"chaptersRead": 20, "statuses": [{"status": "COMPLETED", "count": 2}]},
        )
        self.assertEqual(user_xp(user), 8.0 * 12 + 2.0 * 20 + 0.5 * 100)

    def test_completed_count_without_statuses_is_zero(self):
        self.assertEqual(completed_count(None), 0)
        self.assertEqual(completed_count([{"status": "DROPPED", "count": 3}]), 0)


class CompareTests(unittest.TestCase):
    def setUp(self):
        self.alice = _user(
            "Alice",
            anime={
                "count": 10,
                "minutesWatched": 500,
                "genres": [{"genre": "Action"}, {"genre": "Drama"}],
                "tags": [{"tag": {"name": "Isekai"}}],
            },
            manga={"count": 3, "chaptersRead": 40},
        )
        self.bob = _user(
            "Bob",
            anime={
                "count": 4,
                "minutesWatched": 500,
                "genres": [{"genre": "Action"}, {"genre": "Comedy"}],
                "tags": [{"tag": {"name": "Isekai"}}],
            },
            manga={"count": 5, "chaptersRead": 40},
        )

    def test_affinity_averages_genre_and_tag_overlap(self):
        self.assertEqual(affinity(self.alice, self.bob), round(100.0 * (1 / 3 + 1.0) / 4, 2))
        self.assertEqual(affinity(_user("A"), _user("B")), 0.0)

    def test_compare_lines_name_who_has_more(self):
        lines = compare_lines(self.alice, self.bob)

        self.assertTrue(lines[0].startswith("Alice and Bob have an affinity of"))
        self.assertIn("Alice has more anime than Bob.", lines)
        self.assertIn("Alice and Bob have the same watch time.", lines)
        self.assertIn("Bob has more manga than Alice.", lines)
        self.assertIn("Both prefer the anime genre Action.", lines)
        self.assertIn("Both prefer the anime tag Isekai.", lines)
        self.assertFalse(any("manga genre" in line for line in lines))


if __name__ == "__main__":
    unittest.main()
