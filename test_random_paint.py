import unittest
from datetime import date

from random_paint import RandomPaintRequest, random_contributions


class TestRandomContributions(unittest.TestCase):
    def test_seeded_runs_are_reproducible(self) -> None:
        req = RandomPaintRequest(date(2024, 1, 1), date(2024, 3, 31), random_seed=42)
        self.assertEqual(random_contributions(req), random_contributions(req))

    def test_weekends_excluded_and_bounds_respected(self) -> None:
        req = RandomPaintRequest(date(2024, 1, 1), date(2024, 12, 31), density=1.0,
                                 min_per_day=2, max_per_day=4, random_seed=7)
        result = random_contributions(req)
        self.assertEqual(result.total_days, 366)
        self.assertEqual(result.active_days, len(result.contributions))
        for day in result.contributions:
            self.assertLess(date.fromisoformat(day.date).weekday(), 5)
            self.assertTrue(2 <= day.count <= 4)
        # density 1.0 paints every weekday
        self.assertEqual(result.active_days, 262)
        self.assertEqual(result.total_commits, sum(c.count for c in result.contributions))

    def test_zero_density(self) -> None:
        req = RandomPaintRequest(date(2024, 1, 1), date(2024, 1, 31), density=0.0, random_seed=1)
        result = random_contributions(req)
        self.assertEqual(result.total_days, 31)
        self.assertEqual(result.contributions, [])

    def test_swapped_and_clamped_bounds(self) -> None:
        req = RandomPaintRequest(date(2024, 1, 6), date(2024, 1, 7), density=1.0,
                                 min_per_day=50, max_per_day=-2,
                                 exclude_weekend=False, random_seed=3)
        result = random_contributions(req)
        self.assertEqual(result.active_days, 2)
        self.assertTrue(all(1 <= c.count <= 10 for c in result.contributions))

    def test_inverted_range_is_empty(self) -> None:
        req = RandomPaintRequest(date(2024, 2, 1), date(2024, 1, 1))
        self.assertEqual(random_contributions(req).total_days, 0)


if __name__ == "__main__":
    unittest.main()
