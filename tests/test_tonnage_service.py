import os
import sys
import unittest

sys.path.append(os.path.dirname(os.path.dirname(__file__)))
from algorithms import CalendarTools
from models import LiftEntry
from stats_service import StatisticsService
from tonnage_service import NEGLECTED_TIERS, TonnageService

TODAY = "2024-12-31"


def lift(date, lift_type="Bench Press", reps=1, weight=100.0, unit="lb", **kwargs):
    return LiftEntry(
        date=date, lift_type=lift_type, reps=reps, weight=weight, unit_type=unit, **kwargs
    )


def service(entries, today=TODAY) -> TonnageService:
    return TonnageService(StatisticsService(entries, today=today))


class TonnageLookupTestCase(unittest.TestCase):
    def test_units_never_summed(self) -> None:
        tonnage = service(
            [lift("2024-05-01", weight=100), lift("2024-05-01", weight=50, unit="kg")]
        )
        self.assertEqual(tonnage.session_tonnage_for_date("2024-05-01", "lb"), 100.0)
        self.assertEqual(tonnage.session_tonnage_for_date("2024-05-01", "kg"), 50.0)
        self.assertEqual(tonnage.total_tonnage_by_unit(), {"lb": 100.0, "kg": 50.0})

    def test_lift_tonnage_for_date(self) -> None:
        tonnage = service(
            [
                lift("2024-05-01", reps=5, weight=100),
                lift("2024-05-01", reps=5, weight=110),
                lift("2024-05-01", lift_type="Deadlift", reps=3, weight=200),
            ]
        )
        self.assertEqual(tonnage.lift_tonnage_for_date("2024-05-01", "Bench Press"), 1050.0)
        self.assertEqual(tonnage.lift_tonnage_for_date("2024-05-01", "Deadlift"), 600.0)
        self.assertEqual(tonnage.lift_tonnage_for_date("2024-05-02", "Deadlift"), 0.0)
        self.assertEqual(tonnage.session_tonnage_for_date("2024-05-01"), 1650.0)

    def test_goals_excluded(self) -> None:
        tonnage = service([lift("2024-05-01"), lift("2024-05-01", weight=300, is_goal=True)])
        self.assertEqual(tonnage.session_tonnage_for_date("2024-05-01"), 100.0)

    def test_conservation(self) -> None:
        entries = [
            lift("2024-01-01", reps=5, weight=100),
            lift("2024-01-01", lift_type="Deadlift", reps=3, weight=140, unit="kg"),
            lift("2024-02-01", reps=8, weight=80),
            lift("2024-03-01", lift_type="Deadlift", reps=1, weight=180, unit="kg"),
        ]
        tonnage = service(entries)
        lookup = tonnage.build_lookup()
        for unit in ("lb", "kg"):
            expected = sum(e.tonnage for e in entries if e.unit_type == unit)
            by_session = sum(tonnage.session_tonnage_for_date(d, unit) for d in lookup.all_session_dates)
            self.assertEqual(by_session, expected)
            by_lift = sum(
                per_unit.get(unit, 0.0)
                for lifts in lookup.tonnage_by_date_and_lift.values()
                for per_unit in lifts.values()
            )
            self.assertEqual(by_lift, expected)

    def test_lookup_is_cached(self) -> None:
        tonnage = service([lift("2024-05-01")])
        self.assertIs(tonnage.build_lookup(), tonnage.build_lookup())


class RollingWindowTestCase(unittest.TestCase):
    def test_average_skips_sessions_without_the_lift(self) -> None:
        entries = []
        for idx in range(10):
            date = CalendarTools.shift("2024-12-01", idx)
            entries.append(lift(date, weight=50))
            if idx % 2 == 0:
                entries.append(lift(date, lift_type="Back Squat", weight=100))
        tonnage = service(entries)
        result = tonnage.average_lift_session_tonnage(TODAY, "Back Squat")
        self.assertEqual(result, {"average": 100.0, "session_count": 5})

    def test_window_excludes_older_sessions(self) -> None:
        tonnage = service([lift("2024-01-01", weight=1000), lift("2024-01-02", weight=100)])
        self.assertEqual(
            tonnage.average_session_tonnage(TODAY), {"average": 100.0, "session_count": 1}
        )

    def test_empty_window(self) -> None:
        tonnage = service([lift("2020-01-01")])
        self.assertEqual(
            tonnage.average_session_tonnage(TODAY), {"average": None, "session_count": 0}
        )
        result = tonnage.session_tonnage_percentile_range(TODAY)
        self.assertIsNone(result["low"])
        self.assertIsNone(result["high"])

    def test_percentile_range(self) -> None:
        entries = [
            lift(CalendarTools.shift("2024-11-01", idx), weight=100 * (idx + 1)) for idx in range(10)
        ]
        result = service(entries).session_tonnage_percentile_range(TODAY)
        self.assertEqual(result, {"low": 300.0, "high": 900.0, "session_count": 10})

    def test_percentile_range_by_unit(self) -> None:
        entries = [lift("2024-11-01", weight=100), lift("2024-11-02", weight=40, unit="kg")]
        result = service(entries).session_tonnage_percentile_range(TODAY, "kg")
        self.assertEqual(result, {"low": 40.0, "high": 40.0, "session_count": 1})


class TopTonnageTestCase(unittest.TestCase):
    def test_ranking_and_windows(self) -> None:
        entries = [
            lift("2022-01-01", reps=10, weight=100),
            lift("2024-03-01", reps=5, weight=100),
            lift("2024-04-01", reps=5, weight=100),
            lift("2024-05-01", reps=2, weight=100),
        ]
        all_time, last_year = service(entries).top_tonnage_by_type(cap=3)
        rows = all_time["Bench Press"]["lb"]
        self.assertEqual(
            rows,
            [
                {"date": "2022-01-01", "tonnage": 1000.0},
                {"date": "2024-03-01", "tonnage": 500.0},
                {"date": "2024-04-01", "tonnage": 500.0},
            ],
        )
        self.assertEqual(len(last_year["Bench Press"]["lb"]), 3)
        self.assertEqual(last_year["Bench Press"]["lb"][0]["date"], "2024-03-01")


class NeglectedLiftTestCase(unittest.TestCase):
    def test_tiers_and_order(self) -> None:
        tonnage = service(
            [
                lift("2024-05-01", lift_type="Deadlift"),
                lift("2024-06-15", lift_type="Back Squat"),
                lift("2024-06-29"),
                lift("2024-06-30", lift_type="Strict Press"),
            ],
            today="2024-06-30",
        )
        rows = tonnage.neglected_lift_types()
        self.assertEqual([r["lift_type"] for r in rows], ["Deadlift", "Back Squat", "Bench Press"])
        self.assertEqual(rows[0]["days_since"], 60)
        self.assertEqual(rows[0]["tier"], NEGLECTED_TIERS[2][1])
        self.assertEqual(rows[1]["tier"], NEGLECTED_TIERS[0][1])
        self.assertIsNone(rows[2]["tier"])

    def test_restricted_to_requested_lifts(self) -> None:
        tonnage = service([lift("2024-05-01", lift_type="Deadlift"), lift("2024-05-01")])
        rows = tonnage.neglected_lift_types(["Deadlift", "Curl"])
        self.assertEqual([r["lift_type"] for r in rows], ["Deadlift"])


if __name__ == "__main__":
    unittest.main()
