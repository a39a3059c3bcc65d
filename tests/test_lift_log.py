import os
import sys
import tempfile
import unittest

sys.path.append(os.path.dirname(os.path.dirname(__file__)))
from lift_log import LiftLogRepository, parse_weight
from models import LiftEntry


class ParseWeightTestCase(unittest.TestCase):
    def test_units_in_value(self) -> None:
        self.assertEqual(parse_weight("100kg"), (100.0, "kg"))
        self.assertEqual(parse_weight("225 lbs", "kg"), (225.0, "lb"))
        self.assertEqual(parse_weight("102.5", "kg"), (102.5, "kg"))

    def test_unparseable(self) -> None:
        self.assertEqual(parse_weight("heavy"), (None, "lb"))
        self.assertEqual(parse_weight(""), (None, "lb"))


class LiftLogRepositoryTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self.tmpdir = tempfile.TemporaryDirectory()
        self.path = os.path.join(self.tmpdir.name, "lifts.csv")

    def tearDown(self) -> None:
        self.tmpdir.cleanup()

    def _write(self, text: str) -> None:
        with open(self.path, "w", encoding="utf-8") as f:
            f.write(text)

    def test_missing_file(self) -> None:
        self.assertEqual(LiftLogRepository(self.path).fetch_all(), [])

    def test_spreadsheet_headers_and_forward_fill(self) -> None:
        self._write(
            "Date,Lift Type,Reps,Weight,Notes,Goal\n"
            "2024-01-02,Back Squat,5,100kg,felt great,\n"
            ",,3,110kg,,\n"
            "2024-01-01,Bench Press,1,225,,yes\n"
        )
        entries = LiftLogRepository(self.path).fetch_all()
        self.assertEqual(len(entries), 3)
        self.assertEqual(entries[0].lift_type, "Bench Press")
        self.assertTrue(entries[0].is_goal)
        self.assertEqual(entries[0].unit_type, "lb")
        squats = entries[1:]
        self.assertEqual([e.date for e in squats], ["2024-01-02", "2024-01-02"])
        self.assertEqual([e.lift_type for e in squats], ["Back Squat", "Back Squat"])
        self.assertEqual([e.weight for e in squats], [100.0, 110.0])
        self.assertEqual({e.unit_type for e in squats}, {"kg"})
        self.assertEqual(squats[0].notes, "felt great")
        self.assertIsNone(squats[1].notes)

    def test_bad_rows_skipped(self) -> None:
        self._write(
            "date,lift_type,reps,weight,unit_type\n"
            "not-a-date,Deadlift,5,100,lb\n"
            "2024-01-01,Deadlift,,100,lb\n"
            "2024-01-01,Deadlift,5,heavy,lb\n"
            "2024-01-01,Deadlift,5,100,kg\n"
        )
        with self.assertLogs("lift_log", level="WARNING") as logs:
            entries = LiftLogRepository(self.path).fetch_all()
        self.assertEqual(len(entries), 1)
        self.assertEqual(entries[0].unit_type, "kg")
        self.assertEqual(len(logs.records), 3)

    def test_save_then_fetch(self) -> None:
        repo = LiftLogRepository(self.path)
        entries = [
            LiftEntry(date="2024-01-01", lift_type="Deadlift", reps=5, weight=200.0, notes="easy"),
            LiftEntry(date="2024-01-02", lift_type="Bench Press", reps=1, weight=100.0, unit_type="kg", is_goal=True),
        ]
        repo.save(entries)
        self.assertEqual(repo.fetch_all(), entries)


if __name__ == "__main__":
    unittest.main()
