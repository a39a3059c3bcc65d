import os
import sys
import io
import json
import tempfile
import unittest
from contextlib import redirect_stdout

sys.path.append(os.path.dirname(os.path.dirname(__file__)))
import cli

CSV = (
    "date,lift_type,reps,weight,unit_type\n"
    "2024-06-17,Back Squat,5,100,kg\n"
    "2024-06-18,Back Squat,5,100,kg\n"
    "2024-06-19,Bench Press,1,100,kg\n"
    "2023-03-01,Deadlift,1,180,kg\n"
)


class CLITestCase(unittest.TestCase):
    def setUp(self) -> None:
        self.tmpdir = tempfile.TemporaryDirectory()
        self.csv_path = os.path.join(self.tmpdir.name, "lifts.csv")
        self.yaml_path = os.path.join(self.tmpdir.name, "settings.yaml")
        with open(self.csv_path, "w", encoding="utf-8") as f:
            f.write(CSV)

    def tearDown(self) -> None:
        self.tmpdir.cleanup()

    def run_cli(self, *args) -> str:
        out = io.StringIO()
        with redirect_stdout(out):
            cli.main(
                ["--csv", self.csv_path, "--settings", self.yaml_path, "--today", "2024-06-30", *args]
            )
        return out.getvalue()

    def test_convert(self) -> None:
        self.assertEqual(self.run_cli("convert", "--weight", "100", "--unit", "kg").strip(), "100.0 kg = 220.46 lb")
        self.assertEqual(self.run_cli("convert", "--weight", "100", "--unit", "lb").strip(), "100.0 lb = 45.36 kg")

    def test_streak(self) -> None:
        result = json.loads(self.run_cli("streak"))
        self.assertEqual(result, {"current_streak": 1, "best_streak": 1, "sessions_this_week": 0})

    def test_summary(self) -> None:
        result = json.loads(self.run_cli("summary", "--unit", "kg"))
        self.assertEqual(result["sessions"], 4)
        self.assertEqual(result["lifetime_tonnage"]["total_by_unit"], {"kg": 1280.0})
        self.assertEqual(result["prs_last_12_months"]["count"], 2)

    def test_prs(self) -> None:
        result = json.loads(self.run_cli("prs", "--lift", "Deadlift"))
        self.assertEqual(result[0]["weight"], 180.0)

    def test_recap_defaults_to_latest_year(self) -> None:
        result = json.loads(self.run_cli("recap", "--seed", "1"))
        self.assertEqual(result["year"], 2024)
        self.assertEqual(result["session_count"], 3)
        self.assertIn("equivalent", result)
        with self.assertRaises(SystemExit):
            self.run_cli("recap", "--year", "2000")

    def test_highlight(self) -> None:
        result = json.loads(self.run_cli("highlight", "--seed", "5"))
        self.assertIn(result["candidate_kind"], ("single", "standoutRep", "frequentLiftPR", "storyLift"))

    def test_tonnage(self) -> None:
        result = json.loads(self.run_cli("tonnage", "--unit", "kg"))
        self.assertEqual(result["average_session"]["session_count"], 3)
        self.assertEqual(result["formatted"], "1,280")


if __name__ == "__main__":
    unittest.main()
