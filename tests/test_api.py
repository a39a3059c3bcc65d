import os
import sys
import tempfile
import unittest
from fastapi.testclient import TestClient

sys.path.append(os.path.dirname(os.path.dirname(__file__)))
from rest_api import LiftAnalyticsAPI

CSV = (
    "date,lift_type,reps,weight,unit_type,notes\n"
    "2024-06-17,Back Squat,5,100,kg,\n"
    "2024-06-19,Back Squat,5,105,kg,\n"
    "2024-06-19,Bench Press,1,225,lb,Meet day opener\n"
    "2024-06-21,Deadlift,3,180,kg,\n"
    "2024-06-24,Back Squat,3,110,kg,\n"
    "2023-06-20,Bench Press,1,205,lb,\n"
)


class APITestCase(unittest.TestCase):
    def setUp(self) -> None:
        self.tmpdir = tempfile.TemporaryDirectory()
        self.csv_path = os.path.join(self.tmpdir.name, "lifts.csv")
        self.yaml_path = os.path.join(self.tmpdir.name, "settings.yaml")
        with open(self.csv_path, "w", encoding="utf-8") as f:
            f.write(CSV)
        self.api = LiftAnalyticsAPI(self.csv_path, self.yaml_path, today="2024-06-30")
        self.client = TestClient(self.api.app)

    def tearDown(self) -> None:
        self.tmpdir.cleanup()

    def test_health(self) -> None:
        response = self.client.get("/health")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["entries"], 6)

    def test_entries_marked_with_historical_prs(self) -> None:
        flags = {(e.date, e.lift_type): e.is_historical_pr for e in self.api.entries}
        self.assertTrue(flags[("2023-06-20", "Bench Press")])
        self.assertTrue(flags[("2024-06-19", "Bench Press")])

    def test_stats_endpoints(self) -> None:
        response = self.client.get("/stats/lift_types")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()[0]["lift_type"], "Back Squat")

        response = self.client.get("/stats/overview")
        self.assertEqual(response.json()["sessions"], 5)

        response = self.client.get("/stats/personal_records", params={"lift_type": "Bench Press"})
        self.assertEqual(response.status_code, 200)
        bucket = response.json()["Bench Press"][0]
        self.assertEqual([row["weight"] for row in bucket], [225.0, 205.0])

        response = self.client.get("/stats/personal_records", params={"lift_type": "Curl"})
        self.assertEqual(response.status_code, 404)

        response = self.client.get("/stats/weekly_streak")
        self.assertEqual(response.json()["best_streak"], 1)

        response = self.client.get("/stats/consistency")
        self.assertEqual(response.json()[0]["label"], "Week")

        response = self.client.get("/stats/session_momentum")
        self.assertEqual(response.json()["recent_sessions"], 4)

    def test_tonnage_endpoints(self) -> None:
        response = self.client.get("/stats/tonnage/session", params={"date": "2024-06-19", "unit": "kg"})
        self.assertEqual(response.json()["tonnage"], 525.0)
        response = self.client.get("/stats/tonnage/session", params={"date": "2024-06-19", "unit": "lb"})
        self.assertEqual(response.json()["tonnage"], 225.0)

        response = self.client.get(
            "/stats/tonnage/lift",
            params={"date": "2024-06-17", "lift_type": "Back Squat", "unit": "kg"},
        )
        self.assertEqual(response.json()["tonnage"], 500.0)

        response = self.client.get(
            "/stats/tonnage/average", params={"lift_type": "Back Squat", "unit": "kg"}
        )
        self.assertEqual(response.json()["session_count"], 3)

        response = self.client.get("/stats/tonnage/range", params={"unit": "kg"})
        self.assertEqual(response.json()["session_count"], 4)

        response = self.client.get("/stats/lifetime_tonnage")
        body = response.json()
        self.assertEqual(body["primary_unit"], "lb")
        self.assertEqual(body["total_by_unit"], {"kg": 1895.0, "lb": 430.0})

    def test_records_use_configured_formula(self) -> None:
        self.api.config.update(e1rm_formula="Epley")
        response = self.client.get("/stats/records", params={"lift_type": "Back Squat"})
        self.assertEqual(response.status_code, 200)
        by_reps = {row["reps"]: row["e1rm"] for row in response.json()}
        self.assertEqual(by_reps, {3: 121, 5: 123})

        response = self.client.get("/stats/recent_pr_tier", params={"lift_type": "Back Squat"})
        self.assertEqual(response.json(), {"lift_type": "Back Squat", "tier": "best"})
        response = self.client.get("/stats/recent_pr_tier", params={"lift_type": "Back Squat", "days": 0})
        self.assertEqual(response.status_code, 400)

    def test_bad_parameters(self) -> None:
        response = self.client.get("/stats/tonnage/session", params={"date": "yesterday"})
        self.assertEqual(response.status_code, 400)
        response = self.client.get("/stats/tonnage/session", params={"date": "2024-06-19", "unit": "stone"})
        self.assertEqual(response.status_code, 400)

    def test_highlight_pool(self) -> None:
        response = self.client.get("/highlights/pool")
        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertTrue(body["selection_pool"])
        self.assertEqual(len(body["selection_pool"]), min(body["candidate_count"], body["target_pool_size"]))

    def test_recap(self) -> None:
        self.assertEqual(self.client.get("/recap/years").json(), [2023, 2024])
        response = self.client.get("/recap/2024")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["session_count"], 4)
        self.assertEqual(self.client.get("/recap/1999").status_code, 404)

    def test_replace_entries(self) -> None:
        response = self.client.post(
            "/entries",
            json=[
                {"date": "2024-06-28", "liftType": "Deadlift", "reps": 1, "weight": 200, "unitType": "kg"},
                {"date": "2024-06-29", "liftType": "Deadlift", "reps": 1, "weight": 210, "unitType": "kg"},
            ],
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["entries"], 2)
        summaries = self.client.get("/stats/lift_types").json()
        self.assertEqual([s["lift_type"] for s in summaries], ["Deadlift"])

        response = self.client.post("/entries", json=[{"date": "2024-13-40", "liftType": "Deadlift", "reps": 1, "weight": 1}])
        self.assertEqual(response.status_code, 400)
        response = self.client.post("/entries", json=[{"date": "2024-06-01", "reps": "x", "weight": 1}])
        self.assertEqual(response.status_code, 400)

    def test_replace_entries_normalizes_timestamps(self) -> None:
        response = self.client.post(
            "/entries",
            json=[{"date": "2024-06-24T09:00:00", "liftType": "Bench Press", "reps": 1, "weight": 100}],
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(self.api.entries[0].date, "2024-06-24")

        response = self.client.get("/stats/weekly_streak")
        self.assertEqual(response.status_code, 200)
        response = self.client.get("/stats/tonnage/session", params={"date": "2024-06-24", "unit": "lb"})
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["tonnage"], 100.0)


if __name__ == "__main__":
    unittest.main()
