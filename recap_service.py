from __future__ import annotations
import logging
import random
from typing import Dict, List, Optional

from algorithms import WeightConverter
from consistency_service import (
    ConsistencyService,
    consistency_percentage,
    expected_sessions,
    grade_color,
    grade_for,
)
from stats_service import StatisticsService

logger = logging.getLogger(__name__)

MONTH_NAMES = (
    "January",
    "February",
    "March",
    "April",
    "May",
    "June",
    "July",
    "August",
    "September",
    "October",
    "November",
    "December",
)

YEARLY_TONNAGE_EQUIVALENTS = {
    "kg": (
        ("blue whale", 150000, "\U0001F40B"),
        ("elephant", 6000, "\U0001F418"),
        ("school bus", 5670, "\U0001F68C"),
        ("car", 1500, "\U0001F697"),
        ("cow", 700, "\U0001F404"),
        ("grand piano", 300, "\U0001F3B9"),
        ("vending machine", 250, "\U0001F964"),
        ("Eddie Hall", 180, "\U0001F98D"),
        ("Labrador Retriever", 30, "\U0001F415"),
        ("rotisserie chicken", 1.5, "\U0001F357"),
    ),
    "lb": (
        ("blue whale", 330000, "\U0001F40B"),
        ("elephant", 13200, "\U0001F418"),
        ("school bus", 12500, "\U0001F68C"),
        ("car", 3300, "\U0001F697"),
        ("cow", 1540, "\U0001F404"),
        ("grand piano", 660, "\U0001F3B9"),
        ("vending machine", 550, "\U0001F964"),
        ("Eddie Hall", 400, "\U0001F98D"),
        ("Labrador Retriever", 66, "\U0001F415"),
        ("rotisserie chicken", 3.3, "\U0001F357"),
    ),
}


def format_tonnage(value: float) -> str:
    """Format large tonnage numbers as ``1.2M``, ``250k`` or ``9,500``."""
    if not value or value <= 0:
        return "0"
    if value >= 1_000_000:
        return f"{value / 1_000_000:.1f}M"
    if value >= 10_000:
        return f"{int(value / 1_000 + 0.5)}k"
    return f"{value:,.0f}" if float(value).is_integer() else f"{value:,.2f}".rstrip("0").rstrip(".")


def tonnage_equivalent(
    tonnage: float, unit: str = "lb", rng: Optional[random.Random] = None
) -> Dict[str, object]:
    """Pick a real-world object the tonnage can be compared with."""
    rng = rng or random.Random()
    items = YEARLY_TONNAGE_EQUIVALENTS.get(unit, YEARLY_TONNAGE_EQUIVALENTS["lb"])
    valid = [item for item in items if tonnage / item[1] >= 0.1] or list(items)
    name, weight, emoji = rng.choice(valid)
    return {"name": name, "count": tonnage / weight, "emoji": emoji}


class YearRecapService:
    """Build the per-year recap of a lift history."""

    def __init__(self, stats: StatisticsService) -> None:
        self.stats = stats
        self.consistency = ConsistencyService(stats)

    def years_with_data(self) -> List[int]:
        return sorted({int(e.date[:4]) for e in self.stats.history()})

    def pr_highlights(self, year: int, limit: int = 5) -> List[Dict[str, object]]:
        """Top PR bucket entries set during ``year``, best rank first."""
        all_time, _ = self.stats.top_lifts_by_type_and_reps()
        prefix = str(year)
        found = []
        for buckets in all_time.values():
            for bucket in buckets:
                for lift in bucket:
                    if not lift.date.startswith(prefix):
                        continue
                    rank, annotation = self.stats.find_lift_position(lift, all_time)
                    row = lift.to_dict()
                    row.update({"rank": rank, "annotation": annotation})
                    found.append(row)
        found.sort(key=lambda r: (r["rank"], -r["weight"]))
        return found[:limit]

    def year_metrics(self, year: int, preferred_unit: Optional[str] = "lb") -> Dict[str, object]:
        entries = [e for e in self.stats.history() if e.date[:4] == str(year)]
        sessions: set[str] = set()
        months: list[set[str]] = [set() for _ in range(12)]
        tonnage_by_unit: dict[str, float] = {}
        lift_sets: dict[str, int] = {}
        lift_reps: dict[str, int] = {}
        lift_sessions: dict[str, set[str]] = {}
        for entry in entries:
            sessions.add(entry.date)
            months[int(entry.date[5:7]) - 1].add(entry.date)
            tonnage_by_unit[entry.unit_type] = tonnage_by_unit.get(entry.unit_type, 0.0) + entry.tonnage
            lift_sets[entry.lift_type] = lift_sets.get(entry.lift_type, 0) + 1
            lift_reps[entry.lift_type] = lift_reps.get(entry.lift_type, 0) + entry.reps
            lift_sessions.setdefault(entry.lift_type, set()).add(entry.date)

        if preferred_unit and preferred_unit in tonnage_by_unit:
            primary_unit = preferred_unit
        else:
            primary_unit = next(iter(tonnage_by_unit), "lb")
        most_trained = max(lift_sets, key=lift_sets.get) if lift_sets else None
        expected = expected_sessions(365)
        percentage = consistency_percentage(len(sessions), expected)
        counts = [len(m) for m in months]
        busiest = MONTH_NAMES[counts.index(max(counts))] if sessions else None
        logger.debug("year_metrics(%s): %d entries", year, len(entries))
        return {
            "year": year,
            "session_count": len(sessions),
            "tonnage": WeightConverter.merge(tonnage_by_unit, primary_unit),
            "tonnage_by_unit": tonnage_by_unit,
            "primary_unit": primary_unit,
            "most_trained_lift": most_trained,
            "most_trained_lift_sets": lift_sets.get(most_trained, 0) if most_trained else 0,
            "most_trained_lift_reps": lift_reps.get(most_trained, 0) if most_trained else 0,
            "most_trained_lift_sessions": len(lift_sessions.get(most_trained, ())) if most_trained else 0,
            "best_streak": self.consistency.best_streak_for_year(year, sorted(sessions)),
            "consistency_percentage": percentage,
            "consistency_grade": grade_for(percentage) if sessions else None,
            "consistency_color": grade_color(percentage),
            "pr_highlights": self.pr_highlights(year),
            "monthly_sessions": [
                {"month": name, "month_index": idx, "session_count": counts[idx]}
                for idx, name in enumerate(MONTH_NAMES)
            ],
            "busiest_month": busiest,
        }
