from __future__ import annotations
import bisect
import logging
import time
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional

import pandas as pd

from algorithms import CalendarTools, MathTools
from stats_service import StatisticsService

logger = logging.getLogger(__name__)

ROLLING_WINDOW_DAYS = 365
TYPICAL_LOW_PERCENTILE = 25
TYPICAL_HIGH_PERCENTILE = 90
NEGLECTED_TIERS = (
    (10, "⏰ It's time"),
    (30, "\U0001F4AA Comeback ready"),
    (60, "\U0001F331 Been a while"),
)


@dataclass
class SessionTonnageLookup:
    """Precomputed tonnage maps, always partitioned by unit."""

    tonnage_by_date_and_lift: Dict[str, Dict[str, Dict[str, float]]] = field(default_factory=dict)
    tonnage_by_date: Dict[str, Dict[str, float]] = field(default_factory=dict)
    all_session_dates: List[str] = field(default_factory=list)
    last_date_by_lift_type: Dict[str, str] = field(default_factory=dict)


class TonnageService:
    """Tonnage rollups and rolling window queries over a lift history."""

    def __init__(self, stats: StatisticsService) -> None:
        self.stats = stats

    def build_lookup(self) -> SessionTonnageLookup:
        return self.stats._cached("tonnage_lookup", self._build_lookup)

    def _build_lookup(self) -> SessionTonnageLookup:
        start = time.perf_counter()
        lookup = SessionTonnageLookup()
        history = self.stats.history()
        if not history:
            return lookup
        df = pd.DataFrame(
            {
                "date": [e.date for e in history],
                "lift_type": [e.lift_type for e in history],
                "unit_type": [e.unit_type for e in history],
                "tonnage": [e.tonnage for e in history],
            }
        )
        by_lift = df.groupby(["date", "lift_type", "unit_type"], sort=True)["tonnage"].sum()
        for (date, lift_type, unit), value in by_lift.items():
            lifts = lookup.tonnage_by_date_and_lift.setdefault(date, {})
            lifts.setdefault(lift_type, {})[unit] = float(value)
        by_date = df.groupby(["date", "unit_type"], sort=True)["tonnage"].sum()
        for (date, unit), value in by_date.items():
            lookup.tonnage_by_date.setdefault(date, {})[unit] = float(value)
        lookup.all_session_dates = sorted(df["date"].unique().tolist())
        lookup.last_date_by_lift_type = df.groupby("lift_type")["date"].max().to_dict()
        logger.debug("build_lookup() execution time: %dms", int((time.perf_counter() - start) * 1000))
        return lookup

    def lift_tonnage_for_date(self, date: str, lift_type: str, unit: str = "lb") -> float:
        lookup = self.build_lookup()
        return lookup.tonnage_by_date_and_lift.get(date, {}).get(lift_type, {}).get(unit, 0.0)

    def session_tonnage_for_date(self, date: str, unit: str = "lb") -> float:
        return self.build_lookup().tonnage_by_date.get(date, {}).get(unit, 0.0)

    def _window_dates(self, end_date: str) -> list[str]:
        """Session dates inside ``[end_date - 364, end_date]``."""
        dates = self.build_lookup().all_session_dates
        start_date = CalendarTools.shift(end_date, -(ROLLING_WINDOW_DAYS - 1))
        lo = bisect.bisect_left(dates, start_date)
        hi = bisect.bisect_right(dates, end_date)
        return dates[lo:hi]

    def average_lift_session_tonnage(
        self, end_date: str, lift_type: str, unit: str = "lb"
    ) -> Dict[str, object]:
        """Average tonnage of ``lift_type`` over the sessions that trained it.

        Sessions where the lift contributed nothing are left out of the
        denominator.
        """
        values = [
            self.lift_tonnage_for_date(date, lift_type, unit)
            for date in self._window_dates(end_date)
        ]
        values = [v for v in values if v > 0]
        return {"average": MathTools.mean(values), "session_count": len(values)}

    def average_session_tonnage(self, end_date: str, unit: str = "lb") -> Dict[str, object]:
        values = self._session_values(end_date, unit)
        return {"average": MathTools.mean(values), "session_count": len(values)}

    def _session_values(self, end_date: str, unit: str) -> list[float]:
        values = [self.session_tonnage_for_date(d, unit) for d in self._window_dates(end_date)]
        return [v for v in values if v > 0]

    def session_tonnage_percentile_range(
        self, end_date: str, unit: str = "lb"
    ) -> Dict[str, object]:
        """Return the typical low/high session tonnage band for the window."""
        values = self._session_values(end_date, unit)
        return {
            "low": MathTools.nearest_rank_percentile(values, TYPICAL_LOW_PERCENTILE),
            "high": MathTools.nearest_rank_percentile(values, TYPICAL_HIGH_PERCENTILE),
            "session_count": len(values),
        }

    def total_tonnage_by_unit(self) -> Dict[str, float]:
        totals: dict[str, float] = {}
        for per_unit in self.build_lookup().tonnage_by_date.values():
            for unit, value in per_unit.items():
                totals[unit] = totals.get(unit, 0.0) + value
        return totals

    def top_tonnage_by_type(self, cap: int = 20) -> tuple[dict, dict]:
        """Rank each lift type's sessions by tonnage, all-time and last year.

        The result maps lift type to unit to a list of ``{"date", "tonnage"}``
        rows, heaviest first with the earliest date winning ties.
        """
        lookup = self.build_lookup()
        cutoff = CalendarTools.shift(self.stats.today, -ROLLING_WINDOW_DAYS)
        all_time: dict[str, dict[str, list]] = {}
        last_year: dict[str, dict[str, list]] = {}
        for date in lookup.all_session_dates:
            for lift_type, per_unit in lookup.tonnage_by_date_and_lift.get(date, {}).items():
                for unit, tonnage in per_unit.items():
                    if tonnage <= 0:
                        continue
                    row = {"date": date, "tonnage": tonnage}
                    all_time.setdefault(lift_type, {}).setdefault(unit, []).append(row)
                    if date >= cutoff:
                        last_year.setdefault(lift_type, {}).setdefault(unit, []).append(row)
        for table in (all_time, last_year):
            for per_unit in table.values():
                for unit, rows in per_unit.items():
                    rows.sort(key=lambda r: (-r["tonnage"], r["date"]))
                    per_unit[unit] = rows[:cap]
        return all_time, last_year

    def neglected_lift_types(
        self, lift_types: Optional[Iterable[str]] = None
    ) -> List[Dict[str, object]]:
        """Return lifts not trained today with days since last session.

        ``tier`` is the label of the longest gap threshold reached, or
        ``None`` below ten days. Longest gaps come first.
        """
        last_dates = self.build_lookup().last_date_by_lift_type
        names = list(lift_types) if lift_types is not None else list(last_dates)
        rows = []
        for name in names:
            last = last_dates.get(name)
            if last is None or last >= self.stats.today:
                continue
            days = CalendarTools.days_between(last, self.stats.today)
            tier = None
            for threshold, label in NEGLECTED_TIERS:
                if days >= threshold:
                    tier = label
            rows.append({"lift_type": name, "last_date": last, "days_since": days, "tier": tier})
        rows.sort(key=lambda r: -r["days_since"])
        return rows
