from __future__ import annotations
import datetime
import logging
import time
from typing import Dict, Iterable, List, Optional, Tuple

from algorithms import CalendarTools, E1RMEstimator, MathTools, WeightConverter
from models import LiftEntry, LiftTypeSummary

logger = logging.getLogger(__name__)

REP_BUCKETS = 10
PR_WINDOW_DAYS = 365
CELEBRATION_EMOJIS = (
    "\U0001F947",
    "\U0001F948",
    "\U0001F949",
    "\U0001F4AA",
    "\U0001F44C",
    "\U0001F44F",
    "\U0001F3C6",
    "\U0001F525",
    "\U0001F4AF",
    "\U0001F929",
    "\U0001F389",
    "\U0001F44D",
    "\U0001F381",
    "\U0001F60D",
    "\U0001F389",
    "\U0001F60A",
    "\U0001F604",
    "\U0001F60B",
    "\U0001F973",
    "\U0001F609",
)

PRTable = Dict[str, List[List[LiftEntry]]]


def _elapsed_ms(start: float) -> int:
    return int(round((time.perf_counter() - start) * 1000))


def mark_historical_prs(entries: Iterable[LiftEntry]) -> list[LiftEntry]:
    """Return a copy of ``entries`` with ``is_historical_pr`` recomputed.

    An entry is a historical PR when its weight beats every earlier entry of
    the same lift type and rep count. Goals and failed (0 rep) sets are never
    flagged. The input is not modified.
    """
    start = time.perf_counter()
    best: dict[tuple[str, int], float] = {}
    marked: list[LiftEntry] = []
    for entry in entries:
        if entry.is_goal or entry.reps == 0:
            marked.append(entry.with_historical_pr(False))
            continue
        key = (entry.lift_type, entry.reps)
        if key not in best or entry.weight > best[key]:
            best[key] = entry.weight
            marked.append(entry.with_historical_pr(True))
        else:
            marked.append(entry.with_historical_pr(False))
    logger.debug("mark_historical_prs() execution time: %dms", _elapsed_ms(start))
    return marked


class StatisticsService:
    """Compute lift history statistics for analysis.

    ``entries`` is a snapshot of the lift log. ``today`` pins the calendar
    so every windowed query is reproducible. ``cache`` is an optional dict
    owned by the caller; results are stored under the history fingerprint
    and a hash of the entries so a fresh snapshot never reads stale values.
    """

    def __init__(
        self,
        entries: Iterable[LiftEntry],
        today: Optional[str] = None,
        cache: Optional[dict] = None,
    ) -> None:
        self.entries: list[LiftEntry] = sorted(
            (e for e in entries if e.date), key=lambda e: e.date
        )
        self.today = today or datetime.date.today().isoformat()
        self._cache: dict[tuple, object] = cache if cache is not None else {}
        self._content_hash = hash(tuple(self.entries))

    def clear_cache(self) -> None:
        """Clear any cached statistics."""
        self._cache.clear()

    def fingerprint(self) -> str:
        """Return ``first|last|count`` for the current snapshot."""
        if not self.entries:
            return "empty"
        return f"{self.entries[0].date}|{self.entries[-1].date}|{len(self.entries)}"

    def _cached(self, name: str, compute, *args):
        key = (name, self.fingerprint(), self._content_hash, self.today) + args
        if key not in self._cache:
            self._cache[key] = compute()
        return self._cache[key]

    def history(self) -> list[LiftEntry]:
        """Return non-goal entries in date order."""
        return [e for e in self.entries if not e.is_goal]

    def first_date(self) -> Optional[str]:
        hist = self.history()
        return hist[0].date if hist else None

    def session_dates(self) -> list[str]:
        return sorted({e.date for e in self.history()})

    def lift_types(self) -> list[LiftTypeSummary]:
        """Return per lift type totals sorted by set count descending."""
        return self._cached("lift_types", self._lift_types)

    def _lift_types(self) -> list[LiftTypeSummary]:
        start = time.perf_counter()
        stats: dict[str, dict] = {}
        for entry in self.entries:
            if entry.is_goal:
                continue
            row = stats.get(entry.lift_type)
            if row is None:
                row = stats[entry.lift_type] = {
                    "total_sets": 0,
                    "total_reps": 0,
                    "oldest_date": entry.date,
                    "newest_date": entry.date,
                }
            row["newest_date"] = entry.date
            row["total_sets"] += 1
            row["total_reps"] += entry.reps
        result = [LiftTypeSummary(lift_type=name, **row) for name, row in stats.items()]
        result.sort(key=lambda s: -s.total_sets)
        logger.debug("lift_types() execution time: %dms", _elapsed_ms(start))
        return result

    def total_stats(self) -> Dict[str, int]:
        summaries = self.lift_types()
        return {
            "total_sets": sum(s.total_sets for s in summaries),
            "total_reps": sum(s.total_reps for s in summaries),
        }

    def journey_length_label(self) -> str:
        first = self.first_date()
        if first is None:
            return "Starting your journey"
        years = CalendarTools.calendar_years_between(first, self.today)
        months = CalendarTools.calendar_months_between(first, self.today) % 12
        days = CalendarTools.days_between(first, self.today) % 30
        if years >= 10:
            return f"Over {years} years of strength mastery"
        if years >= 5:
            return f"{years} years of strength excellence"
        if years >= 1:
            return f"{years} year{'s' if years > 1 else ''} of strength commitment"
        if months >= 6:
            return f"{months} months of strength progress"
        if months > 0:
            return f"{months} month{'s' if months > 1 else ''} of lifting"
        return f"{days} day{'' if days == 1 else 's'} of lifting"

    def overview(self) -> Dict[str, object]:
        """Return headline numbers for the whole history."""
        totals = self.total_stats()
        dates = self.session_dates()
        return {
            "lift_types": len(self.lift_types()),
            "total_sets": totals["total_sets"],
            "total_reps": totals["total_reps"],
            "sessions": len(dates),
            "first_date": dates[0] if dates else None,
            "last_date": dates[-1] if dates else None,
            "journey": self.journey_length_label(),
        }

    def pr_cap(self) -> int:
        """Bucket length: 5 for histories spanning two years or less, else 20."""
        if not self.entries:
            return 5
        span = CalendarTools.calendar_years_between(self.entries[0].date, self.entries[-1].date)
        return 5 if span <= 2 else 20

    def top_lifts_by_type_and_reps(self) -> Tuple[PRTable, PRTable]:
        """Return the all-time and trailing twelve month PR tables.

        Each lift type maps to ten buckets (reps 1-10) sorted by weight
        descending, earliest date first on ties.
        """
        return self._cached("top_lifts", self._top_lifts)

    def _top_lifts(self) -> Tuple[PRTable, PRTable]:
        start = time.perf_counter()
        all_time: PRTable = {}
        last_year: PRTable = {}
        for summary in self.lift_types():
            all_time[summary.lift_type] = [[] for _ in range(REP_BUCKETS)]
            last_year[summary.lift_type] = [[] for _ in range(REP_BUCKETS)]
        cutoff = CalendarTools.shift(self.today, -PR_WINDOW_DAYS)
        for entry in self.entries:
            if entry.is_goal or entry.reps < 1 or entry.reps > REP_BUCKETS:
                continue
            all_time[entry.lift_type][entry.reps - 1].append(entry)
            if entry.date >= cutoff:
                last_year[entry.lift_type][entry.reps - 1].append(entry)
        cap = self.pr_cap()
        for table in (all_time, last_year):
            for buckets in table.values():
                for idx, bucket in enumerate(buckets):
                    bucket.sort(key=lambda e: (-e.weight, e.date))
                    buckets[idx] = bucket[:cap]
        logger.debug("top_lifts_by_type_and_reps() execution time: %dms", _elapsed_ms(start))
        return all_time, last_year

    def personal_records(
        self, lift_type: Optional[str] = None, formula: str = "Brzycki"
    ) -> List[Dict[str, object]]:
        """Return the best entry per rep count for each lift type."""
        all_time, _ = self.top_lifts_by_type_and_reps()
        records: list[dict] = []
        for name, buckets in all_time.items():
            if lift_type and name != lift_type:
                continue
            for idx, bucket in enumerate(buckets):
                if not bucket:
                    continue
                top = bucket[0]
                records.append(
                    {
                        "lift_type": name,
                        "reps": idx + 1,
                        "weight": top.weight,
                        "unit_type": top.unit_type,
                        "date": top.date,
                        "e1rm": E1RMEstimator.estimate(idx + 1, top.weight, formula),
                    }
                )
        return records

    def find_lift_position(
        self, entry: LiftEntry, table: Optional[PRTable] = None
    ) -> Tuple[int, Optional[str]]:
        """Return the rank of ``entry`` in its PR bucket and a celebration note."""
        if table is None:
            table = self.top_lifts_by_type_and_reps()[0]
        buckets = table.get(entry.lift_type)
        if not buckets or entry.reps < 1 or entry.reps > len(buckets):
            return -1, None
        for idx, lift in enumerate(buckets[entry.reps - 1]):
            if (
                lift.date == entry.date
                and lift.weight == entry.weight
                and lift.reps == entry.reps
                and lift.notes == entry.notes
                and lift.url == entry.url
            ):
                emoji = CELEBRATION_EMOJIS[idx] if idx < len(CELEBRATION_EMOJIS) else ""
                return idx, f"{emoji}  #{idx + 1} best {lift.reps}RM"
        return -1, None

    def most_recent_single_pr(self) -> Optional[LiftEntry]:
        """Return the latest top single among the five most trained lifts."""
        all_time, _ = self.top_lifts_by_type_and_reps()
        top_five = {s.lift_type for s in self.lift_types()[:5]}
        best: Optional[LiftEntry] = None
        for name, buckets in all_time.items():
            if name not in top_five or not buckets[0]:
                continue
            singles = buckets[0]
            pr = singles[0]
            for lift in singles:
                if lift.weight == singles[0].weight and lift.date > pr.date:
                    pr = lift
            if best is None or pr.date > best.date:
                best = pr
        return best

    def prs_in_last_12_months(self) -> Dict[str, object]:
        all_time, _ = self.top_lifts_by_type_and_reps()
        cutoff = CalendarTools.shift(self.today, -PR_WINDOW_DAYS)
        names = [
            name
            for name, buckets in all_time.items()
            if any(lift.date >= cutoff for bucket in buckets for lift in bucket)
        ]
        return {"count": len(names), "lift_types": names}

    def recent_pr_tier(
        self, lift_type: str, days: int = 60, formula: str = "Brzycki"
    ) -> Optional[str]:
        """Return ``best``, ``top5`` or ``top10`` for recent PR activity."""
        all_time, _ = self.top_lifts_by_type_and_reps()
        buckets = all_time.get(lift_type)
        if not buckets:
            return None
        cutoff = CalendarTools.shift(self.today, -days)
        best_lift: Optional[LiftEntry] = None
        best_e1rm = 0
        for idx, bucket in enumerate(buckets):
            if not bucket:
                continue
            e1rm = E1RMEstimator.estimate(idx + 1, bucket[0].weight, formula)
            if e1rm > best_e1rm:
                best_e1rm = e1rm
                best_lift = bucket[0]
        if best_lift is not None and best_lift.date >= cutoff:
            return "best"
        for depth, tier in ((5, "top5"), (10, "top10")):
            for bucket in buckets:
                if any(lift.date >= cutoff for lift in bucket[:depth]):
                    return tier
        return None

    def session_momentum(self) -> Dict[str, int]:
        """Compare distinct sessions in the last 90 days with the 90 before."""
        recent_start = CalendarTools.shift(self.today, -89)
        previous_start = CalendarTools.shift(self.today, -179)
        recent: set[str] = set()
        previous: set[str] = set()
        for entry in self.history():
            if recent_start <= entry.date <= self.today:
                recent.add(entry.date)
            elif previous_start <= entry.date < recent_start:
                previous.add(entry.date)
        return {
            "recent_sessions": len(recent),
            "previous_sessions": len(previous),
            "percentage_change": MathTools.percentage_change(len(recent), len(previous)),
        }

    def lifetime_tonnage(self, preferred_unit: Optional[str] = "lb") -> Dict[str, object]:
        """Return lifetime tonnage per unit plus a merged display total."""
        start = time.perf_counter()
        total_by_unit: dict[str, float] = {}
        last_year_by_unit: dict[str, float] = {}
        sessions: set[str] = set()
        cutoff = CalendarTools.shift(self.today, -PR_WINDOW_DAYS)
        for entry in self.history():
            sessions.add(entry.date)
            tonnage = entry.tonnage
            if not tonnage:
                continue
            total_by_unit[entry.unit_type] = total_by_unit.get(entry.unit_type, 0.0) + tonnage
            if cutoff <= entry.date <= self.today:
                last_year_by_unit[entry.unit_type] = (
                    last_year_by_unit.get(entry.unit_type, 0.0) + tonnage
                )
        primary_unit = preferred_unit or next(iter(total_by_unit), "lb")
        primary_total = WeightConverter.merge(total_by_unit, primary_unit)
        dates = sorted(sessions)
        has_year = bool(dates) and CalendarTools.days_between(dates[0], dates[-1]) >= 365
        last_year_total = WeightConverter.merge(last_year_by_unit, primary_unit) if has_year else 0.0
        logger.debug("lifetime_tonnage() execution time: %dms", _elapsed_ms(start))
        return {
            "total_by_unit": total_by_unit,
            "primary_unit": primary_unit,
            "primary_total": primary_total,
            "session_count": len(sessions),
            "average_per_session": (
                MathTools.round_half_up(primary_total / len(sessions)) if sessions else 0
            ),
            "has_twelve_months_of_data": has_year,
            "last_year_primary_total": last_year_total,
        }
