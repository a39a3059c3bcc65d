from __future__ import annotations
import logging
import math
import time
from typing import Dict, List, Optional

from algorithms import CalendarTools, MathTools
from stats_service import StatisticsService

logger = logging.getLogger(__name__)

SESSIONS_PER_WEEK_TARGET = 3

# Periods sit slightly under round numbers to tolerate rest weeks.
PERIOD_TARGETS = (
    ("Week", 7),
    ("Month", 30),
    ("3 Month", 90),
    ("Half Year", 180),
    ("Year", 345),
    ("24 Month", 700),
    ("5 Year", 1750),
    ("Decade", 3500),
)

HUE_GREEN = 120
HUE_YELLOW = 60
HUE_ORANGE = 30
HUE_RED = 0

GRADE_THRESHOLDS = (
    (100, "A+", HUE_GREEN),
    (90, "A", HUE_GREEN),
    (80, "A-", HUE_GREEN),
    (70, "B+", HUE_YELLOW),
    (59, "B", HUE_YELLOW),
    (50, "B-", HUE_YELLOW),
    (42, "C+", HUE_ORANGE),
    (36, "C", HUE_ORANGE),
    (30, "C-", HUE_ORANGE),
    (0, ".", HUE_RED),
)


def expected_sessions(days: int) -> int:
    return MathTools.round_half_up(days / 7 * SESSIONS_PER_WEEK_TARGET)


def consistency_percentage(actual: int, expected: int) -> int:
    if expected <= 0:
        return 0
    return min(MathTools.round_half_up(actual / expected * 100), 100)


def _threshold_for(percentage: float) -> tuple:
    for threshold in GRADE_THRESHOLDS:
        if percentage >= threshold[0]:
            return threshold
    return GRADE_THRESHOLDS[-1]


def grade_for(percentage: float) -> str:
    """Return the letter grade for a consistency percentage."""
    return _threshold_for(percentage)[1]


def grade_color(percentage: float) -> str:
    """Return an HSL colour that brightens as consistency improves."""
    hue = _threshold_for(percentage)[2]
    lightness = 10 + percentage / 2
    return f"hsl({hue}, 90%, {lightness:g}%)"


def sessions_to_next_grade(actual: int, expected: int) -> int:
    """Sessions still needed to reach the next higher grade, 0 at the top."""
    if expected <= 0:
        return 0
    progress = actual / expected * 100
    higher = [t[0] for t in GRADE_THRESHOLDS if t[0] > progress]
    if not higher:
        return 0
    return max(0, math.ceil(min(higher) * expected / 100) - actual)


def _tooltip(actual: int, expected: int) -> str:
    if actual > expected:
        return (
            f"Achieved {actual - expected} more than the minimum # of sessions "
            "required for 3 per week average"
        )
    if actual == expected:
        return (
            "Achieved exactly the required # of sessions for 3 per week average. "
            "You can stop lifting now."
        )
    return (
        f"Achieved {actual} sessions (get {sessions_to_next_grade(actual, expected)} "
        "more in this period to improve your grade)"
    )


class ConsistencyService:
    """Weekly streaks and period consistency against three sessions a week."""

    def __init__(self, stats: StatisticsService) -> None:
        self.stats = stats

    def sessions_per_week(self) -> Dict[str, int]:
        """Return distinct session dates per Monday week key, oldest first."""
        weeks: dict[str, set[str]] = {}
        for date in self.stats.session_dates():
            weeks.setdefault(CalendarTools.week_key(date), set()).add(date)
        return {key: len(weeks[key]) for key in sorted(weeks)}

    @staticmethod
    def _qualifies(counts: Dict[str, int], week: str) -> bool:
        return counts.get(week, 0) >= SESSIONS_PER_WEEK_TARGET

    def weekly_streak(self) -> Dict[str, int]:
        """Return current and best runs of weeks with 3+ sessions.

        The week containing today extends the current streak once it
        qualifies. Until then the walk starts at last week, so an
        unfinished week never breaks a streak.
        """
        start = time.perf_counter()
        counts = self.sessions_per_week()
        if not counts:
            return {"current_streak": 0, "best_streak": 0, "sessions_this_week": 0}
        oldest = next(iter(counts))
        this_week = CalendarTools.week_key(self.stats.today)
        sessions_this_week = counts.get(this_week, 0)

        current = 0
        week = this_week if self._qualifies(counts, this_week) else CalendarTools.shift(this_week, -7)
        while week >= oldest and self._qualifies(counts, week):
            current += 1
            week = CalendarTools.shift(week, -7)

        best = 0
        run = 0
        week = oldest
        while week <= this_week:
            if self._qualifies(counts, week):
                run += 1
                best = max(best, run)
            else:
                run = 0
            week = CalendarTools.shift(week, 7)
        logger.debug("weekly_streak() execution time: %dms", int((time.perf_counter() - start) * 1000))
        return {
            "current_streak": current,
            "best_streak": best,
            "sessions_this_week": sessions_this_week,
        }

    def relevant_periods(self) -> List[tuple]:
        """Periods up to and including the first one longer than the history."""
        first = self.stats.first_date()
        if first is None:
            return []
        span = CalendarTools.days_between(first, self.stats.today)
        periods = []
        for label, days in PERIOD_TARGETS:
            periods.append((label, days))
            if days > span:
                break
        return periods

    def consistency(self) -> List[Dict[str, object]]:
        """Return one graded row per unlocked look-back period."""
        start = time.perf_counter()
        dates = self.stats.session_dates()
        rows = []
        for label, days in self.relevant_periods():
            window_start = CalendarTools.shift(self.stats.today, -(days - 1))
            actual = sum(1 for d in dates if window_start <= d <= self.stats.today)
            expected = expected_sessions(days)
            percentage = consistency_percentage(actual, expected)
            rows.append(
                {
                    "label": label,
                    "days": days,
                    "actual": actual,
                    "expected": expected,
                    "percentage": percentage,
                    "grade": grade_for(percentage),
                    "color": grade_color(percentage),
                    "tooltip": _tooltip(actual, expected),
                }
            )
        logger.debug("consistency() execution time: %dms", int((time.perf_counter() - start) * 1000))
        return rows

    def best_streak_for_year(self, year: int, dates: Optional[List[str]] = None) -> int:
        """Longest run of qualifying weeks whose Monday falls in ``year``."""
        dates = self.stats.session_dates() if dates is None else dates
        weeks: dict[str, set[str]] = {}
        for date in dates:
            if int(date[:4]) != year:
                continue
            weeks.setdefault(CalendarTools.week_key(date), set()).add(date)
        if not weeks:
            return 0
        counts = {key: len(value) for key, value in weeks.items()}
        week = min(counts)
        last = max(counts)
        best = run = 0
        while week <= last:
            if self._qualifies(counts, week):
                run += 1
                best = max(best, run)
            else:
                run = 0
            week = CalendarTools.shift(week, 7)
        return best
