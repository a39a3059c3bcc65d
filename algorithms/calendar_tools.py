import datetime
from typing import Optional


class CalendarTools:
    """Calendar arithmetic on ``YYYY-MM-DD`` strings.

    Dates are gym wall-clock days, so everything works on ``datetime.date``
    and never touches time zones.
    """

    @staticmethod
    def parse(value) -> Optional[datetime.date]:
        """Return ``value`` as a date or ``None`` when it cannot be parsed."""
        if isinstance(value, datetime.datetime):
            return value.date()
        if isinstance(value, datetime.date):
            return value
        if not value:
            return None
        try:
            return datetime.date.fromisoformat(str(value).strip()[:10])
        except ValueError:
            return None

    @staticmethod
    def iso(value: datetime.date) -> str:
        return value.isoformat()

    @staticmethod
    def shift(date: str, days: int) -> str:
        """Return ``date`` moved by ``days`` calendar days."""
        return (datetime.date.fromisoformat(date) + datetime.timedelta(days=days)).isoformat()

    @staticmethod
    def week_key(date: str) -> str:
        """Return the Monday of the week containing ``date``."""
        day = datetime.date.fromisoformat(date)
        return (day - datetime.timedelta(days=day.weekday())).isoformat()

    @staticmethod
    def days_between(start: str, end: str) -> int:
        """Whole calendar days from ``start`` to ``end`` (negative if reversed)."""
        a = datetime.date.fromisoformat(start)
        b = datetime.date.fromisoformat(end)
        return (b - a).days

    @staticmethod
    def calendar_years_between(start: str, end: str) -> int:
        """Difference of the calendar years only."""
        return int(end[:4]) - int(start[:4])

    @staticmethod
    def calendar_months_between(start: str, end: str) -> int:
        a = datetime.date.fromisoformat(start)
        b = datetime.date.fromisoformat(end)
        return (b.year - a.year) * 12 + (b.month - a.month)

    @staticmethod
    def anniversary(date: str, year: int) -> datetime.date:
        """Return the anniversary of ``date`` in ``year``.

        29 February rolls over to 1 March in non-leap years.
        """
        day = datetime.date.fromisoformat(date)
        try:
            return day.replace(year=year)
        except ValueError:
            return datetime.date(year, 3, 1)
