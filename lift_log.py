from __future__ import annotations
import logging
import os
import re
from typing import Iterable, List, Optional

import pandas as pd

from algorithms import CalendarTools, WeightConverter
from models import LiftEntry, parse_flag

logger = logging.getLogger(__name__)

HEADER_ALIASES = {
    "date": "date",
    "lift type": "lift_type",
    "lift_type": "lift_type",
    "lifttype": "lift_type",
    "reps": "reps",
    "weight": "weight",
    "unit": "unit_type",
    "unit_type": "unit_type",
    "unittype": "unit_type",
    "notes": "notes",
    "url": "url",
    "is_goal": "is_goal",
    "isgoal": "is_goal",
    "goal": "is_goal",
}
COLUMNS = ["date", "lift_type", "reps", "weight", "unit_type", "notes", "url", "is_goal"]
_WEIGHT = re.compile(r"^\s*(-?\d+(?:\.\d+)?|\.\d+)\s*([a-zA-Z#]*)\s*$")


def parse_weight(value: str, default_unit: str = "lb") -> tuple[Optional[float], str]:
    """Split strings like ``"100kg"`` into value and unit."""
    text = str(value or "").strip()
    match = _WEIGHT.match(text)
    if not match:
        return None, default_unit
    unit = WeightConverter.normalize_unit(match.group(2), default_unit)
    return float(match.group(1)), unit


class LiftLogRepository:
    """CSV-backed lift history with either snake_case or spreadsheet headers."""

    def __init__(self, path: str = "lifts.csv") -> None:
        self.path = path

    @staticmethod
    def _normalize_headers(df: pd.DataFrame) -> pd.DataFrame:
        renamed = {}
        for column in df.columns:
            key = str(column).strip().lower()
            if key in HEADER_ALIASES:
                renamed[column] = HEADER_ALIASES[key]
        return df.rename(columns=renamed)

    def fetch_all(self) -> List[LiftEntry]:
        """Return every parseable row sorted by date."""
        if not os.path.exists(self.path):
            return []
        df = pd.read_csv(self.path, dtype=str, keep_default_na=False)
        return self.parse_frame(df)

    def parse_frame(self, df: pd.DataFrame) -> List[LiftEntry]:
        df = self._normalize_headers(df)
        for column in COLUMNS:
            if column not in df.columns:
                df[column] = ""
        # Blank date or lift type cells continue the row above.
        for column in ("date", "lift_type"):
            df[column] = df[column].replace("", pd.NA).ffill().fillna("")
        entries: list[LiftEntry] = []
        for idx, row in enumerate(df.to_dict("records")):
            date = CalendarTools.parse(row["date"])
            if date is None:
                logger.warning("skipping row %d: unparseable date %r", idx + 2, row["date"])
                continue
            weight, unit = parse_weight(row["weight"], WeightConverter.normalize_unit(row["unit_type"]))
            try:
                reps = int(float(row["reps"]))
            except (TypeError, ValueError):
                reps = None
            if weight is None or reps is None or not row["lift_type"]:
                logger.warning("skipping row %d: missing lift type, reps or weight", idx + 2)
                continue
            entries.append(
                LiftEntry(
                    date=date.isoformat(),
                    lift_type=str(row["lift_type"]).strip(),
                    reps=reps,
                    weight=weight,
                    unit_type=unit,
                    notes=row["notes"] or None,
                    url=row["url"] or None,
                    is_goal=parse_flag(row["is_goal"]),
                )
            )
        entries.sort(key=lambda e: e.date)
        logger.info("loaded %d lift entries from %s", len(entries), self.path)
        return entries

    def save(self, entries: Iterable[LiftEntry]) -> None:
        rows = [
            {
                "date": e.date,
                "lift_type": e.lift_type,
                "reps": e.reps,
                "weight": e.weight,
                "unit_type": e.unit_type,
                "notes": e.notes or "",
                "url": e.url or "",
                "is_goal": "true" if e.is_goal else "",
            }
            for e in entries
        ]
        pd.DataFrame(rows, columns=COLUMNS).to_csv(self.path, index=False)
