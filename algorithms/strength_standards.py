from __future__ import annotations
import datetime
import logging
import os
from typing import Optional

import pandas as pd

from .math_tools import MathTools
from .weight_converter import WeightConverter

logger = logging.getLogger(__name__)

DATA_PATH = os.path.join(os.path.dirname(__file__), "data", "lifting_standards_kg.csv")
LEVELS = ("physically_active", "beginner", "intermediate", "advanced", "elite")
RATINGS = ("Physically Active", "Beginner", "Intermediate", "Advanced", "Elite")
RATING_SCORE = {name: idx + 1 for idx, name in enumerate(RATINGS)}


class StrengthStandards:
    """Age, body weight and sex adjusted standards for the Big Four lifts."""

    def __init__(self, path: str = DATA_PATH) -> None:
        self.path = path
        self.table = pd.read_csv(path)
        logger.debug("loaded %d strength standard rows from %s", len(self.table), path)

    @property
    def lift_types(self) -> list[str]:
        return sorted(self.table["lift_type"].unique().tolist())

    @staticmethod
    def _nearest_points(value: float, points: list[float]) -> tuple[float, float]:
        """Return the bracketing pair, or the outermost pair outside the range."""
        if value <= points[0]:
            return points[0], points[1]
        if value > points[-1]:
            return points[-2], points[-1]
        for idx in range(1, len(points)):
            if points[idx] >= value:
                return points[idx - 1], points[idx]
        return points[-2], points[-1]

    @staticmethod
    def _blend(lower: dict, upper: dict, ratio: float) -> dict[str, int]:
        ratio = MathTools.clamp(ratio, 0.0, 1.0)
        return {
            level: MathTools.round_half_up(lower[level] + (upper[level] - lower[level]) * ratio)
            for level in LEVELS
        }

    def _by_body_weight(self, rows: pd.DataFrame, age: int, body_weight_kg: float) -> dict:
        at_age = rows[rows["age"] == age].sort_values("body_weight")
        weights = at_age["body_weight"].drop_duplicates().tolist()
        lower, upper = self._nearest_points(body_weight_kg, weights)
        lower_row = at_age[at_age["body_weight"] == lower].iloc[0]
        upper_row = at_age[at_age["body_weight"] == upper].iloc[0]
        ratio = (body_weight_kg - lower) / (upper - lower)
        return self._blend(lower_row, upper_row, ratio)

    def interpolate_kg(
        self, age: float, body_weight_kg: float, sex: str, lift_type: str
    ) -> Optional[dict[str, int]]:
        """Return kg standards for an arbitrary age and body weight.

        Values are interpolated by body weight at the two nearest age points
        and then by age. ``None`` when the lift has no standards.
        """
        gender = "female" if sex == "female" else "male"
        rows = self.table[(self.table["gender"] == gender) & (self.table["lift_type"] == lift_type)]
        if rows.empty:
            return None
        ages = sorted(rows["age"].unique().tolist())
        age_lower, age_upper = self._nearest_points(age, ages)
        lower_values = self._by_body_weight(rows, age_lower, body_weight_kg)
        upper_values = self._by_body_weight(rows, age_upper, body_weight_kg)
        ratio = (age - age_lower) / (age_upper - age_lower)
        return self._blend(lower_values, upper_values, ratio)

    def standard_for_lift_date(
        self,
        age: Optional[float],
        lift_date: str,
        body_weight: Optional[float],
        sex: Optional[str],
        lift_type: str,
        is_metric: bool,
        today: Optional[str] = None,
    ) -> Optional[dict[str, int]]:
        """Return standards for the athlete's age when ``lift_date`` happened.

        The result is in kg when ``is_metric`` and in lb otherwise.
        """
        if not age or not lift_date or not body_weight or not sex or not lift_type:
            return None
        today = today or datetime.date.today().isoformat()
        try:
            years_ago = int(today[:4]) - datetime.date.fromisoformat(lift_date[:10]).year
        except ValueError:
            return None
        age_at_lift = max(0, age - years_ago)
        if is_metric:
            body_weight_kg = body_weight
        else:
            body_weight_kg = MathTools.round_half_up(
                body_weight / WeightConverter.STANDARDS_LB_PER_KG
            )
        standard = self.interpolate_kg(age_at_lift, body_weight_kg, sex, lift_type)
        if standard is None or is_metric:
            return standard
        return {
            level: MathTools.round_half_up(value * WeightConverter.STANDARDS_LB_PER_KG)
            for level, value in standard.items()
        }

    @staticmethod
    def rating_for_e1rm(one_rep_max: float, standard: Optional[dict]) -> Optional[str]:
        """Return the rating label ``one_rep_max`` reaches against ``standard``."""
        if not standard:
            return None
        if one_rep_max < standard["beginner"]:
            return "Physically Active"
        if one_rep_max < standard["intermediate"]:
            return "Beginner"
        if one_rep_max < standard["advanced"]:
            return "Intermediate"
        if one_rep_max < standard["elite"]:
            return "Advanced"
        return "Elite"
