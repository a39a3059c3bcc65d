from typing import Mapping

UNITS = ("lb", "kg")


class WeightConverter:
    """Utility for converting between kg and lb."""

    LB_TO_KG = 0.453592
    KG_TO_LB = 1 / LB_TO_KG
    # Factor the strength standards tables were published with.
    STANDARDS_LB_PER_KG = 2.2046

    @staticmethod
    def kg_to_lb(kg: float) -> float:
        return round(kg * WeightConverter.KG_TO_LB, 2)

    @staticmethod
    def lb_to_kg(lb: float) -> float:
        return round(lb * WeightConverter.LB_TO_KG, 2)

    @staticmethod
    def normalize_unit(unit: str | None, default: str = "lb") -> str:
        """Map free-text unit labels onto ``lb`` or ``kg``."""
        if not unit:
            return default
        text = str(unit).strip().lower()
        if text in ("kg", "kgs", "kilo", "kilos", "kilogram", "kilograms"):
            return "kg"
        if text in ("lb", "lbs", "pound", "pounds", "#"):
            return "lb"
        return default

    @staticmethod
    def convert(value: float, from_unit: str, to_unit: str) -> float:
        """Convert ``value`` without rounding."""
        if from_unit not in UNITS or to_unit not in UNITS:
            raise ValueError(f"unsupported unit conversion {from_unit}->{to_unit}")
        if from_unit == to_unit:
            return value
        if from_unit == "lb":
            return value * WeightConverter.LB_TO_KG
        return value * WeightConverter.KG_TO_LB

    @staticmethod
    def merge(totals: Mapping[str, float], unit: str) -> float:
        """Combine unit-partitioned totals into a single ``unit`` value."""
        merged = 0.0
        for source_unit, value in totals.items():
            if not value:
                continue
            if source_unit in UNITS:
                merged += WeightConverter.convert(value, source_unit, unit)
            else:
                merged += value
        return merged

    @staticmethod
    def to_standards_unit(weight: float, from_unit: str, is_metric: bool) -> float:
        """Align ``weight`` with the unit the standards were built in."""
        target = "kg" if is_metric else "lb"
        if from_unit == target:
            return weight
        if from_unit == "kg":
            value = weight * WeightConverter.STANDARDS_LB_PER_KG
        else:
            value = weight / WeightConverter.STANDARDS_LB_PER_KG
        return int(value + 0.5)
