from .math_tools import MathTools
from .calendar_tools import CalendarTools
from .e1rm_estimator import E1RMEstimator
from .strength_standards import StrengthStandards
from .weight_converter import WeightConverter

__all__ = [
    "MathTools",
    "CalendarTools",
    "E1RMEstimator",
    "StrengthStandards",
    "WeightConverter",
]
