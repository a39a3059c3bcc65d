import math
from typing import Iterable, Optional

import numpy as np


class MathTools:
    """Provides numeric helpers shared by the lift analytics services."""

    @staticmethod
    def clamp(value: float, min_value: float, max_value: float) -> float:
        """Clamp ``value`` to the inclusive range [min_value, max_value]."""
        if min_value > max_value:
            raise ValueError("min_value must not exceed max_value")
        return max(min_value, min(value, max_value))

    @staticmethod
    def round_half_up(value: float) -> int:
        """Round to the nearest integer with .5 going up, like ``Math.round``."""
        return int(math.floor(value + 0.5))

    @staticmethod
    def log_scaled(count: float, scale: float) -> int:
        """Return ``round(log10(count + 1) * scale)``."""
        return MathTools.round_half_up(math.log10(max(0.0, count) + 1) * scale)

    @staticmethod
    def nearest_rank_percentile(values: Iterable[float], percentile: float) -> Optional[float]:
        """Return the nearest-rank percentile of ``values`` or ``None`` if empty."""
        arr = np.sort(np.asarray(list(values), dtype=float))
        n = arr.size
        if n == 0:
            return None
        idx = math.ceil(percentile / 100 * n) - 1
        idx = int(MathTools.clamp(idx, 0, n - 1))
        return float(arr[idx])

    @staticmethod
    def mean(values: Iterable[float]) -> Optional[float]:
        arr = np.asarray(list(values), dtype=float)
        if arr.size == 0:
            return None
        return float(arr.mean())

    @staticmethod
    def percentage_change(recent: float, previous: float) -> int:
        """Return the rounded percent change, 100 when growing from zero."""
        if previous > 0:
            return MathTools.round_half_up((recent - previous) / previous * 100)
        if recent > 0:
            return 100
        return 0
