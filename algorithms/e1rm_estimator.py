import math

from .math_tools import MathTools


class E1RMEstimator:
    """Estimate a one rep max from a multi-rep set."""

    FORMULAE = (
        "Brzycki",
        "Epley",
        "McGlothin",
        "Lombardi",
        "Mayhew",
        "OConner",
        "Wathan",
    )
    MAX_REPS = 20

    @staticmethod
    def _raw(reps: int, weight: float, formula: str) -> float:
        if formula == "Epley":
            return weight * (1 + reps / 30)
        if formula == "McGlothin":
            return (100 * weight) / (101.3 - 2.67123 * reps)
        if formula == "Lombardi":
            return weight * math.pow(reps, 0.1)
        if formula == "Mayhew":
            return (100 * weight) / (52.2 + 41.9 * math.exp(-0.055 * reps))
        if formula == "OConner":
            return weight * (1 + reps / 40)
        if formula in ("Wathan", "Wathen"):
            return (100 * weight) / (48.8 + 53.8 * math.exp(-0.075 * reps))
        return weight / (1.0278 - 0.0278 * reps)

    @classmethod
    def estimate(cls, reps: int, weight: float, formula: str = "Brzycki") -> float:
        """Return the rounded estimate; unknown formulas fall back to Brzycki.

        A single needs no estimate and a failed set (0 reps) predicts nothing.
        """
        if reps <= 0:
            return 0
        if reps == 1:
            return weight
        reps = min(reps, cls.MAX_REPS)
        return MathTools.round_half_up(cls._raw(reps, weight, formula))
