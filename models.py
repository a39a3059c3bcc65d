from __future__ import annotations
import dataclasses
from dataclasses import dataclass, field
from typing import Any, Optional

CANDIDATE_KINDS = ("single", "standoutRep", "frequentLiftPR", "storyLift")

_CAMEL_KEYS = {
    "liftType": "lift_type",
    "unitType": "unit_type",
    "isGoal": "is_goal",
    "isHistoricalPR": "is_historical_pr",
    "URL": "url",
}
TRUE_STRINGS = {"true", "1", "yes", "y", "goal"}


def parse_flag(value: Any) -> bool:
    """Read a boolean cell; strings count only when they spell a true value."""
    if isinstance(value, str):
        return value.strip().lower() in TRUE_STRINGS
    return bool(value)


@dataclass(frozen=True)
class LiftEntry:
    """One logged set from the lift history."""

    date: str
    lift_type: str
    reps: int
    weight: float
    unit_type: str = "lb"
    notes: Optional[str] = None
    is_goal: bool = False
    is_historical_pr: bool = False
    url: Optional[str] = None

    @property
    def tonnage(self) -> float:
        return self.weight * self.reps

    def identity_key(self) -> tuple:
        """Return the key used to treat two records as the same lift."""
        return (self.lift_type, self.date, self.reps, self.weight, self.unit_type)

    def with_historical_pr(self, flag: bool) -> "LiftEntry":
        if self.is_historical_pr == flag:
            return self
        return dataclasses.replace(self, is_historical_pr=flag)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "LiftEntry":
        """Build an entry from a snake_case or camelCase mapping."""
        values: dict[str, Any] = {}
        for key, value in data.items():
            name = _CAMEL_KEYS.get(key, key)
            if name in _FIELD_NAMES:
                values[name] = value
        values["reps"] = int(values.get("reps") or 0)
        values["weight"] = float(values.get("weight") or 0.0)
        values["unit_type"] = values.get("unit_type") or "lb"
        values["is_goal"] = parse_flag(values.get("is_goal", False))
        values["is_historical_pr"] = parse_flag(values.get("is_historical_pr", False))
        return cls(**values)

    def to_dict(self) -> dict[str, Any]:
        return dataclasses.asdict(self)


_FIELD_NAMES = {f.name for f in dataclasses.fields(LiftEntry)}


@dataclass(frozen=True)
class LiftTypeSummary:
    """Totals and date range for one lift type."""

    lift_type: str
    total_sets: int
    total_reps: int
    oldest_date: str
    newest_date: str

    def to_dict(self) -> dict[str, Any]:
        return dataclasses.asdict(self)


@dataclass(frozen=True)
class NoteSignals:
    """Keyword matches mined from a free-text note."""

    has_meet_context: bool = False
    meet_matches: tuple[str, ...] = ()
    positive_matches: tuple[str, ...] = ()
    battle_matches: tuple[str, ...] = ()
    tags: tuple[str, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "has_meet_context": self.has_meet_context,
            "meet_matches": list(self.meet_matches),
            "positive_matches": list(self.positive_matches),
            "battle_matches": list(self.battle_matches),
            "tags": list(self.tags),
        }


@dataclass
class Candidate:
    """A scored lift considered for the highlight pool."""

    id: str
    lift: LiftEntry
    score: float
    candidate_kind: str
    reason_label: str
    score_breakdown: dict[str, float] = field(default_factory=dict)
    strength_rating: Optional[str] = None
    note_signals: NoteSignals = field(default_factory=NoteSignals)
    anniversary_days_away: Optional[int] = None
    frequent_lift_type: Optional[str] = None
    frequent_lift_slot: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "lift": self.lift.to_dict(),
            "score": self.score,
            "score_breakdown": dict(self.score_breakdown),
            "candidate_kind": self.candidate_kind,
            "reason_label": self.reason_label,
            "strength_rating": self.strength_rating,
            "note_tags": list(self.note_signals.tags),
            "anniversary_days_away": self.anniversary_days_away,
            "frequent_lift_type": self.frequent_lift_type,
            "frequent_lift_slot": self.frequent_lift_slot,
        }
