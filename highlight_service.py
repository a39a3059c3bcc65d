from __future__ import annotations
import datetime
import logging
import math
import random
import re
import time
from typing import Dict, Iterable, List, Optional, Tuple

from algorithms import CalendarTools, E1RMEstimator, MathTools, StrengthStandards, WeightConverter
from algorithms.strength_standards import RATING_SCORE
from models import Candidate, LiftEntry, LiftTypeSummary, NoteSignals
from stats_service import StatisticsService

logger = logging.getLogger(__name__)

BIG_FOUR_LIFTS = ("Back Squat", "Bench Press", "Deadlift", "Strict Press")

NOTE_KEYWORDS = {
    "meet": (
        "competition",
        "comp",
        "meet",
        "powerlifting meet",
        "powerlifting",
        "platform",
        "weigh in",
        "weigh-in",
        "opener",
        "second attempt",
        "third attempt",
        "1st attempt",
        "2nd attempt",
        "3rd attempt",
        "white lights",
        "judges",
        "usapl",
        "uspa",
        "apl",
        "attempt",
    ),
    "positive": (
        "amazing",
        "awesome",
        "great",
        "felt great",
        "happy",
        "stoked",
        "pumped",
        "wow",
        "best",
        "huge",
        "nailed",
        "smoked",
        "easy",
        "flew",
        "crushed",
        "money",
        "dialed",
        "solid",
        "strong",
        "excellent",
    ),
    "battle": (
        "hurt",
        "pain",
        "tweaked",
        "missed",
        "failed",
        "awful",
        "bad",
        "sloppy",
        "ugly",
    ),
}

# Cheap substring check run before the keyword regexes.
NOTE_FAST_HINTS = (
    "meet",
    "comp",
    "platform",
    "attempt",
    "opener",
    "usapl",
    "uspa",
    "amazing",
    "awesome",
    "great",
    "happy",
    "stoked",
    "pumped",
    "wow",
    "nailed",
    "smoked",
    "easy",
    "flew",
    "crushed",
    "money",
    "solid",
    "hurt",
    "pain",
    "tweak",
    "missed",
    "failed",
    "ugly",
    "sloppy",
)

KIND_BASE = {"single": 100, "frequentLiftPR": 88, "storyLift": 74, "standoutRep": 82}
FIXED_IMPLEMENT = re.compile(r"dumbbell|db\b|kettlebell|kb\b|cable|machine", re.IGNORECASE)
_NON_WORD = re.compile(r"[^a-z0-9\s-]")
_SPACES = re.compile(r"\s+")
_KEYWORD_PATTERNS = {
    group: tuple((kw, re.compile(r"(^|\s)" + re.escape(kw) + r"(\s|$)")) for kw in words)
    for group, words in NOTE_KEYWORDS.items()
}


def _by_tenure(years: int, ten, five, three, other):
    if years >= 10:
        return ten
    if years >= 5:
        return five
    if years >= 3:
        return three
    return other


def rank_candidates(candidates: Iterable[Candidate]) -> list[Candidate]:
    """Sort by score descending, then newest date, then id."""
    ranked = sorted(candidates, key=lambda c: c.id)
    ranked.sort(key=lambda c: c.lift.date, reverse=True)
    ranked.sort(key=lambda c: c.score, reverse=True)
    return ranked


def candidate_id(lift: LiftEntry, suffix: str) -> str:
    return "|".join(
        [lift.lift_type, lift.date, str(lift.reps), f"{lift.weight:g}", lift.unit_type, suffix]
    )


def take_top_unique_weights(entries: List[LiftEntry], limit: int) -> list[LiftEntry]:
    """First ``limit`` entries with distinct ``(weight, unit)`` pairs."""
    results: list[LiftEntry] = []
    seen: set[tuple] = set()
    for lift in entries:
        if len(results) >= limit:
            break
        key = (lift.weight, lift.unit_type)
        if key in seen:
            continue
        seen.add(key)
        results.append(lift)
    return results


def normalize_note(notes: str) -> str:
    text = _NON_WORD.sub(" ", notes.lower())
    return _SPACES.sub(" ", text).strip()


def analyze_notes(notes: Optional[str]) -> NoteSignals:
    """Match a free-text note against the meet, positive and battle keywords."""
    if not notes or not isinstance(notes, str):
        return NoteSignals()
    normalized = normalize_note(notes)
    matches = {
        group: tuple(kw for kw, pattern in patterns if pattern.search(normalized))
        for group, patterns in _KEYWORD_PATTERNS.items()
    }
    tags = tuple(group for group in ("meet", "positive", "battle") if matches[group])
    return NoteSignals(
        has_meet_context=bool(matches["meet"]),
        meet_matches=matches["meet"],
        positive_matches=matches["positive"],
        battle_matches=matches["battle"],
        tags=tags,
    )


def care_bonus(total_sets: int, total_reps: int) -> int:
    """Reward lifts the athlete has put a lot of volume into."""
    sets_signal = MathTools.log_scaled(total_sets, 7)
    reps_signal = MathTools.log_scaled(total_reps, 5)
    if total_sets >= 250 or total_reps >= 1000:
        milestone = 10
    elif total_sets >= 120 or total_reps >= 500:
        milestone = 7
    elif total_sets >= 60 or total_reps >= 250:
        milestone = 4
    elif total_sets >= 25 or total_reps >= 100:
        milestone = 2
    else:
        milestone = 0
    return min(22, sets_signal + reps_signal + milestone)


def pool_target_size(training_years: int, candidate_count: int) -> int:
    count = max(0, candidate_count or 0)
    if training_years >= 10:
        return int(MathTools.clamp(MathTools.round_half_up(count * 0.6), 64, 96))
    if training_years >= 5:
        return int(MathTools.clamp(MathTools.round_half_up(count * 0.55), 36, 72))
    if training_years >= 3:
        return int(MathTools.clamp(MathTools.round_half_up(count * 0.5), 24, 48))
    if training_years >= 1:
        return int(MathTools.clamp(MathTools.round_half_up(count * 0.45), 14, 28))
    return int(MathTools.clamp(MathTools.round_half_up(count * 0.4), 8, 16))


class HighlightService:
    """Score memorable lifts and curate a varied pool to highlight one from.

    Scoring and pool construction are deterministic for a fixed history and
    ``today``. Only :meth:`pick` draws from a random source.
    """

    def __init__(
        self,
        stats: StatisticsService,
        settings=None,
        standards: Optional[StrengthStandards] = None,
    ) -> None:
        self.stats = stats
        self.settings = settings
        self.has_bio_data = bool(settings is not None and settings.has_bio_data)
        if standards is None and self.has_bio_data:
            standards = StrengthStandards()
        self.standards = standards

    # ------------------------------------------------------------------
    # Scoring helpers
    # ------------------------------------------------------------------
    def training_years(self) -> int:
        if not self.stats.entries:
            return 0
        return max(0, CalendarTools.calendar_years_between(self.stats.entries[0].date, self.stats.today))

    def days_ago(self, date: str) -> int:
        return max(0, CalendarTools.days_between(date, self.stats.today))

    def anniversary_boost(self, date: str) -> Tuple[int, Optional[int]]:
        """Return the boost and days to the nearest anniversary of ``date``."""
        if CalendarTools.parse(date) is None:
            return 0, None
        today = datetime.date.fromisoformat(self.stats.today)
        days_away = min(
            abs((CalendarTools.anniversary(date, year) - today).days)
            for year in (today.year - 1, today.year, today.year + 1)
        )
        if days_away <= 3:
            boost = 12
        elif days_away <= 7:
            boost = 8
        elif days_away <= 14:
            boost = 5
        elif days_away <= 30:
            boost = 2
        else:
            boost = 0
        return boost, days_away

    def strength_rating(
        self, lift: LiftEntry, one_rep_max: Optional[float] = None
    ) -> Optional[str]:
        """Age-adjusted rating of a historical lift, ``None`` without bio data."""
        if not self.has_bio_data or self.standards is None:
            return None
        settings = self.settings
        standard = self.standards.standard_for_lift_date(
            settings.age,
            lift.date,
            settings.body_weight,
            settings.sex,
            lift.lift_type,
            settings.is_metric,
            today=self.stats.today,
        )
        if not standard:
            return None
        value = one_rep_max if one_rep_max is not None else lift.weight
        if not value:
            return None
        value = WeightConverter.to_standards_unit(value, lift.unit_type, settings.is_metric)
        return StrengthStandards.rating_for_e1rm(value, standard)

    def score_candidate(
        self,
        lift: LiftEntry,
        kind: str,
        rank: int,
        strength_rating: Optional[str],
        lift_frequency: int,
    ) -> Tuple[int, Dict[str, int], NoteSignals, Optional[int]]:
        """Return ``(total, breakdown, note_signals, anniversary_days_away)``."""
        rating_score = RATING_SCORE.get(strength_rating, 0)
        signals = analyze_notes(lift.notes)
        adjusted_base = KIND_BASE.get(kind, 82)
        if kind == "single":
            rank_bonus = max(0, 5 - rank) * 4
        elif kind == "frequentLiftPR":
            rank_bonus = max(0, 4 - rank) * 3
        elif kind == "storyLift":
            rank_bonus = max(0, 3 - rank) * 2
        else:
            rank_bonus = max(0, 4 - rank) * 2
        frequency_bonus = min(8, MathTools.log_scaled(lift_frequency or 1, 6))

        days_ago = self.days_ago(lift.date)
        if self.training_years() >= 3:
            nostalgia = min(18, MathTools.round_half_up(days_ago / 180))
        else:
            nostalgia = max(0, 18 - MathTools.round_half_up(days_ago / 30))

        if kind == "standoutRep":
            rep_scheme = max(0, 8 - abs(lift.reps - 5))
        elif kind == "frequentLiftPR":
            rep_scheme = max(0, 7 - abs(lift.reps - 4))
        elif kind == "storyLift":
            rep_scheme = max(0, 6 - abs((lift.reps or 3) - 5))
        else:
            rep_scheme = 0

        note_bonus = (
            (24 if signals.has_meet_context else 0)
            + min(12, len(signals.positive_matches) * 4)
            + min(12, len(signals.battle_matches) * 4)
        )
        anniversary, days_away = self.anniversary_boost(lift.date)
        breakdown = {
            "base": 82,
            "adjustedBase": adjusted_base,
            "rankBonus": rank_bonus,
            "strengthBonus": rating_score * 4,
            "frequencyBonus": frequency_bonus,
            "nostalgiaBonus": nostalgia,
            "repSchemeBonus": rep_scheme,
            "noteBonus": note_bonus,
            "anniversaryBonus": anniversary,
        }
        total = sum(value for key, value in breakdown.items() if key != "base")
        return total, breakdown, signals, days_away

    def _candidate(
        self,
        lift: LiftEntry,
        kind: str,
        rank: int,
        suffix: str,
        label: str,
        rating: Optional[str],
        frequency: int,
        extra: Optional[Dict[str, int]] = None,
        **fields,
    ) -> Candidate:
        total, breakdown, signals, days_away = self.score_candidate(lift, kind, rank, rating, frequency)
        extra = extra or {}
        breakdown.update(extra)
        return Candidate(
            id=candidate_id(lift, suffix),
            lift=lift,
            score=total + sum(extra.values()),
            candidate_kind=kind,
            reason_label=label,
            score_breakdown=breakdown,
            strength_rating=rating,
            note_signals=signals,
            anniversary_days_away=days_away,
            **fields,
        )

    # ------------------------------------------------------------------
    # Candidate lanes
    # ------------------------------------------------------------------
    def core_candidates(self, frequencies: Dict[str, int]) -> list[Candidate]:
        """Top singles and standout rep PRs for the Big Four."""
        table, _ = self.stats.top_lifts_by_type_and_reps()
        years = self.training_years()
        singles_depth = _by_tenure(years, 10, 7, 5, 3)
        standout_depth = _by_tenure(years, 4, 3, 2, 1)
        standout_min_score = 4 if years >= 3 else 3
        candidates: list[Candidate] = []
        for lift_type in BIG_FOUR_LIFTS:
            buckets = table.get(lift_type)
            if not buckets:
                continue
            frequency = frequencies.get(lift_type, 0)
            for idx, lift in enumerate(take_top_unique_weights(buckets[0], singles_depth)):
                candidates.append(
                    self._candidate(
                        lift,
                        "single",
                        idx,
                        f"single-{idx + 1}",
                        f"Top {idx + 1} single",
                        self.strength_rating(lift),
                        frequency,
                    )
                )
            for reps in range(2, 11):
                for rank, lift in enumerate(take_top_unique_weights(buckets[reps - 1], standout_depth)):
                    rating = self.strength_rating(lift, E1RMEstimator.estimate(reps, lift.weight))
                    if self.has_bio_data:
                        qualifies = RATING_SCORE.get(rating, 0) >= standout_min_score
                    else:
                        qualifies = reps <= 5
                    if not qualifies:
                        continue
                    label = f"Standout {reps}RM" if rank == 0 else f"Standout {reps}RM #{rank + 1}"
                    candidates.append(
                        self._candidate(
                            lift, "standoutRep", rank, f"rep-{reps}-{rank + 1}", label, rating, frequency
                        )
                    )
        if years < 3:
            recent = self.stats.most_recent_single_pr()
            if recent is not None:
                candidates.append(
                    self._candidate(
                        recent,
                        "single",
                        0,
                        "recent-pr",
                        "Recent PR single",
                        self.strength_rating(recent),
                        frequencies.get(recent.lift_type, 0),
                        extra={"recentBonus": 8},
                    )
                )
        return candidates

    @staticmethod
    def _secondary_frequent(lift_type: str, buckets: List[List[LiftEntry]]) -> tuple:
        """Pick the best e1RM entry, or a fixed-implement top weight rep story."""
        best: Optional[LiftEntry] = None
        best_e1rm = 0
        top_weight: Optional[LiftEntry] = None
        for idx, bucket in enumerate(buckets):
            if not bucket:
                continue
            lift = bucket[0]
            reps = idx + 1
            estimated = E1RMEstimator.estimate(reps, lift.weight)
            if estimated > best_e1rm:
                best_e1rm = estimated
                best = lift
            if (
                top_weight is None
                or lift.weight > top_weight.weight
                or (lift.weight == top_weight.weight and reps > top_weight.reps)
            ):
                top_weight = lift
        if best is None:
            return None, "", 0, 0
        if (
            FIXED_IMPLEMENT.search(lift_type or "")
            and top_weight is not None
            and top_weight.weight == best.weight
            and top_weight.unit_type == best.unit_type
            and top_weight.reps > best.reps
        ):
            return top_weight, f"Frequent-lift top weight reps ({top_weight.reps} reps)", 0, 1
        if best.reps == 1:
            return best, "Frequent-lift best e1RM (single)", 1, 0
        return best, f"Frequent-lift best e1RM ({best.reps} reps)", 0, 3

    def frequent_candidates(self, summaries: List[LiftTypeSummary]) -> list[Candidate]:
        """Best single and best e1RM for the most trained non Big Four lifts."""
        table, _ = self.stats.top_lifts_by_type_and_reps()
        years = self.training_years()
        top_count = 15 if years >= 10 else 12 if years >= 5 else 10
        frequent = [
            s for s in summaries[: top_count + len(BIG_FOUR_LIFTS)] if s.lift_type not in BIG_FOUR_LIFTS
        ][:top_count]
        candidates: list[Candidate] = []
        for idx, summary in enumerate(frequent):
            buckets = table.get(summary.lift_type)
            if not buckets:
                continue
            care = care_bonus(summary.total_sets, summary.total_reps)
            singles = take_top_unique_weights(buckets[0], 1)
            if singles:
                single = singles[0]
                candidates.append(
                    self._candidate(
                        single,
                        "frequentLiftPR",
                        0,
                        f"frequent-single-{idx + 1}",
                        "Frequent-lift best single",
                        self.strength_rating(single),
                        summary.total_sets,
                        extra={"careBonus": care},
                        frequent_lift_type=summary.lift_type,
                        frequent_lift_slot="single",
                    )
                )
            lift, label, rank, identity = self._secondary_frequent(summary.lift_type, buckets)
            if lift is None:
                continue
            one_rep_max = E1RMEstimator.estimate(lift.reps, lift.weight) if lift.reps > 1 else lift.weight
            candidates.append(
                self._candidate(
                    lift,
                    "frequentLiftPR",
                    rank,
                    f"frequent-e1rm-{idx + 1}",
                    label,
                    self.strength_rating(lift, one_rep_max),
                    summary.total_sets,
                    extra={"careBonus": care, "e1rmIdentityBonus": identity},
                    frequent_lift_type=summary.lift_type,
                    frequent_lift_slot="e1rm",
                )
            )
        return candidates

    @staticmethod
    def _story_label(lift: LiftEntry, signals: NoteSignals) -> str:
        if signals.has_meet_context:
            return f"Story lift ({lift.reps} reps · meet)"
        if signals.battle_matches:
            return f"Story lift ({lift.reps} reps · battle)"
        if signals.positive_matches:
            return f"Story lift ({lift.reps} reps · note)"
        return f"Story lift ({lift.reps} reps)"

    def story_candidates(self, summaries: List[LiftTypeSummary]) -> list[Candidate]:
        """Non Big Four lifts whose notes tell a story."""
        years = self.training_years()
        global_cap = _by_tenure(years, 24, 18, 12, 8)
        per_lift_cap = _by_tenure(years, 4, 3, 2, 2)
        max_reps = 15 if years >= 5 else 12
        totals = {s.lift_type: s for s in summaries}
        signal_cache: dict[str, NoteSignals] = {}
        seen: set[tuple] = set()
        by_lift: dict[str, list[Candidate]] = {}
        for idx, lift in enumerate(self.stats.entries):
            if lift.is_goal or not lift.notes or not isinstance(lift.notes, str):
                continue
            if not lift.lift_type or lift.lift_type in BIG_FOUR_LIFTS:
                continue
            if not lift.weight or not lift.reps or lift.reps < 1 or lift.reps > max_reps:
                continue
            lowered = lift.notes.lower()
            if not any(hint in lowered for hint in NOTE_FAST_HINTS):
                continue
            key = lift.identity_key()
            if key in seen:
                continue
            seen.add(key)
            signals = signal_cache.get(lift.notes)
            if signals is None:
                signals = signal_cache[lift.notes] = analyze_notes(lift.notes)
            if not signals.tags:
                continue
            rating = None
            if self.has_bio_data and lift.reps <= 10:
                rating = self.strength_rating(lift, E1RMEstimator.estimate(lift.reps, lift.weight))
            summary = totals.get(lift.lift_type)
            sets = summary.total_sets if summary else 0
            reps = summary.total_reps if summary else 0
            rarity = max(0, 10 - min(10, MathTools.log_scaled(sets, 6)))
            candidate = self._candidate(
                lift,
                "storyLift",
                0,
                f"story-{idx}",
                self._story_label(lift, signals),
                rating,
                sets,
                extra={"careBonus": care_bonus(sets, reps), "rarityBonus": rarity},
            )
            bucket = rank_candidates(by_lift.get(lift.lift_type, []) + [candidate])
            by_lift[lift.lift_type] = bucket[:per_lift_cap]
        flattened = rank_candidates(c for bucket in by_lift.values() for c in bucket)
        return flattened[:global_cap]

    def build_candidates(self) -> list[Candidate]:
        """Generate all lanes and keep the best scored copy of each lift."""
        start = time.perf_counter()
        summaries = self.stats.lift_types()
        frequencies = {s.lift_type: s.total_sets for s in summaries}
        lanes = (
            self.core_candidates(frequencies)
            + self.frequent_candidates(summaries)
            + self.story_candidates(summaries)
        )
        best: dict[tuple, Candidate] = {}
        for candidate in lanes:
            key = candidate.lift.identity_key()
            existing = best.get(key)
            if existing is None or candidate.score > existing.score:
                best[key] = candidate
        logger.debug(
            "build_candidates() execution time: %dms (%d candidates)",
            int((time.perf_counter() - start) * 1000),
            len(best),
        )
        return list(best.values())

    # ------------------------------------------------------------------
    # Pool curation
    # ------------------------------------------------------------------
    def select_pool(
        self, candidates: List[Candidate], training_years: int, target_pool_size: int
    ) -> list[Candidate]:
        """Greedily fill a pool that covers lifts, kinds and eras."""
        ranked = rank_candidates(candidates)
        target = min(len(ranked), target_pool_size)
        if target <= 0:
            return []
        selected: list[Candidate] = []
        selected_ids: set[str] = set()
        by_lift: dict[str, int] = {}
        by_kind: dict[str, int] = {}

        def add_by(limit: int, predicate) -> None:
            for candidate in ranked:
                if limit <= 0 or len(selected) >= target:
                    return
                if candidate.id in selected_ids or not predicate(candidate):
                    continue
                selected.append(candidate)
                selected_ids.add(candidate.id)
                by_lift[candidate.lift.lift_type] = by_lift.get(candidate.lift.lift_type, 0) + 1
                by_kind[candidate.candidate_kind] = by_kind.get(candidate.candidate_kind, 0) + 1
                limit -= 1

        min_per_big_four = 3 if training_years >= 10 else 2 if training_years >= 5 else 1
        for lift_type in BIG_FOUR_LIFTS:
            available = sum(1 for c in ranked if c.lift.lift_type == lift_type)
            add_by(min(min_per_big_four, available), lambda c, lt=lift_type: c.lift.lift_type == lt)

        if target >= 12:
            add_by(min(6, math.ceil(target * 0.2)), lambda c: c.candidate_kind == "standoutRep")

        if target >= 16:
            add_by(min(8, math.ceil(target * 0.2)), lambda c: c.candidate_kind == "storyLift")
            frequent_types: list[str] = []
            for c in ranked:
                if c.candidate_kind == "frequentLiftPR" and c.frequent_lift_type:
                    if c.frequent_lift_type not in frequent_types:
                        frequent_types.append(c.frequent_lift_type)
            remaining = min(math.ceil(target * 0.45), len(frequent_types) * 2)
            for slot in ("single", "e1rm"):
                for lift_type in frequent_types:
                    if len(selected) >= target or remaining <= 0:
                        break
                    before = len(selected)
                    add_by(
                        1,
                        lambda c, lt=lift_type, s=slot: c.candidate_kind == "frequentLiftPR"
                        and c.frequent_lift_type == lt
                        and c.frequent_lift_slot == s,
                    )
                    if len(selected) > before:
                        remaining -= 1
            add_by(min(10, math.ceil(target * 0.28)), lambda c: c.candidate_kind == "frequentLiftPR")

        if training_years >= 3:
            add_by(min(4, math.ceil(target * 0.12)), lambda c: c.note_signals.has_meet_context)
            add_by(min(6, math.ceil(target * 0.18)), lambda c: bool(c.note_signals.positive_matches))
            add_by(
                min(4, math.ceil(target * 0.12)),
                lambda c: (c.anniversary_days_away if c.anniversary_days_away is not None else 999) <= 14,
            )

        if training_years >= 5:
            add_by(min(10, math.ceil(target * 0.3)), lambda c: self.days_ago(c.lift.date) >= 365 * 5)
            add_by(
                min(8, math.ceil(target * 0.22)),
                lambda c: 365 * 2 <= self.days_ago(c.lift.date) < 365 * 5,
            )
            add_by(min(6, math.ceil(target * 0.18)), lambda c: self.days_ago(c.lift.date) < 365 * 2)

        soft_cap = max(min_per_big_four, math.ceil(target * 0.4))
        kind_caps = {"standoutRep": 0.55, "storyLift": 0.35, "frequentLiftPR": 0.42}

        def within_caps(c: Candidate) -> bool:
            if by_lift.get(c.lift.lift_type, 0) >= soft_cap:
                return False
            share = kind_caps.get(c.candidate_kind)
            if share is not None and target >= 16:
                if by_kind.get(c.candidate_kind, 0) >= math.ceil(target * share):
                    return False
            return True

        add_by(target, within_caps)
        add_by(target, lambda c: True)
        return selected

    def build_pool(self) -> Dict[str, object]:
        """Return the curated selection pool and its fingerprint.

        With no candidates the most recent single PR is offered as
        ``fallback_memory`` instead.
        """
        entries = self.stats.entries
        first = entries[0].date if entries else "none"
        last = entries[-1].date if entries else "none"
        candidates = self.build_candidates()
        if not candidates:
            fallback = None
            recent = self.stats.most_recent_single_pr()
            if recent is not None:
                fallback = Candidate(
                    id=candidate_id(recent, "fallback"),
                    lift=recent,
                    score=0,
                    candidate_kind="single",
                    reason_label="Recent PR single",
                    strength_rating=self.strength_rating(recent),
                )
            return {
                "selection_pool": [],
                "fallback_memory": fallback,
                "fingerprint": f"{first}|{last}|{len(entries)}|0",
                "target_pool_size": 0,
                "candidate_count": 0,
            }
        years = self.training_years()
        target = pool_target_size(years, len(candidates))
        pool = self.select_pool(candidates, years, target)
        logger.debug(
            "highlight pool size %d (target %d, candidates %d)", len(pool), target, len(candidates)
        )
        return {
            "selection_pool": pool,
            "fallback_memory": None,
            "fingerprint": f"{first}|{last}|{len(entries)}|{len(pool)}",
            "target_pool_size": target,
            "candidate_count": len(candidates),
        }

    @staticmethod
    def pick(pool_data: Dict[str, object], rng: Optional[random.Random] = None) -> Optional[Candidate]:
        """Choose one highlight from ``build_pool`` output."""
        pool = pool_data.get("selection_pool") or []
        if pool:
            return (rng or random.Random()).choice(pool)
        return pool_data.get("fallback_memory")
