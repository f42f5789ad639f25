"""Leveling engine for studyblocks.

Pure functions mapping XP to levels (and back) for the two progression curves,
plus the XP awarded for completing a study block.
"""

import math
from collections import Counter
from typing import Dict, Iterable, Sequence, Tuple

from pydantic import BaseModel

from studyblocks.models.constants import (
    GLOBAL_CURVE_BASE,
    GLOBAL_CURVE_EXPONENT,
    GLOBAL_CURVE_MULTIPLIER,
    SUBJECT_CURVE_BASE,
    SUBJECT_CURVE_EXPONENT,
    SUBJECT_CURVE_MULTIPLIER,
    XP_PER_HOUR,
)
from studyblocks.models.scheduling_result import LevelPrediction
from studyblocks.models.study_block import StudyBlock
from studyblocks.models.subject import Subject


class LevelCurve(BaseModel):
    """XP threshold curve: base * ((level - 1) * multiplier) ** exponent."""

    name: str
    base: float
    multiplier: float
    exponent: float

    class Config:
        """Pydantic configuration."""
        frozen = True


SUBJECT_CURVE = LevelCurve(
    name="subject",
    base=SUBJECT_CURVE_BASE,
    multiplier=SUBJECT_CURVE_MULTIPLIER,
    exponent=SUBJECT_CURVE_EXPONENT,
)
GLOBAL_CURVE = LevelCurve(
    name="global",
    base=GLOBAL_CURVE_BASE,
    multiplier=GLOBAL_CURVE_MULTIPLIER,
    exponent=GLOBAL_CURVE_EXPONENT,
)


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero."""
    if value < 0:
        return -int(math.floor(-value + 0.5))
    return int(math.floor(value + 0.5))


def xp_for_level(level: int, curve: LevelCurve = SUBJECT_CURVE) -> int:
    """XP required to reach a level on a curve (level 1 = 0 XP)."""
    if level <= 1:
        return 0
    return round_half_up(curve.base * ((level - 1) * curve.multiplier) ** curve.exponent)


def level_for_xp(xp: int, curve: LevelCurve = SUBJECT_CURVE) -> int:
    """Greatest level whose threshold is <= xp.

    Linear scan upward from level 1; the curves grow fast enough that this
    terminates after a handful of steps for any realistic XP value.
    """
    level = 1
    while xp >= xp_for_level(level + 1, curve):
        level += 1
    return level


def level_progress(xp: int, level: int, curve: LevelCurve = SUBJECT_CURVE) -> float:
    """Fraction of the way from `level` to `level + 1`, clamped to [0, 1]."""
    current = xp_for_level(level, curve)
    needed = xp_for_level(level + 1, curve) - current
    if needed <= 0:
        return 1.0
    return min(1.0, max(0.0, (xp - current) / needed))


def block_xp(
    duration_minutes: int,
    subject_total_minutes: int,
    subject_count: int,
    total_schedule_minutes: int,
) -> int:
    """XP for completing one scheduled block.

    The whole schedule is worth 100 XP per scheduled hour. That pool is split
    equally between subjects, and each subject's share is split across its
    blocks by duration.

    Args:
        duration_minutes: Duration of the completed block
        subject_total_minutes: Total scheduled minutes for the block's subject
        subject_count: Number of subjects in the schedule
        total_schedule_minutes: Total scheduled minutes across all subjects

    Returns:
        XP award (0 for degenerate inputs, never negative)
    """
    if (
        duration_minutes <= 0
        or subject_total_minutes <= 0
        or subject_count <= 0
        or total_schedule_minutes <= 0
    ):
        return 0
    schedule_xp = total_schedule_minutes / 60 * XP_PER_HOUR
    xp_per_subject = schedule_xp / subject_count
    return round_half_up(duration_minutes * xp_per_subject / subject_total_minutes)


def custom_block_xp(duration_minutes: int) -> int:
    """Flat-rate XP for an ad hoc block: 100 XP per hour."""
    if duration_minutes <= 0:
        return 0
    return round_half_up(duration_minutes / 60 * XP_PER_HOUR)


def apply_xp_delta(current_xp: int, delta: int, curve: LevelCurve = SUBJECT_CURVE) -> Tuple[int, int]:
    """Apply an XP change, flooring at zero.

    Returns:
        Tuple of (new_xp, new_level)
    """
    new_xp = max(0, current_xp + delta)
    return new_xp, level_for_xp(new_xp, curve)


def global_xp(subject_xps: Iterable[int]) -> int:
    """Global XP is always the sum of the user's subject XP."""
    return sum(subject_xps)


def global_level(xp: int) -> int:
    return level_for_xp(xp, GLOBAL_CURVE)


class ScheduleTotals:
    """Minutes of scheduled (non-custom) study, the inputs to block_xp()."""

    def __init__(self, blocks: Iterable[StudyBlock]):
        self.minutes_by_subject: Counter = Counter()
        for block in blocks:
            if not block.is_custom_block:
                self.minutes_by_subject[block.subject_id] += block.duration_minutes
        self.subject_count = len(self.minutes_by_subject)
        self.total_minutes = sum(self.minutes_by_subject.values())

    def award(self, block: StudyBlock) -> int:
        """XP the block is worth against these totals (custom blocks use the flat rate)."""
        if block.is_custom_block:
            return custom_block_xp(block.duration_minutes)
        return block_xp(
            block.duration_minutes,
            self.minutes_by_subject[block.subject_id],
            self.subject_count,
            self.total_minutes,
        )


def award_for_block(block: StudyBlock, schedule: Iterable[StudyBlock]) -> int:
    """XP for completing `block` given the user's whole schedule (completed blocks included)."""
    return ScheduleTotals(schedule).award(block)


def predict_levels(subjects: Sequence[Subject], schedule: Sequence[StudyBlock]) -> Dict[str, LevelPrediction]:
    """Predict each subject's level once its pending scheduled blocks are completed.

    Gains are priced exactly as the completion ledger will price them: every
    pending non-custom block is valued against the totals of the full
    schedule. Subjects without pending blocks predict no change.

    Args:
        subjects: The user's subjects
        schedule: Every block of the user's schedule

    Returns:
        Dict of subject id -> LevelPrediction
    """
    totals = ScheduleTotals(schedule)
    gains: Counter = Counter()
    for block in schedule:
        if not block.is_completed and not block.is_custom_block:
            gains[block.subject_id] += totals.award(block)

    predictions: Dict[str, LevelPrediction] = {}
    for subject in subjects:
        predicted_xp = subject.xp + gains[subject.id]
        predicted_level = level_for_xp(predicted_xp, SUBJECT_CURVE)
        predictions[subject.id] = LevelPrediction(
            subject_id=subject.id,
            subject_name=subject.name,
            current_xp=subject.xp,
            current_level=subject.level,
            xp_gain=gains[subject.id],
            predicted_xp=predicted_xp,
            predicted_level=predicted_level,
            predicted_progress=level_progress(predicted_xp, predicted_level, SUBJECT_CURVE),
        )
    return predictions


def xp_earned_per_subject(subjects: Sequence[Subject], schedule: Sequence[StudyBlock]) -> Dict[str, int]:
    """XP earned so far per subject name, valuing completed blocks against the current schedule.

    Subjects with nothing completed map to 0.
    """
    totals = ScheduleTotals(schedule)
    earned: Dict[str, int] = {subject.name: 0 for subject in subjects}
    names = {subject.id: subject.name for subject in subjects}
    for block in schedule:
        if block.is_completed and block.subject_id in names:
            earned[names[block.subject_id]] += totals.award(block)
    return earned
