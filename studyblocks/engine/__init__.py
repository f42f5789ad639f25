"""Scheduling and leveling engine for studyblocks."""

from studyblocks.engine.weighting import confidence_weight
from studyblocks.engine.leveling import (
    LevelCurve,
    SUBJECT_CURVE,
    GLOBAL_CURVE,
    xp_for_level,
    level_for_xp,
    level_progress,
    block_xp,
    custom_block_xp,
    award_for_block,
    predict_levels,
    xp_earned_per_subject,
)
from studyblocks.engine.streaks import study_streak
from studyblocks.engine.allocator import (
    Reconciliation,
    generate_schedule,
    generate_weekly_schedule,
    reconcile,
    reschedule_missed_blocks,
)

__all__ = [
    "confidence_weight",
    "LevelCurve",
    "SUBJECT_CURVE",
    "GLOBAL_CURVE",
    "xp_for_level",
    "level_for_xp",
    "level_progress",
    "block_xp",
    "custom_block_xp",
    "award_for_block",
    "predict_levels",
    "xp_earned_per_subject",
    "study_streak",
    "Reconciliation",
    "generate_schedule",
    "generate_weekly_schedule",
    "reconcile",
    "reschedule_missed_blocks",
]
