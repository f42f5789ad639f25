"""Data models for studyblocks."""

from studyblocks.models.subject import Subject
from studyblocks.models.study_block import StudyBlock, StudyBlockStatus
from studyblocks.models.user import User
from studyblocks.models.schedule_preferences import (
    SchedulePreferences,
    SubjectGrouping,
    daily_capacity,
    format_study_time,
)
from studyblocks.models.scheduling_result import LevelPrediction, SchedulingResult, StudyStreak, XPBreakdown

__all__ = [
    "Subject",
    "StudyBlock",
    "StudyBlockStatus",
    "User",
    "SchedulePreferences",
    "SubjectGrouping",
    "daily_capacity",
    "format_study_time",
    "SchedulingResult",
    "LevelPrediction",
    "StudyStreak",
    "XPBreakdown",
]
