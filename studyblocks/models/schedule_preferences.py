"""Schedule preferences model for studyblocks."""

from datetime import date, datetime
from enum import Enum
from pydantic import BaseModel, Field

from studyblocks.models.constants import (
    DEFAULT_BLOCK_DURATION_MIN,
    DEFAULT_BLOCKS_PER_WEEKDAY,
    DEFAULT_BLOCKS_PER_WEEKEND,
    DEFAULT_HORIZON_DAYS,
    MAX_BLOCK_DURATION_MIN,
    MAX_BLOCKS_PER_WEEKDAY,
    MAX_BLOCKS_PER_WEEKEND,
    MAX_HORIZON_DAYS,
    MIN_BLOCK_DURATION_MIN,
    MIN_BLOCKS_PER_WEEKDAY,
    MIN_BLOCKS_PER_WEEKEND,
    MIN_HORIZON_DAYS,
)


class SubjectGrouping(str, Enum):
    """How subjects are grouped across a day.

    Only BALANCED (shuffled interleaving) changes allocator behavior today.
    """
    MOST_GROUPED = "most_grouped"
    BALANCED = "balanced"
    LEAST_GROUPED = "least_grouped"


class SchedulePreferences(BaseModel):
    """Per-user schedule generation preferences.

    Out-of-range values fail construction (pydantic ValidationError); nothing
    is clamped.
    """

    user_id: str = Field(..., description="User these preferences belong to")
    schedule_horizon_days: int = Field(
        DEFAULT_HORIZON_DAYS, ge=MIN_HORIZON_DAYS, le=MAX_HORIZON_DAYS, description="Days ahead to plan"
    )
    blocks_per_weekday: int = Field(
        DEFAULT_BLOCKS_PER_WEEKDAY,
        ge=MIN_BLOCKS_PER_WEEKDAY,
        le=MAX_BLOCKS_PER_WEEKDAY,
        description="Study blocks for Monday-Friday",
    )
    blocks_per_weekend: int = Field(
        DEFAULT_BLOCKS_PER_WEEKEND,
        ge=MIN_BLOCKS_PER_WEEKEND,
        le=MAX_BLOCKS_PER_WEEKEND,
        description="Study blocks for Saturday-Sunday",
    )
    default_block_duration_minutes: int = Field(
        DEFAULT_BLOCK_DURATION_MIN,
        ge=MIN_BLOCK_DURATION_MIN,
        le=MAX_BLOCK_DURATION_MIN,
        description="Length of each study block",
    )
    subject_grouping: SubjectGrouping = Field(SubjectGrouping.BALANCED, description="Subject grouping policy")
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    class Config:
        """Pydantic configuration."""
        use_enum_values = True

    @classmethod
    def from_weeks(
        cls,
        user_id: str,
        schedule_horizon_weeks: int,
        blocks_per_weekday: int,
        blocks_per_weekend: int,
        default_block_duration_minutes: int,
        subject_grouping: SubjectGrouping = SubjectGrouping.BALANCED,
    ) -> "SchedulePreferences":
        return cls(
            user_id=user_id,
            schedule_horizon_days=schedule_horizon_weeks * 7,
            blocks_per_weekday=blocks_per_weekday,
            blocks_per_weekend=blocks_per_weekend,
            default_block_duration_minutes=default_block_duration_minutes,
            subject_grouping=subject_grouping,
        )

    @property
    def schedule_horizon_weeks(self) -> int:
        # Round up to the nearest week
        return (self.schedule_horizon_days + 6) // 7

    @property
    def total_weekday_study_minutes(self) -> int:
        return self.blocks_per_weekday * self.default_block_duration_minutes

    @property
    def total_weekend_study_minutes(self) -> int:
        return self.blocks_per_weekend * self.default_block_duration_minutes

    def capacity_for(self, day: date) -> int:
        """Number of blocks scheduled on a given date."""
        return daily_capacity(day, self.blocks_per_weekday, self.blocks_per_weekend)


def daily_capacity(day: date, blocks_per_weekday: int, blocks_per_weekend: int) -> int:
    """Blocks allowed on a date (Saturday/Sunday use the weekend capacity)."""
    # Python weekday: Monday=0 ... Sunday=6
    if day.weekday() >= 5:
        return blocks_per_weekend
    return blocks_per_weekday


def format_study_time(minutes: int) -> str:
    """Format minutes as e.g. '45m', '2h' or '1h 30m'."""
    hours, mins = divmod(minutes, 60)
    if hours == 0:
        return f"{mins}m"
    if mins == 0:
        return f"{hours}h"
    return f"{hours}h {mins}m"
