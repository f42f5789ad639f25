"""Scheduling result and progress models for studyblocks."""

from datetime import date
from enum import Enum
from typing import Dict, List, Optional
from pydantic import BaseModel, Field

from studyblocks.models.study_block import StudyBlock


class ReconciliationKind(str, Enum):
    """How the weighted candidate count compared to the schedule capacity."""
    SHORTFALL = "shortfall"
    EXACT = "exact"
    OVERFLOW = "overflow"


class LevelPrediction(BaseModel):
    """Where a subject's level lands if every pending block in the schedule is completed."""

    subject_id: str
    subject_name: str
    current_xp: int = Field(0, ge=0)
    current_level: int = Field(1, ge=1)
    xp_gain: int = Field(0, ge=0, description="XP still to be earned from pending scheduled blocks")
    predicted_xp: int = Field(0, ge=0)
    predicted_level: int = Field(1, ge=1)
    predicted_progress: float = Field(0.0, ge=0.0, le=1.0, description="Progress into the predicted level")

    @property
    def levels_gained(self) -> int:
        return self.predicted_level - self.current_level


class StudyStreak(BaseModel):
    """Consecutive days on which at least one block was completed."""

    current_streak: int = Field(0, ge=0, description="Run ending today or yesterday (0 if broken)")
    longest_streak: int = Field(0, ge=0)
    last_study_date: Optional[date] = None


class XPBreakdown(BaseModel):
    """A user's XP totals alongside what each subject has earned from completed blocks."""

    global_xp: int = Field(0, ge=0)
    global_level: int = Field(1, ge=1)
    earned_xp: int = Field(0, ge=0, description="XP of all completed blocks at current schedule prices")
    subject_xp: Dict[str, int] = Field(default_factory=dict, description="Subject name -> earned XP")


class SchedulingResult(BaseModel):
    """Result of a schedule generation or reschedule."""

    blocks: List[StudyBlock] = Field(default_factory=list, description="Blocks in date order")
    total_blocks: int = Field(0, ge=0)
    schedule_horizon: int = Field(0, ge=0, description="Horizon in days")
    average_blocks_per_day: float = Field(0.0, ge=0.0)
    subject_distribution: Dict[str, int] = Field(default_factory=dict, description="Subject name -> block count")
    reconciliation: Optional[ReconciliationKind] = Field(
        None, description="Reconciliation applied during generation (None for reschedules/empty results)"
    )
    level_predictions: Dict[str, LevelPrediction] = Field(
        default_factory=dict, description="Subject id -> predicted level after the schedule"
    )
