"""StudyBlock data model for studyblocks."""

from datetime import date, datetime, timedelta
from enum import Enum
from typing import Optional
from pydantic import BaseModel, Field


class StudyBlockStatus(str, Enum):
    """Display status of a study block relative to a given day."""
    PENDING = "pending"
    AVAILABLE = "available"
    COMPLETED = "completed"
    OVERDUE = "overdue"


class StudyBlock(BaseModel):
    """StudyBlock represents one scheduled study session for a subject."""

    id: str = Field(..., description="Unique study block identifier")
    user_id: str = Field(..., description="User ID who owns this block")
    subject_id: str = Field(..., description="ID of the subject being studied")
    subject_name: str = Field(..., description="Subject name at generation time")
    subject_icon: str = Field(..., description="Subject icon at generation time")
    block_number: int = Field(..., ge=1, description="Sequence number within the subject's batch")
    duration_minutes: int = Field(..., ge=1, description="Block duration in minutes")
    scheduled_date: date = Field(..., description="Date the block is scheduled for")
    is_completed: bool = Field(False, description="Whether the block has been completed")
    completed_at: Optional[datetime] = Field(None, description="Completion timestamp")
    created_at: datetime = Field(default_factory=datetime.utcnow, description="Block creation timestamp")
    total_blocks_for_subject: int = Field(1, ge=0, description="Blocks for this subject in the schedule")
    is_custom_block: bool = Field(False, description="Whether this is an ad hoc (non-scheduled) block")

    def is_overdue(self, today: Optional[date] = None) -> bool:
        today = today or date.today()
        return self.scheduled_date < today and not self.is_completed

    def can_complete(self, today: Optional[date] = None) -> bool:
        today = today or date.today()
        return self.scheduled_date <= today + timedelta(days=1)

    def status(self, today: Optional[date] = None) -> StudyBlockStatus:
        if self.is_completed:
            return StudyBlockStatus.COMPLETED
        if self.is_overdue(today):
            return StudyBlockStatus.OVERDUE
        if self.can_complete(today):
            return StudyBlockStatus.AVAILABLE
        return StudyBlockStatus.PENDING
