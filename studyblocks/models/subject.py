"""Subject data model for studyblocks."""

from datetime import datetime
from pydantic import BaseModel, Field, field_validator

from studyblocks.models.constants import (
    DEFAULT_BLOCK_DURATION_MIN,
    DEFAULT_SUBJECT_ICON,
    MAX_BLOCK_DURATION_MIN,
    MAX_CONFIDENCE,
    MIN_BLOCK_DURATION_MIN,
    MIN_CONFIDENCE,
)


class Subject(BaseModel):
    """A user's study topic."""

    id: str = Field(..., description="Unique subject identifier (UUID v4)")
    user_id: str = Field(..., description="User ID who owns this subject")
    name: str = Field(..., description="Display name")
    icon: str = Field(DEFAULT_SUBJECT_ICON, description="Display icon (emoji)")
    confidence: int = Field(..., ge=MIN_CONFIDENCE, le=MAX_CONFIDENCE, description="Self-rated confidence (1-10)")
    block_duration_minutes: int = Field(
        DEFAULT_BLOCK_DURATION_MIN,
        ge=MIN_BLOCK_DURATION_MIN,
        le=MAX_BLOCK_DURATION_MIN,
        description="Preferred block duration in minutes",
    )
    xp: int = Field(0, ge=0, description="Accumulated subject XP")
    level: int = Field(1, ge=1, description="Subject level derived from XP")
    created_at: datetime = Field(default_factory=datetime.utcnow, description="Subject creation timestamp")
    updated_at: datetime = Field(default_factory=datetime.utcnow, description="Subject last update timestamp")

    @field_validator("name")
    @classmethod
    def _validate_name(cls, v):
        if not v or not v.strip():
            raise ValueError("Subject name cannot be blank")
        return v

    @property
    def confidence_weight(self) -> float:
        from studyblocks.engine.weighting import confidence_weight
        return confidence_weight(self.confidence)

    @property
    def xp_for_current_level(self) -> int:
        from studyblocks.engine.leveling import SUBJECT_CURVE, xp_for_level
        return xp_for_level(self.level, SUBJECT_CURVE)

    @property
    def xp_for_next_level(self) -> int:
        from studyblocks.engine.leveling import SUBJECT_CURVE, xp_for_level
        return xp_for_level(self.level + 1, SUBJECT_CURVE)

    @property
    def level_progress(self) -> float:
        """Progress towards the next subject level (0.0 to 1.0)."""
        from studyblocks.engine.leveling import SUBJECT_CURVE, level_progress
        return level_progress(self.xp, self.level, SUBJECT_CURVE)
