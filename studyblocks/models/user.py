"""User data model for studyblocks."""

from datetime import datetime
from pydantic import BaseModel, Field, field_validator

from studyblocks.models.constants import (
    DEFAULT_BLOCKS_PER_DAY,
    DEFAULT_USER_BLOCK_DURATION_MIN,
    MAX_BLOCK_DURATION_MIN,
    MAX_BLOCKS_PER_WEEKDAY,
    MIN_BLOCK_DURATION_MIN,
    MIN_BLOCKS_PER_WEEKDAY,
)


class User(BaseModel):
    """User model holding the aggregate XP economy and study defaults."""

    id: str = Field(..., description="Unique user identifier")
    email: str = Field(..., description="User email address")
    display_name: str = Field(..., description="User display name")
    default_block_duration: int = Field(
        DEFAULT_USER_BLOCK_DURATION_MIN,
        ge=MIN_BLOCK_DURATION_MIN,
        le=MAX_BLOCK_DURATION_MIN,
        description="Default block duration in minutes",
    )
    preferred_blocks_per_day: int = Field(
        DEFAULT_BLOCKS_PER_DAY,
        ge=MIN_BLOCKS_PER_WEEKDAY,
        le=MAX_BLOCKS_PER_WEEKDAY,
        description="Preferred number of blocks per day",
    )
    global_xp: int = Field(0, ge=0, description="Sum of all subject XP")
    global_level: int = Field(1, ge=1, description="Global level derived from global XP")
    created_at: datetime = Field(default_factory=datetime.utcnow, description="User creation timestamp")
    last_sync_at: datetime = Field(default_factory=datetime.utcnow, description="Last XP update timestamp")

    @field_validator("email", "display_name")
    @classmethod
    def _validate_not_blank(cls, v, info):
        if not v or not v.strip():
            raise ValueError(f"{info.field_name} cannot be blank")
        return v

    @property
    def global_level_progress(self) -> float:
        """Progress towards the next global level (0.0 to 1.0)."""
        from studyblocks.engine.leveling import GLOBAL_CURVE, level_progress
        return level_progress(self.global_xp, self.global_level, GLOBAL_CURVE)
