"""SQLAlchemy database models for studyblocks."""

from datetime import datetime
import uuid
from typing import Type, TypeVar, Union
from sqlalchemy import Column, String, Integer, Boolean, Date, DateTime, ForeignKey, Index

from studyblocks.database.database import Base
from studyblocks.models.constants import (
    DEFAULT_BLOCK_DURATION_MIN,
    DEFAULT_BLOCKS_PER_DAY,
    DEFAULT_BLOCKS_PER_WEEKDAY,
    DEFAULT_BLOCKS_PER_WEEKEND,
    DEFAULT_HORIZON_DAYS,
    DEFAULT_SUBJECT_ICON,
    DEFAULT_USER_BLOCK_DURATION_MIN,
)
from studyblocks.models.schedule_preferences import SubjectGrouping

T = TypeVar('T')


def enum_to_value(enum_obj: Union[str, T]) -> str:
    """Convert enum to string value (handles both enum and string)."""
    if hasattr(enum_obj, 'value'):
        return enum_obj.value
    return str(enum_obj)


def value_to_enum(value: str, enum_class: Type[T], default: T) -> T:
    """Convert string to enum with fallback to default.

    Args:
        value: String value to convert
        enum_class: Enum class to convert to
        default: Default enum value if conversion fails

    Returns:
        Enum instance, or default if conversion fails
    """
    if not value:
        return default
    try:
        return enum_class(value.lower())
    except (ValueError, AttributeError):
        return default


class UserDB(Base):
    """Database model for User."""

    __tablename__ = "users"

    id = Column(String, primary_key=True)

    # User profile
    email = Column(String, nullable=False, unique=True)
    display_name = Column(String, nullable=False)

    # Study defaults
    default_block_duration = Column(Integer, nullable=False, default=DEFAULT_USER_BLOCK_DURATION_MIN)
    preferred_blocks_per_day = Column(Integer, nullable=False, default=DEFAULT_BLOCKS_PER_DAY)

    # XP economy (global_xp == sum of subject XP)
    global_xp = Column(Integer, nullable=False, default=0)
    global_level = Column(Integer, nullable=False, default=1)

    # Timestamps
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    last_sync_at = Column(DateTime, nullable=False, default=datetime.utcnow)

    def to_pydantic(self):
        """Convert database model to Pydantic model."""
        from studyblocks.models.user import User
        return User(
            id=self.id,
            email=self.email,
            display_name=self.display_name,
            default_block_duration=self.default_block_duration,
            preferred_blocks_per_day=self.preferred_blocks_per_day,
            global_xp=self.global_xp,
            global_level=self.global_level,
            created_at=self.created_at,
            last_sync_at=self.last_sync_at,
        )

    @classmethod
    def from_pydantic(cls, user):
        """Create database model from Pydantic model."""
        return cls(
            id=user.id,
            email=user.email,
            display_name=user.display_name,
            default_block_duration=user.default_block_duration,
            preferred_blocks_per_day=user.preferred_blocks_per_day,
            global_xp=user.global_xp,
            global_level=user.global_level,
            created_at=user.created_at,
            last_sync_at=user.last_sync_at,
        )


class SubjectDB(Base):
    """Database model for Subject."""

    __tablename__ = "subjects"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    name = Column(String, nullable=False)
    icon = Column(String, nullable=False, default=DEFAULT_SUBJECT_ICON)
    confidence = Column(Integer, nullable=False)
    block_duration_minutes = Column(Integer, nullable=False, default=DEFAULT_BLOCK_DURATION_MIN)

    xp = Column(Integer, nullable=False, default=0)
    level = Column(Integer, nullable=False, default=1)

    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow)

    def to_pydantic(self):
        """Convert database model to Pydantic model."""
        from studyblocks.models.subject import Subject
        return Subject(
            id=self.id,
            user_id=self.user_id,
            name=self.name,
            icon=self.icon,
            confidence=self.confidence,
            block_duration_minutes=self.block_duration_minutes,
            xp=self.xp,
            level=self.level,
            created_at=self.created_at,
            updated_at=self.updated_at,
        )

    @classmethod
    def from_pydantic(cls, subject):
        """Create database model from Pydantic model."""
        return cls(
            id=subject.id,
            user_id=subject.user_id,
            name=subject.name,
            icon=subject.icon,
            confidence=subject.confidence,
            block_duration_minutes=subject.block_duration_minutes,
            xp=subject.xp,
            level=subject.level,
            created_at=subject.created_at,
            updated_at=subject.updated_at,
        )


class StudyBlockDB(Base):
    """Database model for StudyBlock."""

    __tablename__ = "study_blocks"
    __table_args__ = (
        Index("ix_study_blocks_user_date", "user_id", "scheduled_date"),
    )

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    subject_id = Column(String, ForeignKey("subjects.id", ondelete="CASCADE"), nullable=False, index=True)

    # Denormalized at generation time
    subject_name = Column(String, nullable=False)
    subject_icon = Column(String, nullable=False)
    total_blocks_for_subject = Column(Integer, nullable=False, default=1)

    block_number = Column(Integer, nullable=False)
    duration_minutes = Column(Integer, nullable=False)
    scheduled_date = Column(Date, nullable=False)
    is_completed = Column(Boolean, nullable=False, default=False, index=True)
    completed_at = Column(DateTime, nullable=True)
    is_custom_block = Column(Boolean, nullable=False, default=False)

    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)

    def to_pydantic(self):
        """Convert database model to Pydantic model."""
        from studyblocks.models.study_block import StudyBlock
        return StudyBlock(
            id=self.id,
            user_id=self.user_id,
            subject_id=self.subject_id,
            subject_name=self.subject_name,
            subject_icon=self.subject_icon,
            block_number=self.block_number,
            duration_minutes=self.duration_minutes,
            scheduled_date=self.scheduled_date,
            is_completed=self.is_completed,
            completed_at=self.completed_at,
            created_at=self.created_at,
            total_blocks_for_subject=self.total_blocks_for_subject,
            is_custom_block=self.is_custom_block,
        )

    @classmethod
    def from_pydantic(cls, block):
        """Create database model from Pydantic model."""
        return cls(
            id=block.id,
            user_id=block.user_id,
            subject_id=block.subject_id,
            subject_name=block.subject_name,
            subject_icon=block.subject_icon,
            block_number=block.block_number,
            duration_minutes=block.duration_minutes,
            scheduled_date=block.scheduled_date,
            is_completed=block.is_completed,
            completed_at=block.completed_at,
            created_at=block.created_at,
            total_blocks_for_subject=block.total_blocks_for_subject,
            is_custom_block=block.is_custom_block,
        )


class SchedulePreferencesDB(Base):
    """Database model for SchedulePreferences (one row per user)."""

    __tablename__ = "schedule_preferences"

    user_id = Column(String, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True)

    schedule_horizon_days = Column(Integer, nullable=False, default=DEFAULT_HORIZON_DAYS)
    blocks_per_weekday = Column(Integer, nullable=False, default=DEFAULT_BLOCKS_PER_WEEKDAY)
    blocks_per_weekend = Column(Integer, nullable=False, default=DEFAULT_BLOCKS_PER_WEEKEND)
    default_block_duration_minutes = Column(Integer, nullable=False, default=DEFAULT_BLOCK_DURATION_MIN)
    subject_grouping = Column(String, nullable=False, default=SubjectGrouping.BALANCED.value)

    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    def to_pydantic(self):
        """Convert database model to Pydantic model."""
        from studyblocks.models.schedule_preferences import SchedulePreferences
        return SchedulePreferences(
            user_id=self.user_id,
            schedule_horizon_days=self.schedule_horizon_days,
            blocks_per_weekday=self.blocks_per_weekday,
            blocks_per_weekend=self.blocks_per_weekend,
            default_block_duration_minutes=self.default_block_duration_minutes,
            subject_grouping=value_to_enum(self.subject_grouping, SubjectGrouping, SubjectGrouping.BALANCED),
            created_at=self.created_at,
            updated_at=self.updated_at,
        )

    @classmethod
    def from_pydantic(cls, preferences):
        """Create database model from Pydantic model."""
        # Pydantic with use_enum_values=True returns strings
        return cls(
            user_id=preferences.user_id,
            schedule_horizon_days=preferences.schedule_horizon_days,
            blocks_per_weekday=preferences.blocks_per_weekday,
            blocks_per_weekend=preferences.blocks_per_weekend,
            default_block_duration_minutes=preferences.default_block_duration_minutes,
            subject_grouping=enum_to_value(preferences.subject_grouping),
            created_at=preferences.created_at,
            updated_at=preferences.updated_at,
        )
