"""Repository for SchedulePreferences database operations."""

import logging
from datetime import datetime
from typing import Optional
from sqlalchemy.orm import Session

from studyblocks.models.schedule_preferences import SchedulePreferences
from studyblocks.database.models import SchedulePreferencesDB, enum_to_value

logger = logging.getLogger(__name__)


class SchedulePreferencesRepository:
    """Repository for SchedulePreferences database operations."""

    def __init__(self, db: Session):
        self.db = db

    def get(self, user_id: str) -> Optional[SchedulePreferences]:
        """Get a user's schedule preferences."""
        row = self.db.query(SchedulePreferencesDB).filter(SchedulePreferencesDB.user_id == user_id).first()
        return row.to_pydantic() if row else None

    def upsert(self, preferences: SchedulePreferences) -> SchedulePreferences:
        """Create or replace a user's schedule preferences."""
        try:
            row = self.db.query(SchedulePreferencesDB).filter(
                SchedulePreferencesDB.user_id == preferences.user_id
            ).first()
            if row is None:
                row = SchedulePreferencesDB.from_pydantic(preferences)
                self.db.add(row)
            else:
                row.schedule_horizon_days = preferences.schedule_horizon_days
                row.blocks_per_weekday = preferences.blocks_per_weekday
                row.blocks_per_weekend = preferences.blocks_per_weekend
                row.default_block_duration_minutes = preferences.default_block_duration_minutes
                row.subject_grouping = enum_to_value(preferences.subject_grouping)
                row.updated_at = datetime.utcnow()
            self.db.commit()
            self.db.refresh(row)
            logger.debug(f"Saved schedule preferences for user {preferences.user_id}")
            return row.to_pydantic()
        except Exception as e:
            self.db.rollback()
            logger.error(
                f"Failed to save schedule preferences for user {preferences.user_id}: {type(e).__name__}: {str(e)}"
            )
            raise
