"""Repository for User database operations."""

import logging
from datetime import datetime
from typing import Optional
from sqlalchemy.orm import Session

from studyblocks.models.user import User
from studyblocks.database.models import UserDB

logger = logging.getLogger(__name__)


class UserRepository:
    """Repository for User database operations (the UserStore)."""

    def __init__(self, db: Session):
        self.db = db

    def get(self, user_id: str) -> Optional[User]:
        """Get user by ID."""
        user_db = self.db.query(UserDB).filter(UserDB.id == user_id).first()
        return user_db.to_pydantic() if user_db else None

    def create_or_update(self, user: User) -> User:
        """Create or update a user profile (upsert).

        XP fields are only written on create; afterwards they change through
        update_global_xp() alone.
        """
        user_db = self.db.query(UserDB).filter(UserDB.id == user.id).first()

        if user_db:
            user_db.email = user.email
            user_db.display_name = user.display_name
            user_db.default_block_duration = user.default_block_duration
            user_db.preferred_blocks_per_day = user.preferred_blocks_per_day
            try:
                self.db.commit()
                self.db.refresh(user_db)
                logger.debug(f"Updated user {user.id}: {user.email}")
                return user_db.to_pydantic()
            except Exception as e:
                self.db.rollback()
                logger.error(f"Failed to update user {user.id}: {type(e).__name__}: {str(e)}")
                raise
        else:
            try:
                user_db = UserDB.from_pydantic(user)
                self.db.add(user_db)
                self.db.commit()
                self.db.refresh(user_db)
                logger.debug(f"Created user {user.id}: {user.email}")
                return user_db.to_pydantic()
            except Exception as e:
                self.db.rollback()
                logger.error(f"Failed to create user {user.id}: {type(e).__name__}: {str(e)}")
                raise

    def update_global_xp(self, user_id: str, xp: int, level: int, timestamp: datetime) -> Optional[User]:
        """Write a user's aggregate XP and level."""
        try:
            row = self.db.query(UserDB).filter(UserDB.id == user_id).first()
            if row is None:
                return None
            row.global_xp = xp
            row.global_level = level
            row.last_sync_at = timestamp
            self.db.commit()
            self.db.refresh(row)
            logger.debug(f"Updated global XP for user {user_id}: xp={xp} level={level}")
            return row.to_pydantic()
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to update global XP for user {user_id}: {type(e).__name__}: {str(e)}")
            raise
