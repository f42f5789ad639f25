"""Repository for StudyBlock database operations."""

import logging
from datetime import date, datetime
from typing import List, Optional
from sqlalchemy.orm import Session

from studyblocks.models.study_block import StudyBlock
from studyblocks.database.models import StudyBlockDB

logger = logging.getLogger(__name__)


class StudyBlockRepository:
    """Repository for StudyBlock database operations (the BlockStore)."""

    def __init__(self, db: Session):
        self.db = db

    def create(self, block: StudyBlock) -> StudyBlock:
        """Create a single study block (e.g. a custom block)."""
        try:
            block_db = StudyBlockDB.from_pydantic(block)
            self.db.add(block_db)
            self.db.commit()
            self.db.refresh(block_db)
            logger.debug(f"Created study block {block.id}")
            return block_db.to_pydantic()
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to create study block {block.id}: {type(e).__name__}: {str(e)}")
            raise

    def create_batch(self, blocks: List[StudyBlock]) -> List[StudyBlock]:
        """Create multiple study blocks in one transaction."""
        try:
            blocks_db = [StudyBlockDB.from_pydantic(block) for block in blocks]
            self.db.add_all(blocks_db)
            self.db.commit()
            for block_db in blocks_db:
                self.db.refresh(block_db)
            logger.debug(f"Created {len(blocks)} study blocks")
            return [block_db.to_pydantic() for block_db in blocks_db]
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to create study blocks: {type(e).__name__}: {str(e)}")
            raise

    def get(self, block_id: str) -> Optional[StudyBlock]:
        """Get a study block by ID."""
        row = self.db.query(StudyBlockDB).filter(StudyBlockDB.id == block_id).first()
        return row.to_pydantic() if row else None

    def get_all_for_user(self, user_id: str) -> List[StudyBlock]:
        """Get all study blocks for a user sorted by scheduled date."""
        blocks_db = self.db.query(StudyBlockDB).filter(
            StudyBlockDB.user_id == user_id
        ).order_by(StudyBlockDB.scheduled_date, StudyBlockDB.block_number).all()
        return [block_db.to_pydantic() for block_db in blocks_db]

    def get_for_subject(self, subject_id: str) -> List[StudyBlock]:
        """Get all study blocks for a subject sorted by scheduled date."""
        blocks_db = self.db.query(StudyBlockDB).filter(
            StudyBlockDB.subject_id == subject_id
        ).order_by(StudyBlockDB.scheduled_date).all()
        return [block_db.to_pydantic() for block_db in blocks_db]

    def get_for_date(self, user_id: str, day: date) -> List[StudyBlock]:
        """Get a user's blocks for one day ordered by block number."""
        blocks_db = self.db.query(StudyBlockDB).filter(
            StudyBlockDB.user_id == user_id,
            StudyBlockDB.scheduled_date == day,
        ).order_by(StudyBlockDB.block_number).all()
        return [block_db.to_pydantic() for block_db in blocks_db]

    def set_completion(
        self, block_id: str, completed: bool, completed_at: Optional[datetime]
    ) -> Optional[StudyBlock]:
        """Flip a block's completion flag and timestamp."""
        try:
            row = self.db.query(StudyBlockDB).filter(StudyBlockDB.id == block_id).first()
            if row is None:
                return None
            row.is_completed = bool(completed)
            row.completed_at = completed_at
            self.db.commit()
            self.db.refresh(row)
            return row.to_pydantic()
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to set completed={completed} for block {block_id}: {type(e).__name__}: {str(e)}")
            raise

    def delete_pending_for_user(self, user_id: str) -> int:
        """Delete all uncompleted blocks for a user (used when regenerating the schedule).

        Returns:
            Number of blocks deleted
        """
        try:
            deleted_count = (
                self.db.query(StudyBlockDB)
                .filter(StudyBlockDB.user_id == user_id, StudyBlockDB.is_completed.is_(False))
                .delete(synchronize_session="fetch")
            )
            self.db.commit()
            logger.debug(f"Deleted {deleted_count} pending study blocks for user {user_id}")
            return int(deleted_count)
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to delete pending study blocks for user {user_id}: {type(e).__name__}: {str(e)}")
            raise
