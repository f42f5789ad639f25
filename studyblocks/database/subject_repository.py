"""Repository for Subject database operations."""

import logging
from datetime import datetime
from typing import List, Optional
from sqlalchemy.orm import Session

from studyblocks.models.subject import Subject
from studyblocks.database.models import StudyBlockDB, SubjectDB

logger = logging.getLogger(__name__)


class SubjectRepository:
    """Repository for Subject database operations (the SubjectStore)."""

    def __init__(self, db: Session):
        self.db = db

    def create(self, subject: Subject) -> Subject:
        """Create a new subject."""
        try:
            subject_db = SubjectDB.from_pydantic(subject)
            self.db.add(subject_db)
            self.db.commit()
            self.db.refresh(subject_db)
            logger.debug(f"Created subject {subject.id}: {subject.name[:50]}")
            return subject_db.to_pydantic()
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to create subject {subject.id}: {type(e).__name__}: {str(e)}")
            raise

    def get(self, subject_id: str) -> Optional[Subject]:
        """Get subject by ID."""
        subject_db = self.db.query(SubjectDB).filter(SubjectDB.id == subject_id).first()
        return subject_db.to_pydantic() if subject_db else None

    def get_all_for_user(self, user_id: str) -> List[Subject]:
        """Get all subjects for a user in creation order."""
        subjects_db = self.db.query(SubjectDB).filter(
            SubjectDB.user_id == user_id
        ).order_by(SubjectDB.created_at, SubjectDB.id).all()
        return [subject_db.to_pydantic() for subject_db in subjects_db]

    def update_confidence(self, subject_id: str, confidence: int) -> Optional[Subject]:
        """Change a subject's confidence (validated through the Subject model)."""
        try:
            row = self.db.query(SubjectDB).filter(SubjectDB.id == subject_id).first()
            if row is None:
                return None
            Subject(**{**row.to_pydantic().model_dump(), "confidence": confidence})
            row.confidence = confidence
            row.updated_at = datetime.utcnow()
            self.db.commit()
            self.db.refresh(row)
            return row.to_pydantic()
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to update confidence for subject {subject_id}: {type(e).__name__}: {str(e)}")
            raise

    def update_xp(self, subject_id: str, xp: int, level: int, timestamp: datetime) -> Optional[Subject]:
        """Write a subject's XP and level."""
        try:
            row = self.db.query(SubjectDB).filter(SubjectDB.id == subject_id).first()
            if row is None:
                return None
            row.xp = xp
            row.level = level
            row.updated_at = timestamp
            self.db.commit()
            self.db.refresh(row)
            logger.debug(f"Updated XP for subject {subject_id}: xp={xp} level={level}")
            return row.to_pydantic()
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to update XP for subject {subject_id}: {type(e).__name__}: {str(e)}")
            raise

    def delete(self, subject_id: str) -> bool:
        """Delete a subject and every block scheduled for it.

        Returns:
            True if the subject existed
        """
        try:
            self.db.query(StudyBlockDB).filter(
                StudyBlockDB.subject_id == subject_id
            ).delete(synchronize_session="fetch")
            deleted = self.db.query(SubjectDB).filter(SubjectDB.id == subject_id).delete()
            self.db.commit()
            logger.debug(f"Deleted subject {subject_id}")
            return bool(deleted)
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to delete subject {subject_id}: {type(e).__name__}: {str(e)}")
            raise
