"""Progress reporting for studyblocks.

Read-only views over a user's schedule: study streaks and the XP each
subject has earned from completed blocks.
"""

import logging
from datetime import date
from typing import Dict, Optional

from sqlalchemy.orm import Session

from studyblocks.database.study_block_repository import StudyBlockRepository
from studyblocks.database.subject_repository import SubjectRepository
from studyblocks.database.user_repository import UserRepository
from studyblocks.engine.leveling import xp_earned_per_subject
from studyblocks.engine.streaks import study_streak
from studyblocks.models.scheduling_result import StudyStreak, XPBreakdown

logger = logging.getLogger(__name__)


class ProgressService:
    """Streak and XP summaries for one user at a time."""

    def __init__(self, subject_store, block_store, user_store):
        self.subject_store = subject_store
        self.block_store = block_store
        self.user_store = user_store

    @classmethod
    def for_session(cls, db: Session) -> "ProgressService":
        return cls(SubjectRepository(db), StudyBlockRepository(db), UserRepository(db))

    def study_streak(self, user_id: str, *, today: Optional[date] = None) -> StudyStreak:
        return study_streak(self.block_store.get_all_for_user(user_id), today)

    def xp_per_subject(self, user_id: str) -> Dict[str, int]:
        """Subject name -> XP earned from that subject's completed blocks."""
        return xp_earned_per_subject(
            self.subject_store.get_all_for_user(user_id),
            self.block_store.get_all_for_user(user_id),
        )

    def xp_breakdown(self, user_id: str) -> XPBreakdown:
        """Global XP/level next to the per-subject earnings.

        An unknown user gets an empty breakdown.
        """
        user = self.user_store.get(user_id)
        if user is None:
            logger.warning(f"XP breakdown requested for unknown user {user_id}")
            return XPBreakdown()
        subject_xp = self.xp_per_subject(user_id)
        return XPBreakdown(
            global_xp=user.global_xp,
            global_level=user.global_level,
            earned_xp=sum(subject_xp.values()),
            subject_xp=subject_xp,
        )
