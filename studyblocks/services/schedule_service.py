"""Schedule (re)generation for studyblocks.

Coordinates the allocator with the stores: pending blocks are cleared and a
fresh schedule inserted while holding the user's lock, so completion events
for that user cannot race against the swap.
"""

import logging
import random
import uuid
from datetime import date, datetime, timedelta
from typing import Dict, List, Optional, Sequence, Tuple

from sqlalchemy.orm import Session

from studyblocks.database.schedule_preferences_repository import SchedulePreferencesRepository
from studyblocks.database.study_block_repository import StudyBlockRepository
from studyblocks.database.subject_repository import SubjectRepository
from studyblocks.database.user_repository import UserRepository
from studyblocks.engine import allocator
from studyblocks.engine.leveling import global_level, global_xp, predict_levels
from studyblocks.models.constants import (
    DEFAULT_BLOCK_DURATION_MIN,
    DEFAULT_BLOCKS_PER_DAY,
    DEFAULT_BLOCKS_PER_WEEKDAY,
    DEFAULT_BLOCKS_PER_WEEKEND,
    DEFAULT_HORIZON_DAYS,
)
from studyblocks.models.schedule_preferences import SchedulePreferences
from studyblocks.models.scheduling_result import LevelPrediction, ReconciliationKind, SchedulingResult
from studyblocks.models.study_block import StudyBlock
from studyblocks.models.user import User
from studyblocks.services.user_locks import UserLockRegistry, default_user_locks

logger = logging.getLogger(__name__)


class ScheduleService:
    """Generates, reschedules and edits a user's study schedule."""

    def __init__(
        self,
        subject_store,
        block_store,
        user_store,
        preferences_store=None,
        locks: Optional[UserLockRegistry] = None,
        rng: Optional[random.Random] = None,
    ):
        self.subject_store = subject_store
        self.block_store = block_store
        self.user_store = user_store
        self.preferences_store = preferences_store
        self.locks = locks if locks is not None else default_user_locks
        self.rng = rng

    @classmethod
    def for_session(
        cls,
        db: Session,
        locks: Optional[UserLockRegistry] = None,
        rng: Optional[random.Random] = None,
    ) -> "ScheduleService":
        return cls(
            SubjectRepository(db),
            StudyBlockRepository(db),
            UserRepository(db),
            SchedulePreferencesRepository(db),
            locks=locks,
            rng=rng,
        )

    def _preferences(self, user_id: str) -> Optional[SchedulePreferences]:
        if self.preferences_store is None:
            return None
        return self.preferences_store.get(user_id)

    def generate_new_schedule(
        self,
        user_id: str,
        *,
        blocks_per_day: Optional[int] = None,
        horizon_days: Optional[int] = None,
        block_duration_minutes: Optional[int] = None,
        start_date: Optional[date] = None,
    ) -> SchedulingResult:
        """Replace the user's pending blocks with a freshly generated schedule.

        Capacity comes from `blocks_per_day` when given; otherwise from stored
        weekday/weekend preferences; otherwise from the user's preferred blocks
        per day. Completed blocks are kept. With no subjects nothing is deleted
        and an empty result is returned.

        The result carries a level prediction per subject, pricing the pending
        blocks against the stored schedule the way completion will.
        """
        start_date = start_date or date.today()

        with self.locks.hold(user_id):
            preferences = self._preferences(user_id)
            user = self.user_store.get(user_id)

            if horizon_days is None:
                horizon_days = preferences.schedule_horizon_days if preferences else DEFAULT_HORIZON_DAYS
            if block_duration_minutes is None:
                block_duration_minutes = _default_duration(preferences, user)

            subjects = self.subject_store.get_all_for_user(user_id)
            if not subjects:
                logger.info(f"No subjects for user {user_id}; schedule not generated")
                return SchedulingResult(schedule_horizon=horizon_days)

            capacities = _capacities(start_date, horizon_days, blocks_per_day, preferences, user)

            deleted = self.block_store.delete_pending_for_user(user_id)
            blocks, reconciliation = allocator.plan_schedule(
                subjects, user_id, capacities, block_duration_minutes, rng=self.rng
            )
            if blocks:
                self.block_store.create_batch(blocks)
            predictions = predict_levels(subjects, self.block_store.get_all_for_user(user_id))

            logger.info(
                f"Generated {len(blocks)} blocks over {horizon_days} days for user {user_id} "
                f"({len(subjects)} subjects, replaced {deleted} pending)"
            )
            return _result(
                blocks,
                horizon_days,
                reconciliation.kind if reconciliation else None,
                predictions,
            )

    def reschedule_missed_blocks(self, user_id: str, *, today: Optional[date] = None) -> SchedulingResult:
        """Pull overdue blocks back into the schedule from today onward."""
        today = today or date.today()

        with self.locks.hold(user_id):
            preferences = self._preferences(user_id)
            blocks_per_weekday = preferences.blocks_per_weekday if preferences else DEFAULT_BLOCKS_PER_WEEKDAY
            blocks_per_weekend = preferences.blocks_per_weekend if preferences else DEFAULT_BLOCKS_PER_WEEKEND
            horizon_days = preferences.schedule_horizon_days if preferences else DEFAULT_HORIZON_DAYS

            existing = self.block_store.get_all_for_user(user_id)
            rescheduled = allocator.reschedule_missed_blocks(
                existing,
                blocks_per_weekday=blocks_per_weekday,
                blocks_per_weekend=blocks_per_weekend,
                horizon_days=horizon_days,
                today=today,
            )

            pending = [b for b in rescheduled if not b.is_completed]
            if any(b.is_overdue(today) for b in existing):
                self.block_store.delete_pending_for_user(user_id)
                if pending:
                    self.block_store.create_batch(pending)
                logger.info(f"Rescheduled {len(pending)} pending blocks for user {user_id}")

            return SchedulingResult(
                blocks=rescheduled,
                total_blocks=len(rescheduled),
                schedule_horizon=horizon_days,
                average_blocks_per_day=len(pending) / horizon_days if horizon_days > 0 else 0.0,
                subject_distribution=allocator.subject_distribution(rescheduled),
            )

    def add_custom_block(
        self,
        user_id: str,
        subject_id: str,
        duration_minutes: int,
        scheduled_date: Optional[date] = None,
    ) -> Optional[StudyBlock]:
        """Add an ad hoc block (earns flat-rate XP when completed).

        Returns:
            The created block, or None if the subject does not belong to the user
        """
        with self.locks.hold(user_id):
            subject = self.subject_store.get(subject_id)
            if subject is None or subject.user_id != user_id:
                logger.warning(f"Cannot add custom block: subject {subject_id} not found for user {user_id}")
                return None
            existing = self.block_store.get_for_subject(subject_id)
            block = StudyBlock(
                id=str(uuid.uuid4()),
                user_id=user_id,
                subject_id=subject.id,
                subject_name=subject.name,
                subject_icon=subject.icon,
                block_number=len(existing) + 1,
                duration_minutes=duration_minutes,
                scheduled_date=scheduled_date or date.today(),
                total_blocks_for_subject=1,
                is_custom_block=True,
            )
            return self.block_store.create(block)

    def delete_subject(self, user_id: str, subject_id: str) -> bool:
        """Delete a subject with its blocks and re-derive the user's global XP."""
        with self.locks.hold(user_id):
            subject = self.subject_store.get(subject_id)
            if subject is None or subject.user_id != user_id:
                return False
            self.subject_store.delete(subject_id)

            total_xp = global_xp(s.xp for s in self.subject_store.get_all_for_user(user_id))
            if self.user_store.get(user_id) is not None:
                self.user_store.update_global_xp(user_id, total_xp, global_level(total_xp), datetime.utcnow())
            logger.info(f"Deleted subject {subject_id} for user {user_id}")
            return True


def _default_duration(preferences: Optional[SchedulePreferences], user: Optional[User]) -> int:
    if preferences is not None:
        return preferences.default_block_duration_minutes
    if user is not None:
        return user.default_block_duration
    return DEFAULT_BLOCK_DURATION_MIN


def _capacities(
    start_date: date,
    horizon_days: int,
    blocks_per_day: Optional[int],
    preferences: Optional[SchedulePreferences],
    user: Optional[User],
) -> List[Tuple[date, int]]:
    days = [start_date + timedelta(days=i) for i in range(horizon_days)]
    if blocks_per_day is None and preferences is not None:
        return [(day, preferences.capacity_for(day)) for day in days]
    if blocks_per_day is None:
        blocks_per_day = user.preferred_blocks_per_day if user else DEFAULT_BLOCKS_PER_DAY
    return [(day, blocks_per_day) for day in days]


def _result(
    blocks: Sequence[StudyBlock],
    horizon_days: int,
    reconciliation: Optional[ReconciliationKind],
    level_predictions: Optional[Dict[str, LevelPrediction]] = None,
) -> SchedulingResult:
    return SchedulingResult(
        blocks=list(blocks),
        total_blocks=len(blocks),
        schedule_horizon=horizon_days,
        average_blocks_per_day=len(blocks) / horizon_days if horizon_days > 0 else 0.0,
        subject_distribution=allocator.subject_distribution(blocks),
        reconciliation=reconciliation,
        level_predictions=level_predictions or {},
    )
