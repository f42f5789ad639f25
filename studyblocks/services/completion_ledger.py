"""Completion ledger for studyblocks.

Marks study blocks complete/incomplete and keeps the XP economy in step:
subject XP/level change by the block's award, and the user's global XP is
re-derived as the sum of all of their subjects' XP.
"""

import logging
from datetime import datetime
from typing import Optional, Tuple

from sqlalchemy.orm import Session

from studyblocks.database.study_block_repository import StudyBlockRepository
from studyblocks.database.subject_repository import SubjectRepository
from studyblocks.database.user_repository import UserRepository
from studyblocks.engine.leveling import (
    SUBJECT_CURVE,
    apply_xp_delta,
    award_for_block,
    global_level,
    global_xp,
)
from studyblocks.models.study_block import StudyBlock
from studyblocks.models.subject import Subject
from studyblocks.models.user import User
from studyblocks.services.user_locks import UserLockRegistry, default_user_locks

logger = logging.getLogger(__name__)


class MissingReferenceError(LookupError):
    """A block's subject or owning user could not be loaded."""

    def __init__(self, message: str, *, block_id: str):
        super().__init__(message)
        self.block_id = block_id


class CompletionLedger:
    """Applies block completion events to subject and global XP.

    Stores are duck-typed:
    - subject_store: get(), get_all_for_user(), update_xp()
    - block_store: get(), get_all_for_user(), set_completion()
    - user_store: get(), update_global_xp()

    Operations for one user run under that user's lock. Each thread should use
    its own stores (SQLAlchemy sessions are not thread-safe).
    """

    def __init__(self, subject_store, block_store, user_store, locks: Optional[UserLockRegistry] = None):
        self.subject_store = subject_store
        self.block_store = block_store
        self.user_store = user_store
        self.locks = locks if locks is not None else default_user_locks

    @classmethod
    def for_session(cls, db: Session, locks: Optional[UserLockRegistry] = None) -> "CompletionLedger":
        return cls(SubjectRepository(db), StudyBlockRepository(db), UserRepository(db), locks=locks)

    def mark_complete(self, block_id: str) -> int:
        """Mark a block complete.

        Returns:
            XP awarded (0 if the block was already complete or its subject/user is missing)
        """
        return self._set_completion(block_id, True)

    def mark_incomplete(self, block_id: str) -> int:
        """Undo a completion. No-op (0) for a block that is not complete.

        Returns:
            XP removed
        """
        return self._set_completion(block_id, False)

    def _set_completion(self, block_id: str, complete: bool) -> int:
        block = self.block_store.get(block_id)
        if block is None:
            logger.warning(f"Completion event for unknown block {block_id}; ignoring")
            return 0

        with self.locks.hold(block.user_id):
            # Re-read under the lock; a concurrent regeneration may have removed it.
            block = self.block_store.get(block_id)
            if block is None:
                logger.warning(f"Block {block_id} disappeared before completion could be applied")
                return 0

            # Guard against applying the same XP delta twice.
            if block.is_completed == complete:
                return 0

            now = datetime.utcnow()
            try:
                subject, user = self._load_owners(block)
            except MissingReferenceError as e:
                logger.warning(f"{e}; updating completion flag only for block {e.block_id}")
                self._write_flag(block, complete, now)
                return 0

            award = self.block_award(block)
            delta = award if complete else -award

            new_xp, new_level = apply_xp_delta(subject.xp, delta, SUBJECT_CURVE)
            subjects = [
                s.model_copy(update={"xp": new_xp}) if s.id == subject.id else s
                for s in self.subject_store.get_all_for_user(user.id)
            ]
            total_xp = global_xp(s.xp for s in subjects)

            # XP is written before the completion flag.
            self.subject_store.update_xp(subject.id, new_xp, new_level, now)
            self.user_store.update_global_xp(user.id, total_xp, global_level(total_xp), now)
            self._write_flag(block, complete, now)

            logger.debug(
                f"Block {block.id} {'completed' if complete else 'reverted'}: "
                f"subject {subject.id} xp {subject.xp}->{new_xp}, user {user.id} global xp {total_xp}"
            )
            return award

    def _load_owners(self, block: StudyBlock) -> Tuple[Subject, User]:
        subject = self.subject_store.get(block.subject_id)
        if subject is None:
            raise MissingReferenceError(f"Subject {block.subject_id} not found", block_id=block.id)
        user = self.user_store.get(block.user_id)
        if user is None:
            raise MissingReferenceError(f"User {block.user_id} not found", block_id=block.id)
        return subject, user

    def _write_flag(self, block: StudyBlock, complete: bool, now: datetime) -> None:
        self.block_store.set_completion(block.id, complete, now if complete else None)

    def block_award(self, block: StudyBlock) -> int:
        """XP a block is worth given the user's current schedule.

        Custom blocks earn the flat hourly rate. Scheduled blocks share the
        schedule's XP pool equally between the subjects that have scheduled
        blocks, then by duration within the subject. Custom blocks are left
        out of the schedule totals.
        """
        return award_for_block(block, self.block_store.get_all_for_user(block.user_id))
