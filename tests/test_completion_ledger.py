"""Tests for the completion ledger (block completion -> XP)."""

import logging
import threading
from unittest.mock import MagicMock

import pytest

from studyblocks.database.models import StudyBlockDB
from studyblocks.engine.leveling import GLOBAL_CURVE, level_for_xp
from studyblocks.services.completion_ledger import CompletionLedger
from studyblocks.services.user_locks import UserLockRegistry


@pytest.fixture
def ledger(db_session):
    return CompletionLedger.for_session(db_session, locks=UserLockRegistry())


@pytest.fixture
def schedule(subject_repository, block_repository, make_subject, make_block):
    """Subject A (confidence 1) with two 60-minute blocks, subject B (confidence 10) with one.

    180 scheduled minutes make a 300 XP pool, 150 per subject:
    each A block is worth 75 XP and the B block 150 XP.
    """
    subject_a = subject_repository.create(make_subject(name="Algebra", confidence=1))
    subject_b = subject_repository.create(make_subject(name="Botany", confidence=10, xp=100))
    blocks = block_repository.create_batch([
        make_block(subject_a, block_number=1, total_blocks_for_subject=2),
        make_block(subject_a, block_number=2, total_blocks_for_subject=2),
        make_block(subject_b, block_number=1),
    ])
    return {"a": subject_a, "b": subject_b, "a_blocks": blocks[:2], "b_block": blocks[2]}


class TestMarkComplete:
    """Test CompletionLedger.mark_complete()."""

    def test_awards_share_of_subject_pool(self, ledger, schedule, subject_repository):
        assert ledger.mark_complete(schedule["a_blocks"][0].id) == 75
        assert subject_repository.get(schedule["a"].id).xp == 75

    def test_award_for_subject_with_single_block(self, ledger, schedule, subject_repository):
        assert ledger.mark_complete(schedule["b_block"].id) == 150
        assert subject_repository.get(schedule["b"].id).xp == 250

    def test_sets_flag_and_timestamp(self, ledger, schedule, block_repository):
        block_id = schedule["a_blocks"][0].id
        ledger.mark_complete(block_id)

        stored = block_repository.get(block_id)
        assert stored.is_completed is True
        assert stored.completed_at is not None

    def test_subject_levels_up(self, ledger, schedule, subject_repository):
        """Botany starts at 100 XP; +150 crosses the 163 XP threshold."""
        ledger.mark_complete(schedule["b_block"].id)

        subject = subject_repository.get(schedule["b"].id)
        assert subject.xp == 250
        assert subject.level == 2

    def test_global_xp_is_sum_of_subjects(self, ledger, schedule, subject_repository, user_repository, test_user_id):
        ledger.mark_complete(schedule["a_blocks"][0].id)
        ledger.mark_complete(schedule["b_block"].id)

        user = user_repository.get(test_user_id)
        subjects = subject_repository.get_all_for_user(test_user_id)
        assert user.global_xp == sum(s.xp for s in subjects) == 75 + 250
        assert user.global_level == level_for_xp(user.global_xp, GLOBAL_CURVE)

    def test_repeat_completion_is_noop(self, ledger, schedule, subject_repository, user_repository, test_user_id):
        block_id = schedule["a_blocks"][0].id
        ledger.mark_complete(block_id)
        before = user_repository.get(test_user_id).global_xp

        assert ledger.mark_complete(block_id) == 0

        assert subject_repository.get(schedule["a"].id).xp == 75
        assert user_repository.get(test_user_id).global_xp == before

    def test_unknown_block(self, ledger):
        assert ledger.mark_complete("nonexistent-id") == 0

    def test_all_blocks_sum_to_subject_share(self, ledger, schedule, subject_repository):
        """Completing every block of a subject earns exactly its share of the pool."""
        for block in schedule["a_blocks"]:
            ledger.mark_complete(block.id)
        assert subject_repository.get(schedule["a"].id).xp == 150

    def test_custom_block_earns_flat_rate(self, ledger, schedule, block_repository, make_block):
        custom = block_repository.create(
            make_block(schedule["a"], block_number=3, duration_minutes=30, is_custom_block=True)
        )
        assert ledger.mark_complete(custom.id) == 50

    def test_custom_blocks_do_not_dilute_schedule_awards(self, ledger, schedule, block_repository, make_block):
        block_repository.create(
            make_block(schedule["a"], block_number=3, duration_minutes=120, is_custom_block=True)
        )
        assert ledger.mark_complete(schedule["a_blocks"][0].id) == 75


class TestMarkIncomplete:
    """Test CompletionLedger.mark_incomplete()."""

    def test_undo_restores_xp(self, ledger, schedule, subject_repository, user_repository, test_user_id):
        """Undo reverses the subject award; global XP is re-derived from the subjects."""
        block_id = schedule["b_block"].id
        subject_before = subject_repository.get(schedule["b"].id)

        ledger.mark_complete(block_id)
        assert ledger.mark_incomplete(block_id) == 150

        subject_after = subject_repository.get(schedule["b"].id)
        user_after = user_repository.get(test_user_id)
        assert (subject_after.xp, subject_after.level) == (subject_before.xp, subject_before.level)
        assert user_after.global_xp == 100
        assert user_after.global_level == 1

    def test_clears_flag_and_timestamp(self, ledger, schedule, block_repository):
        block_id = schedule["a_blocks"][1].id
        ledger.mark_complete(block_id)
        ledger.mark_incomplete(block_id)

        stored = block_repository.get(block_id)
        assert stored.is_completed is False
        assert stored.completed_at is None

    def test_incomplete_block_is_noop(self, ledger, schedule, subject_repository):
        assert ledger.mark_incomplete(schedule["a_blocks"][0].id) == 0
        assert subject_repository.get(schedule["a"].id).xp == 0

    def test_xp_floors_at_zero(self, ledger, schedule, subject_repository, db_session):
        """If the award grew since completion, undo cannot push XP negative."""
        block_id = schedule["a_blocks"][0].id
        ledger.mark_complete(block_id)
        # Dropping the other Algebra block raises this block's award from 75 to 100
        db_session.query(StudyBlockDB).filter(StudyBlockDB.id == schedule["a_blocks"][1].id).delete()
        db_session.commit()

        assert ledger.mark_incomplete(block_id) == 100
        assert subject_repository.get(schedule["a"].id).xp == 0


class TestMissingReferences:
    """Test the degraded path when the subject or user cannot be loaded."""

    @pytest.fixture
    def stores(self, make_subject, make_block):
        block = make_block(make_subject())
        subject_store = MagicMock()
        block_store = MagicMock()
        user_store = MagicMock()
        block_store.get.return_value = block
        return subject_store, block_store, user_store, block

    def test_missing_subject_flips_flag_only(self, stores, caplog):
        subject_store, block_store, user_store, block = stores
        subject_store.get.return_value = None
        ledger = CompletionLedger(subject_store, block_store, user_store, locks=UserLockRegistry())

        with caplog.at_level(logging.WARNING):
            assert ledger.mark_complete(block.id) == 0

        block_store.set_completion.assert_called_once()
        args = block_store.set_completion.call_args[0]
        assert args[0] == block.id
        assert args[1] is True
        subject_store.update_xp.assert_not_called()
        user_store.update_global_xp.assert_not_called()
        assert "not found" in caplog.text

    def test_missing_user_flips_flag_only(self, stores, make_subject):
        subject_store, block_store, user_store, block = stores
        subject_store.get.return_value = make_subject()
        user_store.get.return_value = None
        ledger = CompletionLedger(subject_store, block_store, user_store, locks=UserLockRegistry())

        assert ledger.mark_complete(block.id) == 0

        block_store.set_completion.assert_called_once()
        subject_store.update_xp.assert_not_called()
        user_store.update_global_xp.assert_not_called()

    def test_missing_subject_on_undo(self, stores):
        subject_store, block_store, user_store, block = stores
        block_store.get.return_value = block.model_copy(update={"is_completed": True})
        subject_store.get.return_value = None
        ledger = CompletionLedger(subject_store, block_store, user_store, locks=UserLockRegistry())

        assert ledger.mark_incomplete(block.id) == 0

        block_store.set_completion.assert_called_once_with(block.id, False, None)


class TestConcurrency:
    """Completion events for one user are serialized."""

    def test_concurrent_completions_keep_global_sum(self, make_subject, make_block, test_user_id):
        """Each thread uses its own stores; the lock keeps the read-modify-write consistent."""
        subjects = {s.id: s for s in (make_subject(name="Art", confidence=3), make_subject(name="Music", confidence=3))}
        blocks = {}
        for subject in subjects.values():
            for number in (1, 2, 3):
                block = make_block(subject, block_number=number, total_blocks_for_subject=3)
                blocks[block.id] = block
        state = {"global_xp": 0}
        state_guard = threading.Lock()

        def make_stores():
            subject_store = MagicMock()
            block_store = MagicMock()
            user_store = MagicMock()

            def get_block(block_id):
                with state_guard:
                    return blocks.get(block_id)

            def set_completion(block_id, completed, completed_at):
                with state_guard:
                    blocks[block_id] = blocks[block_id].model_copy(
                        update={"is_completed": completed, "completed_at": completed_at}
                    )

            def get_subject(subject_id):
                with state_guard:
                    return subjects.get(subject_id)

            def all_subjects(user_id):
                with state_guard:
                    return list(subjects.values())

            def update_xp(subject_id, xp, level, timestamp):
                with state_guard:
                    subjects[subject_id] = subjects[subject_id].model_copy(update={"xp": xp, "level": level})

            def update_global_xp(user_id, xp, level, timestamp):
                with state_guard:
                    state["global_xp"] = xp

            block_store.get.side_effect = get_block
            block_store.get_all_for_user.side_effect = lambda user_id: list(blocks.values())
            block_store.set_completion.side_effect = set_completion
            subject_store.get.side_effect = get_subject
            subject_store.get_all_for_user.side_effect = all_subjects
            subject_store.update_xp.side_effect = update_xp
            user_store.get.return_value = MagicMock(id=test_user_id)
            user_store.update_global_xp.side_effect = update_global_xp
            return subject_store, block_store, user_store

        locks = UserLockRegistry()
        threads = [
            threading.Thread(target=CompletionLedger(*make_stores(), locks=locks).mark_complete, args=(block_id,))
            for block_id in list(blocks)
        ]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert all(block.is_completed for block in blocks.values())
        assert state["global_xp"] == sum(s.xp for s in subjects.values())
        assert sum(s.xp for s in subjects.values()) == 6 * 100
