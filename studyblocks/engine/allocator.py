"""Study block allocation for studyblocks.

Turns a set of weighted subjects into a fixed-size, date-stamped schedule:
1. Each subject gets a share of the total capacity proportional to its confidence weight
2. Candidates are shuffled so subjects interleave across the horizon ("balanced" grouping)
3. The candidate list is reconciled to exactly the total capacity
4. Blocks are dealt out day by day, each day receiving exactly its capacity
"""

import logging
import math
import random
import uuid
from collections import Counter
from datetime import date, timedelta
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from studyblocks.models.schedule_preferences import SchedulePreferences, daily_capacity
from studyblocks.models.scheduling_result import ReconciliationKind
from studyblocks.models.study_block import StudyBlock
from studyblocks.models.subject import Subject

logger = logging.getLogger(__name__)


class Reconciliation:
    """Outcome of fitting the weighted candidates to the schedule capacity."""

    def __init__(self, kind: ReconciliationKind, blocks: List[StudyBlock], candidate_count: int, target_count: int):
        self.kind = kind
        self.blocks = blocks
        self.candidate_count = candidate_count
        self.target_count = target_count

    def __repr__(self) -> str:
        return (
            f"Reconciliation(kind={self.kind.value}, candidates={self.candidate_count}, "
            f"target={self.target_count}, blocks={len(self.blocks)})"
        )


def generate_schedule(
    subjects: Sequence[Subject],
    user_id: str,
    horizon_days: int,
    blocks_per_day: int,
    block_duration_minutes: int,
    *,
    start_date: Optional[date] = None,
    rng: Optional[random.Random] = None,
) -> List[StudyBlock]:
    """Generate a schedule with the same capacity on every day.

    Every date in [start_date, start_date + horizon_days) receives exactly
    `blocks_per_day` blocks whenever at least one subject is given.

    Args:
        subjects: Subjects to schedule (weights derived from confidence)
        user_id: Owner of the generated blocks
        horizon_days: Number of days to plan
        blocks_per_day: Blocks per day
        block_duration_minutes: Duration of every generated block
        start_date: First scheduled day (defaults to today)
        rng: Random source for the interleaving shuffle (seed it for determinism)

    Returns:
        Blocks sorted by scheduled date
    """
    start_date = start_date or date.today()
    capacities = [(start_date + timedelta(days=i), blocks_per_day) for i in range(horizon_days)]
    blocks, _ = plan_schedule(subjects, user_id, capacities, block_duration_minutes, rng=rng)
    return blocks


def generate_weekly_schedule(
    subjects: Sequence[Subject],
    user_id: str,
    preferences: SchedulePreferences,
    *,
    start_date: Optional[date] = None,
    rng: Optional[random.Random] = None,
) -> List[StudyBlock]:
    """Generate a schedule using separate weekday and weekend capacities."""
    blocks, _ = plan_schedule(
        subjects,
        user_id,
        capacities_for_preferences(preferences, start_date or date.today()),
        preferences.default_block_duration_minutes,
        rng=rng,
    )
    return blocks


def capacities_for_preferences(preferences: SchedulePreferences, start_date: date) -> List[Tuple[date, int]]:
    return [
        (day, preferences.capacity_for(day))
        for day in _daterange(start_date, preferences.schedule_horizon_days)
    ]


def plan_schedule(
    subjects: Sequence[Subject],
    user_id: str,
    capacities: Sequence[Tuple[date, int]],
    block_duration_minutes: int,
    *,
    rng: Optional[random.Random] = None,
) -> Tuple[List[StudyBlock], Optional[Reconciliation]]:
    """Run the full allocation pipeline over explicit (date, capacity) pairs.

    Returns:
        Tuple of (blocks sorted by date, reconciliation outcome or None when
        there was nothing to schedule)
    """
    if not subjects:
        return [], None

    rng = rng or random.Random()
    total_blocks = sum(capacity for _, capacity in capacities)

    candidates: List[StudyBlock] = []
    for subject, count in weighted_block_counts(subjects, total_blocks):
        logger.debug(
            f"Subject {subject.name}: confidence={subject.confidence}, "
            f"weight={subject.confidence_weight}, blocks={count}"
        )
        candidates.extend(_blocks_for_subject(subject, user_id, count, block_duration_minutes, capacities))

    rng.shuffle(candidates)

    if not candidates and total_blocks > 0:
        # Every share floored to zero; seed one block per subject, weakest confidence first
        candidates = _one_block_per_subject(subjects, user_id, block_duration_minutes, capacities)
        logger.debug(f"All {len(subjects)} subjects floored to zero blocks; seeding one block each")

    reconciliation = reconcile(candidates, total_blocks)
    if reconciliation.kind != ReconciliationKind.EXACT:
        logger.debug(f"Reconciled candidates: {reconciliation!r}")

    return assign_dates(reconciliation.blocks, capacities), reconciliation


def weighted_block_counts(subjects: Sequence[Subject], total_blocks: int) -> List[Tuple[Subject, int]]:
    """Per-subject block counts: floor(weight / total_weight * total_blocks).

    The rounding remainder is not redistributed; reconciliation absorbs it.
    """
    total_weight = sum(subject.confidence_weight for subject in subjects)
    if total_weight <= 0 or total_blocks <= 0:
        return [(subject, 0) for subject in subjects]
    return [
        (subject, int(math.floor(subject.confidence_weight * total_blocks / total_weight)))
        for subject in subjects
    ]


def _blocks_for_subject(
    subject: Subject,
    user_id: str,
    count: int,
    block_duration_minutes: int,
    capacities: Sequence[Tuple[date, int]],
) -> List[StudyBlock]:
    # Dates are placeholders until assign_dates()
    placeholder_date = capacities[0][0] if capacities else date.today()
    return [
        StudyBlock(
            id=str(uuid.uuid4()),
            user_id=user_id,
            subject_id=subject.id,
            subject_name=subject.name,
            subject_icon=subject.icon,
            block_number=i + 1,
            duration_minutes=block_duration_minutes,
            scheduled_date=placeholder_date,
            total_blocks_for_subject=count,
        )
        for i in range(count)
    ]


def _one_block_per_subject(
    subjects: Sequence[Subject],
    user_id: str,
    block_duration_minutes: int,
    capacities: Sequence[Tuple[date, int]],
) -> List[StudyBlock]:
    """One candidate per subject, highest weight first (ties keep input order)."""
    by_weight = sorted(subjects, key=lambda s: s.confidence_weight, reverse=True)
    candidates: List[StudyBlock] = []
    for subject in by_weight:
        candidates.extend(_blocks_for_subject(subject, user_id, 1, block_duration_minutes, capacities))
    return candidates


def reconcile(candidates: List[StudyBlock], target_count: int) -> Reconciliation:
    """Fit the candidate list to exactly `target_count` blocks.

    - SHORTFALL: cycle through the candidates (wrapping) appending duplicates,
      each with a fresh id and the next block number in its subject's sequence
    - OVERFLOW: keep the first `target_count` candidates
    - EXACT: unchanged

    With no candidates at all a shortfall cannot be filled and the result is empty.
    """
    candidate_count = len(candidates)
    target_count = max(0, target_count)

    if candidate_count == target_count:
        return Reconciliation(ReconciliationKind.EXACT, list(candidates), candidate_count, target_count)

    if candidate_count > target_count:
        kept = _with_subject_totals(candidates[:target_count])
        return Reconciliation(ReconciliationKind.OVERFLOW, kept, candidate_count, target_count)

    blocks = list(candidates)
    if candidates:
        next_number: Dict[str, int] = {}
        for block in candidates:
            next_number[block.subject_id] = max(next_number.get(block.subject_id, 0), block.block_number)
        index = 0
        while len(blocks) < target_count:
            source = candidates[index % candidate_count]
            next_number[source.subject_id] += 1
            blocks.append(
                source.model_copy(
                    update={"id": str(uuid.uuid4()), "block_number": next_number[source.subject_id]}
                )
            )
            index += 1
        blocks = _with_subject_totals(blocks)
    return Reconciliation(ReconciliationKind.SHORTFALL, blocks, candidate_count, target_count)


def _with_subject_totals(blocks: List[StudyBlock]) -> List[StudyBlock]:
    """Refresh the denormalized per-subject totals after blocks were added or dropped."""
    totals = Counter(block.subject_id for block in blocks)
    return [
        block.model_copy(update={"total_blocks_for_subject": totals[block.subject_id]})
        for block in blocks
    ]


def assign_dates(blocks: Sequence[StudyBlock], capacities: Sequence[Tuple[date, int]]) -> List[StudyBlock]:
    """Deal blocks out day by day, `capacity` per day, in list order.

    Every placed block gets a fresh id; block numbers are preserved.
    """
    placed: List[StudyBlock] = []
    index = 0
    for day, capacity in capacities:
        for _ in range(capacity):
            if index >= len(blocks):
                break
            placed.append(blocks[index].model_copy(update={"id": str(uuid.uuid4()), "scheduled_date": day}))
            index += 1
        if index >= len(blocks):
            break
    # sorted() is stable, so same-day blocks keep their dealing order
    return sorted(placed, key=lambda b: b.scheduled_date)


def reschedule_missed_blocks(
    blocks: Sequence[StudyBlock],
    *,
    blocks_per_weekday: int,
    blocks_per_weekend: int,
    horizon_days: int,
    today: Optional[date] = None,
) -> List[StudyBlock]:
    """Move overdue blocks back into the schedule.

    If nothing is overdue the blocks are returned unchanged. Otherwise completed
    blocks keep their dates and every incomplete block (overdue first, then
    upcoming) is redistributed from today at weekday/weekend capacity. Blocks
    that do not fit within the horizon spill onto the following days. Block
    ids are preserved.

    Raises:
        ValueError: If neither weekdays nor weekends have any capacity
    """
    today = today or date.today()
    missed = [b for b in blocks if b.is_overdue(today)]
    if not missed:
        return list(blocks)
    if blocks_per_weekday <= 0 and blocks_per_weekend <= 0:
        raise ValueError("Cannot reschedule with zero daily capacity")

    completed = [b for b in blocks if b.is_completed]
    upcoming = [b for b in blocks if not b.is_completed and b.scheduled_date >= today]
    to_place = missed + upcoming

    rescheduled: List[StudyBlock] = list(completed)
    index = 0
    offset = 0
    while index < len(to_place):
        day = today + timedelta(days=offset)
        for _ in range(daily_capacity(day, blocks_per_weekday, blocks_per_weekend)):
            if index >= len(to_place):
                break
            rescheduled.append(to_place[index].model_copy(update={"scheduled_date": day}))
            index += 1
        offset += 1

    if offset > horizon_days:
        logger.info(f"Rescheduled {len(to_place)} blocks over {offset} days (horizon {horizon_days})")
    return sorted(rescheduled, key=lambda b: b.scheduled_date)


def subject_distribution(blocks: Iterable[StudyBlock]) -> Dict[str, int]:
    """Count blocks per subject name."""
    return dict(Counter(block.subject_name for block in blocks))


def _daterange(start: date, days: int) -> Iterable[date]:
    for i in range(days):
        yield start + timedelta(days=i)
