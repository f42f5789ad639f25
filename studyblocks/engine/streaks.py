"""Study streaks for studyblocks.

A streak is a run of consecutive calendar days with at least one completed
block, keyed by each block's scheduled date.
"""

from datetime import date, timedelta
from typing import Iterable, Optional

from studyblocks.models.scheduling_result import StudyStreak
from studyblocks.models.study_block import StudyBlock


def study_streak(blocks: Iterable[StudyBlock], today: Optional[date] = None) -> StudyStreak:
    """Current and longest streak over the completed blocks.

    The current streak counts back from the last study day, and only while
    that day is today or yesterday; a gap of two days or more resets it to 0.
    """
    today = today or date.today()
    days = sorted({block.scheduled_date for block in blocks if block.is_completed})
    if not days:
        return StudyStreak()

    longest = run = 1
    for previous, day in zip(days, days[1:]):
        run = run + 1 if day - previous == timedelta(days=1) else 1
        longest = max(longest, run)

    # run now ends at the last study day
    current = run if (today - days[-1]).days <= 1 else 0
    return StudyStreak(current_streak=current, longest_streak=longest, last_study_date=days[-1])
