"""Per-user serialization for studyblocks state transitions.

Completion events and schedule regeneration for the same user must not
interleave (global XP is re-summed from subjects, and regeneration deletes
pending blocks). Different users never contend.
"""

import threading
from contextlib import contextmanager
from typing import Dict, Iterator, Optional


class UserLockRegistry:
    """Hands out one re-entrant lock per user id.

    Entries are reference counted by `hold()`: a user's lock is created when
    the first holder arrives and dropped when the last one leaves, so the
    registry only ever tracks users with work in flight.
    """

    def __init__(self):
        self._guard = threading.Lock()
        self._locks: Dict[str, threading.RLock] = {}
        self._holders: Dict[str, int] = {}

    def __len__(self) -> int:
        with self._guard:
            return len(self._locks)

    def lock_for(self, user_id: str) -> Optional[threading.RLock]:
        """The lock currently registered for a user (None when nobody holds or waits on it)."""
        with self._guard:
            return self._locks.get(user_id)

    @contextmanager
    def hold(self, user_id: str) -> Iterator[None]:
        """Hold the user's lock for the duration of the block."""
        lock = self._acquire_entry(user_id)
        try:
            with lock:
                yield
        finally:
            self._release_entry(user_id)

    def _acquire_entry(self, user_id: str) -> threading.RLock:
        with self._guard:
            lock = self._locks.get(user_id)
            if lock is None:
                lock = threading.RLock()
                self._locks[user_id] = lock
            self._holders[user_id] = self._holders.get(user_id, 0) + 1
            return lock

    def _release_entry(self, user_id: str) -> None:
        with self._guard:
            remaining = self._holders[user_id] - 1
            if remaining:
                self._holders[user_id] = remaining
                return
            del self._holders[user_id]
            del self._locks[user_id]


# Default registry shared by ledgers and schedule services.
default_user_locks = UserLockRegistry()
