"""Process-local per-entity locks.

Draft mutations hold ("draft", draft_id); roster mutations hold
("member", member_id) for every roster they touch. Picks also hold every
drafter's member lock, and free-agent moves also hold the draft lock while
the league's draft is open. Keys are acquired in sorted order, so a draft
lock is always taken before member locks and two callers locking
overlapping member sets cannot deadlock. Entity locks are taken before a
database connection is opened, never while one is held.

These are threading.RLock based and give no cross-process guarantees; the
database transaction is still the source of truth.
"""

from __future__ import annotations

from contextlib import contextmanager
from threading import Lock, RLock
from typing import Iterable, Iterator

LockKey = tuple[str, str]


def draft_key(draft_id: str) -> LockKey:
    return ("draft", draft_id)


def league_key(league_id: str) -> LockKey:
    return ("league", league_id)


def member_key(member_id: str) -> LockKey:
    return ("member", member_id)


def member_keys(member_ids: Iterable[str]) -> list[LockKey]:
    return [member_key(member_id) for member_id in member_ids]


class LockRegistry:
    def __init__(self, timeout_s: float | None = None) -> None:
        self.timeout_s = timeout_s
        self._locks: dict[LockKey, RLock] = {}
        self._guard = Lock()

    def _lock_for(self, key: LockKey) -> RLock:
        with self._guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = RLock()
                self._locks[key] = lock
            return lock

    @contextmanager
    def hold(
        self, *keys: LockKey, reason: str = "", timeout_s: float | None = None
    ) -> Iterator[None]:
        """Acquire every key in canonical order and release them on exit.

        Raises:
            TimeoutError: a lock could not be acquired within the timeout.
        """
        timeout = self.timeout_s if timeout_s is None else timeout_s
        if timeout is not None and timeout < 0:
            timeout = 0.0

        acquired: list[RLock] = []
        try:
            for key in sorted(set(keys)):
                lock = self._lock_for(key)
                ok = lock.acquire() if timeout is None else lock.acquire(timeout=timeout)
                if not ok:
                    msg = f"lock timeout on {key[0]}:{key[1]} (timeout_s={timeout})"
                    if reason:
                        msg += f": {reason}"
                    raise TimeoutError(msg)
                acquired.append(lock)
            yield
        finally:
            for lock in reversed(acquired):
                lock.release()
