"""Server-owned pick clock for live drafts."""

from __future__ import annotations

import logging
import threading
from typing import Any, Callable, Optional

from .errors import ExhaustionError, StateConflict

logger = logging.getLogger(__name__)

TimerFactory = Callable[..., Any]


class PickClock:
    """One cancellable countdown per draft.

    When a countdown runs out, `on_expire(draft_id, pick_number)` is called
    with the pick number the clock was armed for. A firing that lost the race
    against a real pick surfaces as a StateConflict, which is logged and
    dropped.
    """

    def __init__(
        self,
        on_expire: Callable[[str, int], Any],
        *,
        timer_factory: TimerFactory = threading.Timer,
    ) -> None:
        self._on_expire = on_expire
        self._timer_factory = timer_factory
        self._timers: dict[str, tuple[int, Any]] = {}
        self._guard = threading.Lock()

    def arm(self, draft_id: str, pick_number: int, seconds: float) -> None:
        timer = self._timer_factory(seconds, self._fire, args=(draft_id, pick_number))
        if hasattr(timer, "daemon"):
            timer.daemon = True
        with self._guard:
            previous = self._timers.pop(draft_id, None)
            self._timers[draft_id] = (pick_number, timer)
        if previous is not None:
            previous[1].cancel()
        timer.start()
        logger.debug("Pick clock armed for draft %s pick %s (%ss)", draft_id, pick_number, seconds)

    def cancel(self, draft_id: str) -> None:
        with self._guard:
            previous = self._timers.pop(draft_id, None)
        if previous is not None:
            previous[1].cancel()

    def cancel_all(self) -> None:
        with self._guard:
            timers = list(self._timers.values())
            self._timers.clear()
        for _, timer in timers:
            timer.cancel()

    def armed_pick(self, draft_id: str) -> Optional[int]:
        with self._guard:
            armed = self._timers.get(draft_id)
        return armed[0] if armed else None

    def _fire(self, draft_id: str, pick_number: int) -> None:
        with self._guard:
            armed = self._timers.get(draft_id)
            if armed is not None and armed[0] == pick_number:
                del self._timers[draft_id]
        try:
            self._on_expire(draft_id, pick_number)
        except StateConflict as exc:
            logger.warning(
                "Stale pick clock for draft %s pick %s dropped: %s", draft_id, pick_number, exc
            )
        except ExhaustionError as exc:
            logger.warning("Pick clock for draft %s could not auto-pick: %s", draft_id, exc)
