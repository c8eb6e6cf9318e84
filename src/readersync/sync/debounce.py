"""Trailing-edge debounce state machine for page-turn pushes.

The timer itself is just state: ``Idle`` or ``Pending(deadline)``. Whoever
owns it sleeps until the deadline and then calls ``on_timer_fire()``, which
either reports that the user has gone idle (fire the push) or moves the
deadline forward by the same fixed delay. The clock is injectable so the
transitions can be driven without real time.
"""

from __future__ import annotations

import time
from enum import StrEnum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Callable


class TimerState(StrEnum):
    IDLE = "idle"
    PENDING = "pending"


class DebounceTimer:
    """Single debounce slot.

    Attributes:
        delay: Idle window in seconds; also the reschedule interval.
        state: Current timer state.
        deadline: Clock value at which the owner should call
            ``on_timer_fire()``, or None when idle.
        last_activity: Clock value of the most recent activity.
    """

    def __init__(self, delay: float, clock: Callable[[], float] = time.monotonic) -> None:
        self.delay = delay
        self._clock = clock
        self.state = TimerState.IDLE
        self.deadline: float | None = None
        self.last_activity: float | None = None

    @property
    def pending(self) -> bool:
        return self.state is TimerState.PENDING

    def record_activity(self) -> None:
        self.last_activity = self._clock()

    def arm(self) -> bool:
        """Start the timer unless it is already pending.

        Returns:
            True if this call armed the timer, False if it was a no-op.
        """
        if self.pending:
            return False
        self.state = TimerState.PENDING
        self.deadline = self._clock() + self.delay
        return True

    def on_timer_fire(self) -> bool:
        """Handle deadline expiry.

        Returns:
            True when the user has been idle for at least ``delay`` and the
            debounced action should run now. False when still active (the
            deadline has moved forward) or when the timer was not pending.
        """
        if not self.pending:
            return False
        now = self._clock()
        if self.last_activity is None or now - self.last_activity >= self.delay:
            self.state = TimerState.IDLE
            self.deadline = None
            return True
        self.deadline = now + self.delay
        return False

    def remaining(self) -> float:
        """Seconds until the deadline, never negative; 0 when idle."""
        if self.deadline is None:
            return 0.0
        return max(0.0, self.deadline - self._clock())

    def cancel(self) -> None:
        self.state = TimerState.IDLE
        self.deadline = None
