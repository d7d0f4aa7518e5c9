"""Base class for instruments and their numerical test cycle."""

from __future__ import annotations

import time
from abc import ABC, abstractmethod
from collections.abc import Callable
from typing import Optional

Clock = Callable[[], float]

# A gap between test samples longer than this (in milliseconds) makes the
# test cycle advance by a single step instead of by elapsed time.
SINGLE_STEP_GAP_MS = 500


def _elapsed_ms(since: float, now: float) -> int:
    """Whole milliseconds between two clock readings given in seconds."""
    return round((now - since) * 1_000_000) // 1000


class Instrument(ABC):
    """Reads and interprets data from one or more physical sources.

    The clock is a callable returning the current time in seconds; it drives
    the numerical test cycle.
    """

    def __init__(self, clock: Optional[Clock] = None) -> None:
        self._clock: Clock = clock or time.monotonic
        self._in_test_mode = False
        self._test_min = 0.0
        self._test_max = 0.0
        self._test_step = 0.0
        self._test_forward_only = False
        self._test_forward = True
        self._test_value = 0.0
        self._test_start: Optional[float] = None
        self._test_last: Optional[float] = None

    @abstractmethod
    def latch(self) -> bool:
        """Store the current state; return True if it differs from the last."""

    @property
    def in_test_mode(self) -> bool:
        """Whether the instrument is running a test cycle."""
        return self._in_test_mode

    def _test_numerical(
        self, minimum: float, maximum: float, step_per_ms: float, forward_only: bool
    ) -> None:
        """Start a numerical test cycle from ``minimum`` up to ``maximum``.

        Unless ``forward_only`` is set the values then fall back to ``minimum``.
        """
        self._test_min = minimum
        self._test_max = maximum
        self._test_step = step_per_ms
        self._test_forward_only = forward_only
        self._test_value = minimum
        self._test_forward = True
        self._in_test_mode = True

    def _numerical_test_value(self) -> float:
        """Return the next value of the running numerical test cycle."""
        now = self._clock()

        single_step = (
            self._test_last is None
            or _elapsed_ms(self._test_last, now) > SINGLE_STEP_GAP_MS
        )
        self._test_last = now

        millis = 0 if self._test_start is None else _elapsed_ms(self._test_start, now)

        if self._test_forward:
            if self._test_value == self._test_min:
                self._test_start = now
                # Bump the value so the next sample measures from this start.
                self._test_value += self._test_step
            elif single_step:
                self._test_value += self._test_step
            else:
                self._test_value = self._test_min + millis * self._test_step

            if self._test_value >= self._test_max:
                self._test_forward = False
                self._test_start = now
        elif not self._test_forward_only and self._test_value > self._test_min:
            if single_step:
                self._test_value -= self._test_step
            else:
                self._test_value = self._test_max - millis * self._test_step
        else:
            self._in_test_mode = False

        return self._test_value