"""Background polling of latched data sources."""

from __future__ import annotations

import threading
import time
from abc import ABC, abstractmethod
from enum import IntEnum
from typing import Optional

#: Maximum number of unique latched data values.
MAX_LATCHED_INDEXES = 64

# How long closing a latcher waits for its polling thread to finish.
_STOP_GRACE_SECONDS = 1.0


class LatchedDataIndex(IntEnum):
    """Identifies a particular latched data value."""

    ENGINE_RPM = 0
    SPEED_KMH = 1
    ENGINE_TEMP_C = 2


class Latcher(ABC):
    """Base class for sources of latched data, polled on a worker thread."""

    def __init__(self) -> None:
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self._polling = False
        self._interval = 0.0

    @abstractmethod
    def _poll(self) -> None:
        """Called once per polling interval."""

    @abstractmethod
    def _is_ready(self) -> bool:
        """Whether the source can supply latched data."""

    def start(self, polling_interval: int) -> bool:
        """Start polling every ``polling_interval`` microseconds.

        Returns False if the source is not ready to supply data.
        """
        if polling_interval < 0:
            raise ValueError("polling interval must not be negative")
        if self._thread is not None and self._thread.is_alive():
            raise RuntimeError("latcher is already polling")
        if not self._is_ready():
            return False

        self._interval = polling_interval / 1_000_000
        self._stop_event.clear()
        self._polling = True
        self._thread = threading.Thread(target=self._run, name="latcher", daemon=True)
        self._thread.start()
        return True

    def stop(self) -> None:
        """Ask the polling thread to stop."""
        self._stop_event.set()

    @property
    def is_polling(self) -> bool:
        """Whether the polling thread is running."""
        return self._polling

    def close(self) -> None:
        """Stop polling and wait briefly for the thread to finish."""
        self.stop()
        if self._thread is not None:
            self._thread.join(_STOP_GRACE_SECONDS)
            self._thread = None

    def __enter__(self) -> Latcher:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def _run(self) -> None:
        last_end: Optional[float] = None
        try:
            while not self._stop_event.is_set():
                if last_end is not None:
                    remaining = self._interval - (time.monotonic() - last_end)
                    if remaining > 0 and self._stop_event.wait(remaining):
                        break
                self._poll()
                last_end = time.monotonic()
        finally:
            self._polling = False


_current: Optional[Latcher] = None


def set_current_latcher(latcher: Optional[Latcher]) -> None:
    """Make ``latcher`` the one in use, or clear it with None."""
    global _current
    _current = latcher


def current_latcher() -> Optional[Latcher]:
    """The latcher in use, if any."""
    return _current