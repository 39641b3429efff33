"""IdCounter: resettable sequential identifier source for tree-to-flat conversion."""

from __future__ import annotations

import logging
import threading

__all__ = ["IdCounter"]

logger = logging.getLogger(__name__)


class IdCounter:
    """Monotonically increasing identifier source, starting at 1.

    One counter belongs to one TreeConverter; ids keep increasing across
    calls until ``reset()``.  Increments are serialized with a lock so a
    shared instance never hands out the same id twice.

    Example::

        counter = IdCounter()
        counter.next()   # 1
        counter.next()   # 2
        counter.reset()
        counter.next()   # 1
    """

    def __init__(self) -> None:
        self._value = 0
        self._lock = threading.Lock()

    @property
    def current(self) -> int:
        """The last id handed out (0 before the first call or after a reset)."""
        return self._value

    def next(self) -> int:
        """Advance the counter and return the new value."""
        with self._lock:
            self._value += 1
            return self._value

    def reset(self) -> None:
        """Set the counter back to zero; the next id will be 1."""
        with self._lock:
            logger.debug("resetting id counter at %d", self._value)
            self._value = 0
