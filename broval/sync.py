"""A counting semaphore that also reports how many callers are blocked."""

from __future__ import annotations

import threading


class Semaphore:
    """Counting semaphore, initialised to zero."""

    def __init__(self) -> None:
        self._cond = threading.Condition()
        self._value = 0
        self._blocked = 0

    def decrement(self, timeout: float | None = None) -> bool:
        """Decrease the value by one, waiting while it is zero.

        Returns False if ``timeout`` seconds pass without the value
        becoming positive; waits forever when ``timeout`` is None.
        """
        if timeout is not None and timeout < 0:
            raise ValueError("timeout must not be negative")
        with self._cond:
            if self._value <= 0:
                self._blocked += 1
                try:
                    ready = self._cond.wait_for(lambda: self._value > 0, timeout)
                finally:
                    self._blocked -= 1
                if not ready:
                    return False
            self._value -= 1
            return True

    def try_decrement(self) -> bool:
        """Decrease the value by one if positive; never blocks."""
        with self._cond:
            if self._value <= 0:
                return False
            self._value -= 1
            return True

    def increment(self) -> None:
        """Increase the value by one, waking a blocked caller if any."""
        with self._cond:
            self._value += 1
            self._cond.notify()

    def value(self) -> int:
        """Current value of the semaphore."""
        with self._cond:
            return self._value

    def blocked(self) -> int:
        """Number of callers currently waiting in :meth:`decrement`."""
        with self._cond:
            return self._blocked