"""Process-wide unique value sequence."""

import itertools
import threading


class UniqueSequence:
    """
    Monotonically increasing integer source.

    Synthesized integers and string tokens draw from the same sequence, so
    every synthesized value is distinct within a process run. Values are not
    unique across processes.

    Example:
        >>> seq = UniqueSequence(start=100)
        >>> seq.next_value(), seq.next_value()
        (100, 101)
    """

    def __init__(self, start: int = 1):
        self.start = start
        self._counter = itertools.count(start)
        self._lock = threading.Lock()

    def next_value(self) -> int:
        """Return the next value of the sequence."""
        with self._lock:
            return next(self._counter)

    def reset(self, start: int | None = None) -> None:
        """Restart the sequence (for deterministic tests)."""
        with self._lock:
            if start is not None:
                self.start = start
            self._counter = itertools.count(self.start)


# Global sequence instance
default_sequence = UniqueSequence()
