"""Thread-safe monotonic integer id allocation."""

import threading


class IdAllocator:
    """Hands out increasing integer ids; never reuses one.

    Owned by whoever owns the population (the generation orchestrator), not a
    process-wide singleton.
    """

    def __init__(self, start: int = 0) -> None:
        self._next = start
        self._lock = threading.Lock()

    def next_id(self) -> int:
        with self._lock:
            value = self._next
            self._next += 1
            return value

    def advance_past(self, used_id: int) -> None:
        """Make sure future ids are greater than ``used_id``."""
        with self._lock:
            self._next = max(self._next, used_id + 1)

    @property
    def peek(self) -> int:
        return self._next
