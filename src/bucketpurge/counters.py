"""Shared run counters."""

import threading
from dataclasses import dataclass, field


class AtomicCounter:
    """Integer counter with mutex-guarded read-modify-write."""

    def __init__(self, value: int = 0):
        self._value = value
        self._lock = threading.Lock()

    def increment(self, n: int = 1) -> int:
        """Add n and return the new value."""
        with self._lock:
            self._value += n
            return self._value

    def store(self, value: int) -> None:
        with self._lock:
            self._value = value

    def load(self) -> int:
        with self._lock:
            return self._value

    def __repr__(self) -> str:
        return f"AtomicCounter({self.load()})"


@dataclass
class RunCounters:
    """
    Counters for one purge run.

    Created by the orchestrator and handed to the enumerator, every worker
    and the progress reporter.
    """

    total_discovered: AtomicCounter = field(default_factory=AtomicCounter)
    processed: AtomicCounter = field(default_factory=AtomicCounter)
    eligible: AtomicCounter = field(default_factory=AtomicCounter)
    deleted: AtomicCounter = field(default_factory=AtomicCounter)
    deleted_bytes: AtomicCounter = field(default_factory=AtomicCounter)

    def snapshot(self) -> dict:
        """Read every counter once."""
        return {
            "total_discovered": self.total_discovered.load(),
            "processed": self.processed.load(),
            "eligible": self.eligible.load(),
            "deleted": self.deleted.load(),
            "deleted_bytes": self.deleted_bytes.load(),
        }
