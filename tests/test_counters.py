"""Tests for the shared run counters."""

import threading

from bucketpurge.counters import AtomicCounter, RunCounters


def test_increment_returns_new_value():
    counter = AtomicCounter()
    assert counter.increment() == 1
    assert counter.increment(5) == 6
    assert counter.load() == 6


def test_store_overwrites_value():
    counter = AtomicCounter(3)
    counter.store(42)
    assert counter.load() == 42


def test_no_lost_updates_across_threads():
    """Concurrent increments from many threads must all be counted."""
    counter = AtomicCounter()
    threads_count = 8
    increments = 10_000

    def hammer():
        for _ in range(increments):
            counter.increment()

    threads = [threading.Thread(target=hammer) for _ in range(threads_count)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert counter.load() == threads_count * increments


def test_run_counters_are_independent():
    first = RunCounters()
    second = RunCounters()
    first.deleted.increment()
    assert second.deleted.load() == 0


def test_snapshot_reads_every_counter():
    counters = RunCounters()
    counters.total_discovered.store(3)
    counters.processed.increment(3)
    counters.eligible.increment()
    counters.deleted.increment()
    counters.deleted_bytes.increment(1024)

    assert counters.snapshot() == {
        "total_discovered": 3,
        "processed": 3,
        "eligible": 1,
        "deleted": 1,
        "deleted_bytes": 1024,
    }
