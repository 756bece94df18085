"""Pytest configuration to ensure tests use local source code."""

import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

# Add src directory to Python path to ensure tests use local source code
# instead of installed package
src_path = Path(__file__).parent.parent / "src"
if str(src_path) not in sys.path:
    sys.path.insert(0, str(src_path))

from bucketpurge.errors import StorageUnavailableError  # noqa: E402
from bucketpurge.storage import ListingError, ObjectDescriptor  # noqa: E402

KB = 1024
MB = 1024 * 1024


def make_object(key: str, size: int, age_days: float) -> ObjectDescriptor:
    """Create a descriptor last modified age_days ago."""
    return ObjectDescriptor(
        key=key,
        size=size,
        last_modified=datetime.now(timezone.utc) - timedelta(days=age_days),
    )


class FakeObjectStore:
    """In-memory object store recording every call."""

    def __init__(self, objects=None):
        self.objects = {obj.key: obj for obj in (objects or [])}
        self.listing_errors: list[ListingError] = []
        self.fail_keys: set[str] = set()
        self.unavailable = False
        self.list_calls = 0
        self.delete_calls: list[tuple[str, str]] = []
        self.closed = False

    async def list_objects(self, bucket):
        self.list_calls += 1
        if self.unavailable:
            raise StorageUnavailableError(f"Cannot list bucket {bucket!r}")
        for error in self.listing_errors:
            yield error
        for obj in list(self.objects.values()):
            yield obj

    async def delete_object(self, bucket, key):
        self.delete_calls.append((bucket, key))
        if key in self.fail_keys:
            raise RuntimeError(f"Access Denied: {key}")
        self.objects.pop(key, None)

    async def check_bucket(self, bucket):
        if self.unavailable:
            raise StorageUnavailableError(f"Cannot access bucket {bucket!r}")

    def close(self):
        self.closed = True


@pytest.fixture
def scenario_objects():
    """A: old and large, B: old but small, C: large but recent."""
    return [
        make_object("A", 10 * MB, 40),
        make_object("B", 500 * KB, 40),
        make_object("C", 10 * MB, 5),
    ]


@pytest.fixture
def fake_store(scenario_objects):
    return FakeObjectStore(scenario_objects)
