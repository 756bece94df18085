"""Age and size eligibility rules."""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from .storage import ObjectDescriptor


@dataclass(frozen=True)
class CleanupPolicy:
    """
    Deletion policy for one run.

    Args:
        max_age_days: Objects modified within this many days are preserved
        min_size_bytes: Objects smaller than this are preserved
        dry_run: If True, eligible objects are reported but never deleted

    Raises:
        ValueError: If a threshold is negative
    """

    max_age_days: int = 30
    min_size_bytes: int = 0
    dry_run: bool = True

    def __post_init__(self):
        if self.max_age_days < 0:
            raise ValueError(f"max_age_days must be >= 0, got {self.max_age_days}")
        if self.min_size_bytes < 0:
            raise ValueError(f"min_size_bytes must be >= 0, got {self.min_size_bytes}")


def compute_threshold_time(policy: CleanupPolicy, now: datetime | None = None) -> datetime:
    """Return the cutoff: objects modified after it are too recent to delete."""
    if now is None:
        now = datetime.now(timezone.utc)
    return now - timedelta(days=policy.max_age_days)


def is_eligible(obj: ObjectDescriptor, policy: CleanupPolicy, threshold_time: datetime) -> bool:
    """Check whether an object is old enough and large enough to be purged."""
    if obj.size < policy.min_size_bytes:
        return False
    if obj.last_modified > threshold_time:
        return False
    return True
