"""Async bucket purger: list, filter and delete with a fixed worker pool."""

import asyncio
import time
from datetime import datetime

import psutil

from . import __version__
from .counters import RunCounters
from .filters import CleanupPolicy, compute_threshold_time, is_eligible
from .logging import log_with_context, setup_logging
from .storage import ListingError, ObjectDescriptor, ObjectStore, S3ObjectStore

# Put on the work queue once per worker after the last descriptor
_QUEUE_CLOSED = object()


def get_memory_usage_mb() -> float:
    """Get current memory usage in MB."""
    return psutil.Process().memory_info().rss / 1024 / 1024


def bytes_to_mb(size: int) -> float:
    return round(size / 1024 / 1024, 2)


class AsyncBucketPurger:
    """
    Concurrent age/size based purger for one object-storage bucket.

    One enumerator task feeds a bounded queue, a fixed pool of worker tasks
    drains it, and a background task reports progress from the shared
    counters.
    """

    def __init__(
        self,
        store: ObjectStore,
        bucket: str,
        max_age_days: int = 30,
        min_size_bytes: int = 0,
        dry_run: bool = True,
        worker_count: int = 10,
        log_level: str = "INFO",
        log_file: str | None = None,
        single_pass: bool = False,
        progress_interval: float = 10.0,
        counters: RunCounters | None = None,
    ):
        """
        Initialize the bucket purger.

        Args:
            store: Object storage capability used for listing and deletion
            bucket: Name of the bucket to clean
            max_age_days: Objects modified within this many days are kept
            min_size_bytes: Objects smaller than this are kept
            dry_run: If True, only report what would be deleted
            worker_count: Number of concurrent deletion workers
            log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
            log_file: Optional file receiving a copy of the log
            single_pass: Count objects while feeding workers instead of listing twice
            progress_interval: Seconds between progress updates
            counters: Counters to update (a fresh set is created if omitted)

        Raises:
            ValueError: If invalid parameters are provided
        """
        if not bucket:
            raise ValueError("bucket must not be empty")
        if worker_count < 1:
            raise ValueError(f"worker_count must be >= 1, got {worker_count}")
        if progress_interval <= 0:
            raise ValueError(f"progress_interval must be > 0, got {progress_interval}")

        self.store = store
        self.bucket = bucket
        self.policy = CleanupPolicy(max_age_days=max_age_days, min_size_bytes=min_size_bytes, dry_run=dry_run)
        self.worker_count = worker_count
        self.queue_size = 2 * worker_count
        self.single_pass = single_pass
        self.progress_interval = progress_interval
        self.counters = counters if counters is not None else RunCounters()

        # Set by purge() at run start
        self.threshold_time: datetime | None = None
        self.start_time: float | None = None

        # True once total_discovered will no longer change
        self.total_is_final = False

        self.logger = setup_logging("bucketpurge", log_level, log_file)

    async def _list_valid(self):
        """Yield descriptors from a fresh listing, logging and skipping bad entries."""
        async for entry in self.store.list_objects(self.bucket):
            if isinstance(entry, ListingError):
                log_with_context(
                    self.logger,
                    "warning",
                    "Error listing object",
                    {"bucket": self.bucket, "key": entry.key, "error": entry.message},
                )
                continue
            yield entry

    async def _enumerate(self, queue: asyncio.Queue) -> None:
        """
        Feed the work queue from the bucket listing, then close it.

        In the default mode the bucket is listed twice: once to fix the total
        and once to feed the workers. Objects added or removed between the
        two listings make the total drift from what workers actually see.
        """
        try:
            if not self.single_pass:
                count = 0
                async for _ in self._list_valid():
                    count += 1
                self.counters.total_discovered.store(count)
                self.total_is_final = True
                log_with_context(
                    self.logger,
                    "info",
                    "Listing pass complete",
                    {"bucket": self.bucket, "total_objects": count},
                )

            async for obj in self._list_valid():
                if self.single_pass:
                    self.counters.total_discovered.increment()
                await queue.put(obj)

            if self.single_pass:
                self.total_is_final = True
                log_with_context(
                    self.logger,
                    "info",
                    "Listing complete",
                    {"bucket": self.bucket, "total_objects": self.counters.total_discovered.load()},
                )
        finally:
            for _ in range(self.worker_count):
                await queue.put(_QUEUE_CLOSED)

    async def process_object(self, obj: ObjectDescriptor) -> None:
        """
        Decide the fate of one object and account for it.

        Args:
            obj: Object descriptor taken from the work queue
        """
        try:
            if not is_eligible(obj, self.policy, self.threshold_time):
                self.logger.debug(f"Keeping: {obj.key}")
                return

            self.counters.eligible.increment()
            log_with_context(
                self.logger,
                "info",
                "Found object to purge",
                {
                    "key": obj.key,
                    "size_bytes": obj.size,
                    "size_mb": bytes_to_mb(obj.size),
                    "last_modified": obj.last_modified.isoformat(),
                },
            )

            if self.policy.dry_run:
                self.logger.debug(f"Would purge: {obj.key}")
                return

            try:
                await self.store.delete_object(self.bucket, obj.key)
            except Exception as e:
                log_with_context(
                    self.logger,
                    "error",
                    "Failed to delete object",
                    {"key": obj.key, "error": str(e), "error_type": type(e).__name__},
                )
                return

            self.counters.deleted.increment()
            self.counters.deleted_bytes.increment(obj.size)
            log_with_context(self.logger, "info", "Deleted object", {"key": obj.key, "size_bytes": obj.size})
        finally:
            self.counters.processed.increment()

    async def _worker(self, worker_id: int, queue: asyncio.Queue) -> None:
        """Consume the work queue until the close marker arrives."""
        while True:
            obj = await queue.get()
            try:
                if obj is _QUEUE_CLOSED:
                    self.logger.debug(f"Worker {worker_id} finished")
                    return
                await self.process_object(obj)
            finally:
                queue.task_done()

    def _progress_data(self) -> dict:
        counts = self.counters.snapshot()
        elapsed = time.time() - self.start_time if self.start_time else 0.0
        total = counts["total_discovered"]
        return {
            "progress_percent": round(counts["processed"] / total * 100, 2) if total > 0 else 0.0,
            "processed": counts["processed"],
            "total_discovered": total,
            "deleted": counts["deleted"],
            "deleted_mb": bytes_to_mb(counts["deleted_bytes"]),
            "elapsed_seconds": round(elapsed, 1),
            "memory_mb": round(get_memory_usage_mb(), 1),
        }

    async def _background_progress_reporter(self) -> None:
        """
        Log progress every progress_interval seconds until all discovered
        objects are processed.

        Nothing is logged while the total is still unknown. The loop may run
        one tick past completion; that extra line is harmless.
        """
        while True:
            await asyncio.sleep(self.progress_interval)

            processed = self.counters.processed.load()
            total = self.counters.total_discovered.load()

            if total > 0:
                log_with_context(self.logger, "info", "Progress update", self._progress_data())

            if self.total_is_final and total > 0 and processed >= total:
                return

    async def purge(self) -> dict:
        """
        Main purge operation - list, filter and clean the bucket.

        Returns:
            Dictionary with operation statistics

        Raises:
            StorageUnavailableError: If the bucket listing cannot be started
        """
        self.start_time = time.time()
        self.threshold_time = compute_threshold_time(self.policy)
        self.total_is_final = False
        mode = "DRY RUN" if self.policy.dry_run else "PURGE"

        log_with_context(
            self.logger,
            "info",
            f"Starting bucket purge - {mode} MODE",
            {
                "version": __version__,
                "bucket": self.bucket,
                "threshold_time": self.threshold_time.isoformat(),
                "max_age_days": self.policy.max_age_days,
                "min_size_bytes": self.policy.min_size_bytes,
                "min_size_mb": bytes_to_mb(self.policy.min_size_bytes),
                "dry_run": self.policy.dry_run,
                "worker_count": self.worker_count,
                "queue_size": self.queue_size,
                "listing_mode": "single_pass" if self.single_pass else "two_pass",
                "progress_interval_seconds": self.progress_interval,
            },
        )

        queue: asyncio.Queue = asyncio.Queue(maxsize=self.queue_size)
        progress_task = asyncio.create_task(self._background_progress_reporter())
        workers = [asyncio.create_task(self._worker(i, queue)) for i in range(self.worker_count)]

        try:
            await self._enumerate(queue)
            await asyncio.gather(*workers)
        finally:
            for task in workers:
                if not task.done():
                    task.cancel()
            await asyncio.gather(*workers, return_exceptions=True)

            progress_task.cancel()
            try:
                await progress_task
            except asyncio.CancelledError:
                pass  # Expected

        counts = self.counters.snapshot()
        final_stats = {
            "duration_seconds": round(time.time() - self.start_time, 2),
            "total_discovered": counts["total_discovered"],
            "processed": counts["processed"],
            "eligible": counts["eligible"],
            "deleted": counts["deleted"],
            "deleted_bytes": counts["deleted_bytes"],
            "deleted_mb": bytes_to_mb(counts["deleted_bytes"]),
            "peak_memory_mb": round(get_memory_usage_mb(), 1),
        }

        log_with_context(
            self.logger,
            "info",
            "Purge operation completed",
            final_stats,
        )

        return final_stats


async def async_main(config, log_level: str = "INFO") -> dict:
    """
    Async entry point for the purger.

    Args:
        config: Loaded PurgeConfig
        log_level: Logging level

    Returns:
        Operation statistics

    Raises:
        StorageUnavailableError: If the storage endpoint or bucket is unreachable
    """
    cleanup = config.cleanup
    store = S3ObjectStore.from_config(config.storage, max_workers=cleanup.workers + 1)
    try:
        purger = AsyncBucketPurger(
            store=store,
            bucket=config.storage.bucket,
            max_age_days=cleanup.max_age_days,
            min_size_bytes=cleanup.min_size_bytes,
            dry_run=cleanup.dry_run,
            worker_count=cleanup.workers,
            log_level=log_level,
            log_file=cleanup.log_file,
            single_pass=cleanup.single_pass,
            progress_interval=cleanup.progress_interval,
        )
        await store.check_bucket(config.storage.bucket)
        return await purger.purge()
    finally:
        store.close()
