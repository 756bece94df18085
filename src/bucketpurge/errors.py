"""Exceptions raised by BucketPurge."""


class BucketPurgeError(Exception):
    """Base class for all BucketPurge errors."""


class ConfigError(BucketPurgeError):
    """Configuration file is missing, unreadable or invalid."""


class StorageUnavailableError(BucketPurgeError):
    """The storage endpoint or bucket cannot be reached."""
