"""Command-line interface for BucketPurge."""

import argparse
import asyncio
import os
import sys

from . import __version__
from .config import load_config
from .purger import async_main


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="BucketPurge - Delete old, large objects from an S3-compatible bucket",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )

    parser.add_argument(
        "--config",
        default=os.getenv("BUCKETPURGE_CONFIG", "config.yaml"),
        help="Path to the YAML configuration file",
    )

    parser.add_argument(
        "--bucket",
        default=None,
        help="Bucket to clean (overrides minio.bucket)",
    )

    parser.add_argument(
        "--max-age-days",
        type=int,
        default=None,
        help="Objects modified within this many days are kept (overrides cleanup.maxAge)",
    )

    parser.add_argument(
        "--min-size-bytes",
        type=int,
        default=None,
        help="Objects smaller than this are kept (overrides cleanup.minSize)",
    )

    parser.add_argument(
        "--workers",
        type=int,
        default=None,
        help="Number of concurrent deletion workers (overrides cleanup.workers)",
    )

    parser.add_argument(
        "--dry-run",
        action="store_true",
        default=None,
        help="Don't actually delete objects, just report what would be deleted",
    )

    parser.add_argument(
        "--single-pass",
        action="store_true",
        default=None,
        help="List the bucket once, counting objects while they are processed",
    )

    parser.add_argument(
        "--log-file",
        default=None,
        help="Also write the log to this file (overrides cleanup.logFile)",
    )

    parser.add_argument(
        "--log-level",
        type=str,
        default=os.getenv("BUCKETPURGE_LOG_LEVEL", "INFO"),
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Logging level",
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"bucketpurge {__version__}",
    )

    return parser.parse_args(argv)


def apply_overrides(config, args: argparse.Namespace):
    """Apply command-line values on top of the file configuration."""
    if args.bucket is not None:
        config.storage.bucket = args.bucket
    if args.max_age_days is not None:
        config.cleanup.max_age_days = args.max_age_days
    if args.min_size_bytes is not None:
        config.cleanup.min_size_bytes = args.min_size_bytes
    if args.workers is not None:
        config.cleanup.workers = args.workers
    if args.dry_run:
        config.cleanup.dry_run = True
    if args.single_pass:
        config.cleanup.single_pass = True
    if args.log_file is not None:
        config.cleanup.log_file = args.log_file
    return config


def main(argv: list[str] | None = None) -> None:
    """Main entry point for the CLI."""
    args = parse_args(argv)

    try:
        config = apply_overrides(load_config(args.config), args)

        asyncio.run(async_main(config, log_level=args.log_level))

        # Individual deletion failures do not change the exit status
        sys.exit(0)

    except KeyboardInterrupt:
        print("\nOperation cancelled by user", file=sys.stderr)
        sys.exit(130)
    except Exception as e:
        print(f"Fatal error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
