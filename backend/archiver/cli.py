"""
Command-line entry point.

Usage
-----
# Archive everything under DETAILS_PREFIX
python -m archiver

# Preview the first 20 messages without writing anything
python -m archiver --limit 20 --dry-run

# Read a different Airbyte export folder
python -m archiver --details-prefix raw/backfill/messages_details/

Environment / .env
------------------
SUPABASE_URL, SUPABASE_SERVICE_KEY, AIRBYTE_S3_BUCKET, AIRBYTE_WORKSPACE_ID
and AIRBYTE_CONNECTION_ID are required. AIRBYTE_S3_PREFIX, MESSAGES_PREFIX,
DETAILS_PREFIX and RAW_FILES_PREFIX are optional (see archiver.config).
"""

import argparse
import logging
import sys
from typing import Optional, Sequence

from archiver.config import load_config
from archiver.errors import ConfigError, StoreError
from archiver.models.run import ProcessorOptions
from archiver.services.processor import process_messages
from archiver.services.storage import create_object_store

logger = logging.getLogger("archiver")


def _non_negative_int(value: str) -> int:
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"{value!r} is not an integer")
    if number < 0:
        raise argparse.ArgumentTypeError(f"{value!r} must be >= 0")
    return number


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="gmail-eml-archiver",
        description="Convert Airbyte Gmail JSONL exports into .eml files in Supabase Storage.",
    )
    parser.add_argument(
        "--messages-prefix",
        help="Override MESSAGES_PREFIX",
    )
    parser.add_argument(
        "--details-prefix",
        help="Override DETAILS_PREFIX (where the messages_details JSONL files live)",
    )
    parser.add_argument(
        "--limit",
        type=_non_negative_int,
        default=None,
        help="Stop after this many records",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Log what would be created without uploading",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable debug logging",
    )
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    try:
        config = load_config().with_overrides(
            messages_prefix=args.messages_prefix,
            details_prefix=args.details_prefix,
        )
    except ConfigError as e:
        logger.error(e.message)
        return 1

    logger.info(
        f"Loaded config: bucket={config.bucket}, detailsPrefix={config.details_prefix}, "
        f"rawFilesPrefix={config.raw_files_prefix}"
    )

    options = ProcessorOptions(limit=args.limit, dry_run=args.dry_run)
    try:
        with create_object_store(config) as store:
            counters = process_messages(store, config, options)
    except StoreError as e:
        logger.error(f"Run aborted: {e.message}")
        return 1

    logger.info(f"Done. {counters.summary()}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
