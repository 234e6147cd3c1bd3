"""
Archive pipeline: Airbyte Gmail JSONL -> .eml objects.

For every .jsonl file under the details prefix (listing order) and every
record in it (line order):

  1. extract the message (envelope unwrap, body part search, base64url decode)
  2. render it as .eml
  3. publish it under {raw_files_prefix}{workspace_id}/gmail/{id}.eml unless
     that key already exists

A record that fails at any step is logged and counted as failed; the run
carries on. Only a listing failure stops the run.
"""

import logging
from contextlib import closing
from typing import Any, Optional

from archiver.config import AppConfig
from archiver.errors import StoreError
from archiver.models.gmail import FileRecord
from archiver.models.run import Counters, ProcessorOptions, PublishOutcome
from archiver.services.email_extractor import extract_email, peek_message_id
from archiver.services.eml_writer import to_eml
from archiver.services.jsonl_reader import list_jsonl_keys, read_jsonl
from archiver.services.publisher import build_target_key, publish
from archiver.services.storage import ObjectStore

logger = logging.getLogger(__name__)


def _limit_reached(counters: Counters, limit: Optional[int]) -> bool:
    return limit is not None and counters.processed >= limit


def _archive_record(
    store: ObjectStore,
    config: AppConfig,
    record: Any,
    dry_run: bool,
) -> PublishOutcome:
    """Extract, render and publish one record. Raises on any failure."""
    email = extract_email(record)
    content = to_eml(email)
    target_key = build_target_key(config.raw_files_prefix, config.workspace_id, email.message_id)

    file_record = FileRecord(
        workspace_id=config.workspace_id,
        connector_id=config.connector_id,
        path=target_key,
        size=len(content.encode("utf-8")),
    )
    return publish(store, target_key, content, dry_run=dry_run, file_record=file_record)


def process_messages(
    store: ObjectStore,
    config: AppConfig,
    options: Optional[ProcessorOptions] = None,
) -> Counters:
    """
    Archive every message found under config.details_prefix.

    Dry runs count "would create" outcomes as created, so the summary shows
    what a real run would write.

    Returns:
        Counters for this run.

    Raises:
        StoreError: If the details prefix cannot be listed.
    """
    options = options or ProcessorOptions()
    counters = Counters()

    keys = list_jsonl_keys(store, config.details_prefix)
    logger.info(f"Found {len(keys)} JSONL file(s) under {config.details_prefix}")

    for key in keys:
        if _limit_reached(counters, options.limit):
            return counters

        logger.info(f"Reading {key}...")
        try:
            with closing(read_jsonl(store, key)) as records:
                for record in records:
                    if _limit_reached(counters, options.limit):
                        return counters
                    counters.processed += 1

                    try:
                        outcome = _archive_record(store, config, record, options.dry_run)
                    except Exception as e:
                        counters.failed += 1
                        message_id = peek_message_id(record) or "<unknown>"
                        logger.warning(f"Error processing message {message_id} from {key}: {e}")
                        continue

                    if outcome is PublishOutcome.SKIPPED:
                        counters.skipped += 1
                    else:
                        counters.created += 1
        except StoreError as e:
            # Per-record store errors are handled above; this is the file read itself.
            logger.error(f"Failed to read {key}, moving on to the next file: {e.message}")

    return counters
