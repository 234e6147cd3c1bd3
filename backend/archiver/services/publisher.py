"""
Publication of .eml files to the object store.

The target key is a pure function of the raw-files prefix, the workspace id
and the Gmail message id, so re-running over the same export finds the
earlier output and skips it. The existence check and the write are separate
calls: two runs racing on the same key can both write (same content).
"""

import json
import logging
from typing import Optional

from archiver.models.gmail import FileRecord
from archiver.models.run import PublishOutcome
from archiver.services.storage import ObjectStore

logger = logging.getLogger(__name__)

EML_CONTENT_TYPE = "message/rfc822"


def build_target_key(raw_files_prefix: str, workspace_id: str, message_id: str) -> str:
    """
    Storage key for an archived message.

    Example:
        ("raw/raw-files/", "ws-1", "18c2f") -> "raw/raw-files/ws-1/gmail/18c2f.eml"
    """
    return f"{raw_files_prefix}{workspace_id}/gmail/{message_id}.eml"


def log_file_record(record: FileRecord) -> None:
    """Log the catalogue row for an archived file, as a downstream insert would see it."""
    logger.info(json.dumps({"files": {"insert": record.model_dump()}}, indent=2))


def publish(
    store: ObjectStore,
    target_key: str,
    content: str,
    dry_run: bool = False,
    file_record: Optional[FileRecord] = None,
) -> PublishOutcome:
    """
    Write content to target_key unless an object is already there.

    If file_record is given it is logged once the key is known to be free,
    before the write (or in place of it on a dry run).

    Returns:
        SKIPPED if the key exists, WOULD_CREATE on a dry run, else CREATED.

    Raises:
        StoreError: If the existence check fails for a reason other than "not found",
            or the upload fails.
    """
    if store.head_object(target_key) is not None:
        logger.info(f"Skipping existing {target_key}")
        return PublishOutcome.SKIPPED

    if file_record is not None:
        log_file_record(file_record)

    if dry_run:
        logger.info(f"(Preview only) Would create {target_key}")
        return PublishOutcome.WOULD_CREATE

    store.put_object(target_key, content.encode("utf-8"), EML_CONTENT_TYPE)
    logger.info(f"Created {target_key}")
    return PublishOutcome.CREATED
