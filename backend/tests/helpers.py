"""
Test helpers: an in-memory object store and Gmail record builders.
"""

import base64
import json
from typing import Iterator, Optional

from archiver.errors import StoreError
from archiver.services.storage import ObjectListing, StoredObject


def b64url(text: str) -> str:
    """Gmail-style base64url: URL-safe alphabet, padding stripped."""
    return base64.urlsafe_b64encode(text.encode("utf-8")).decode().rstrip("=")


class FakeObjectStore:
    """
    In-memory ObjectStore.

    Records every call in self.calls as (operation, key) so tests can assert
    on what was (and was not) read or written.
    """

    def __init__(self, page_size: int = 1000, chunk_size: int = 7):
        self.objects: dict[str, bytes] = {}
        self.content_types: dict[str, str] = {}
        self.calls: list[tuple[str, str]] = []
        self.page_size = page_size
        self.chunk_size = chunk_size
        self.fail_list = False
        self.fail_read: set[str] = set()
        self.fail_head: set[str] = set()
        self.fail_put: set[str] = set()

    # -- helpers ------------------------------------------------------------

    def add_jsonl(self, key: str, records: list, newline: str = "\n") -> None:
        lines = [r if isinstance(r, str) else json.dumps(r) for r in records]
        self.objects[key] = (newline.join(lines) + newline).encode("utf-8")

    def ops(self, operation: str) -> list[str]:
        return [key for op, key in self.calls if op == operation]

    # -- ObjectStore --------------------------------------------------------

    def list_page(self, prefix: str, continuation_token: Optional[str] = None) -> ObjectListing:
        self.calls.append(("list", prefix))
        if self.fail_list:
            raise StoreError(f"Failed to list {prefix!r}: boom", key=prefix)
        keys = [k for k in self.objects if k.startswith(prefix)]
        offset = int(continuation_token) if continuation_token else 0
        page = keys[offset:offset + self.page_size]
        next_offset = offset + len(page)
        return ObjectListing(
            objects=[StoredObject(key=k, size=len(self.objects[k])) for k in page],
            next_token=str(next_offset) if next_offset < len(keys) else None,
        )

    def stream_object(self, key: str) -> Iterator[bytes]:
        self.calls.append(("read", key))
        if key in self.fail_read or key not in self.objects:
            raise StoreError(f"Failed to read {key}: HTTP 404", key=key)
        data = self.objects[key]
        for start in range(0, len(data), self.chunk_size):
            yield data[start:start + self.chunk_size]

    def head_object(self, key: str) -> Optional[StoredObject]:
        self.calls.append(("head", key))
        if key in self.fail_head:
            raise StoreError(f"Failed to check {key}: HTTP 403", key=key)
        if key not in self.objects:
            return None
        return StoredObject(key=key, size=len(self.objects[key]))

    def put_object(self, key: str, data: bytes, content_type: str) -> None:
        self.calls.append(("put", key))
        if key in self.fail_put:
            raise StoreError(f"Failed to upload {key}: boom", key=key)
        self.objects[key] = data
        self.content_types[key] = content_type


def make_gmail_record(
    message_id: Optional[str] = "m1",
    subject: str = "Hi",
    body: str = "hello",
    mime_type: str = "text/plain",
    envelope: Optional[str] = None,
    snippet: Optional[str] = None,
) -> dict:
    """Build a minimal Gmail messages_details record."""
    message: dict = {
        "payload": {
            "mimeType": "multipart/alternative",
            "headers": [
                {"name": "From", "value": "alice@example.com"},
                {"name": "To", "value": "bob@example.com"},
                {"name": "Subject", "value": subject},
            ],
            "parts": [{"mimeType": mime_type, "body": {"size": len(body), "data": b64url(body)}}],
        },
    }
    if message_id is not None:
        message["id"] = message_id
    record = {envelope: message} if envelope else message
    if snippet is not None:
        record["snippet"] = snippet
    return record
