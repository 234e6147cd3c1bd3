"""
Object store access for the archiver.

ObjectStore is the capability the pipeline depends on; SupabaseObjectStore
implements it on Supabase Storage. Listing and uploads go through the
supabase client; the metadata lookup and streaming reads talk to the
storage REST API directly with httpx, because the client only offers a
whole-body download and an exists() that hides non-404 failures.
"""

import json
import logging
from dataclasses import dataclass, field
from typing import Iterator, Optional, Protocol
from urllib.parse import quote

import httpx
from supabase import Client

from archiver.config import AppConfig
from archiver.errors import StoreError
from archiver.supabase_client import create_storage_client

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 1000
DEFAULT_TIMEOUT_SECONDS = 30.0

# storage-api answers a HEAD for a missing object with 404, or with a bare 400
# on older deployments. A 400 is only treated as "missing" once a GET reports
# one of these errors.
_NOT_FOUND_ERRORS = {"not_found", "not found", "nosuchkey"}


# ---------------------------------------------------------------------------
# Capability interface
# ---------------------------------------------------------------------------

@dataclass
class StoredObject:
    """Listing / metadata entry for one object."""
    key: str
    size: Optional[int] = None
    last_modified: Optional[str] = None
    etag: Optional[str] = None


@dataclass
class ObjectListing:
    """One page of a listing. next_token is None on the last page."""
    objects: list[StoredObject] = field(default_factory=list)
    next_token: Optional[str] = None


class ObjectStore(Protocol):
    def list_page(
        self, prefix: str, continuation_token: Optional[str] = None
    ) -> ObjectListing: ...

    def stream_object(self, key: str) -> Iterator[bytes]: ...

    def head_object(self, key: str) -> Optional[StoredObject]: ...

    def put_object(self, key: str, data: bytes, content_type: str) -> None: ...


# ---------------------------------------------------------------------------
# Supabase Storage implementation
# ---------------------------------------------------------------------------

def _parse_size(value) -> Optional[int]:
    try:
        return int(value) if value is not None else None
    except (TypeError, ValueError):
        return None


class SupabaseObjectStore:
    """ObjectStore backed by one Supabase Storage bucket."""

    def __init__(
        self,
        client: Client,
        bucket: str,
        supabase_url: str,
        service_key: str,
        http_client: Optional[httpx.Client] = None,
        page_size: int = DEFAULT_PAGE_SIZE,
    ):
        self.client = client
        self.bucket = bucket
        self.page_size = page_size
        self._http = http_client or httpx.Client(
            base_url=f"{supabase_url.rstrip('/')}/storage/v1",
            headers={
                "apikey": service_key,
                "Authorization": f"Bearer {service_key}",
            },
            timeout=DEFAULT_TIMEOUT_SECONDS,
        )

    def __enter__(self) -> "SupabaseObjectStore":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def close(self) -> None:
        self._http.close()

    def _object_path(self, key: str) -> str:
        return f"{quote(self.bucket, safe='')}/{quote(key, safe='/')}"

    def list_page(
        self, prefix: str, continuation_token: Optional[str] = None
    ) -> ObjectListing:
        """
        List one page of objects under prefix, sub-folders included.

        A prefix like "raw/messages_details/" lists that folder; a prefix like
        "raw/messages_details/2024_" lists "raw/messages_details" and keeps only
        entries whose names start with "2024_". Files come back folder by
        folder: a folder's own files first, then its sub-folders in name order,
        level by level.

        The continuation token is a JSON list of the folders still to visit,
        each as [folder, offset, name_prefix].

        Raises:
            StoreError: If the listing call fails.
        """
        if continuation_token:
            pending = [tuple(item) for item in json.loads(continuation_token)]
        else:
            folder, _, name_prefix = prefix.rpartition("/")
            pending = [(folder, 0, name_prefix)]

        folder, offset, name_prefix = pending.pop(0)
        try:
            entries = self.client.storage.from_(self.bucket).list(
                folder,
                {
                    "limit": self.page_size,
                    "offset": offset,
                    "sortBy": {"column": "name", "order": "asc"},
                },
            )
        except Exception as e:
            raise StoreError(f"Failed to list {folder!r}: {str(e)}", key=prefix)

        entries = entries or []
        objects = []
        sub_folders = []
        for entry in entries:
            name = entry.get("name") or ""
            if not name or not name.startswith(name_prefix):
                continue
            key = f"{folder}/{name}" if folder else name
            # Folder placeholders come back without an id
            if entry.get("id") is None:
                sub_folders.append((key, 0, ""))
                continue
            metadata = entry.get("metadata") or {}
            objects.append(
                StoredObject(
                    key=key,
                    size=_parse_size(metadata.get("size")),
                    last_modified=metadata.get("lastModified") or entry.get("updated_at"),
                    etag=metadata.get("eTag"),
                )
            )

        if len(entries) >= self.page_size:
            pending.insert(0, (folder, offset + len(entries), name_prefix))
        pending.extend(sub_folders)

        next_token = json.dumps([list(item) for item in pending]) if pending else None
        return ObjectListing(objects=objects, next_token=next_token)

    def stream_object(self, key: str) -> Iterator[bytes]:
        """
        Yield the object's body in chunks as they arrive.

        Raises:
            StoreError: If the object cannot be read.
        """
        try:
            with self._http.stream(
                "GET", f"/object/authenticated/{self._object_path(key)}"
            ) as response:
                if response.status_code >= 400:
                    raise StoreError(
                        f"Failed to read {key}: HTTP {response.status_code}", key=key
                    )
                yield from response.iter_bytes()
        except httpx.HTTPError as e:
            raise StoreError(f"Failed to read {key}: {str(e)}", key=key)

    def _confirm_not_found(self, key: str) -> bool:
        """
        Ask storage-api why a HEAD got a 400.

        A GET carries the error body that HEAD drops; only a "not found" error
        counts as absent. The body of an existing object is never read.
        """
        with self._http.stream(
            "GET", f"/object/authenticated/{self._object_path(key)}"
        ) as response:
            if response.status_code == 404:
                return True
            if response.status_code < 400:
                return False
            response.read()
            try:
                error = response.json()
            except ValueError:
                return False
        if not isinstance(error, dict):
            return False
        return (
            str(error.get("statusCode")) == "404"
            or str(error.get("error", "")).lower() in _NOT_FOUND_ERRORS
        )

    def head_object(self, key: str) -> Optional[StoredObject]:
        """
        Fetch object metadata without the body.

        Returns:
            StoredObject, or None if there is no object at key.

        Raises:
            StoreError: On any failure other than "not found".
        """
        try:
            response = self._http.head(f"/object/{self._object_path(key)}")
            if response.status_code == 400:
                logger.debug(f"HEAD {key} returned 400, checking whether it is missing")
                if self._confirm_not_found(key):
                    return None
        except httpx.HTTPError as e:
            raise StoreError(f"Failed to check {key}: {str(e)}", key=key)

        if response.status_code == 404:
            return None
        if response.status_code >= 400:
            raise StoreError(f"Failed to check {key}: HTTP {response.status_code}", key=key)

        return StoredObject(
            key=key,
            size=_parse_size(response.headers.get("content-length")),
            last_modified=response.headers.get("last-modified"),
            etag=response.headers.get("etag"),
        )

    def put_object(self, key: str, data: bytes, content_type: str) -> None:
        """
        Upload data to key.

        Uses upsert so a write racing another run for the same deterministic
        key overwrites with identical content instead of failing.

        Raises:
            StoreError: If the upload fails.
        """
        try:
            self.client.storage.from_(self.bucket).upload(
                key,
                data,
                {
                    "content-type": content_type,
                    "upsert": "true",
                },
            )
        except Exception as e:
            raise StoreError(f"Failed to upload {key}: {str(e)}", key=key)


def create_object_store(config: AppConfig) -> SupabaseObjectStore:
    """Build the Supabase-backed store for the configured bucket."""
    logger.debug(f"Using Supabase Storage bucket {config.bucket} at {config.supabase_url}")
    return SupabaseObjectStore(
        client=create_storage_client(config),
        bucket=config.bucket,
        supabase_url=config.supabase_url,
        service_key=config.supabase_service_key,
    )
