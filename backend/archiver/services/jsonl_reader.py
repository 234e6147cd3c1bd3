"""
JSONL reading from the object store.

Listing is eager (bounded by the number of files); record reading is lazy and
pulls one line at a time from the streamed object body, so a file is never
held in memory as a whole.
"""

import json
import logging
from typing import Any, Iterable, Iterator

from archiver.errors import ParseError
from archiver.services.storage import ObjectStore

logger = logging.getLogger(__name__)

JSONL_EXTENSION = ".jsonl"


def list_jsonl_keys(store: ObjectStore, prefix: str) -> list[str]:
    """
    Return every .jsonl key under prefix, in listing order, across all pages.

    Raises:
        StoreError: If any listing page fails.
    """
    keys: list[str] = []
    token = None
    while True:
        page = store.list_page(prefix, token)
        keys.extend(
            obj.key for obj in page.objects
            if obj.key.lower().endswith(JSONL_EXTENSION)
        )
        token = page.next_token
        if not token:
            return keys


def iter_lines(chunks: Iterable[bytes]) -> Iterator[bytes]:
    """
    Split a stream of byte chunks into lines.

    Lines end at b"\\n"; a trailing b"\\r" is dropped so CRLF files read the
    same as LF files. A final line without a terminator is still yielded.
    There is no cap on line length.
    """
    buffer: list[bytes] = []
    for chunk in chunks:
        *complete, rest = chunk.split(b"\n")
        for piece in complete:
            buffer.append(piece)
            yield _strip_cr(b"".join(buffer))
            buffer = []
        if rest:
            buffer.append(rest)
    if buffer:
        yield _strip_cr(b"".join(buffer))


def _strip_cr(line: bytes) -> bytes:
    return line[:-1] if line.endswith(b"\r") else line


def parse_line(line: bytes) -> Any:
    """
    Parse one JSONL line.

    Raises:
        ParseError: If the line is not UTF-8 or not valid JSON.
    """
    try:
        return json.loads(line.decode("utf-8").strip())
    # UnicodeDecodeError and JSONDecodeError are both ValueErrors
    except (ValueError, RecursionError) as e:
        raise ParseError(str(e))


def read_jsonl(store: ObjectStore, key: str) -> Iterator[Any]:
    """
    Lazily yield parsed records from the JSONL object at key.

    Blank lines are skipped. A line that fails to parse is logged and
    skipped; it never ends the stream.

    Raises:
        StoreError: If the object cannot be read.
    """
    for line in iter_lines(store.stream_object(key)):
        if not line.strip():
            continue
        try:
            yield parse_line(line)
        except ParseError as e:
            logger.warning(f"Failed to parse JSONL line in {key}: {e.message}")
