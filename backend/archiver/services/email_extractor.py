"""
Message extraction for Airbyte Gmail records.

An Airbyte "messages_details" record is a Gmail API message resource, either
bare or wrapped in an envelope:

  _airbyte_data   dict  - Airbyte's raw-record envelope (checked first)
  data            dict  - generic nested data envelope

Inside the message resource:

  id              str   - Gmail message id, becomes the archive key
  snippet         str   - short preview (read from the outer record)
  payload         dict  - root MessagePart:
                            mimeType  str
                            headers   list of {name, value} (root part only)
                            body      {size, data}  data is base64url
                            parts     list of child MessagePart

Records are handled as plain dicts: Airbyte passes through whatever Gmail
returned, and anything that is not the expected shape is treated as absent.
"""

from dataclasses import dataclass
from typing import Any, Optional

from archiver.errors import MissingIdentifierError, NoBodyFoundError
from archiver.models.gmail import BodyMime, ExtractedEmail
from archiver.services.base64url import decode_base64url

ENVELOPE_FIELDS = ("_airbyte_data", "data")
MULTIPART_PREFIX = "multipart/"

# Real messages nest a handful of levels; anything deeper is treated as having
# no body.
MAX_PART_DEPTH = 64


@dataclass
class SelectedPart:
    """The part chosen to supply the message body."""
    mime: str
    data: str      # still base64url-encoded


# ---------------------------------------------------------------------------
# Small accessors
# ---------------------------------------------------------------------------

def _as_dict(value: Any) -> dict:
    return value if isinstance(value, dict) else {}


def _mime_type(part: dict) -> str:
    mime = part.get("mimeType")
    return mime.lower() if isinstance(mime, str) else ""


def _body_data(part: dict) -> Optional[str]:
    data = _as_dict(part.get("body")).get("data")
    return data if isinstance(data, str) and data else None


def _children(part: dict) -> list[dict]:
    parts = part.get("parts")
    if not isinstance(parts, list):
        return []
    return [child for child in parts if isinstance(child, dict)]


def unwrap_envelope(record: dict) -> dict:
    """Return the message inside the first envelope present, or the record itself."""
    for field in ENVELOPE_FIELDS:
        inner = record.get(field)
        if isinstance(inner, dict):
            return inner
    return record


def peek_message_id(record: Any) -> Optional[str]:
    """
    Best-effort message id for log context.

    Looks in more places than extract_email() accepts, so failures can still
    be traced back to a message.
    """
    if not isinstance(record, dict):
        return None
    candidates = [
        record.get("id"),
        _as_dict(record.get("_airbyte_data")).get("id"),
        _as_dict(record.get("data")).get("id"),
        _as_dict(record.get("message")).get("id"),
        record.get("messageId"),
    ]
    for candidate in candidates:
        if isinstance(candidate, str) and candidate:
            return candidate
    return None


# ---------------------------------------------------------------------------
# Header and body lookup
# ---------------------------------------------------------------------------

def find_header(headers: list, name: str) -> Optional[str]:
    """Case-insensitive header lookup; the first match wins."""
    wanted = name.lower()
    for header in headers:
        if not isinstance(header, dict):
            continue
        header_name = header.get("name")
        if isinstance(header_name, str) and header_name.lower() == wanted:
            value = header.get("value")
            return value if isinstance(value, str) else None
    return None


def find_part(part: Any, prefer_html: bool = True, depth: int = 0) -> Optional[SelectedPart]:
    """
    Depth-first search for the part that carries the message body.

    At each part:
      1. A non-multipart part with body data is returned as-is, before its
         children are looked at.
      2. Otherwise a direct text/html child with data (if prefer_html),
      3. then a direct text/plain child with data,
      4. then each child is searched the same way, left to right.
    """
    if not isinstance(part, dict) or depth > MAX_PART_DEPTH:
        return None

    mime = _mime_type(part)
    data = _body_data(part)
    if not mime.startswith(MULTIPART_PREFIX) and data:
        return SelectedPart(mime=mime or BodyMime.PLAIN.value, data=data)

    children = _children(part)
    if prefer_html:
        for child in children:
            html = _body_data(child)
            if _mime_type(child) == BodyMime.HTML.value and html:
                return SelectedPart(mime=BodyMime.HTML.value, data=html)

    for child in children:
        plain = _body_data(child)
        if _mime_type(child) == BodyMime.PLAIN.value and plain:
            return SelectedPart(mime=BodyMime.PLAIN.value, data=plain)

    for child in children:
        found = find_part(child, prefer_html, depth + 1)
        if found:
            return found
    return None


# ---------------------------------------------------------------------------
# Extraction
# ---------------------------------------------------------------------------

def extract_email(record: Any) -> ExtractedEmail:
    """
    Convert one Airbyte Gmail record into an ExtractedEmail.

    Raises:
        MissingIdentifierError: If the (unwrapped) message has no id.
        NoBodyFoundError: If no part in the payload tree carries body data.
        DecodeError: If the selected body data is not valid base64url UTF-8.
    """
    if not isinstance(record, dict):
        raise MissingIdentifierError("Record is not a JSON object")

    core = unwrap_envelope(record)
    message_id = core.get("id")
    if not isinstance(message_id, str) or not message_id:
        raise MissingIdentifierError()

    payload = _as_dict(core.get("payload"))
    headers = payload.get("headers")
    if not isinstance(headers, list):
        headers = []

    part = find_part(payload, prefer_html=True)
    if part is None:
        raise NoBodyFoundError()

    body = decode_base64url(part.data)
    body_mime = BodyMime.HTML if "html" in part.mime.lower() else BodyMime.PLAIN

    snippet = record.get("snippet")

    return ExtractedEmail(
        message_id=message_id,
        subject=find_header(headers, "Subject"),
        from_=find_header(headers, "From"),
        to=find_header(headers, "To"),
        cc=find_header(headers, "Cc"),
        bcc=find_header(headers, "Bcc"),
        date=find_header(headers, "Date"),
        body_mime=body_mime,
        body=body,
        snippet=snippet if isinstance(snippet, str) else None,
    )
