"""
Pydantic models for archived Gmail messages.

Models:
  BodyMime        - the two body content kinds an archived message can carry
  ExtractedEmail  - normalized message pulled out of an Airbyte Gmail record
  FileRecord      - catalogue row describing one archived .eml object
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class BodyMime(str, Enum):
    HTML = "text/html"
    PLAIN = "text/plain"


class ExtractedEmail(BaseModel):
    """
    Normalized message, provider envelope stripped.

    body is always decoded text; the base64url payload never leaves the
    extractor.
    """

    message_id: str = Field(min_length=1)
    subject: Optional[str] = None
    from_: Optional[str] = Field(default=None, alias="from")
    to: Optional[str] = None
    cc: Optional[str] = None
    bcc: Optional[str] = None
    date: Optional[str] = None
    body_mime: BodyMime
    body: str
    snippet: Optional[str] = None

    model_config = {"populate_by_name": True}


class FileRecord(BaseModel):
    """Row a downstream file catalogue would insert for an archived message."""

    workspace_id: str
    connector_id: str
    path: str
    format: str = "eml"
    mime_type: str = "message/rfc822"
    size: int
    checksum: Optional[str] = None
    is_viewable: bool = True
    sync_status: str = "synced"
