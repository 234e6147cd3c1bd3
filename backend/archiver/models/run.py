"""
Run-scoped models for the processor.
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class PublishOutcome(str, Enum):
    CREATED = "created"
    SKIPPED = "skipped"
    WOULD_CREATE = "would_create"   # dry run, nothing written


class ProcessorOptions(BaseModel):
    """Options for a single processor run."""
    limit: Optional[int] = Field(default=None, ge=0)   # None = no limit
    dry_run: bool = False


class Counters(BaseModel):
    """Tally of per-record outcomes. Only the processor mutates it."""
    processed: int = 0
    created: int = 0
    skipped: int = 0
    failed: int = 0

    def summary(self) -> str:
        return (
            f"processed={self.processed} created={self.created} "
            f"skipped={self.skipped} failed={self.failed}"
        )
