"""
Run configuration.

Loaded once from the environment (and a .env file if present) at process
start, then passed explicitly to everything that needs it.
"""

import os
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel

from archiver.errors import ConfigError

DEFAULT_AIRBYTE_PREFIX = "raw/"


class AppConfig(BaseModel):
    """Where to read Airbyte exports from and where to write .eml files."""
    model_config = {"frozen": True}

    supabase_url: str
    supabase_service_key: str
    bucket: str
    airbyte_prefix: str = DEFAULT_AIRBYTE_PREFIX
    messages_prefix: str
    details_prefix: str
    raw_files_prefix: str
    workspace_id: str
    connector_id: str

    def with_overrides(
        self,
        messages_prefix: Optional[str] = None,
        details_prefix: Optional[str] = None,
    ) -> "AppConfig":
        """Return a copy with any non-empty prefix overrides applied."""
        updates = {}
        if messages_prefix:
            updates["messages_prefix"] = messages_prefix
        if details_prefix:
            updates["details_prefix"] = details_prefix
        return self.model_copy(update=updates)


def _required(name: str) -> str:
    value = os.getenv(name, "").strip()
    if not value:
        raise ConfigError(f"Missing required env var {name}")
    return value


def load_config(env_file: Optional[str] = None) -> AppConfig:
    """
    Build AppConfig from environment variables.

    Values already present in the environment win over the .env file
    (python-dotenv's default override=False).

    Raises:
        ConfigError: If a required variable is missing or empty.
    """
    load_dotenv(env_file)

    airbyte_prefix = os.getenv("AIRBYTE_S3_PREFIX") or DEFAULT_AIRBYTE_PREFIX

    return AppConfig(
        supabase_url=_required("SUPABASE_URL").rstrip("/"),
        supabase_service_key=_required("SUPABASE_SERVICE_KEY"),
        bucket=_required("AIRBYTE_S3_BUCKET"),
        airbyte_prefix=airbyte_prefix,
        messages_prefix=os.getenv("MESSAGES_PREFIX") or f"{airbyte_prefix}messages/",
        details_prefix=os.getenv("DETAILS_PREFIX") or f"{airbyte_prefix}messages_details/",
        raw_files_prefix=os.getenv("RAW_FILES_PREFIX") or f"{airbyte_prefix}raw-files/",
        workspace_id=_required("AIRBYTE_WORKSPACE_ID"),
        connector_id=_required("AIRBYTE_CONNECTION_ID"),
    )
