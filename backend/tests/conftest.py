"""
Shared fixtures. Tests never touch Supabase or the network.
"""

import pytest

from archiver.config import AppConfig
from helpers import FakeObjectStore


@pytest.fixture
def fake_store() -> FakeObjectStore:
    return FakeObjectStore()


@pytest.fixture
def app_config() -> AppConfig:
    return AppConfig(
        supabase_url="https://test.supabase.co",
        supabase_service_key="test-service-key",
        bucket="airbyte",
        airbyte_prefix="raw/",
        messages_prefix="raw/messages/",
        details_prefix="raw/messages_details/",
        raw_files_prefix="raw/raw-files/",
        workspace_id="ws-1",
        connector_id="conn-1",
    )
