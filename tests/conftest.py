"""Shared fixtures."""

import pytest

from src.config import settings


@pytest.fixture(autouse=True)
def isolated_settings(monkeypatch):
    """Pin settings that tests depend on, whatever the local .env holds."""
    monkeypatch.setattr(settings, "cron_secret", None)
    monkeypatch.setattr(settings, "notion_api_key", "test-notion-key")
    monkeypatch.setattr(settings, "notion_database_id", "db-test")
    monkeypatch.setattr(settings, "public_base_url", "http://localhost:8000")
    monkeypatch.setattr(settings, "max_request_size_bytes", 8 * 1024 * 1024)
    return settings
