from __future__ import annotations

import re
from dataclasses import fields
from pathlib import Path

import pytest

from pethotel.utils.config import Settings, get_settings


@pytest.fixture(autouse=True)
def _fresh_settings():
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


def test_settings_read_environment(monkeypatch) -> None:
    monkeypatch.setenv("ADMIN_PASSWORD", "  desk  ")
    monkeypatch.setenv("SNAPSHOT_DATABASE_PATH", "/tmp/hotel.db")
    monkeypatch.setenv("MAINTENANCE_BLOCKS_BOOKING", "yes")
    monkeypatch.setenv("REMOTE_SYNC_URL", "   ")

    settings = get_settings()

    assert settings.admin_password == "desk"
    assert settings.snapshot_database_path == Path("/tmp/hotel.db")
    assert settings.maintenance_blocks_booking is True
    assert settings.remote_sync_url is None
    assert get_settings() is settings


def test_month_pattern_is_the_only_pattern_setting() -> None:
    pattern = re.compile(get_settings().month_regex)
    assert pattern.match("2024-05")
    assert not pattern.match("2024-5")
    assert not pattern.match("2024-13")
    assert [item.name for item in fields(Settings) if item.name.endswith("_regex")] == ["month_regex"]
