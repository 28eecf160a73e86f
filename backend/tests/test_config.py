import logging
from pathlib import Path

import pytest

from pointiq.config import (
    POINTS_FILE_NAME,
    _canon_prefix,
    is_remote_configured,
    load_settings,
)
from pointiq.main import build_point_store
from pointiq.storage import SupabasePointClient


@pytest.mark.parametrize(
    "raw, expected",
    [(None, "/api"), ("", "/api"), ("v1", "/v1"), ("/v1/", "/v1"), ("/", "/")],
)
def test_canon_prefix(raw, expected):
    assert _canon_prefix(raw) == expected


def test_defaults(tmp_path):
    settings = load_settings()

    assert settings.api_prefix == "/api"
    assert settings.points_file == tmp_path / "data" / POINTS_FILE_NAME
    assert settings.supabase_table == "points"
    assert settings.sync_queue_size == 100
    assert settings.remote_timeout is None
    assert settings.auto_advance_games is False
    assert settings.remote_enabled is False


def test_environment_overrides(monkeypatch, tmp_path):
    monkeypatch.setenv("API_PREFIX", "scores/")
    monkeypatch.setenv("POINTIQ_POINTS_FILE", str(tmp_path / "points.json"))
    monkeypatch.setenv("POINTIQ_SUPABASE_TABLE", " rallies ")
    monkeypatch.setenv("POINTIQ_SYNC_QUEUE_SIZE", "5")
    monkeypatch.setenv("POINTIQ_REMOTE_TIMEOUT", "2.5")
    monkeypatch.setenv("POINTIQ_AUTO_ADVANCE_GAMES", "TRUE")

    settings = load_settings()

    assert settings.api_prefix == "/scores"
    assert settings.points_file == Path(tmp_path / "points.json")
    assert settings.supabase_table == "rallies"
    assert settings.sync_queue_size == 5
    assert settings.remote_timeout == 2.5
    assert settings.auto_advance_games is True


def test_bad_numbers_fall_back_with_warning(monkeypatch, caplog):
    monkeypatch.setenv("POINTIQ_SYNC_QUEUE_SIZE", "lots")
    monkeypatch.setenv("POINTIQ_REMOTE_TIMEOUT", "-1")

    with caplog.at_level(logging.WARNING):
        settings = load_settings()

    assert settings.sync_queue_size == 100
    assert settings.remote_timeout is None
    assert "POINTIQ_SYNC_QUEUE_SIZE is not a valid integer" in caplog.text
    assert "POINTIQ_REMOTE_TIMEOUT must be positive" in caplog.text


@pytest.mark.parametrize(
    "url, key, expected",
    [
        ("https://abc.supabase.co", "sb_publishable_123", True),
        ("https://abc.supabase.co", "eyJhbGciOi", False),
        ("https://example.com", "sb_publishable_123", False),
        ("", "sb_publishable_123", False),
        ("https://abc.supabase.co", None, False),
        (None, None, False),
    ],
)
def test_remote_switch(url, key, expected):
    assert is_remote_configured(url, key) is expected


def test_build_point_store_picks_mode(monkeypatch, caplog):
    with caplog.at_level(logging.INFO):
        store = build_point_store(load_settings())
    assert store.remote is None
    assert "running local-only" in caplog.text

    monkeypatch.setenv("SUPABASE_URL", "https://abc.supabase.co")
    monkeypatch.setenv("SUPABASE_KEY", "sb_publishable_123")
    store = build_point_store(load_settings())
    assert isinstance(store.remote, SupabasePointClient)
    assert store.remote_enabled is True

    monkeypatch.setenv("SUPABASE_KEY", "not-a-key")
    caplog.clear()
    with caplog.at_level(logging.WARNING):
        store = build_point_store(load_settings())
    assert store.remote is None
    assert "Supabase settings look invalid" in caplog.text
