from pathlib import Path

import pytest

import config
from config import DEFAULT_SEARCH_RADIUS, Settings

ENV_VARS = [
    "SUPABASE_URL", "SUPABASE_ANON_KEY", "SUPABASE_SERVICE_KEY", "GOOGLEMAPS_API_KEY",
    "MAPBOX_ACCESS_TOKEN", "SEARCH_RADIUS_METERS", "ANONYMOUS_USER_FILE", "CURRENCY",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    # keep a developer's .env out of the tests
    monkeypatch.setattr(config, "load_dotenv", lambda: None)


def test_requires_backend_settings():
    with pytest.raises(ValueError, match="SUPABASE_URL"):
        Settings.from_env()


def test_defaults(monkeypatch):
    monkeypatch.setenv("SUPABASE_URL", "https://example.supabase.co/")
    monkeypatch.setenv("SUPABASE_ANON_KEY", "anon")

    settings = Settings.from_env()

    assert settings.supabase_url == "https://example.supabase.co"
    assert settings.search_radius_meters == DEFAULT_SEARCH_RADIUS
    assert settings.googlemaps_api_key is None
    assert settings.currency == "JPY"


def test_overrides(monkeypatch, tmp_path):
    monkeypatch.setenv("SUPABASE_URL", "https://example.supabase.co")
    monkeypatch.setenv("SUPABASE_ANON_KEY", "anon")
    monkeypatch.setenv("SEARCH_RADIUS_METERS", "5000")
    monkeypatch.setenv("ANONYMOUS_USER_FILE", str(tmp_path / "id.json"))
    monkeypatch.setenv("CURRENCY", "USD")

    settings = Settings.from_env()

    assert settings.search_radius_meters == 5000
    assert settings.anonymous_user_file == Path(tmp_path / "id.json")
    assert settings.currency == "USD"
