from __future__ import annotations

from datetime import timedelta
from pathlib import Path  # noqa: TC003

import pytest  # noqa: TC002

from sunball.config import (
    get_catalog_config,
    get_database_config,
    get_http_cache_path,
    get_overpass_config,
    get_pixabay_config,
    get_presence_config,
    get_storage_config,
)
from sunball.config.overpass import DEFAULT_OVERPASS_ENDPOINTS
from sunball.config.pixabay import has_hits
from sunball.config.storage import DEFAULT_DB_FILENAME, HTTP_CACHE_FILENAME


def test_overpass_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("SUNBALL_OVERPASS_ENDPOINTS", raising=False)
    monkeypatch.delenv("SUNBALL_OVERPASS_TIMEOUT", raising=False)

    config = get_overpass_config()

    assert config.endpoints == DEFAULT_OVERPASS_ENDPOINTS
    assert config.resilience.cache is None
    assert config.resilience.timeout_seconds == 30.0


def test_overpass_endpoints_from_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("SUNBALL_OVERPASS_ENDPOINTS", "https://one/api,https://two/api")
    monkeypatch.setenv("SUNBALL_OVERPASS_TIMEOUT", "5")

    config = get_overpass_config()

    assert config.endpoints == ("https://one/api", "https://two/api")
    assert config.resilience.timeout_seconds == 5.0


def test_pixabay_disabled_without_key(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("PIXABAY_API_KEY", raising=False)

    assert get_pixabay_config() is None


def test_pixabay_config_with_key(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("PIXABAY_API_KEY", "secret")
    monkeypatch.setenv("SUNBALL_IMAGE_QUERY", "futsal")

    config = get_pixabay_config()

    assert config is not None
    assert config.api_key == "secret"
    assert config.query == "futsal"
    assert config.resilience.ratelimit is not None
    assert config.resilience.cache is not None
    assert config.resilience.cache.backend == "sqlite"
    assert config.resilience.cache.should_cache is has_hits


def test_presence_ttl_from_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("SUNBALL_PRESENCE_TTL_HOURS", "1.5")

    config = get_presence_config()

    assert config.presence_ttl == timedelta(minutes=90)
    assert config.dwell_threshold == timedelta(minutes=15)


def test_catalog_limits() -> None:
    config = get_catalog_config()

    assert config.lookup_chunk_size == 30
    assert config.write_batch_limit == 500


def test_storage_prefers_explicit_data_dir(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> None:
    monkeypatch.setenv("SUNBALL_DATA_DIR", str(tmp_path / "custom"))

    config = get_storage_config()

    assert config.resolve_data_dir() == (tmp_path / "custom").resolve()
    assert get_http_cache_path() == (tmp_path / "custom" / HTTP_CACHE_FILENAME).resolve()


def test_database_uri_env_override(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("DATABASE_URI", "sqlite:///override.db")

    assert get_database_config().uri == "sqlite:///override.db"


def test_database_uri_creates_data_dir(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.delenv("DATABASE_URI", raising=False)
    monkeypatch.setenv("SUNBALL_DATA_DIR", str(tmp_path / "data-dir"))

    uri = get_database_config().uri

    expected_path = (tmp_path / "data-dir" / DEFAULT_DB_FILENAME).resolve()
    assert uri == f"sqlite+pysqlite:///{expected_path}"
    assert expected_path.parent.exists()
