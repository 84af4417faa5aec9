from __future__ import annotations

from pathlib import Path

import pytest

from dogrula.config import (
    ConfigurationError,
    DirectoryConfig,
    get_database_uri,
    get_directory_config,
    get_storage_config,
)

_DIRECTORY_VARS = (
    "DOGRULA_DEFAULT_REGION",
    "DOGRULA_SLUG_LOCALE",
    "DOGRULA_SLUG_FALLBACK",
    "DOGRULA_RESOLVE_LIMIT",
    "DOGRULA_SEARCH_LIMIT",
    "DOGRULA_CACHE_ENABLED",
    "DOGRULA_CACHE_TTL_SECONDS",
    "DOGRULA_CACHE_MAX_ENTRIES",
)


@pytest.fixture
def clean_env(monkeypatch: pytest.MonkeyPatch) -> pytest.MonkeyPatch:
    for name in _DIRECTORY_VARS:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


def test_directory_config_defaults(clean_env: pytest.MonkeyPatch) -> None:
    assert get_directory_config() == DirectoryConfig()


def test_directory_config_reads_environment(clean_env: pytest.MonkeyPatch) -> None:
    clean_env.setenv("DOGRULA_DEFAULT_REGION", "de")
    clean_env.setenv("DOGRULA_RESOLVE_LIMIT", "5")
    clean_env.setenv("DOGRULA_CACHE_ENABLED", "off")
    clean_env.setenv("DOGRULA_CACHE_TTL_SECONDS", "2.5")

    config = get_directory_config()

    assert config.default_region == "DE"
    assert config.resolve_limit == 5
    assert config.cache_enabled is False
    assert config.cache_ttl_seconds == pytest.approx(2.5)


@pytest.mark.parametrize(
    ("name", "value", "message"),
    [
        ("DOGRULA_RESOLVE_LIMIT", "ten", "DOGRULA_RESOLVE_LIMIT"),
        ("DOGRULA_SEARCH_LIMIT", "0", "DOGRULA_SEARCH_LIMIT"),
        ("DOGRULA_CACHE_ENABLED", "maybe", "DOGRULA_CACHE_ENABLED"),
        ("DOGRULA_CACHE_TTL_SECONDS", "-1", "DOGRULA_CACHE_TTL_SECONDS"),
        ("DOGRULA_DEFAULT_REGION", "TUR", "region"),
    ],
)
def test_malformed_values_raise_configuration_error(
    clean_env: pytest.MonkeyPatch,
    name: str,
    value: str,
    message: str,
) -> None:
    clean_env.setenv(name, value)

    with pytest.raises(ConfigurationError, match=message):
        get_directory_config()


def test_database_uri_prefers_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("DATABASE_URI", "postgresql+psycopg://dogrula@localhost/dogrula")

    assert get_database_uri() == "postgresql+psycopg://dogrula@localhost/dogrula"


def test_database_uri_defaults_to_sqlite_in_data_dir(
    monkeypatch: pytest.MonkeyPatch,
    tmp_path: Path,
) -> None:
    monkeypatch.delenv("DATABASE_URI", raising=False)
    monkeypatch.setenv("DOGRULA_DATA_DIR", str(tmp_path / "data"))

    uri = get_database_uri()

    assert uri == f"sqlite+pysqlite:///{(tmp_path / 'data').resolve() / 'dogrula.db'}"
    assert get_storage_config().resolve_data_dir().is_dir()
