"""Tests for environment-driven configuration."""

import pytest

from seograph.config import GraphSettings, build_store
from seograph.exceptions import ValidationError
from seograph.graph.store import InMemoryEntityStore, SQLiteEntityStore

ENV_VARS = [
    "SEOGRAPH_BACKEND",
    "SEOGRAPH_DB_PATH",
    "SEOGRAPH_BASE_DOMAIN",
    "SEOGRAPH_DEFAULT_SUBDOMAIN",
    "SEOGRAPH_LOG_LEVEL",
    "SEOGRAPH_HOST",
    "SEOGRAPH_PORT",
]


@pytest.fixture
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


class TestGraphSettings:
    """GraphSettings.from_env()."""

    def test_defaults(self, clean_env):
        settings = GraphSettings.from_env()

        assert settings.backend == "memory"
        assert settings.base_domain == "example.com"
        assert settings.default_subdomain == "www"
        assert settings.host == "127.0.0.1"
        assert settings.port == 8090

    def test_overrides(self, clean_env):
        clean_env.setenv("SEOGRAPH_BACKEND", "SQLite")
        clean_env.setenv("SEOGRAPH_DB_PATH", "/tmp/x.db")
        clean_env.setenv("SEOGRAPH_BASE_DOMAIN", "acme.com")
        clean_env.setenv("SEOGRAPH_LOG_LEVEL", "debug")
        clean_env.setenv("SEOGRAPH_PORT", "9000")

        settings = GraphSettings.from_env()

        assert settings.backend == "sqlite"
        assert settings.db_path == "/tmp/x.db"
        assert settings.base_domain == "acme.com"
        assert settings.log_level == "DEBUG"
        assert settings.port == 9000

    def test_invalid_backend(self, clean_env):
        clean_env.setenv("SEOGRAPH_BACKEND", "postgres")

        with pytest.raises(ValidationError, match="SEOGRAPH_BACKEND"):
            GraphSettings.from_env()

    def test_invalid_port(self, clean_env):
        clean_env.setenv("SEOGRAPH_PORT", "eighty")

        with pytest.raises(ValidationError, match="SEOGRAPH_PORT"):
            GraphSettings.from_env()

    def test_invalid_log_level(self, clean_env):
        clean_env.setenv("SEOGRAPH_LOG_LEVEL", "VERBOSE")

        with pytest.raises(ValidationError, match="SEOGRAPH_LOG_LEVEL"):
            GraphSettings.from_env()

    @pytest.mark.parametrize("level", ["debug", " warning ", "CRITICAL"])
    def test_log_level_normalized(self, clean_env, level):
        clean_env.setenv("SEOGRAPH_LOG_LEVEL", level)

        assert GraphSettings.from_env().log_level == level.strip().upper()


class TestBuildStore:
    """Backend selection."""

    def test_memory(self):
        assert isinstance(build_store(GraphSettings()), InMemoryEntityStore)

    def test_sqlite(self, temp_dir):
        db_path = temp_dir / "data" / "graph.db"
        store = build_store(GraphSettings(backend="sqlite", db_path=str(db_path)))

        assert isinstance(store, SQLiteEntityStore)
        assert db_path.exists()
