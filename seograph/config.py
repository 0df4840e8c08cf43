"""
Configuration - Environment-Driven Settings

All settings are read from environment variables prefixed with SEOGRAPH_.
A .env file in the project root is loaded first if it exists.

Usage:
    from seograph.config import GraphSettings, build_store

    settings = GraphSettings.from_env()
    store = build_store(settings)
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

import structlog
from dotenv import load_dotenv

from seograph.exceptions import ValidationError
from seograph.graph.store import EntityStore, InMemoryEntityStore, SQLiteEntityStore

# Look for .env in the project root (parent of seograph package)
_ENV_PATH = Path(__file__).parent.parent / ".env"
if _ENV_PATH.exists():
    load_dotenv(_ENV_PATH)

logger = structlog.get_logger(__name__)

BACKENDS = ("memory", "sqlite")

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass
class GraphSettings:
    """Runtime settings for the graph service."""

    backend: str = "memory"
    db_path: str = "./data/seograph.db"
    base_domain: str = "example.com"
    default_subdomain: str = "www"
    log_level: str = "INFO"
    host: str = "127.0.0.1"
    port: int = 8090

    @classmethod
    def from_env(cls) -> GraphSettings:
        """Build settings from SEOGRAPH_* environment variables."""
        backend = os.getenv("SEOGRAPH_BACKEND", cls.backend).strip().lower()
        if backend not in BACKENDS:
            raise ValidationError(
                f"Invalid SEOGRAPH_BACKEND: {backend!r} (expected one of {', '.join(BACKENDS)})"
            )

        port_raw = os.getenv("SEOGRAPH_PORT", str(cls.port))
        try:
            port = int(port_raw)
        except ValueError as e:
            raise ValidationError(f"Invalid SEOGRAPH_PORT: {port_raw!r}") from e

        log_level = os.getenv("SEOGRAPH_LOG_LEVEL", cls.log_level).strip().upper()
        if log_level not in LOG_LEVELS:
            raise ValidationError(
                f"Invalid SEOGRAPH_LOG_LEVEL: {log_level!r} (expected one of {', '.join(LOG_LEVELS)})"
            )

        return cls(
            backend=backend,
            db_path=os.getenv("SEOGRAPH_DB_PATH", cls.db_path),
            base_domain=os.getenv("SEOGRAPH_BASE_DOMAIN", cls.base_domain),
            default_subdomain=os.getenv("SEOGRAPH_DEFAULT_SUBDOMAIN", cls.default_subdomain),
            log_level=log_level,
            host=os.getenv("SEOGRAPH_HOST", cls.host),
            port=port,
        )


def build_store(settings: GraphSettings) -> EntityStore:
    """Instantiate the storage backend named in the settings."""
    if settings.backend == "sqlite":
        return SQLiteEntityStore(settings.db_path)

    logger.info("using_in_memory_store")
    return InMemoryEntityStore()
