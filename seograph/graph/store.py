"""
Entity Store - SQLite-Backed and In-Memory Graph Storage

Stores entities and the directed, typed relationships between them.
Both backends expose the same API and can be injected into
``EntityGraph`` interchangeably.

Usage:
    store = SQLiteEntityStore("./data/seograph.db")
    store.add_entity(entity)
    store.add_relationship(relationship)

    # Relationships touching an entity
    rels = store.get_entity_relationships("org1", direction="outgoing")

    # Cascading delete
    removed = store.delete_entity("org1")

Existence checks and the writes that depend on them run atomically:
the in-memory store holds a single re-entrant lock for every operation,
the SQLite store wraps them in ``BEGIN IMMEDIATE`` transactions.
"""

from __future__ import annotations

import json
import sqlite3
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from threading import RLock
from typing import Any, Iterator, Union

import structlog

from seograph.exceptions import DuplicateEntityError, NotFoundError, StoreError
from seograph.models import (
    Entity,
    EntityType,
    GraphStats,
    Relationship,
    RelationType,
)

logger = structlog.get_logger(__name__)

DIRECTIONS = ("both", "outgoing", "incoming")


def _build_stats(
    entities: list[tuple[str, str]],
    relationship_count: int,
) -> GraphStats:
    """Aggregate (type, subdomain) pairs into GraphStats."""
    entity_types: dict[str, int] = {}
    subdomains: dict[str, int] = {}
    for entity_type, subdomain in entities:
        entity_types[entity_type] = entity_types.get(entity_type, 0) + 1
        subdomains[subdomain] = subdomains.get(subdomain, 0) + 1

    total = len(entities)
    avg = (relationship_count * 2) / total if total else 0.0

    return GraphStats(
        total_entities=total,
        total_relationships=relationship_count,
        entity_types=entity_types,
        subdomains=subdomains,
        avg_relationships_per_entity=avg,
    )


class SQLiteEntityStore:
    """
    SQLite-backed store for entities and relationships.

    Supports:
    - Entity CRUD with type/subdomain filtering
    - Relationship upserts keyed by ``{from}:{type}:{to}``
    - Cascading entity deletes
    - Graph statistics

    Attributes:
        db_path: Path to the SQLite database file.
    """

    def __init__(self, db_path: Path | str):
        """
        Initialize the store.

        Args:
            db_path: Path to the SQLite database file.
                     Will be created if it doesn't exist.
        """
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

        self._init_db()

        logger.info("entity_store_initialized", db_path=str(self.db_path))

    def _init_db(self) -> None:
        """Create the database schema if it doesn't exist."""
        with self._connect() as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS entities (
                    id TEXT PRIMARY KEY,
                    type TEXT NOT NULL,
                    name TEXT NOT NULL,
                    description TEXT,
                    url TEXT NOT NULL,
                    subdomain TEXT NOT NULL DEFAULT 'www',
                    metadata TEXT,
                    schema_properties TEXT,
                    created_at TEXT NOT NULL,
                    updated_at TEXT NOT NULL,
                    seq INTEGER NOT NULL DEFAULT 0
                )
            """)

            conn.execute("""
                CREATE TABLE IF NOT EXISTS entity_relationships (
                    id TEXT PRIMARY KEY,
                    from_entity_id TEXT NOT NULL REFERENCES entities(id),
                    to_entity_id TEXT NOT NULL REFERENCES entities(id),
                    type TEXT NOT NULL,
                    metadata TEXT,
                    created_at TEXT NOT NULL,
                    seq INTEGER NOT NULL DEFAULT 0
                )
            """)

            conn.execute("""
                CREATE INDEX IF NOT EXISTS idx_entities_type
                ON entities(type)
            """)
            conn.execute("""
                CREATE INDEX IF NOT EXISTS idx_entities_subdomain
                ON entities(subdomain)
            """)
            conn.execute("""
                CREATE INDEX IF NOT EXISTS idx_relationships_from
                ON entity_relationships(from_entity_id)
            """)
            conn.execute("""
                CREATE INDEX IF NOT EXISTS idx_relationships_to
                ON entity_relationships(to_entity_id)
            """)

            conn.commit()

    @contextmanager
    def _connect(self) -> Iterator[sqlite3.Connection]:
        """Context manager for database connections."""
        conn = sqlite3.connect(self.db_path, timeout=30.0)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys = ON")
        try:
            yield conn
        finally:
            conn.close()

    @contextmanager
    def _transaction(self) -> Iterator[sqlite3.Connection]:
        """
        Write transaction that takes the database write lock up front.

        Reads performed inside see a state no other writer can change
        before commit.
        """
        with self._connect() as conn:
            conn.execute("BEGIN IMMEDIATE")
            try:
                yield conn
            except BaseException:
                conn.rollback()
                raise
            conn.commit()

    @staticmethod
    def _next_seq(conn: sqlite3.Connection, table: str) -> int:
        row = conn.execute(f"SELECT COALESCE(MAX(seq), 0) + 1 FROM {table}").fetchone()
        return row[0]

    # =========================================================================
    # Entity Operations
    # =========================================================================

    def add_entity(self, entity: Entity) -> str:
        """
        Insert a new entity.

        Args:
            entity: Entity to add.

        Returns:
            Entity ID.

        Raises:
            DuplicateEntityError: If an entity with this id already exists.
        """
        with self._transaction() as conn:
            exists = conn.execute(
                "SELECT 1 FROM entities WHERE id = ?", (entity.id,)
            ).fetchone()
            if exists:
                raise DuplicateEntityError(f"Entity already exists: {entity.id}")

            conn.execute(
                """
                INSERT INTO entities (id, type, name, description, url, subdomain,
                                      metadata, schema_properties, created_at, updated_at, seq)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    entity.id,
                    entity.type.value,
                    entity.name,
                    entity.description,
                    entity.url,
                    entity.subdomain,
                    json.dumps(entity.metadata),
                    json.dumps(entity.schema_properties),
                    entity.created_at.isoformat(),
                    entity.updated_at.isoformat(),
                    self._next_seq(conn, "entities"),
                ),
            )

        logger.debug(
            "entity_added",
            entity_id=entity.id,
            type=entity.type.value,
            name=entity.name,
            subdomain=entity.subdomain,
        )

        return entity.id

    def get_entity(self, entity_id: str) -> Entity | None:
        """
        Get an entity by ID.

        Args:
            entity_id: Entity ID.

        Returns:
            Entity or None if not found.
        """
        with self._connect() as conn:
            row = conn.execute(
                "SELECT * FROM entities WHERE id = ?",
                (entity_id,),
            ).fetchone()

        if row is None:
            return None

        return self._row_to_entity(row)

    def get_entities(self, entity_ids: list[str]) -> dict[str, Entity]:
        """
        Get several entities at once.

        Args:
            entity_ids: Entity IDs to fetch.

        Returns:
            Mapping of id to entity for the ids that exist.
        """
        if not entity_ids:
            return {}

        unique_ids = list(dict.fromkeys(entity_ids))
        placeholders = ",".join("?" * len(unique_ids))

        with self._connect() as conn:
            cursor = conn.execute(
                f"SELECT * FROM entities WHERE id IN ({placeholders})",
                unique_ids,
            )
            return {row["id"]: self._row_to_entity(row) for row in cursor}

    def save_entity(self, entity: Entity) -> Entity:
        """
        Replace the stored record of an existing entity.

        ``id``, ``type`` and ``created_at`` of the stored row are kept.

        Raises:
            NotFoundError: If the entity does not exist.
        """
        with self._transaction() as conn:
            cursor = conn.execute(
                """
                UPDATE entities SET
                    name = ?,
                    description = ?,
                    url = ?,
                    subdomain = ?,
                    metadata = ?,
                    schema_properties = ?,
                    updated_at = ?
                WHERE id = ?
                """,
                (
                    entity.name,
                    entity.description,
                    entity.url,
                    entity.subdomain,
                    json.dumps(entity.metadata),
                    json.dumps(entity.schema_properties),
                    entity.updated_at.isoformat(),
                    entity.id,
                ),
            )
            if cursor.rowcount == 0:
                raise NotFoundError(f"Entity not found: {entity.id}")

            row = conn.execute(
                "SELECT * FROM entities WHERE id = ?", (entity.id,)
            ).fetchone()

        logger.debug("entity_saved", entity_id=entity.id)
        return self._row_to_entity(row)

    def delete_entity(self, entity_id: str) -> int:
        """
        Delete an entity and every relationship touching it.

        Args:
            entity_id: Entity ID.

        Returns:
            Number of relationships removed.

        Raises:
            NotFoundError: If the entity does not exist.
        """
        with self._transaction() as conn:
            exists = conn.execute(
                "SELECT 1 FROM entities WHERE id = ?", (entity_id,)
            ).fetchone()
            if not exists:
                raise NotFoundError(f"Entity not found: {entity_id}")

            removed = conn.execute(
                """
                DELETE FROM entity_relationships
                WHERE from_entity_id = ? OR to_entity_id = ?
                """,
                (entity_id, entity_id),
            ).rowcount
            conn.execute("DELETE FROM entities WHERE id = ?", (entity_id,))

        logger.debug(
            "entity_deleted",
            entity_id=entity_id,
            relationships_removed=removed,
        )
        return removed

    def list_entities(
        self,
        entity_type: EntityType | None = None,
        subdomain: str | None = None,
        limit: int = 100,
    ) -> list[Entity]:
        """
        List entities, newest first.

        Args:
            entity_type: Optional type filter.
            subdomain: Optional subdomain filter.
            limit: Maximum number of entities returned.

        Returns:
            List of matching entities.
        """
        conditions = []
        params: list[Any] = []

        if entity_type:
            conditions.append("type = ?")
            params.append(entity_type.value)
        if subdomain:
            conditions.append("subdomain = ?")
            params.append(subdomain)

        where_clause = f"WHERE {' AND '.join(conditions)}" if conditions else ""
        params.append(limit)

        with self._connect() as conn:
            cursor = conn.execute(
                f"""
                SELECT * FROM entities {where_clause}
                ORDER BY created_at DESC, seq DESC
                LIMIT ?
                """,
                params,
            )
            return [self._row_to_entity(row) for row in cursor]

    # =========================================================================
    # Relationship Operations
    # =========================================================================

    def add_relationship(self, relationship: Relationship) -> Relationship:
        """
        Insert or overwrite a relationship.

        Both endpoints are checked inside the same transaction as the
        write. Re-creating an existing relationship replaces its metadata
        and keeps its original ``created_at``.

        Args:
            relationship: Relationship to store.

        Returns:
            The stored relationship.

        Raises:
            NotFoundError: If either endpoint entity does not exist.
        """
        with self._transaction() as conn:
            for label, endpoint in (
                ("Source", relationship.from_entity_id),
                ("Target", relationship.to_entity_id),
            ):
                found = conn.execute(
                    "SELECT 1 FROM entities WHERE id = ?", (endpoint,)
                ).fetchone()
                if not found:
                    raise NotFoundError(f"{label} entity not found: {endpoint}")

            existing = conn.execute(
                "SELECT created_at FROM entity_relationships WHERE id = ?",
                (relationship.id,),
            ).fetchone()

            try:
                if existing:
                    conn.execute(
                        "UPDATE entity_relationships SET metadata = ? WHERE id = ?",
                        (json.dumps(relationship.metadata), relationship.id),
                    )
                else:
                    conn.execute(
                        """
                        INSERT INTO entity_relationships
                            (id, from_entity_id, to_entity_id, type, metadata, created_at, seq)
                        VALUES (?, ?, ?, ?, ?, ?, ?)
                        """,
                        (
                            relationship.id,
                            relationship.from_entity_id,
                            relationship.to_entity_id,
                            relationship.type.value,
                            json.dumps(relationship.metadata),
                            relationship.created_at.isoformat(),
                            self._next_seq(conn, "entity_relationships"),
                        ),
                    )
            except sqlite3.IntegrityError as e:
                raise StoreError(f"Failed to store relationship {relationship.id}: {e}") from e

            row = conn.execute(
                "SELECT * FROM entity_relationships WHERE id = ?",
                (relationship.id,),
            ).fetchone()

        if existing:
            logger.info("relationship_overwritten", relationship_id=relationship.id)
        else:
            logger.debug(
                "relationship_added",
                relationship_id=relationship.id,
                type=relationship.type.value,
                source=relationship.from_entity_id,
                target=relationship.to_entity_id,
            )

        return self._row_to_relationship(row)

    def get_relationship(self, relationship_id: str) -> Relationship | None:
        """
        Get a relationship by ID.

        Args:
            relationship_id: Relationship ID.

        Returns:
            Relationship or None if not found.
        """
        with self._connect() as conn:
            row = conn.execute(
                "SELECT * FROM entity_relationships WHERE id = ?",
                (relationship_id,),
            ).fetchone()

        if row is None:
            return None

        return self._row_to_relationship(row)

    def get_entity_relationships(
        self,
        entity_id: str,
        direction: str = "both",
    ) -> list[Relationship]:
        """
        Get relationships involving an entity.

        Args:
            entity_id: Entity ID.
            direction: "outgoing", "incoming", or "both".

        Returns:
            List of relationships in insertion order.
        """
        conditions = []
        params = []

        if direction in ("outgoing", "both"):
            conditions.append("from_entity_id = ?")
            params.append(entity_id)
        if direction in ("incoming", "both"):
            conditions.append("to_entity_id = ?")
            params.append(entity_id)
        if not conditions:
            raise ValueError(f"direction must be one of {DIRECTIONS}, got {direction!r}")

        where_clause = " OR ".join(conditions)

        with self._connect() as conn:
            cursor = conn.execute(
                f"SELECT * FROM entity_relationships WHERE {where_clause} ORDER BY seq",
                params,
            )
            return [self._row_to_relationship(row) for row in cursor]

    def list_relationships(self) -> list[Relationship]:
        """All relationships in insertion order."""
        with self._connect() as conn:
            cursor = conn.execute("SELECT * FROM entity_relationships ORDER BY seq")
            return [self._row_to_relationship(row) for row in cursor]

    def delete_relationship(self, relationship_id: str) -> Relationship:
        """
        Delete a relationship.

        Args:
            relationship_id: Relationship ID.

        Returns:
            The deleted relationship.

        Raises:
            NotFoundError: If the relationship does not exist.
        """
        with self._transaction() as conn:
            row = conn.execute(
                "SELECT * FROM entity_relationships WHERE id = ?",
                (relationship_id,),
            ).fetchone()
            if row is None:
                raise NotFoundError(f"Relationship not found: {relationship_id}")

            conn.execute(
                "DELETE FROM entity_relationships WHERE id = ?",
                (relationship_id,),
            )

        logger.debug("relationship_deleted", relationship_id=relationship_id)
        return self._row_to_relationship(row)

    # =========================================================================
    # Statistics
    # =========================================================================

    def get_stats(self) -> GraphStats:
        """Get statistics about the graph."""
        with self._connect() as conn:
            relationship_count = conn.execute(
                "SELECT COUNT(*) FROM entity_relationships"
            ).fetchone()[0]
            cursor = conn.execute("SELECT type, subdomain FROM entities")
            pairs = [(row["type"], row["subdomain"]) for row in cursor]

        return _build_stats(pairs, relationship_count)

    def clear(self) -> dict[str, int]:
        """
        Clear all data from the store.

        Returns:
            Count of deleted items by kind.
        """
        with self._transaction() as conn:
            relationship_count = conn.execute("DELETE FROM entity_relationships").rowcount
            entity_count = conn.execute("DELETE FROM entities").rowcount

        logger.warning(
            "entity_store_cleared",
            entities=entity_count,
            relationships=relationship_count,
        )

        return {"entities": entity_count, "relationships": relationship_count}

    # =========================================================================
    # Helper Methods
    # =========================================================================

    def _row_to_entity(self, row: sqlite3.Row) -> Entity:
        """Convert a database row to an Entity object."""
        return Entity(
            id=row["id"],
            type=EntityType(row["type"]),
            name=row["name"],
            description=row["description"],
            url=row["url"],
            subdomain=row["subdomain"],
            metadata=json.loads(row["metadata"]) if row["metadata"] else {},
            schema_properties=json.loads(row["schema_properties"]) if row["schema_properties"] else {},
            created_at=datetime.fromisoformat(row["created_at"]),
            updated_at=datetime.fromisoformat(row["updated_at"]),
        )

    def _row_to_relationship(self, row: sqlite3.Row) -> Relationship:
        """Convert a database row to a Relationship object."""
        return Relationship(
            from_entity_id=row["from_entity_id"],
            to_entity_id=row["to_entity_id"],
            type=RelationType(row["type"]),
            metadata=json.loads(row["metadata"]) if row["metadata"] else {},
            created_at=datetime.fromisoformat(row["created_at"]),
        )


class InMemoryEntityStore:
    """
    In-memory entity store for testing and ephemeral usage.

    API-compatible with SQLiteEntityStore. Dicts preserve insertion
    order, which doubles as the creation sequence.
    """

    def __init__(self):
        self._entities: dict[str, Entity] = {}
        self._relationships: dict[str, Relationship] = {}
        self._lock = RLock()

    def add_entity(self, entity: Entity) -> str:
        with self._lock:
            if entity.id in self._entities:
                raise DuplicateEntityError(f"Entity already exists: {entity.id}")
            self._entities[entity.id] = entity.model_copy(deep=True)

        logger.debug("entity_added", entity_id=entity.id, type=entity.type.value)
        return entity.id

    def get_entity(self, entity_id: str) -> Entity | None:
        with self._lock:
            entity = self._entities.get(entity_id)
            return entity.model_copy(deep=True) if entity else None

    def get_entities(self, entity_ids: list[str]) -> dict[str, Entity]:
        with self._lock:
            return {
                eid: self._entities[eid].model_copy(deep=True)
                for eid in entity_ids
                if eid in self._entities
            }

    def save_entity(self, entity: Entity) -> Entity:
        with self._lock:
            stored = self._entities.get(entity.id)
            if stored is None:
                raise NotFoundError(f"Entity not found: {entity.id}")

            updated = entity.model_copy(
                update={"type": stored.type, "created_at": stored.created_at},
                deep=True,
            )
            self._entities[entity.id] = updated

        logger.debug("entity_saved", entity_id=entity.id)
        return updated.model_copy(deep=True)

    def delete_entity(self, entity_id: str) -> int:
        with self._lock:
            if entity_id not in self._entities:
                raise NotFoundError(f"Entity not found: {entity_id}")

            touching = [
                rel_id for rel_id, rel in self._relationships.items()
                if rel.touches(entity_id)
            ]
            for rel_id in touching:
                del self._relationships[rel_id]
            del self._entities[entity_id]

        logger.debug("entity_deleted", entity_id=entity_id, relationships_removed=len(touching))
        return len(touching)

    def list_entities(
        self,
        entity_type: EntityType | None = None,
        subdomain: str | None = None,
        limit: int = 100,
    ) -> list[Entity]:
        with self._lock:
            # Reverse insertion order breaks created_at ties newest-first
            candidates = list(reversed(self._entities.values()))

        results = []
        for entity in candidates:
            if entity_type and entity.type != entity_type:
                continue
            if subdomain and entity.subdomain != subdomain:
                continue
            results.append(entity)

        results.sort(key=lambda e: e.created_at, reverse=True)
        return [e.model_copy(deep=True) for e in results[:limit]]

    def add_relationship(self, relationship: Relationship) -> Relationship:
        with self._lock:
            if relationship.from_entity_id not in self._entities:
                raise NotFoundError(f"Source entity not found: {relationship.from_entity_id}")
            if relationship.to_entity_id not in self._entities:
                raise NotFoundError(f"Target entity not found: {relationship.to_entity_id}")

            existing = self._relationships.get(relationship.id)
            if existing:
                stored = existing.model_copy(
                    update={"metadata": dict(relationship.metadata)}, deep=True
                )
            else:
                stored = relationship.model_copy(deep=True)
            self._relationships[relationship.id] = stored

        if existing:
            logger.info("relationship_overwritten", relationship_id=relationship.id)
        else:
            logger.debug("relationship_added", relationship_id=relationship.id)
        return stored.model_copy(deep=True)

    def get_relationship(self, relationship_id: str) -> Relationship | None:
        with self._lock:
            rel = self._relationships.get(relationship_id)
            return rel.model_copy(deep=True) if rel else None

    def get_entity_relationships(
        self,
        entity_id: str,
        direction: str = "both",
    ) -> list[Relationship]:
        if direction not in DIRECTIONS:
            raise ValueError(f"direction must be one of {DIRECTIONS}, got {direction!r}")

        results = []
        with self._lock:
            for rel in self._relationships.values():
                if direction == "outgoing" and rel.from_entity_id == entity_id:
                    results.append(rel)
                elif direction == "incoming" and rel.to_entity_id == entity_id:
                    results.append(rel)
                elif direction == "both" and rel.touches(entity_id):
                    results.append(rel)
            return [r.model_copy(deep=True) for r in results]

    def list_relationships(self) -> list[Relationship]:
        with self._lock:
            return [r.model_copy(deep=True) for r in self._relationships.values()]

    def delete_relationship(self, relationship_id: str) -> Relationship:
        with self._lock:
            rel = self._relationships.pop(relationship_id, None)
        if rel is None:
            raise NotFoundError(f"Relationship not found: {relationship_id}")

        logger.debug("relationship_deleted", relationship_id=relationship_id)
        return rel

    def get_stats(self) -> GraphStats:
        with self._lock:
            pairs = [(e.type.value, e.subdomain) for e in self._entities.values()]
            relationship_count = len(self._relationships)
        return _build_stats(pairs, relationship_count)

    def clear(self) -> dict[str, int]:
        with self._lock:
            counts = {
                "entities": len(self._entities),
                "relationships": len(self._relationships),
            }
            self._entities.clear()
            self._relationships.clear()

        logger.warning("entity_store_cleared", **counts)
        return counts


# Type alias for either store
EntityStore = Union[SQLiteEntityStore, InMemoryEntityStore]
