"""
Entity Graph Service

Validates raw payloads (as they arrive from the HTTP layer or the CLI)
and turns them into store operations. All errors are raised as
``seograph.exceptions`` types; nothing here retries or falls back.

Usage:
    from seograph.graph import EntityGraph, InMemoryEntityStore

    graph = EntityGraph(InMemoryEntityStore(), base_domain="acme.com")
    graph.create_entity({"id": "org1", "type": "Organization", "name": "Acme"})
    graph.create_entity({"id": "svc1", "type": "Service", "name": "Consulting"})
    graph.create_relationship({"from": "org1", "to": "svc1", "type": "offers"})

    graph.find_path("org1", "svc1").length   # 1
"""

from __future__ import annotations

from typing import Any

import structlog
from pydantic import ValidationError as PydanticValidationError

from seograph import schema_org
from seograph.exceptions import NotFoundError, ValidationError
from seograph.graph.query import GraphQueryEngine
from seograph.graph.store import EntityStore
from seograph.models import (
    ClusterResult,
    DeleteEntityResult,
    DeleteRelationshipResult,
    Entity,
    EntityDetail,
    EntityRelationships,
    EntityType,
    EntityWithSchema,
    GraphStats,
    PathResult,
    Relationship,
    RelationshipCreated,
    RelationType,
    utcnow,
)

logger = structlog.get_logger(__name__)

# Fields a caller may change through update_entity
UPDATABLE_FIELDS = {"name", "description", "url", "subdomain", "metadata", "schema_properties"}

# Silently dropped from update payloads
IMMUTABLE_FIELDS = {"id", "type", "created_at", "updated_at"}

FIELD_ALIASES = {"schemaProperties": "schema_properties"}


def parse_entity_type(value: Any) -> EntityType:
    """Coerce a string to EntityType, raising ValidationError if unknown."""
    if isinstance(value, EntityType):
        return value
    try:
        return EntityType(value)
    except ValueError:
        allowed = ", ".join(t.value for t in EntityType)
        raise ValidationError(f"Invalid entity type: {value!r}. Must be one of: {allowed}") from None


def parse_relation_type(value: Any) -> RelationType:
    """Coerce a string to RelationType, raising ValidationError if unknown."""
    if isinstance(value, RelationType):
        return value
    try:
        return RelationType(value)
    except ValueError:
        allowed = ", ".join(t.value for t in RelationType)
        raise ValidationError(
            f"Invalid relationship type: {value!r}. Must be one of: {allowed}"
        ) from None


def _first_error(exc: PydanticValidationError) -> str:
    err = exc.errors()[0]
    location = ".".join(str(part) for part in err.get("loc", ()))
    return f"{location}: {err['msg']}" if location else err["msg"]


class EntityGraph:
    """
    Entity and relationship operations over an injected store.

    Attributes:
        store: The storage backend.
        query: Traversal engine over the same store.
        base_domain: Domain used to build default entity URLs.
        default_subdomain: Subdomain assigned when none is given.
    """

    def __init__(
        self,
        store: EntityStore,
        base_domain: str = "example.com",
        default_subdomain: str = "www",
    ):
        self.store = store
        self.query = GraphQueryEngine(store)
        self.base_domain = base_domain
        self.default_subdomain = default_subdomain

    def default_url(self, entity_id: str, subdomain: str) -> str:
        return f"https://{subdomain}.{self.base_domain}/{entity_id}"

    def _require_entity(self, entity_id: str) -> Entity:
        entity = self.store.get_entity(entity_id)
        if entity is None:
            raise NotFoundError(f"Entity not found: {entity_id}")
        return entity

    # =========================================================================
    # Entity Operations
    # =========================================================================

    def create_entity(self, data: dict[str, Any]) -> EntityWithSchema:
        """
        Create an entity from a raw payload.

        ``id``, ``type`` and ``name`` are required. ``subdomain`` defaults
        to the configured default and ``url`` to
        ``https://{subdomain}.{base_domain}/{id}``.

        Raises:
            ValidationError: On missing/blank required fields or an unknown type.
            DuplicateEntityError: If the id is already taken.
        """
        for required in ("id", "type", "name"):
            value = data.get(required)
            if value is None or (isinstance(value, str) and not value.strip()):
                raise ValidationError(f"Missing required field: {required}")

        entity_type = parse_entity_type(data["type"])
        subdomain = data.get("subdomain") or self.default_subdomain
        now = utcnow()

        payload = {
            **data,
            "type": entity_type,
            "subdomain": subdomain,
            "url": data.get("url") or self.default_url(data["id"], subdomain),
            "created_at": now,
            "updated_at": now,
        }
        try:
            entity = Entity.model_validate(payload)
        except PydanticValidationError as e:
            raise ValidationError(f"Invalid entity: {_first_error(e)}") from e

        self.store.add_entity(entity)

        logger.info("entity_created", entity_id=entity.id, type=entity.type.value)
        return EntityWithSchema(entity=entity, json_ld=schema_org.project(entity))

    def get_entity(self, entity_id: str) -> Entity:
        """Get an entity, raising NotFoundError if it does not exist."""
        return self._require_entity(entity_id)

    def describe_entity(self, entity_id: str) -> EntityDetail:
        """Entity together with its relationships, neighbors and JSON-LD."""
        entity = self._require_entity(entity_id)
        return EntityDetail(
            entity=entity,
            relationships=self.store.get_entity_relationships(entity_id),
            related_entities=self.query.related_entities(entity_id),
            json_ld=schema_org.project(entity),
        )

    def update_entity(self, entity_id: str, updates: dict[str, Any]) -> EntityWithSchema:
        """
        Merge a partial update into an existing entity.

        ``id``, ``type``, ``created_at`` and ``updated_at`` are ignored;
        any other key outside the updatable set is rejected.

        Raises:
            NotFoundError: If the entity does not exist.
            ValidationError: On unknown keys or a blank name.
        """
        normalized = {FIELD_ALIASES.get(k, k): v for k, v in updates.items()}
        normalized = {k: v for k, v in normalized.items() if k not in IMMUTABLE_FIELDS}

        unknown = sorted(set(normalized) - UPDATABLE_FIELDS)
        if unknown:
            raise ValidationError(f"Unknown update field(s): {', '.join(unknown)}")

        if "name" in normalized:
            name = normalized["name"]
            if not isinstance(name, str) or not name.strip():
                raise ValidationError("name must be a non-empty string")

        current = self._require_entity(entity_id)

        merged = current.model_dump()
        merged.update(normalized)
        merged["updated_at"] = utcnow()
        try:
            candidate = Entity.model_validate(merged)
        except PydanticValidationError as e:
            raise ValidationError(f"Invalid update: {_first_error(e)}") from e

        entity = self.store.save_entity(candidate)

        logger.info("entity_updated", entity_id=entity_id, fields=sorted(normalized))
        return EntityWithSchema(entity=entity, json_ld=schema_org.project(entity))

    def delete_entity(self, entity_id: str) -> DeleteEntityResult:
        """Delete an entity and every relationship touching it."""
        removed = self.store.delete_entity(entity_id)

        logger.info("entity_deleted", entity_id=entity_id, relationships_removed=removed)
        return DeleteEntityResult(entity_id=entity_id, relationships_removed=removed)

    def list_entities(
        self,
        entity_type: str | EntityType | None = None,
        subdomain: str | None = None,
        limit: int = 100,
    ) -> list[Entity]:
        """List entities newest-first with optional type/subdomain filters."""
        if limit <= 0:
            raise ValidationError(f"limit must be positive, got {limit}")

        parsed_type = parse_entity_type(entity_type) if entity_type else None
        return self.store.list_entities(entity_type=parsed_type, subdomain=subdomain, limit=limit)

    def entities_by_subdomain(self, subdomain: str) -> list[Entity]:
        """Every entity assigned to a subdomain, newest first."""
        stats = self.store.get_stats()
        count = stats.subdomains.get(subdomain, 0)
        if count == 0:
            return []
        return self.store.list_entities(subdomain=subdomain, limit=count)

    def all_entities(self) -> list[Entity]:
        """Every entity in the graph, newest first."""
        total = self.store.get_stats().total_entities
        if total == 0:
            return []
        return self.store.list_entities(limit=total)

    # =========================================================================
    # Relationship Operations
    # =========================================================================

    def create_relationship(self, data: dict[str, Any]) -> RelationshipCreated:
        """
        Create (or overwrite) a directed relationship.

        Accepts ``from``/``to`` or ``from_entity_id``/``to_entity_id``.

        Raises:
            ValidationError: On missing fields or an unknown type.
            NotFoundError: If either endpoint does not exist.
        """
        from_id = data.get("from", data.get("from_entity_id"))
        to_id = data.get("to", data.get("to_entity_id"))
        rel_type = data.get("type")

        if not from_id or not to_id or not rel_type:
            raise ValidationError("Missing required fields: from, to, type")

        metadata = data.get("metadata")
        if metadata is None:
            metadata = {}
        elif not isinstance(metadata, dict):
            raise ValidationError("metadata must be an object")

        relation_type = parse_relation_type(rel_type)
        try:
            relationship = Relationship(
                from_entity_id=from_id,
                to_entity_id=to_id,
                type=relation_type,
                metadata=metadata,
            )
        except PydanticValidationError as e:
            raise ValidationError(f"Invalid relationship: {_first_error(e)}") from e
        stored = self.store.add_relationship(relationship)

        endpoints = self.store.get_entities([from_id, to_id])
        if from_id not in endpoints or to_id not in endpoints:
            # An endpoint was deleted between the write and this read
            missing = from_id if from_id not in endpoints else to_id
            raise NotFoundError(f"Entity not found: {missing}")

        logger.info("relationship_created", relationship_id=stored.id)
        return RelationshipCreated(
            relationship=stored,
            from_entity=endpoints[from_id],
            to_entity=endpoints[to_id],
        )

    def get_relationships(self, entity_id: str) -> EntityRelationships:
        """
        Relationships touching an entity, split by direction.

        An unknown id simply has no relationships.
        """
        return EntityRelationships(
            entity_id=entity_id,
            outgoing=self.store.get_entity_relationships(entity_id, direction="outgoing"),
            incoming=self.store.get_entity_relationships(entity_id, direction="incoming"),
        )

    def get_relationship(self, relationship_id: str) -> Relationship:
        rel = self.store.get_relationship(relationship_id)
        if rel is None:
            raise NotFoundError(f"Relationship not found: {relationship_id}")
        return rel

    def delete_relationship(self, relationship_id: str) -> DeleteRelationshipResult:
        """Delete a relationship by id."""
        rel = self.store.delete_relationship(relationship_id)

        logger.info("relationship_deleted", relationship_id=relationship_id)
        return DeleteRelationshipResult(
            relationship_id=rel.id,
            from_entity_id=rel.from_entity_id,
            to_entity_id=rel.to_entity_id,
        )

    # =========================================================================
    # Graph Queries
    # =========================================================================

    def related_entities(self, entity_id: str) -> list[Entity]:
        return self.query.related_entities(entity_id)

    def find_path(self, from_id: str, to_id: str, max_depth: int = 5) -> PathResult:
        return self.query.find_path(from_id, to_id, max_depth=max_depth)

    def get_cluster(self, entity_id: str) -> ClusterResult:
        return self.query.get_cluster(entity_id)

    def get_stats(self) -> GraphStats:
        return self.store.get_stats()
