"""
seograph Data Models

Pydantic models for entities, relationships, and the results of graph
queries, Schema.org projection and sitemap generation.

JSON field names are snake_case everywhere. Input aliases are accepted
for the dashboard's camelCase payloads (``schemaProperties``) and for
relationship endpoints (``from`` / ``to``).
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, computed_field, model_validator


def utcnow() -> datetime:
    """Timezone-aware current time, used for all timestamps."""
    return datetime.now(timezone.utc)


# =============================================================================
# Enumerations
# =============================================================================


class EntityType(str, Enum):
    """
    Closed set of entity types.

    Values are the Schema.org type names so they can be used verbatim
    as ``@type`` in JSON-LD output.
    """

    PERSON = "Person"
    ORGANIZATION = "Organization"
    SERVICE = "Service"
    LOCATION = "Location"
    PRODUCT = "Product"
    ARTICLE = "Article"
    FAQ = "FAQPage"
    HOW_TO = "HowTo"


class RelationType(str, Enum):
    """Closed set of directed relationship types."""

    WORKS_FOR = "worksFor"      # Person X works for Organization Y
    OFFERS = "offers"           # Organization X offers Service Y
    LOCATED_AT = "locatedAt"    # X is located at Location Y
    ABOUT = "about"             # Article X is about Y
    AUTHOR = "author"           # Article X is authored by Person Y
    MENTIONS = "mentions"       # Content X mentions Y
    PROVIDES = "provides"       # X provides Service Y
    SERVES = "serves"           # X serves Location/audience Y


def relationship_id(from_entity_id: str, rel_type: RelationType | str, to_entity_id: str) -> str:
    """Deterministic relationship id: ``{from}:{type}:{to}``."""
    type_value = rel_type.value if isinstance(rel_type, RelationType) else rel_type
    return f"{from_entity_id}:{type_value}:{to_entity_id}"


# =============================================================================
# Entity Model
# =============================================================================


class Entity(BaseModel):
    """
    A named, typed node in the relationship graph.

    ``metadata`` carries type-specific fields (``jobTitle`` for a Person,
    ``address``/``geo`` for a Location, ...). ``schema_properties`` is
    merged verbatim into the generated JSON-LD and overrides computed keys.
    """

    model_config = ConfigDict(populate_by_name=True)

    id: str
    type: EntityType
    name: str
    description: str | None = None
    url: str = ""
    subdomain: str = "www"
    metadata: dict[str, Any] = Field(default_factory=dict)
    schema_properties: dict[str, Any] = Field(
        default_factory=dict, alias="schemaProperties"
    )

    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


# =============================================================================
# Relationship Model
# =============================================================================


class Relationship(BaseModel):
    """
    A directed, typed edge between two entities.

    The id is always derived from the defining triple, so creating the
    same relationship twice addresses the same record.
    """

    model_config = ConfigDict(populate_by_name=True)

    id: str = ""
    from_entity_id: str = Field(alias="from")
    to_entity_id: str = Field(alias="to")
    type: RelationType
    metadata: dict[str, Any] = Field(default_factory=dict)
    created_at: datetime = Field(default_factory=utcnow)

    @model_validator(mode="after")
    def _derive_id(self) -> Relationship:
        self.id = relationship_id(self.from_entity_id, self.type, self.to_entity_id)
        return self

    def other_end(self, entity_id: str) -> str:
        """Return the endpoint opposite ``entity_id``."""
        return self.to_entity_id if self.from_entity_id == entity_id else self.from_entity_id

    def touches(self, entity_id: str) -> bool:
        return self.from_entity_id == entity_id or self.to_entity_id == entity_id


# =============================================================================
# Operation Results
# =============================================================================


class EntityWithSchema(BaseModel):
    """An entity together with its JSON-LD projection."""

    entity: Entity
    json_ld: dict[str, Any]


class EntityDetail(BaseModel):
    """Entity plus everything one hop away from it."""

    entity: Entity
    relationships: list[Relationship] = Field(default_factory=list)
    related_entities: list[Entity] = Field(default_factory=list)
    json_ld: dict[str, Any] = Field(default_factory=dict)


class DeleteEntityResult(BaseModel):
    deleted: bool = True
    entity_id: str
    relationships_removed: int = 0


class RelationshipCreated(BaseModel):
    relationship: Relationship
    from_entity: Entity
    to_entity: Entity


class EntityRelationships(BaseModel):
    """Relationships touching an entity, partitioned by direction."""

    entity_id: str
    outgoing: list[Relationship] = Field(default_factory=list)
    incoming: list[Relationship] = Field(default_factory=list)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def total(self) -> int:
        return len(self.outgoing) + len(self.incoming)


class DeleteRelationshipResult(BaseModel):
    deleted: bool = True
    relationship_id: str
    from_entity_id: str
    to_entity_id: str


class PathResult(BaseModel):
    """Result of a shortest-path search. ``length`` counts edges."""

    found: bool
    path: list[Entity] = Field(default_factory=list)
    length: int = -1


class ClusterResult(BaseModel):
    """Connected component containing ``entity_id``."""

    entity_id: str
    entities: list[Entity] = Field(default_factory=list)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def cluster_size(self) -> int:
        return len(self.entities)


class GraphStats(BaseModel):
    total_entities: int = 0
    total_relationships: int = 0
    entity_types: dict[str, int] = Field(default_factory=dict)
    subdomains: dict[str, int] = Field(default_factory=dict)
    avg_relationships_per_entity: float = 0.0


# =============================================================================
# Interlinks & Sitemap
# =============================================================================


class Interlink(BaseModel):
    """A link from one entity page to a related entity page."""

    url: str
    title: str
    relationship: RelationType
    subdomain: str
    type: EntityType
    anchor_text: str


class InterlinkSet(BaseModel):
    entity_id: str
    entity_url: str
    interlinks: list[Interlink] = Field(default_factory=list)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def count(self) -> int:
        return len(self.interlinks)


class SitemapEntry(BaseModel):
    """One ``<url>`` element of an XML sitemap."""

    loc: str
    lastmod: datetime
    changefreq: str = "weekly"
    priority: float = 0.5


class Sitemap(BaseModel):
    subdomain: str = "all"
    entries: list[SitemapEntry] = Field(default_factory=list)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def count(self) -> int:
        return len(self.entries)
