"""
seograph - Entity Relationship Graph for Multi-Subdomain SEO

Keeps a graph of the people, organizations, services, locations and
content a site talks about, and derives search-facing artifacts from it:
- Schema.org JSON-LD for every entity, optionally with related entities nested
- Interlinks between related entity pages
- Entity sitemaps (JSON and XML)
- Subdomain routing, cross-cluster links, breadcrumbs and cluster health

Usage:
    from seograph import EntityGraph, InMemoryEntityStore

    graph = EntityGraph(InMemoryEntityStore(), base_domain="acme.com")
    graph.create_entity({"id": "org1", "type": "Organization", "name": "Acme"})
    graph.create_entity({"id": "svc1", "type": "Service", "name": "Consulting"})
    graph.create_relationship({"from": "org1", "to": "svc1", "type": "offers"})

    from seograph.schema_org import project_with_relationships
    project_with_relationships(graph, "org1")["offers"]

Configuration:
    SEOGRAPH_BACKEND       memory (default) or sqlite
    SEOGRAPH_DB_PATH       SQLite file (default ./data/seograph.db)
    SEOGRAPH_BASE_DOMAIN   Domain for default entity URLs (default example.com)
"""

__version__ = "0.1.0"

from seograph.exceptions import (
    DuplicateEntityError,
    NotFoundError,
    SeoGraphError,
    StoreError,
    ValidationError,
)
from seograph.graph import (
    EntityGraph,
    EntityStore,
    GraphQueryEngine,
    InMemoryEntityStore,
    SQLiteEntityStore,
)
from seograph.models import Entity, EntityType, Relationship, RelationType

__all__ = [
    "__version__",
    # Graph
    "EntityGraph",
    "EntityStore",
    "GraphQueryEngine",
    "InMemoryEntityStore",
    "SQLiteEntityStore",
    # Models
    "Entity",
    "EntityType",
    "Relationship",
    "RelationType",
    # Exceptions
    "SeoGraphError",
    "ValidationError",
    "DuplicateEntityError",
    "NotFoundError",
    "StoreError",
]
