"""
Graph Module - Entity Storage, Traversal and Validation

Exports:
- EntityGraph: Validating service over a store
- GraphQueryEngine: Neighbors, shortest paths, clusters
- SQLiteEntityStore / InMemoryEntityStore: Interchangeable backends
"""

from seograph.graph.query import GraphQueryEngine
from seograph.graph.service import EntityGraph
from seograph.graph.store import EntityStore, InMemoryEntityStore, SQLiteEntityStore

__all__ = [
    "EntityGraph",
    "EntityStore",
    "GraphQueryEngine",
    "InMemoryEntityStore",
    "SQLiteEntityStore",
]
