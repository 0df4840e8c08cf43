"""
Graph Query Engine - Neighbors, Shortest Paths and Clusters

Traversals treat relationships as undirected edges. Each call reads one
snapshot of the relationship set and builds an adjacency map from it,
so a concurrent writer cannot change the graph mid-traversal.
"""

from __future__ import annotations

from collections import deque

import structlog

from seograph.exceptions import NotFoundError, ValidationError
from seograph.graph.store import EntityStore
from seograph.models import ClusterResult, Entity, PathResult, Relationship

logger = structlog.get_logger(__name__)


def build_adjacency(relationships: list[Relationship]) -> dict[str, list[str]]:
    """Undirected adjacency lists, neighbors in relationship insertion order."""
    adjacency: dict[str, list[str]] = {}
    for rel in relationships:
        adjacency.setdefault(rel.from_entity_id, []).append(rel.to_entity_id)
        adjacency.setdefault(rel.to_entity_id, []).append(rel.from_entity_id)
    return adjacency


class GraphQueryEngine:
    """
    Read-only traversals over an entity store.

    Example:
        engine = GraphQueryEngine(store)
        result = engine.find_path("org1", "svc1")
        if result.found:
            print([e.name for e in result.path])
    """

    def __init__(self, store: EntityStore):
        self.store = store

    def _require_entity(self, entity_id: str) -> Entity:
        entity = self.store.get_entity(entity_id)
        if entity is None:
            raise NotFoundError(f"Entity not found: {entity_id}")
        return entity

    def related_entities(self, entity_id: str) -> list[Entity]:
        """
        Entities one hop away in either direction.

        Each neighbor appears once, in the order its first relationship
        was created. Relationships whose other end no longer resolves
        are skipped.
        """
        relationships = self.store.get_entity_relationships(entity_id, direction="both")
        neighbor_ids = list(dict.fromkeys(rel.other_end(entity_id) for rel in relationships))
        found = self.store.get_entities(neighbor_ids)
        return [found[nid] for nid in neighbor_ids if nid in found]

    def find_path(self, from_id: str, to_id: str, max_depth: int = 5) -> PathResult:
        """
        Shortest path between two entities.

        Breadth-first search over the undirected view of the graph, so the
        first path reaching ``to_id`` is a shortest one.

        Args:
            from_id: Start entity ID.
            to_id: Goal entity ID.
            max_depth: Maximum number of edges in the returned path.

        Returns:
            PathResult with the entities along the path, or
            ``found=False, length=-1`` when no path of at most
            ``max_depth`` edges exists.

        Raises:
            ValidationError: If max_depth is negative.
            NotFoundError: If either endpoint does not exist.
        """
        if max_depth < 0:
            raise ValidationError(f"max_depth must be >= 0, got {max_depth}")

        start = self._require_entity(from_id)
        self._require_entity(to_id)

        if from_id == to_id:
            return PathResult(found=True, path=[start], length=0)

        adjacency = build_adjacency(self.store.list_relationships())

        visited = {from_id}
        queue: deque[list[str]] = deque([[from_id]])
        path_ids: list[str] | None = None

        while queue and path_ids is None:
            path = queue.popleft()
            if len(path) - 1 >= max_depth:
                continue

            for neighbor in adjacency.get(path[-1], []):
                if neighbor in visited:
                    continue
                if neighbor == to_id:
                    path_ids = path + [neighbor]
                    break
                visited.add(neighbor)
                queue.append(path + [neighbor])

        if path_ids is None:
            logger.debug("path_not_found", source=from_id, target=to_id, max_depth=max_depth)
            return PathResult(found=False, path=[], length=-1)

        entities = self.store.get_entities(path_ids)
        if len(entities) != len(path_ids):
            # An entity on the path was deleted after the snapshot was taken
            missing = [pid for pid in path_ids if pid not in entities]
            raise NotFoundError(f"Entity not found: {missing[0]}")

        logger.debug("path_found", source=from_id, target=to_id, length=len(path_ids) - 1)
        return PathResult(
            found=True,
            path=[entities[pid] for pid in path_ids],
            length=len(path_ids) - 1,
        )

    def get_cluster(self, entity_id: str) -> ClusterResult:
        """
        Connected component containing an entity.

        No depth limit; the result always contains the entity itself first,
        followed by the rest of the component in breadth-first order.

        Raises:
            NotFoundError: If the entity does not exist.
        """
        self._require_entity(entity_id)

        adjacency = build_adjacency(self.store.list_relationships())

        visited = {entity_id}
        order = [entity_id]
        queue = deque([entity_id])
        while queue:
            current = queue.popleft()
            for neighbor in adjacency.get(current, []):
                if neighbor not in visited:
                    visited.add(neighbor)
                    order.append(neighbor)
                    queue.append(neighbor)

        entities = self.store.get_entities(order)
        members = [entities[eid] for eid in order if eid in entities]

        logger.debug("cluster_computed", entity_id=entity_id, cluster_size=len(members))
        return ClusterResult(entity_id=entity_id, entities=members)
