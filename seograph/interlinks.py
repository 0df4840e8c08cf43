"""
Interlink Generation

Every relationship touching an entity becomes a link to the entity on
the other end, with anchor text chosen by relationship type.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from seograph.models import Entity, Interlink, InterlinkSet, RelationType

if TYPE_CHECKING:
    from seograph.graph.service import EntityGraph

logger = structlog.get_logger(__name__)

ANCHOR_TEMPLATES: dict[RelationType, str] = {
    RelationType.OFFERS: "Learn about {name}",
    RelationType.WORKS_FOR: "Meet our team at {name}",
    RelationType.LOCATED_AT: "Visit us at {name}",
    RelationType.AUTHOR: "Written by {name}",
    RelationType.ABOUT: "More about {name}",
}


def anchor_text(rel_type: RelationType, target: Entity) -> str:
    """Anchor text for a link to ``target``; the bare name when no template applies."""
    template = ANCHOR_TEMPLATES.get(rel_type, "{name}")
    return template.format(name=target.name)


def generate_interlinks(graph: EntityGraph, entity_id: str) -> InterlinkSet:
    """
    Links from an entity's page to every directly related entity.

    Relationships in both directions count. Relationships whose other
    end no longer resolves are skipped.

    Raises:
        NotFoundError: If the entity does not exist.
    """
    entity = graph.get_entity(entity_id)

    relationships = graph.store.get_entity_relationships(entity_id, direction="both")
    others = graph.store.get_entities([rel.other_end(entity_id) for rel in relationships])

    interlinks = []
    for rel in relationships:
        related = others.get(rel.other_end(entity_id))
        if related is None:
            continue
        interlinks.append(
            Interlink(
                url=related.url,
                title=related.name,
                relationship=rel.type,
                subdomain=related.subdomain,
                type=related.type,
                anchor_text=anchor_text(rel.type, related),
            )
        )

    logger.debug("interlinks_generated", entity_id=entity_id, count=len(interlinks))
    return InterlinkSet(entity_id=entity_id, entity_url=entity.url, interlinks=interlinks)
