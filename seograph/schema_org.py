"""
Schema.org JSON-LD Projection

Turns entities into structured data for search engines. Type-specific
fields are picked by a lookup table keyed by EntityType; relationship
nesting is driven by a second table keyed by RelationType.

Usage:
    from seograph.schema_org import project, project_with_relationships

    json_ld = project(entity)
    nested = project_with_relationships(graph, "org1")
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Callable

from seograph.models import Entity, EntityType, RelationType

if TYPE_CHECKING:
    from seograph.graph.service import EntityGraph

SCHEMA_CONTEXT = "https://schema.org"

JsonLd = dict[str, Any]


# =============================================================================
# Per-Type Projections
# =============================================================================


def _copy_fields(metadata: dict[str, Any], *fields: str) -> JsonLd:
    return {f: metadata[f] for f in fields if metadata.get(f) is not None}


def _person(entity: Entity) -> JsonLd:
    return _copy_fields(entity.metadata, "jobTitle", "email")


def _organization(entity: Entity) -> JsonLd:
    return _copy_fields(entity.metadata, "logo", "address")


def _service(entity: Entity) -> JsonLd:
    meta = entity.metadata
    fields = _copy_fields(meta, "provider")
    if meta.get("price") is not None:
        fields["offers"] = {
            "@type": "Offer",
            "price": meta["price"],
            "priceCurrency": meta.get("currency") or "USD",
        }
    return fields


def _location(entity: Entity) -> JsonLd:
    meta = entity.metadata
    fields: JsonLd = {}
    address = meta.get("address")
    if isinstance(address, dict):
        fields["address"] = {"@type": "PostalAddress", **address}
    elif address:
        fields["address"] = {"@type": "PostalAddress", "streetAddress": address}
    if meta.get("geo") is not None:
        fields["geo"] = meta["geo"]
    return fields


def _faq_page(entity: Entity) -> JsonLd:
    """``metadata["questions"]``: ``[{"question": ..., "answer": ...}, ...]``."""
    questions = entity.metadata.get("questions")
    if not isinstance(questions, list):
        return {}

    main_entity = [
        {
            "@type": "Question",
            "name": q["question"],
            "acceptedAnswer": {"@type": "Answer", "text": q.get("answer", "")},
        }
        for q in questions
        if isinstance(q, dict) and q.get("question")
    ]
    return {"mainEntity": main_entity} if main_entity else {}


def _how_to(entity: Entity) -> JsonLd:
    """
    ``metadata["steps"]`` become positioned HowToStep items; ``tools``
    and ``supplies`` are plain name lists.
    """
    meta = entity.metadata
    fields = _copy_fields(meta, "totalTime", "image")
    if meta.get("estimatedCost") is not None:
        fields["estimatedCost"] = {
            "@type": "MonetaryAmount",
            "currency": meta.get("currency") or "USD",
            "value": meta["estimatedCost"],
        }

    for key, schema_key, schema_type in (
        ("tools", "tool", "HowToTool"),
        ("supplies", "supply", "HowToSupply"),
    ):
        names = meta.get(key)
        if isinstance(names, list) and names:
            fields[schema_key] = [{"@type": schema_type, "name": name} for name in names]

    steps = meta.get("steps")
    if isinstance(steps, list):
        step_items = []
        for step in steps:
            if not isinstance(step, dict):
                continue
            item = {"@type": "HowToStep", "position": len(step_items) + 1}
            item.update(_copy_fields(step, "name", "text", "image", "url"))
            step_items.append(item)
        if step_items:
            fields["step"] = step_items
    return fields


def _no_extra_fields(entity: Entity) -> JsonLd:
    return {}


TYPE_PROJECTIONS: dict[EntityType, Callable[[Entity], JsonLd]] = {
    EntityType.PERSON: _person,
    EntityType.ORGANIZATION: _organization,
    EntityType.SERVICE: _service,
    EntityType.LOCATION: _location,
    EntityType.PRODUCT: _no_extra_fields,
    EntityType.ARTICLE: _no_extra_fields,
    EntityType.FAQ: _faq_page,
    EntityType.HOW_TO: _how_to,
}

# Outgoing relationship type -> (JSON-LD key, collect into a list)
RELATIONSHIP_KEYS: dict[RelationType, tuple[str, bool]] = {
    RelationType.WORKS_FOR: ("worksFor", False),
    RelationType.OFFERS: ("offers", True),
    RelationType.LOCATED_AT: ("location", False),
    RelationType.AUTHOR: ("author", False),
    RelationType.MENTIONS: ("mentions", True),
}


# =============================================================================
# Public API
# =============================================================================


def project(entity: Entity) -> JsonLd:
    """
    JSON-LD for a single entity.

    ``schema_properties`` are merged last, so they override both the
    base keys and the per-type fields.
    """
    json_ld: JsonLd = {
        "@context": SCHEMA_CONTEXT,
        "@type": entity.type.value,
        "@id": entity.url,
        "name": entity.name,
        "url": entity.url,
    }
    if entity.description:
        json_ld["description"] = entity.description

    json_ld.update(TYPE_PROJECTIONS[entity.type](entity))
    json_ld.update(entity.schema_properties)
    return json_ld


def project_with_relationships(graph: EntityGraph, entity_id: str) -> JsonLd:
    """
    JSON-LD for an entity with its outgoing relationships nested.

    Targets are embedded with their plain projection and never expanded
    further. Relationship types without a JSON-LD key are skipped.

    Raises:
        NotFoundError: If the entity does not exist.
    """
    entity = graph.get_entity(entity_id)
    json_ld = project(entity)

    outgoing = graph.store.get_entity_relationships(entity_id, direction="outgoing")
    targets = graph.store.get_entities([rel.to_entity_id for rel in outgoing])

    for rel in outgoing:
        mapping = RELATIONSHIP_KEYS.get(rel.type)
        target = targets.get(rel.to_entity_id)
        if mapping is None or target is None:
            continue

        key, is_list = mapping
        nested = project(target)
        if not is_list:
            json_ld[key] = nested
            continue

        existing = json_ld.get(key)
        if existing is None:
            json_ld[key] = [nested]
        elif isinstance(existing, list):
            json_ld[key] = [*existing, nested]
        else:
            json_ld[key] = [existing, nested]

    return json_ld


def breadcrumb_list(crumbs: list[dict[str, str]]) -> JsonLd:
    """
    BreadcrumbList JSON-LD from ``[{"name": ..., "url": ...}, ...]``.

    Positions start at 1.
    """
    return {
        "@context": SCHEMA_CONTEXT,
        "@type": "BreadcrumbList",
        "itemListElement": [
            {
                "@type": "ListItem",
                "position": position,
                "name": crumb["name"],
                "item": crumb["url"],
            }
            for position, crumb in enumerate(crumbs, start=1)
        ],
    }
