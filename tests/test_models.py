"""Tests for seograph data models."""

import pytest
from pydantic import ValidationError as PydanticValidationError

from seograph.models import (
    ClusterResult,
    Entity,
    EntityRelationships,
    EntityType,
    InterlinkSet,
    Relationship,
    RelationType,
    relationship_id,
)


class TestEnumerations:
    """Tests for the closed type sets."""

    def test_entity_types_are_schema_org_names(self):
        assert {t.value for t in EntityType} == {
            "Person", "Organization", "Service", "Location",
            "Product", "Article", "FAQPage", "HowTo",
        }

    def test_relation_types(self):
        assert {t.value for t in RelationType} == {
            "worksFor", "offers", "locatedAt", "about",
            "author", "mentions", "provides", "serves",
        }

    def test_unknown_entity_type_rejected(self):
        with pytest.raises(PydanticValidationError):
            Entity(id="x", type="Event", name="Launch")


class TestEntity:
    """Tests for the Entity model."""

    def test_defaults(self):
        entity = Entity(id="org1", type=EntityType.ORGANIZATION, name="Acme")

        assert entity.subdomain == "www"
        assert entity.metadata == {}
        assert entity.schema_properties == {}
        assert entity.description is None
        assert entity.created_at.tzinfo is not None

    def test_schema_properties_alias(self):
        entity = Entity.model_validate({
            "id": "org1",
            "type": "Organization",
            "name": "Acme",
            "schemaProperties": {"sameAs": ["https://x.com/acme"]},
        })

        assert entity.schema_properties == {"sameAs": ["https://x.com/acme"]}

    def test_dump_uses_snake_case(self):
        entity = Entity(id="org1", type=EntityType.ORGANIZATION, name="Acme")
        data = entity.model_dump(mode="json")

        assert "schema_properties" in data
        assert data["type"] == "Organization"


class TestRelationship:
    """Tests for the Relationship model."""

    def test_id_derived_from_triple(self):
        rel = Relationship(from_entity_id="org1", to_entity_id="svc1", type=RelationType.OFFERS)
        assert rel.id == "org1:offers:svc1"

    def test_supplied_id_is_ignored(self):
        rel = Relationship(id="custom", from_entity_id="a", to_entity_id="b", type="about")
        assert rel.id == "a:about:b"

    def test_from_to_aliases(self):
        rel = Relationship.model_validate({"from": "per1", "to": "org1", "type": "worksFor"})

        assert rel.from_entity_id == "per1"
        assert rel.to_entity_id == "org1"
        assert rel.type == RelationType.WORKS_FOR

    def test_relationship_id_helper(self):
        assert relationship_id("a", RelationType.MENTIONS, "b") == "a:mentions:b"
        assert relationship_id("a", "mentions", "b") == "a:mentions:b"

    def test_other_end_and_touches(self):
        rel = Relationship(from_entity_id="a", to_entity_id="b", type="offers")

        assert rel.other_end("a") == "b"
        assert rel.other_end("b") == "a"
        assert rel.touches("a") and rel.touches("b")
        assert not rel.touches("c")


class TestComputedFields:
    """Aggregates are serialized alongside their lists."""

    def test_relationship_total(self):
        rel = Relationship(from_entity_id="a", to_entity_id="b", type="offers")
        result = EntityRelationships(entity_id="a", outgoing=[rel], incoming=[])

        assert result.total == 1
        assert result.model_dump()["total"] == 1

    def test_cluster_size(self):
        entity = Entity(id="a", type="Person", name="A")
        result = ClusterResult(entity_id="a", entities=[entity])

        assert result.model_dump()["cluster_size"] == 1

    def test_interlink_count(self):
        result = InterlinkSet(entity_id="a", entity_url="https://www.acme.com/a")
        assert result.model_dump()["count"] == 0
