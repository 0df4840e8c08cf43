"""Tests for Schema.org JSON-LD projection."""

import pytest

from seograph.exceptions import NotFoundError
from seograph.models import Entity, EntityType
from seograph.schema_org import (
    TYPE_PROJECTIONS,
    breadcrumb_list,
    project,
    project_with_relationships,
)


def entity(entity_type, **kwargs):
    kwargs.setdefault("id", "e1")
    kwargs.setdefault("name", "Example")
    kwargs.setdefault("url", f"https://www.acme.com/{kwargs['id']}")
    return Entity(type=entity_type, **kwargs)


class TestProject:
    """Single-entity projection."""

    def test_every_type_has_a_projection(self):
        assert set(TYPE_PROJECTIONS) == set(EntityType)

    def test_base_fields(self):
        json_ld = project(entity(EntityType.PRODUCT, description="A workbook"))

        assert json_ld == {
            "@context": "https://schema.org",
            "@type": "Product",
            "@id": "https://www.acme.com/e1",
            "name": "Example",
            "url": "https://www.acme.com/e1",
            "description": "A workbook",
        }

    def test_description_omitted_when_empty(self):
        assert "description" not in project(entity(EntityType.ARTICLE))

    @pytest.mark.parametrize("entity_type", list(EntityType))
    def test_type_and_name_round_trip(self, entity_type):
        json_ld = project(entity(entity_type, name="Round Trip"))

        assert json_ld["@type"] == entity_type.value
        assert json_ld["name"] == "Round Trip"

    def test_person(self):
        json_ld = project(entity(
            EntityType.PERSON,
            metadata={"jobTitle": "Coach", "email": "jane@acme.com", "shoeSize": 9},
        ))

        assert json_ld["jobTitle"] == "Coach"
        assert json_ld["email"] == "jane@acme.com"
        assert "shoeSize" not in json_ld

    def test_organization(self):
        json_ld = project(entity(
            EntityType.ORGANIZATION,
            metadata={"logo": "https://acme.com/logo.png", "address": "1 Main St"},
        ))

        assert json_ld["logo"] == "https://acme.com/logo.png"
        assert json_ld["address"] == "1 Main St"

    def test_service_offer_defaults_to_usd(self):
        json_ld = project(entity(EntityType.SERVICE, metadata={"price": 99, "provider": "Acme"}))

        assert json_ld["provider"] == "Acme"
        assert json_ld["offers"] == {"@type": "Offer", "price": 99, "priceCurrency": "USD"}

    def test_service_offer_currency(self):
        json_ld = project(entity(EntityType.SERVICE, metadata={"price": 80, "currency": "EUR"}))
        assert json_ld["offers"]["priceCurrency"] == "EUR"

    def test_service_without_price(self):
        assert "offers" not in project(entity(EntityType.SERVICE))

    def test_location(self):
        json_ld = project(entity(
            EntityType.LOCATION,
            metadata={
                "address": {"streetAddress": "1 Main St", "addressLocality": "Denver"},
                "geo": {"latitude": 39.7, "longitude": -104.9},
            },
        ))

        assert json_ld["address"] == {
            "@type": "PostalAddress",
            "streetAddress": "1 Main St",
            "addressLocality": "Denver",
        }
        assert json_ld["geo"] == {"latitude": 39.7, "longitude": -104.9}

    def test_faq_page(self):
        json_ld = project(entity(
            EntityType.FAQ,
            metadata={"questions": [
                {"question": "How long is a session?", "answer": "One hour."},
                {"question": "Is it online?", "answer": "Yes."},
                {"answer": "orphan answer"},
            ]},
        ))

        assert json_ld["mainEntity"] == [
            {
                "@type": "Question",
                "name": "How long is a session?",
                "acceptedAnswer": {"@type": "Answer", "text": "One hour."},
            },
            {
                "@type": "Question",
                "name": "Is it online?",
                "acceptedAnswer": {"@type": "Answer", "text": "Yes."},
            },
        ]

    @pytest.mark.parametrize("metadata", [{}, {"questions": []}, {"questions": "none"}])
    def test_faq_page_without_questions(self, metadata):
        assert "mainEntity" not in project(entity(EntityType.FAQ, metadata=metadata))

    def test_how_to(self):
        json_ld = project(entity(
            EntityType.HOW_TO,
            metadata={
                "totalTime": "PT45M",
                "estimatedCost": 20,
                "tools": ["Notebook"],
                "supplies": ["Pen"],
                "steps": [
                    {"name": "Reflect", "text": "Write down your goals."},
                    "not a step",
                    {"name": "Plan", "url": "https://resources.acme.com/plan"},
                ],
            },
        ))

        assert json_ld["totalTime"] == "PT45M"
        assert json_ld["estimatedCost"] == {"@type": "MonetaryAmount", "currency": "USD", "value": 20}
        assert json_ld["tool"] == [{"@type": "HowToTool", "name": "Notebook"}]
        assert json_ld["supply"] == [{"@type": "HowToSupply", "name": "Pen"}]
        assert json_ld["step"] == [
            {"@type": "HowToStep", "position": 1, "name": "Reflect", "text": "Write down your goals."},
            {"@type": "HowToStep", "position": 2, "name": "Plan", "url": "https://resources.acme.com/plan"},
        ]

    def test_how_to_without_steps(self):
        json_ld = project(entity(EntityType.HOW_TO))

        assert "step" not in json_ld
        assert "tool" not in json_ld

    def test_schema_properties_override(self):
        json_ld = project(entity(
            EntityType.ORGANIZATION,
            metadata={"logo": "old.png"},
            schema_properties={"@type": "LocalBusiness", "logo": "new.png", "sameAs": ["x"]},
        ))

        assert json_ld["@type"] == "LocalBusiness"
        assert json_ld["logo"] == "new.png"
        assert json_ld["sameAs"] == ["x"]
        assert json_ld["name"] == "Example"


class TestProjectWithRelationships:
    """Nesting of outgoing relationships."""

    def test_acme_offers(self, acme_graph):
        json_ld = project_with_relationships(acme_graph, "org1")

        svc = acme_graph.get_entity("svc1")
        assert json_ld["offers"] == [project(svc)]
        assert json_ld["offers"][0]["name"] == "Consulting"

    def test_single_valued_keys(self, coaching_graph):
        person = project_with_relationships(coaching_graph, "per1")
        article = project_with_relationships(coaching_graph, "art1")
        service = project_with_relationships(coaching_graph, "svc1")

        assert person["worksFor"]["name"] == "Acme"
        assert article["author"]["name"] == "Jane Doe"
        assert service["location"]["name"] == "Denver Office"

    def test_unmapped_types_ignored(self, coaching_graph):
        person = project_with_relationships(coaching_graph, "per1")
        article = project_with_relationships(coaching_graph, "art1")

        # provides / about have no JSON-LD key
        assert "provides" not in person
        assert "about" not in article

    def test_incoming_not_nested(self, acme_graph):
        json_ld = project_with_relationships(acme_graph, "svc1")
        assert json_ld == project(acme_graph.get_entity("svc1"))

    def test_multiple_mentions(self, graph):
        for eid in ("post", "x", "y"):
            graph.create_entity({"id": eid, "type": "Article", "name": eid})
        graph.create_relationship({"from": "post", "to": "x", "type": "mentions"})
        graph.create_relationship({"from": "post", "to": "y", "type": "mentions"})

        json_ld = project_with_relationships(graph, "post")
        assert [m["name"] for m in json_ld["mentions"]] == ["x", "y"]

    def test_computed_offer_wrapped_into_list(self, graph):
        graph.create_entity({
            "id": "svc", "type": "Service", "name": "Bundle", "metadata": {"price": 10},
        })
        graph.create_entity({"id": "addon", "type": "Service", "name": "Add-on"})
        graph.create_relationship({"from": "svc", "to": "addon", "type": "offers"})

        offers = project_with_relationships(graph, "svc")["offers"]

        assert offers[0]["@type"] == "Offer"
        assert offers[1]["name"] == "Add-on"

    def test_cycle_does_not_recurse(self, graph):
        graph.create_entity({"id": "a", "type": "Article", "name": "A"})
        graph.create_entity({"id": "b", "type": "Article", "name": "B"})
        graph.create_relationship({"from": "a", "to": "b", "type": "mentions"})
        graph.create_relationship({"from": "b", "to": "a", "type": "mentions"})

        json_ld = project_with_relationships(graph, "a")

        assert json_ld["mentions"][0]["name"] == "B"
        assert "mentions" not in json_ld["mentions"][0]

    def test_missing_entity(self, graph):
        with pytest.raises(NotFoundError):
            project_with_relationships(graph, "ghost")


class TestBreadcrumbList:
    """BreadcrumbList JSON-LD."""

    def test_positions_start_at_one(self):
        json_ld = breadcrumb_list([
            {"name": "Home", "url": "https://www.acme.com"},
            {"name": "Team", "url": "https://team.acme.com"},
        ])

        assert json_ld["@type"] == "BreadcrumbList"
        items = json_ld["itemListElement"]
        assert [i["position"] for i in items] == [1, 2]
        assert items[1] == {
            "@type": "ListItem",
            "position": 2,
            "name": "Team",
            "item": "https://team.acme.com",
        }
