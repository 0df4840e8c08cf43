"""Pytest configuration and shared fixtures."""

import tempfile
from pathlib import Path

import pytest

from seograph.graph import EntityGraph, InMemoryEntityStore, SQLiteEntityStore


@pytest.fixture
def temp_dir():
    """Create a temporary directory for test files."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture(params=["memory", "sqlite"])
def store(request, temp_dir):
    """Each backend in turn; store-level behavior must match."""
    if request.param == "sqlite":
        return SQLiteEntityStore(temp_dir / "graph.db")
    return InMemoryEntityStore()


@pytest.fixture
def graph(store):
    """Empty graph over the parametrized store."""
    return EntityGraph(store, base_domain="acme.com")


@pytest.fixture
def acme_graph(graph):
    """Acme (org1) offering Consulting (svc1)."""
    graph.create_entity({"id": "org1", "type": "Organization", "name": "Acme"})
    graph.create_entity({"id": "svc1", "type": "Service", "name": "Consulting"})
    graph.create_relationship({"from": "org1", "to": "svc1", "type": "offers"})
    return graph


@pytest.fixture
def coaching_graph(graph):
    """
    A small multi-subdomain site.

        org1 (www) --offers--> svc1 (coaching) --locatedAt--> loc1 (locations)
        per1 (team) --worksFor--> org1
        per1 (team) --provides--> svc1
        art1 (resources) --author--> per1
        art1 (resources) --about--> svc1
        faq1 (help) --about--> svc1
        lonely (shop) has no relationships
    """
    entities = [
        {"id": "org1", "type": "Organization", "name": "Acme"},
        {"id": "svc1", "type": "Service", "name": "Leadership", "subdomain": "coaching",
         "metadata": {"price": 250, "provider": "Acme"}},
        {"id": "loc1", "type": "Location", "name": "Denver Office", "subdomain": "locations",
         "metadata": {"address": {"addressLocality": "Denver"}}},
        {"id": "per1", "type": "Person", "name": "Jane Doe", "subdomain": "team",
         "metadata": {"jobTitle": "Coach", "email": "jane@acme.com"}},
        {"id": "art1", "type": "Article", "name": "Leading Teams", "subdomain": "resources"},
        {"id": "faq1", "type": "FAQPage", "name": "Coaching FAQ", "subdomain": "help"},
        {"id": "lonely", "type": "Product", "name": "Workbook", "subdomain": "shop"},
    ]
    relationships = [
        ("org1", "svc1", "offers"),
        ("svc1", "loc1", "locatedAt"),
        ("per1", "org1", "worksFor"),
        ("per1", "svc1", "provides"),
        ("art1", "per1", "author"),
        ("art1", "svc1", "about"),
        ("faq1", "svc1", "about"),
    ]
    for data in entities:
        graph.create_entity(data)
    for source, target, rel_type in relationships:
        graph.create_relationship({"from": source, "to": target, "type": rel_type})
    return graph
