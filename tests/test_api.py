"""Tests for the HTTP API."""

import pytest
from fastapi.testclient import TestClient

from seograph import __version__
from seograph.api import create_app
from seograph.config import GraphSettings


@pytest.fixture
def client(graph):
    return TestClient(create_app(graph=graph))


@pytest.fixture
def acme_client(acme_graph):
    return TestClient(create_app(graph=acme_graph))


@pytest.fixture
def coaching_client(coaching_graph):
    return TestClient(create_app(graph=coaching_graph))


class TestHealth:
    def test_health(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json() == {"ok": True, "version": __version__}

    def test_app_from_settings(self, temp_dir):
        settings = GraphSettings(backend="sqlite", db_path=str(temp_dir / "api.db"))
        client = TestClient(create_app(settings=settings))

        created = client.post("/v1/entities", json={"id": "o", "type": "Organization", "name": "O"})

        assert created.status_code == 201
        assert created.json()["entity"]["url"] == "https://www.example.com/o"
        assert (temp_dir / "api.db").exists()


class TestEntityEndpoints:
    """Entity CRUD over HTTP."""

    def test_create(self, client):
        response = client.post("/v1/entities", json={
            "id": "org1", "type": "Organization", "name": "Acme",
        })

        assert response.status_code == 201
        body = response.json()
        assert body["entity"]["id"] == "org1"
        assert body["entity"]["schema_properties"] == {}
        assert body["json_ld"]["@type"] == "Organization"

    def test_create_invalid_type(self, client):
        response = client.post("/v1/entities", json={"id": "x", "type": "Event", "name": "X"})

        assert response.status_code == 400
        assert response.json()["error"] == "ValidationError"
        assert "Event" in response.json()["detail"]

    def test_create_duplicate(self, acme_client):
        response = acme_client.post("/v1/entities", json={
            "id": "org1", "type": "Organization", "name": "Again",
        })

        assert response.status_code == 400
        assert response.json()["error"] == "DuplicateEntityError"

    def test_get_detail(self, acme_client):
        body = acme_client.get("/v1/entities/svc1").json()

        assert body["entity"]["name"] == "Consulting"
        assert [e["id"] for e in body["related_entities"]] == ["org1"]
        assert body["relationships"][0]["from_entity_id"] == "org1"

    def test_get_missing(self, client):
        response = client.get("/v1/entities/ghost")

        assert response.status_code == 404
        assert response.json() == {"error": "NotFoundError", "detail": "Entity not found: ghost"}

    def test_list(self, coaching_client):
        body = coaching_client.get("/v1/entities", params={"subdomain": "coaching"}).json()

        assert body["count"] == 1
        assert body["entities"][0]["id"] == "svc1"

    def test_list_bad_type(self, client):
        assert client.get("/v1/entities", params={"type": "Robot"}).status_code == 400

    def test_patch(self, acme_client):
        response = acme_client.patch("/v1/entities/org1", json={"description": "We consult"})

        assert response.status_code == 200
        assert response.json()["json_ld"]["description"] == "We consult"

    def test_patch_unknown_field(self, acme_client):
        response = acme_client.patch("/v1/entities/org1", json={"colour": "blue"})
        assert response.status_code == 400

    def test_delete_cascades(self, acme_client):
        response = acme_client.delete("/v1/entities/org1")

        assert response.status_code == 200
        assert response.json()["relationships_removed"] == 1

        rels = acme_client.get("/v1/entities/svc1/relationships").json()
        assert rels["incoming"] == []
        assert rels["total"] == 0

    def test_delete_missing(self, client):
        assert client.delete("/v1/entities/ghost").status_code == 404


class TestRelationshipEndpoints:
    """Relationship creation and deletion over HTTP."""

    def test_create(self, acme_client):
        acme_client.post("/v1/entities", json={"id": "per1", "type": "Person", "name": "Jane"})

        response = acme_client.post("/v1/relationships", json={
            "from": "per1", "to": "org1", "type": "worksFor",
        })

        assert response.status_code == 201
        body = response.json()
        assert body["relationship"]["id"] == "per1:worksFor:org1"
        assert body["to_entity"]["name"] == "Acme"

    def test_missing_endpoint(self, acme_client):
        response = acme_client.post("/v1/relationships", json={
            "from": "org1", "to": "ghost", "type": "offers",
        })
        assert response.status_code == 404

    def test_bad_type(self, acme_client):
        response = acme_client.post("/v1/relationships", json={
            "from": "org1", "to": "svc1", "type": "likes",
        })
        assert response.status_code == 400

    def test_non_string_endpoint(self, acme_client):
        response = acme_client.post("/v1/relationships", json={
            "from": 1, "to": "svc1", "type": "offers",
        })

        assert response.status_code == 400
        assert response.json()["error"] == "ValidationError"
        assert "Invalid relationship" in response.json()["detail"]

    def test_delete(self, acme_client):
        response = acme_client.delete("/v1/relationships/org1:offers:svc1")

        assert response.status_code == 200
        assert response.json()["deleted"] is True
        assert acme_client.delete("/v1/relationships/org1:offers:svc1").status_code == 404


class TestGraphEndpoints:
    """Paths, clusters, stats."""

    def test_path(self, acme_client):
        body = acme_client.post("/v1/graph/path", json={"from_id": "org1", "to_id": "svc1"}).json()

        assert body["found"] is True
        assert body["length"] == 1
        assert [e["id"] for e in body["path"]] == ["org1", "svc1"]

    def test_path_negative_depth(self, acme_client):
        response = acme_client.post("/v1/graph/path", json={
            "from_id": "org1", "to_id": "svc1", "max_depth": -1,
        })
        assert response.status_code == 400

    def test_cluster(self, coaching_client):
        body = coaching_client.get("/v1/entities/lonely/cluster").json()
        assert body["cluster_size"] == 1

    def test_stats(self, coaching_client):
        body = coaching_client.get("/v1/graph/stats").json()

        assert body["total_entities"] == 7
        assert body["entity_types"]["Service"] == 1


class TestSeoEndpoints:
    """Schema, interlinks and sitemaps."""

    def test_schema(self, acme_client):
        body = acme_client.get("/v1/entities/org1/schema").json()

        assert body["@type"] == "Organization"
        assert "offers" not in body

    def test_schema_with_relationships(self, acme_client):
        body = acme_client.get("/v1/entities/org1/schema", params={"relationships": "true"}).json()
        assert body["offers"][0]["name"] == "Consulting"

    def test_interlinks(self, acme_client):
        body = acme_client.get("/v1/entities/org1/interlinks").json()

        assert body["count"] == 1
        assert body["interlinks"][0]["anchor_text"] == "Learn about Consulting"

    def test_sitemap_json(self, coaching_client):
        body = coaching_client.get("/v1/sitemap", params={"subdomain": "team"}).json()

        assert body["subdomain"] == "team"
        assert body["count"] == 1

    def test_sitemap_xml(self, acme_client):
        response = acme_client.get("/v1/sitemap.xml")

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("application/xml")
        assert "<loc>https://www.acme.com/org1</loc>" in response.text


class TestSubdomainEndpoints:
    """Routing and cluster reporting."""

    def test_route(self, coaching_client):
        body = coaching_client.get("/v1/entities/per1/route").json()

        assert body["suggested_subdomain"] == "coaching"
        assert body["suggested_url"] == "https://coaching.acme.com/per1"

    def test_breadcrumbs(self, coaching_client):
        body = coaching_client.get("/v1/entities/per1/breadcrumbs").json()
        assert body["breadcrumbs"][1]["name"] == "Team Directory"

    def test_entity_cross_links(self, coaching_client):
        body = coaching_client.get("/v1/entities/svc1/cross-links").json()
        assert body["count"] == 4

    def test_report(self, coaching_client):
        body = coaching_client.get("/v1/subdomains/report").json()
        assert body["summary"]["active_clusters"] == 7

    def test_cluster_views(self, coaching_client):
        entities = coaching_client.get("/v1/subdomains/team/entities").json()
        health = coaching_client.get("/v1/subdomains/coaching/health").json()
        links = coaching_client.get("/v1/subdomains/coaching/cross-links").json()
        plan = coaching_client.get("/v1/subdomains/events/suggestions").json()

        assert entities["count"] == 1
        assert health["status"] == "active"
        assert links["total_cross_links"] == 4
        assert plan["improvement_score"] == 55

    def test_unknown_subdomain(self, coaching_client):
        response = coaching_client.get("/v1/subdomains/blog/health")

        assert response.status_code == 404
        assert response.json()["error"] == "NotFoundError"
