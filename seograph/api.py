"""
HTTP API

Thin FastAPI layer over EntityGraph. Handlers delegate to the service and
serialize results with snake_case field names; seograph exceptions are
mapped to JSON error bodies:

    ValidationError -> 400
    NotFoundError   -> 404
    StoreError      -> 500

Usage:
    from seograph.api import create_app

    app = create_app()                         # settings from environment
    app = create_app(graph=EntityGraph(store))  # injected graph (tests)
"""

from __future__ import annotations

from typing import Any

import structlog
from fastapi import APIRouter, Body, FastAPI, Request
from fastapi.responses import JSONResponse, Response
from pydantic import BaseModel

from seograph import __version__, routing, schema_org
from seograph.config import GraphSettings, build_store
from seograph.exceptions import NotFoundError, SeoGraphError, StoreError, ValidationError
from seograph.graph.service import EntityGraph
from seograph.interlinks import generate_interlinks
from seograph.sitemap import generate_entity_sitemap, render_sitemap_xml

logger = structlog.get_logger(__name__)


class PathIn(BaseModel):
    from_id: str
    to_id: str
    max_depth: int = 5


def _dump(model: BaseModel) -> dict[str, Any]:
    return model.model_dump(mode="json")


def _dump_all(models: list[Any]) -> list[dict[str, Any]]:
    return [m.model_dump(mode="json") for m in models]


def build_router(graph: EntityGraph) -> APIRouter:
    r = APIRouter(prefix="/v1")

    # ---------------------------------------------------------------- entities

    @r.post("/entities", status_code=201, tags=["entities"])
    def create_entity(payload: dict[str, Any] = Body(...)):
        return _dump(graph.create_entity(payload))

    @r.get("/entities", tags=["entities"])
    def list_entities(
        type: str | None = None,
        subdomain: str | None = None,
        limit: int = 100,
    ):
        entities = graph.list_entities(entity_type=type, subdomain=subdomain, limit=limit)
        return {"entities": _dump_all(entities), "count": len(entities)}

    @r.get("/entities/{entity_id}", tags=["entities"])
    def get_entity(entity_id: str):
        return _dump(graph.describe_entity(entity_id))

    @r.patch("/entities/{entity_id}", tags=["entities"])
    def update_entity(entity_id: str, payload: dict[str, Any] = Body(...)):
        return _dump(graph.update_entity(entity_id, payload))

    @r.delete("/entities/{entity_id}", tags=["entities"])
    def delete_entity(entity_id: str):
        return _dump(graph.delete_entity(entity_id))

    @r.get("/entities/{entity_id}/relationships", tags=["entities"])
    def entity_relationships(entity_id: str):
        return _dump(graph.get_relationships(entity_id))

    @r.get("/entities/{entity_id}/schema", tags=["seo"])
    def entity_schema(entity_id: str, relationships: bool = False):
        if relationships:
            return schema_org.project_with_relationships(graph, entity_id)
        return schema_org.project(graph.get_entity(entity_id))

    @r.get("/entities/{entity_id}/interlinks", tags=["seo"])
    def entity_interlinks(entity_id: str):
        return _dump(generate_interlinks(graph, entity_id))

    @r.get("/entities/{entity_id}/cluster", tags=["graph"])
    def entity_cluster(entity_id: str):
        return _dump(graph.get_cluster(entity_id))

    @r.get("/entities/{entity_id}/route", tags=["subdomains"])
    def entity_route(entity_id: str):
        return _dump(routing.route_entity(graph.get_entity(entity_id), graph.base_domain))

    @r.get("/entities/{entity_id}/breadcrumbs", tags=["subdomains"])
    def entity_breadcrumbs(entity_id: str):
        return _dump(routing.generate_breadcrumbs(graph, entity_id, graph.base_domain))

    @r.get("/entities/{entity_id}/cross-links", tags=["subdomains"])
    def entity_cross_links(entity_id: str):
        return _dump(routing.generate_cross_cluster_links(graph, entity_id))

    # ----------------------------------------------------------- relationships

    @r.post("/relationships", status_code=201, tags=["relationships"])
    def create_relationship(payload: dict[str, Any] = Body(...)):
        return _dump(graph.create_relationship(payload))

    @r.delete("/relationships/{relationship_id}", tags=["relationships"])
    def delete_relationship(relationship_id: str):
        return _dump(graph.delete_relationship(relationship_id))

    # ------------------------------------------------------------------- graph

    @r.post("/graph/path", tags=["graph"])
    def find_path(payload: PathIn):
        return _dump(graph.find_path(payload.from_id, payload.to_id, max_depth=payload.max_depth))

    @r.get("/graph/stats", tags=["graph"])
    def graph_stats():
        return _dump(graph.get_stats())

    # ----------------------------------------------------------------- sitemap

    @r.get("/sitemap", tags=["seo"])
    def sitemap(subdomain: str | None = None):
        return _dump(generate_entity_sitemap(graph, subdomain))

    @r.get("/sitemap.xml", tags=["seo"])
    def sitemap_xml(subdomain: str | None = None):
        xml = render_sitemap_xml(generate_entity_sitemap(graph, subdomain))
        return Response(content=xml, media_type="application/xml")

    # -------------------------------------------------------------- subdomains

    @r.get("/subdomains/report", tags=["subdomains"])
    def cluster_report():
        return _dump(routing.generate_cluster_report(graph))

    @r.get("/subdomains/{subdomain}/entities", tags=["subdomains"])
    def cluster_entities(subdomain: str):
        return _dump(routing.get_cluster_entities(graph, subdomain))

    @r.get("/subdomains/{subdomain}/health", tags=["subdomains"])
    def subdomain_health(subdomain: str):
        return _dump(routing.get_subdomain_health(graph, subdomain))

    @r.get("/subdomains/{subdomain}/cross-links", tags=["subdomains"])
    def subdomain_cross_links(subdomain: str):
        return _dump(routing.get_subdomain_cross_links(graph, subdomain))

    @r.get("/subdomains/{subdomain}/suggestions", tags=["subdomains"])
    def subdomain_suggestions(subdomain: str):
        return _dump(routing.suggest_improvements(graph, subdomain))

    return r


ERROR_STATUS: list[tuple[type[SeoGraphError], int]] = [
    (ValidationError, 400),
    (NotFoundError, 404),
    (StoreError, 500),
]


def _error_response(exc: SeoGraphError) -> JSONResponse:
    status = next((code for cls, code in ERROR_STATUS if isinstance(exc, cls)), 500)
    return JSONResponse(
        status_code=status,
        content={"error": type(exc).__name__, "detail": str(exc)},
    )


def create_app(
    graph: EntityGraph | None = None,
    settings: GraphSettings | None = None,
) -> FastAPI:
    if graph is None:
        settings = settings or GraphSettings.from_env()
        graph = EntityGraph(
            build_store(settings),
            base_domain=settings.base_domain,
            default_subdomain=settings.default_subdomain,
        )

    app = FastAPI(title="seograph - Entity Graph Service", version=__version__)
    app.state.graph = graph

    @app.exception_handler(SeoGraphError)
    async def handle_graph_error(request: Request, exc: SeoGraphError):
        response = _error_response(exc)
        log = logger.error if response.status_code >= 500 else logger.info
        log(
            "request_failed",
            path=request.url.path,
            status=response.status_code,
            error=type(exc).__name__,
            detail=str(exc),
        )
        return response

    @app.get("/health")
    def health():
        return {"ok": True, "version": __version__}

    app.include_router(build_router(graph))
    return app
