"""
seograph CLI - Command Line Interface

Usage:
    python -m seograph serve
    python -m seograph load graph.json
    python -m seograph stats
    python -m seograph path org1 svc1 --max-depth 3
    python -m seograph --data graph.json sitemap --subdomain coaching --xml

The backend comes from SEOGRAPH_BACKEND (memory by default). With the
memory backend, pass --data to preload a graph document for one command.

Graph documents are JSON of the form:
    {"entities": [{...}, ...], "relationships": [{"from": ..., "to": ..., "type": ...}, ...]}
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

import structlog
from rich.console import Console
from rich.table import Table

from seograph.config import GraphSettings, build_store
from seograph.exceptions import NotFoundError, SeoGraphError, ValidationError
from seograph.graph.service import EntityGraph
from seograph.sitemap import generate_entity_sitemap, render_sitemap_xml

logger = structlog.get_logger(__name__)


def configure_logging(level: str) -> None:
    structlog.configure(
        processors=[
            structlog.stdlib.add_log_level,
            structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            logging.getLevelName(level.upper())
        ),
    )


def build_graph(settings: GraphSettings) -> EntityGraph:
    return EntityGraph(
        build_store(settings),
        base_domain=settings.base_domain,
        default_subdomain=settings.default_subdomain,
    )


def load_document(graph: EntityGraph, path: Path) -> dict[str, int]:
    """
    Load entities then relationships from a JSON graph document.

    Returns:
        Counts of created entities and relationships.

    Raises:
        NotFoundError: If the file does not exist.
        ValidationError: If the file is unreadable or not a graph document.
    """
    if not path.is_file():
        raise NotFoundError(f"File not found: {path}")

    try:
        with open(path, encoding="utf-8") as f:
            document = json.load(f)
    except json.JSONDecodeError as e:
        raise ValidationError(f"Invalid JSON in {path}: {e}") from e
    except (OSError, UnicodeDecodeError) as e:
        raise ValidationError(f"Cannot read {path}: {e}") from e

    if not isinstance(document, dict):
        raise ValidationError(f"Graph document must be a JSON object: {path}")

    entities = document.get("entities", [])
    relationships = document.get("relationships", [])
    for key, items in (("entities", entities), ("relationships", relationships)):
        if not isinstance(items, list) or not all(isinstance(item, dict) for item in items):
            raise ValidationError(f"'{key}' must be a list of objects: {path}")

    for data in entities:
        graph.create_entity(data)
    for data in relationships:
        graph.create_relationship(data)

    logger.info(
        "graph_document_loaded",
        path=str(path),
        entities=len(entities),
        relationships=len(relationships),
    )
    return {"entities": len(entities), "relationships": len(relationships)}


def cmd_serve(args, settings: GraphSettings, graph: EntityGraph):
    """Run the HTTP API."""
    import uvicorn

    from seograph.api import create_app

    host = args.host or settings.host
    port = args.port or settings.port
    print(f"Serving seograph on http://{host}:{port} ({settings.backend} backend)")
    config = uvicorn.Config(
        create_app(graph=graph),
        host=host,
        port=port,
        log_level=settings.log_level.lower(),
    )
    uvicorn.Server(config).run()


def cmd_load(args, settings: GraphSettings, graph: EntityGraph):
    """Bulk-load a graph document into the configured store."""
    counts = load_document(graph, Path(args.file))
    print(f"✓ Loaded {counts['entities']} entities and {counts['relationships']} relationships")
    if settings.backend == "memory":
        print("  (memory backend: data is discarded on exit)")


def cmd_stats(args, settings: GraphSettings, graph: EntityGraph):
    """Print graph statistics."""
    stats = graph.get_stats()
    console = Console()

    summary = Table(title="Entity Graph")
    summary.add_column("Metric", style="cyan")
    summary.add_column("Value", justify="right")
    summary.add_row("Entities", str(stats.total_entities))
    summary.add_row("Relationships", str(stats.total_relationships))
    summary.add_row("Avg relationships / entity", f"{stats.avg_relationships_per_entity:.2f}")
    console.print(summary)

    for title, counts in (("Entity Types", stats.entity_types), ("Subdomains", stats.subdomains)):
        if not counts:
            continue
        table = Table(title=title)
        table.add_column("Name", style="cyan")
        table.add_column("Count", justify="right")
        for name, count in sorted(counts.items(), key=lambda kv: (-kv[1], kv[0])):
            table.add_row(name, str(count))
        console.print(table)


def cmd_path(args, settings: GraphSettings, graph: EntityGraph):
    """Shortest path between two entities."""
    result = graph.find_path(args.source, args.target, max_depth=args.max_depth)
    if not result.found:
        print(f"No path from {args.source} to {args.target} within {args.max_depth} hops")
        return
    print(f"Path length: {result.length}")
    print("  " + " -> ".join(f"{e.name} ({e.id})" for e in result.path))


def cmd_cluster(args, settings: GraphSettings, graph: EntityGraph):
    """Connected cluster around an entity."""
    result = graph.get_cluster(args.entity_id)
    print(f"Cluster of {args.entity_id}: {result.cluster_size} entities")
    for entity in result.entities:
        print(f"  - {entity.id}  [{entity.type.value}] {entity.name}")


def cmd_sitemap(args, settings: GraphSettings, graph: EntityGraph):
    """Print the entity sitemap."""
    sitemap = generate_entity_sitemap(graph, args.subdomain)
    if args.xml:
        sys.stdout.write(render_sitemap_xml(sitemap))
    else:
        print(json.dumps(sitemap.model_dump(mode="json"), indent=2))


COMMANDS = {
    "serve": cmd_serve,
    "load": cmd_load,
    "stats": cmd_stats,
    "path": cmd_path,
    "cluster": cmd_cluster,
    "sitemap": cmd_sitemap,
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="seograph - Entity relationship graph for multi-subdomain SEO"
    )
    parser.add_argument("--data", help="Graph document (JSON) to load before the command")
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    serve_parser = subparsers.add_parser("serve", help="Run the HTTP API")
    serve_parser.add_argument("--host", help="Bind host (default from SEOGRAPH_HOST)")
    serve_parser.add_argument("--port", type=int, help="Bind port (default from SEOGRAPH_PORT)")

    load_parser = subparsers.add_parser("load", help="Bulk-load a graph document")
    load_parser.add_argument("file", help="Path to JSON graph document")

    subparsers.add_parser("stats", help="Show graph statistics")

    path_parser = subparsers.add_parser("path", help="Shortest path between two entities")
    path_parser.add_argument("source", help="Start entity ID")
    path_parser.add_argument("target", help="Goal entity ID")
    path_parser.add_argument("--max-depth", type=int, default=5, help="Max hops (default: 5)")

    cluster_parser = subparsers.add_parser("cluster", help="Connected cluster of an entity")
    cluster_parser.add_argument("entity_id", help="Entity ID")

    sitemap_parser = subparsers.add_parser("sitemap", help="Generate the entity sitemap")
    sitemap_parser.add_argument("--subdomain", "-s", help="Only entities on this subdomain")
    sitemap_parser.add_argument("--xml", action="store_true", help="Output sitemap XML")

    return parser


def main(argv: list[str] | None = None):
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command not in COMMANDS:
        parser.print_help()
        return

    try:
        settings = GraphSettings.from_env()
        configure_logging(settings.log_level)
        graph = build_graph(settings)
        if args.data:
            load_document(graph, Path(args.data))
        COMMANDS[args.command](args, settings, graph)
    except SeoGraphError as e:
        print(f"Error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
