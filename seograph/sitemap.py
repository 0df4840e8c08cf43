"""
Entity Sitemaps

Builds sitemap entries for entity pages and renders them as a
sitemaps.org ``urlset`` document.
"""

from __future__ import annotations

import xml.etree.ElementTree as ET
from typing import TYPE_CHECKING

import structlog

from seograph.models import EntityType, Sitemap, SitemapEntry

if TYPE_CHECKING:
    from seograph.graph.service import EntityGraph

logger = structlog.get_logger(__name__)

SITEMAP_NAMESPACE = "http://www.sitemaps.org/schemas/sitemap/0.9"

DEFAULT_PRIORITY = 0.5

TYPE_PRIORITIES: dict[EntityType, float] = {
    EntityType.ORGANIZATION: 1.0,
    EntityType.SERVICE: 0.8,
    EntityType.ARTICLE: 0.6,
}


def generate_entity_sitemap(graph: EntityGraph, subdomain: str | None = None) -> Sitemap:
    """
    One sitemap entry per entity, optionally restricted to a subdomain.

    Args:
        graph: Entity graph to read from.
        subdomain: Only include entities on this subdomain.

    Returns:
        Sitemap labelled with the subdomain, or ``"all"`` when unfiltered.
    """
    if subdomain:
        entities = graph.entities_by_subdomain(subdomain)
    else:
        entities = graph.all_entities()

    entries = [
        SitemapEntry(
            loc=entity.url,
            lastmod=entity.updated_at,
            changefreq="weekly",
            priority=TYPE_PRIORITIES.get(entity.type, DEFAULT_PRIORITY),
        )
        for entity in entities
    ]

    logger.debug("sitemap_generated", subdomain=subdomain or "all", count=len(entries))
    return Sitemap(subdomain=subdomain or "all", entries=entries)


def render_sitemap_xml(sitemap: Sitemap) -> str:
    """Serialize a sitemap to an XML ``urlset`` document."""
    urlset = ET.Element("urlset", xmlns=SITEMAP_NAMESPACE)

    for entry in sitemap.entries:
        url = ET.SubElement(urlset, "url")
        ET.SubElement(url, "loc").text = entry.loc
        ET.SubElement(url, "lastmod").text = entry.lastmod.date().isoformat()
        ET.SubElement(url, "changefreq").text = entry.changefreq
        ET.SubElement(url, "priority").text = f"{entry.priority:.1f}"

    body = ET.tostring(urlset, encoding="unicode")
    return f'<?xml version="1.0" encoding="UTF-8"?>\n{body}\n'
