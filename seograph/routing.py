"""
Subdomain Router - Entity Placement and Cross-Cluster Linking

Groups subdomains into content clusters (main site, services, resources,
team, ...) and works out:
- which subdomain an entity belongs on
- links between related entities living on different clusters
- breadcrumbs for an entity page
- per-cluster health metrics and improvement suggestions

Usage:
    from seograph.routing import route_entity, generate_cluster_report

    route = route_entity(entity, base_domain="acme.com")
    print(route.suggested_url)

    report = generate_cluster_report(graph)
    print(report.summary.active_clusters)
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Callable

import structlog
from pydantic import BaseModel, Field

from seograph.exceptions import NotFoundError
from seograph.interlinks import generate_interlinks
from seograph.models import Entity
from seograph.schema_org import breadcrumb_list

if TYPE_CHECKING:
    from seograph.graph.service import EntityGraph

logger = structlog.get_logger(__name__)


# =============================================================================
# Cluster Definitions
# =============================================================================


class SubdomainCluster(BaseModel):
    """A subdomain and the kinds of content it hosts."""

    key: str
    subdomain: str
    name: str
    purpose: str
    entity_types: list[str]
    priority: str


PRIORITY_ORDER = {"highest": 0, "high": 1, "medium": 2, "low": 3}

SUBDOMAIN_CLUSTERS: dict[str, SubdomainCluster] = {
    cluster.key: cluster
    for cluster in [
        SubdomainCluster(
            key="MAIN",
            subdomain="www",
            name="Main Site",
            purpose="Homepage, About, Contact",
            entity_types=["Organization"],
            priority="highest",
        ),
        SubdomainCluster(
            key="COACHING",
            subdomain="coaching",
            name="Coaching Services",
            purpose="Coaching programs, sessions, testimonials",
            entity_types=["Service", "Person"],
            priority="high",
        ),
        SubdomainCluster(
            key="RESOURCES",
            subdomain="resources",
            name="Resources Hub",
            purpose="Blog, guides, tools, downloads",
            entity_types=["Article", "HowTo"],
            priority="high",
        ),
        SubdomainCluster(
            key="EVENTS",
            subdomain="events",
            name="Events & Workshops",
            purpose="Workshops, webinars, conferences",
            entity_types=["Event"],
            priority="medium",
        ),
        SubdomainCluster(
            key="LOCATIONS",
            subdomain="locations",
            name="Locations",
            purpose="Office locations, service areas",
            entity_types=["Location"],
            priority="medium",
        ),
        SubdomainCluster(
            key="TEAM",
            subdomain="team",
            name="Team Directory",
            purpose="Team members, coaches, experts",
            entity_types=["Person"],
            priority="medium",
        ),
        SubdomainCluster(
            key="PRODUCTS",
            subdomain="shop",
            name="Products & Tools",
            purpose="Digital products, courses, tools",
            entity_types=["Product"],
            priority="medium",
        ),
        SubdomainCluster(
            key="SUPPORT",
            subdomain="help",
            name="Help Center",
            purpose="FAQs, documentation, support",
            entity_types=["FAQPage", "HowTo"],
            priority="low",
        ),
    ]
}

MAIN_CLUSTER = SUBDOMAIN_CLUSTERS["MAIN"]


def find_cluster(subdomain: str) -> SubdomainCluster | None:
    """Cluster hosted on a subdomain, if any."""
    for cluster in SUBDOMAIN_CLUSTERS.values():
        if cluster.subdomain == subdomain:
            return cluster
    return None


def require_cluster(subdomain: str) -> SubdomainCluster:
    cluster = find_cluster(subdomain)
    if cluster is None:
        raise NotFoundError(f"Subdomain cluster not found: {subdomain}")
    return cluster


# =============================================================================
# Interlink Rules
# =============================================================================


class InterlinkRule(BaseModel):
    """
    Links an entity on ``from_subdomain`` to a related entity on
    ``to_subdomain`` whose type is ``target_type``.

    ``from_subdomain="*"`` matches any source subdomain.
    """

    name: str
    from_subdomain: str
    to_subdomain: str
    target_type: str
    anchor_template: str

    def matches(self, source: Entity, target: Entity) -> bool:
        if self.from_subdomain != "*" and self.from_subdomain != source.subdomain:
            return False
        return target.subdomain == self.to_subdomain and target.type.value == self.target_type

    def anchor(self, target: Entity) -> str:
        return self.anchor_template.replace("{name}", target.name)


INTERLINK_RULES: list[InterlinkRule] = [
    InterlinkRule(
        name="Main to Services",
        from_subdomain="www",
        to_subdomain="coaching",
        target_type="Service",
        anchor_template="Explore our {name} services",
    ),
    InterlinkRule(
        name="Services to Team",
        from_subdomain="coaching",
        to_subdomain="team",
        target_type="Person",
        anchor_template="Meet {name}, your coach",
    ),
    InterlinkRule(
        name="Services to Resources",
        from_subdomain="coaching",
        to_subdomain="resources",
        target_type="Article",
        anchor_template="Read: {name}",
    ),
    InterlinkRule(
        name="Resources to Services",
        from_subdomain="resources",
        to_subdomain="coaching",
        target_type="Service",
        anchor_template="Get started with {name}",
    ),
    InterlinkRule(
        name="Team to Services",
        from_subdomain="team",
        to_subdomain="coaching",
        target_type="Service",
        anchor_template="{name} coaching program",
    ),
    InterlinkRule(
        name="Services to Locations",
        from_subdomain="coaching",
        to_subdomain="locations",
        target_type="Location",
        anchor_template="Available at {name}",
    ),
    InterlinkRule(
        name="All to Support",
        from_subdomain="*",
        to_subdomain="help",
        target_type="FAQPage",
        anchor_template="FAQs about {name}",
    ),
]


# =============================================================================
# Result Models
# =============================================================================


class RouteSuggestion(BaseModel):
    entity_id: str
    entity_type: str
    suggested_subdomain: str
    suggested_url: str
    cluster: SubdomainCluster
    alternative_clusters: list[SubdomainCluster] = Field(default_factory=list)


class ClusterEntities(BaseModel):
    cluster: SubdomainCluster
    entities: list[Entity] = Field(default_factory=list)
    count: int = 0


class SubdomainHealth(BaseModel):
    subdomain: str
    entity_count: int = 0
    total_interlinks: int = 0
    avg_interlinks_per_entity: float = 0.0
    status: str = "empty"
    coverage: dict[str, int] = Field(default_factory=dict)


class CrossClusterLink(BaseModel):
    url: str
    title: str
    anchor: str
    from_subdomain: str
    to_subdomain: str
    rule: str


class CrossClusterLinks(BaseModel):
    entity_id: str
    entity_subdomain: str
    cross_links: list[CrossClusterLink] = Field(default_factory=list)
    count: int = 0


class EntityCrossLinks(BaseModel):
    entity_id: str
    links: list[CrossClusterLink] = Field(default_factory=list)


class SubdomainCrossLinks(BaseModel):
    subdomain: str
    entities: list[EntityCrossLinks] = Field(default_factory=list)
    total_cross_links: int = 0
    links_by_target_subdomain: dict[str, int] = Field(default_factory=dict)


class Breadcrumbs(BaseModel):
    breadcrumbs: list[dict[str, str]]
    json_ld: dict[str, Any]


class ClusterCrossLinkTotals(BaseModel):
    total: int = 0
    by_target: dict[str, int] = Field(default_factory=dict)


class ClusterReportEntry(BaseModel):
    cluster: str
    subdomain: str
    name: str
    purpose: str
    health: SubdomainHealth
    cross_links: ClusterCrossLinkTotals


class ClusterReportSummary(BaseModel):
    total_clusters: int
    active_clusters: int
    total_entities: int
    total_cross_links: int
    avg_entities_per_cluster: float
    avg_cross_links_per_cluster: float


class ClusterReport(BaseModel):
    clusters: list[ClusterReportEntry]
    summary: ClusterReportSummary


class Suggestion(BaseModel):
    severity: str
    issue: str
    suggestion: str
    action: str
    entity_type: str | None = None


class ImprovementPlan(BaseModel):
    subdomain: str
    health: str
    suggestions: list[Suggestion] = Field(default_factory=list)
    improvement_score: int = 100


# =============================================================================
# Routing
# =============================================================================


def route_entity(entity: Entity, base_domain: str) -> RouteSuggestion:
    """
    Suggest the subdomain an entity belongs on.

    Clusters hosting the entity's type are ranked by priority; the first
    wins and the rest are offered as alternatives. Types no cluster hosts
    go to the main site.
    """
    matching = sorted(
        (c for c in SUBDOMAIN_CLUSTERS.values() if entity.type.value in c.entity_types),
        key=lambda c: PRIORITY_ORDER[c.priority],
    )
    suggested = matching[0] if matching else MAIN_CLUSTER

    return RouteSuggestion(
        entity_id=entity.id,
        entity_type=entity.type.value,
        suggested_subdomain=suggested.subdomain,
        suggested_url=f"https://{suggested.subdomain}.{base_domain}/{entity.id}",
        cluster=suggested,
        alternative_clusters=matching[1:],
    )


def get_cluster_entities(graph: EntityGraph, subdomain: str) -> ClusterEntities:
    """Cluster definition plus every entity on its subdomain."""
    cluster = require_cluster(subdomain)
    entities = graph.entities_by_subdomain(subdomain)
    return ClusterEntities(cluster=cluster, entities=entities, count=len(entities))


def get_subdomain_health(graph: EntityGraph, subdomain: str) -> SubdomainHealth:
    """
    Interlink density and type coverage for a cluster.

    Raises:
        NotFoundError: If no cluster is hosted on the subdomain.
    """
    cluster = require_cluster(subdomain)
    entities = graph.entities_by_subdomain(subdomain)

    total_interlinks = sum(generate_interlinks(graph, e.id).count for e in entities)
    avg = total_interlinks / len(entities) if entities else 0.0

    coverage = {
        entity_type: sum(1 for e in entities if e.type.value == entity_type)
        for entity_type in cluster.entity_types
    }

    return SubdomainHealth(
        subdomain=subdomain,
        entity_count=len(entities),
        total_interlinks=total_interlinks,
        avg_interlinks_per_entity=round(avg, 2),
        status="active" if entities else "empty",
        coverage=coverage,
    )


# =============================================================================
# Cross-Cluster Links
# =============================================================================


def generate_cross_cluster_links(graph: EntityGraph, entity_id: str) -> CrossClusterLinks:
    """
    Links from an entity to related entities on other clusters.

    Every rule is checked against every directly related entity, so one
    neighbor can be linked by more than one rule.
    """
    entity = graph.get_entity(entity_id)
    related = graph.related_entities(entity_id)

    links = [
        CrossClusterLink(
            url=target.url,
            title=target.name,
            anchor=rule.anchor(target),
            from_subdomain=entity.subdomain,
            to_subdomain=target.subdomain,
            rule=rule.name,
        )
        for rule in INTERLINK_RULES
        for target in related
        if rule.matches(entity, target)
    ]

    return CrossClusterLinks(
        entity_id=entity_id,
        entity_subdomain=entity.subdomain,
        cross_links=links,
        count=len(links),
    )


def get_subdomain_cross_links(graph: EntityGraph, subdomain: str) -> SubdomainCrossLinks:
    """Cross-cluster links for every entity on a subdomain."""
    per_entity = [
        EntityCrossLinks(
            entity_id=entity.id,
            links=generate_cross_cluster_links(graph, entity.id).cross_links,
        )
        for entity in graph.entities_by_subdomain(subdomain)
    ]

    by_target: dict[str, int] = {}
    for item in per_entity:
        for link in item.links:
            by_target[link.to_subdomain] = by_target.get(link.to_subdomain, 0) + 1

    return SubdomainCrossLinks(
        subdomain=subdomain,
        entities=per_entity,
        total_cross_links=sum(len(item.links) for item in per_entity),
        links_by_target_subdomain=by_target,
    )


def generate_breadcrumbs(graph: EntityGraph, entity_id: str, base_domain: str) -> Breadcrumbs:
    """Home / cluster / entity trail plus its BreadcrumbList JSON-LD."""
    entity = graph.get_entity(entity_id)
    cluster = find_cluster(entity.subdomain) or MAIN_CLUSTER

    crumbs = [
        {"name": "Home", "url": f"https://www.{base_domain}"},
        {"name": cluster.name, "url": f"https://{cluster.subdomain}.{base_domain}"},
        {"name": entity.name, "url": entity.url},
    ]
    return Breadcrumbs(breadcrumbs=crumbs, json_ld=breadcrumb_list(crumbs))


# =============================================================================
# Reporting
# =============================================================================


def generate_cluster_report(graph: EntityGraph) -> ClusterReport:
    """Health and cross-link totals for every cluster."""
    entries = []
    for key, cluster in SUBDOMAIN_CLUSTERS.items():
        health = get_subdomain_health(graph, cluster.subdomain)
        cross_links = get_subdomain_cross_links(graph, cluster.subdomain)
        entries.append(
            ClusterReportEntry(
                cluster=key,
                subdomain=cluster.subdomain,
                name=cluster.name,
                purpose=cluster.purpose,
                health=health,
                cross_links=ClusterCrossLinkTotals(
                    total=cross_links.total_cross_links,
                    by_target=cross_links.links_by_target_subdomain,
                ),
            )
        )

    total_entities = sum(e.health.entity_count for e in entries)
    total_cross_links = sum(e.cross_links.total for e in entries)
    summary = ClusterReportSummary(
        total_clusters=len(entries),
        active_clusters=sum(1 for e in entries if e.health.status == "active"),
        total_entities=total_entities,
        total_cross_links=total_cross_links,
        avg_entities_per_cluster=round(total_entities / len(entries), 2),
        avg_cross_links_per_cluster=round(total_cross_links / len(entries), 2),
    )

    logger.debug(
        "cluster_report_generated",
        active_clusters=summary.active_clusters,
        total_entities=total_entities,
    )
    return ClusterReport(clusters=entries, summary=summary)


def _entity_count_check(health: SubdomainHealth) -> Suggestion | None:
    if health.entity_count == 0:
        return Suggestion(
            severity="high",
            issue="No entities found",
            suggestion="Add entities to this subdomain cluster",
            action="create_entity",
        )
    if health.entity_count < 3:
        return Suggestion(
            severity="medium",
            issue="Low entity count",
            suggestion="Add more entities to improve content depth",
            action="create_entity",
        )
    return None


def _interlink_density_check(health: SubdomainHealth) -> Suggestion | None:
    if health.avg_interlinks_per_entity < 2:
        return Suggestion(
            severity="medium",
            issue="Low interlink density",
            suggestion="Create more relationships between entities",
            action="create_relationships",
        )
    return None


HEALTH_CHECKS: list[Callable[[SubdomainHealth], Suggestion | None]] = [
    _entity_count_check,
    _interlink_density_check,
]


def suggest_improvements(graph: EntityGraph, subdomain: str) -> ImprovementPlan:
    """
    Actionable suggestions for a cluster and a 0-100 score.

    Each suggestion costs 15 points.
    """
    cluster = require_cluster(subdomain)
    health = get_subdomain_health(graph, subdomain)

    suggestions = []
    for check in HEALTH_CHECKS:
        found = check(health)
        if found is not None:
            suggestions.append(found)

    for entity_type in cluster.entity_types:
        if health.coverage.get(entity_type, 0) == 0:
            suggestions.append(
                Suggestion(
                    severity="low",
                    issue=f"Missing {entity_type} entities",
                    suggestion=f"Add {entity_type} entities to match cluster purpose",
                    action="create_entity",
                    entity_type=entity_type,
                )
            )

    score = 100 if not suggestions else max(0, 100 - len(suggestions) * 15)
    return ImprovementPlan(
        subdomain=subdomain,
        health=health.status,
        suggestions=suggestions,
        improvement_score=score,
    )
