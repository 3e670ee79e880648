from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import Iterable, Optional

from roadmap_engine.core.errors import (
    CircularDependencyError,
    CrossTenantDependencyError,
    DependencyRejection,
    InvalidDependencyTypeError,
    SelfDependencyError,
    UnknownMilestoneError,
)
from roadmap_engine.core.graph.cycles import has_cycle_if_added
from roadmap_engine.core.graph.dependency_graph import DependencyGraph
from roadmap_engine.core.model import DEPENDENCY_TYPES, DependencyEdge, Roadmap


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DependencyDecision:
    """Outcome of validating one proposed edge: exactly one of ``edge``/``error`` is set."""

    edge: Optional[DependencyEdge] = None
    error: Optional[DependencyRejection] = None

    @property
    def accepted(self) -> bool:
        return self.error is None


def validate_dependency(
    tenant_edges: Iterable[DependencyEdge],
    new_edge: DependencyEdge,
    *,
    organization_id: str,
    depends_on_organization_id: str,
) -> DependencyDecision:
    """Decide whether ``new_edge`` may be persisted.

    Checks run cheapest first and stop at the first failure:
    self-dependency, tenant mismatch, dependency type, then the cycle scan
    over ``tenant_edges`` plus the candidate. Accepting does not persist
    anything; storage still owns uniqueness.
    """

    path = f"dependencies[{new_edge.milestone_id}->{new_edge.depends_on_milestone_id}]"

    if new_edge.milestone_id == new_edge.depends_on_milestone_id:
        return _reject(
            SelfDependencyError(
                code="E_SELF_DEPENDENCY",
                message="A milestone cannot depend on itself",
                path=path,
            )
        )

    return _validate_after_self_check(
        tenant_edges,
        new_edge,
        path=path,
        organization_id=organization_id,
        depends_on_organization_id=depends_on_organization_id,
    )


def validate_dependency_in_roadmap(roadmap: Roadmap, new_edge: DependencyEdge) -> DependencyDecision:
    """Validate ``new_edge`` against a loaded snapshot, resolving both tenants from it."""

    path = f"dependencies[{new_edge.milestone_id}->{new_edge.depends_on_milestone_id}]"

    if new_edge.milestone_id == new_edge.depends_on_milestone_id:
        return _reject(
            SelfDependencyError(
                code="E_SELF_DEPENDENCY",
                message="A milestone cannot depend on itself",
                path=path,
            )
        )

    for mid, label in (
        (new_edge.milestone_id, "Milestone"),
        (new_edge.depends_on_milestone_id, "Dependency milestone"),
    ):
        if mid not in roadmap.milestones_by_id:
            return _reject(
                UnknownMilestoneError(
                    code="E_UNKNOWN_MILESTONE",
                    message=f"{label} not found: {mid}",
                    path=path,
                )
            )

    return _validate_after_self_check(
        roadmap.edges,
        new_edge,
        path=path,
        organization_id=roadmap.milestones_by_id[new_edge.milestone_id].organization_id,
        depends_on_organization_id=roadmap.milestones_by_id[
            new_edge.depends_on_milestone_id
        ].organization_id,
    )


def _validate_after_self_check(
    tenant_edges: Iterable[DependencyEdge],
    new_edge: DependencyEdge,
    *,
    path: str,
    organization_id: str,
    depends_on_organization_id: str,
) -> DependencyDecision:
    if organization_id != depends_on_organization_id:
        return _reject(
            CrossTenantDependencyError(
                code="E_CROSS_TENANT_DEPENDENCY",
                message="Dependencies must be within the same organization",
                path=path,
            )
        )

    if new_edge.dependency_type not in DEPENDENCY_TYPES:
        return _reject(
            InvalidDependencyTypeError(
                code="E_INVALID_DEPENDENCY_TYPE",
                message=f"Invalid dependency type: {new_edge.dependency_type} "
                f"(choose one of: {', '.join(DEPENDENCY_TYPES)})",
                path=f"{path}.dependency_type",
            )
        )

    graph = DependencyGraph.from_edges(tenant_edges)
    if has_cycle_if_added(graph, new_edge.milestone_id, new_edge.depends_on_milestone_id):
        return _reject(
            CircularDependencyError(
                code="E_CIRCULAR_DEPENDENCY",
                message="This dependency would create a circular reference",
                path=path,
            )
        )

    edge = new_edge
    if edge.lag_days is None:
        edge = replace(edge, lag_days=0)
    logger.debug("dependency accepted: %s -> %s", edge.milestone_id, edge.depends_on_milestone_id)
    return DependencyDecision(edge=edge)


def _reject(error: DependencyRejection) -> DependencyDecision:
    logger.debug("dependency rejected: %s", error)
    return DependencyDecision(error=error)
