from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional

from roadmap_engine.core.model import DependencyEdge


_EMPTY: frozenset[str] = frozenset()


@dataclass(frozen=True)
class DependencyGraph:
    """Read-only adjacency over one tenant's milestones.

    An edge ``a -> b`` means milestone ``a`` depends on milestone ``b``
    (``a`` is the dependent, ``b`` the prerequisite). Built fresh from the
    caller's edge snapshot for every request; nothing here is cached.
    """

    nodes: frozenset[str]
    adjacency: dict[str, frozenset[str]]

    @classmethod
    def from_edges(
        cls,
        edges: Iterable[DependencyEdge | tuple[str, str]],
        milestone_ids: Optional[Iterable[str]] = None,
    ) -> "DependencyGraph":
        nodes: set[str] = set(milestone_ids or [])
        out: dict[str, set[str]] = {}
        for edge in edges:
            src, dst = _endpoints(edge)
            nodes.add(src)
            nodes.add(dst)
            out.setdefault(src, set()).add(dst)
        return cls(
            nodes=frozenset(nodes),
            adjacency={k: frozenset(v) for k, v in out.items()},
        )

    def neighbors(self, milestone_id: str) -> frozenset[str]:
        """Milestones that ``milestone_id`` directly depends on."""
        return self.adjacency.get(milestone_id, _EMPTY)

    def dependents(self, milestone_id: str) -> frozenset[str]:
        """Milestones that directly depend on ``milestone_id``."""
        return frozenset(src for src, dsts in self.adjacency.items() if milestone_id in dsts)

    def has_edge(self, from_id: str, to_id: str) -> bool:
        return to_id in self.neighbors(from_id)

    def edge_count(self) -> int:
        return sum(len(v) for v in self.adjacency.values())

    def with_proposed_edge(self, from_id: str, to_id: str) -> "DependencyGraph":
        """Return a new graph with ``from_id -> to_id`` added; ``self`` is not modified."""
        adjacency = dict(self.adjacency)
        adjacency[from_id] = self.neighbors(from_id) | {to_id}
        return DependencyGraph(nodes=self.nodes | {from_id, to_id}, adjacency=adjacency)


def _endpoints(edge: DependencyEdge | tuple[str, str]) -> tuple[str, str]:
    if isinstance(edge, DependencyEdge):
        return edge.milestone_id, edge.depends_on_milestone_id
    src, dst = edge
    return src, dst
