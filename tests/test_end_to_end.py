from datetime import date

from roadmap_engine.core.errors import CircularDependencyError
from roadmap_engine.core.layout.timeline import layout
from roadmap_engine.core.model import DependencyEdge, Milestone
from roadmap_engine.core.validate.validate_dependency import validate_dependency


def _m(mid, start, due):
    return Milestone(id=mid, organization_id="org-1", name=mid, start_date=start, due_date=due)


MILESTONES = [
    _m("A", date(2025, 1, 1), date(2025, 1, 10)),
    _m("B", date(2025, 1, 5), date(2025, 1, 20)),
    _m("C", date(2025, 1, 8), date(2025, 1, 15)),
]


def _add(edges, src, dst):
    decision = validate_dependency(
        edges,
        DependencyEdge(milestone_id=src, depends_on_milestone_id=dst),
        organization_id="org-1",
        depends_on_organization_id="org-1",
    )
    if decision.accepted:
        edges.append(decision.edge)
    return decision


def test_overlapping_milestones_get_separate_rows():
    result = layout(MILESTONES)
    rows = {a.milestone_id: a.row for a in result.assignments}
    assert rows["B"] != rows["A"]
    assert rows["B"] != rows["C"]
    assert result.row_count == 3


def test_dependency_direction_is_structural_only():
    # With nothing stored, A -> B is fine.
    assert _add([], "A", "B").accepted

    edges: list[DependencyEdge] = []
    assert _add(edges, "B", "A").accepted
    assert _add(edges, "C", "A").accepted
    assert len(edges) == 2

    # Now B already depends on A, so A -> B closes a loop.
    decision = _add(edges, "A", "B")
    assert isinstance(decision.error, CircularDependencyError)
    assert len(edges) == 2
    assert _add(edges, "C", "B").accepted
