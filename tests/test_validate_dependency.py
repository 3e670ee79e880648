from roadmap_engine.core.errors import (
    CircularDependencyError,
    CrossTenantDependencyError,
    InvalidDependencyTypeError,
    SelfDependencyError,
    UnknownMilestoneError,
)
from roadmap_engine.core.io.load_roadmap import load_roadmap
from roadmap_engine.core.model import DependencyEdge
from roadmap_engine.core.validate.validate_dependency import (
    validate_dependency,
    validate_dependency_in_roadmap,
)
from roadmap_engine.core.validate.validate_roadmap import validate_roadmap


def _edge(src: str, dst: str, **kw) -> DependencyEdge:
    return DependencyEdge(milestone_id=src, depends_on_milestone_id=dst, **kw)


def _check(edges, new_edge, org="org-1", dep_org="org-1"):
    return validate_dependency(edges, new_edge, organization_id=org, depends_on_organization_id=dep_org)


def test_accepts_valid_edge():
    decision = _check([_edge("B", "A")], _edge("C", "A", dependency_type="start_to_start", lag_days=-2))
    assert decision.accepted
    assert decision.error is None
    assert decision.edge == _edge("C", "A", dependency_type="start_to_start", lag_days=-2)


def test_missing_lag_defaults_to_zero():
    decision = _check([], _edge("B", "A", lag_days=None))
    assert decision.accepted
    assert decision.edge.lag_days == 0


def test_rejects_self_dependency():
    decision = _check([], _edge("A", "A"))
    assert not decision.accepted
    assert isinstance(decision.error, SelfDependencyError)
    assert decision.error.code == "E_SELF_DEPENDENCY"
    assert decision.error.message == "A milestone cannot depend on itself"


def test_rejects_self_dependency_whatever_the_graph_holds():
    populated = [_edge("B", "C"), _edge("C", "D"), _edge("E", "D")]
    touching = [_edge("A", "B"), _edge("C", "A"), _edge("A", "D")]
    for edges in (populated, touching):
        decision = _check(edges, _edge("A", "A"))
        assert isinstance(decision.error, SelfDependencyError)
        assert decision.edge is None
    decision = _check(touching, _edge("A", "A", dependency_type="blocks"), dep_org="org-2")
    assert isinstance(decision.error, SelfDependencyError)


def test_rejects_cross_tenant():
    decision = _check([], _edge("A", "X"), org="org-1", dep_org="org-2")
    assert isinstance(decision.error, CrossTenantDependencyError)
    assert decision.error.message == "Dependencies must be within the same organization"


def test_rejects_unknown_type():
    decision = _check([], _edge("B", "A", dependency_type="blocks"))
    assert isinstance(decision.error, InvalidDependencyTypeError)
    assert decision.error.code == "E_INVALID_DEPENDENCY_TYPE"
    assert "blocks" in decision.error.message


def test_rejects_cycle():
    decision = _check([_edge("A", "B"), _edge("B", "C")], _edge("C", "A"))
    assert isinstance(decision.error, CircularDependencyError)
    assert decision.error.message == "This dependency would create a circular reference"


def test_first_failing_check_wins():
    # self beats tenant
    assert isinstance(_check([], _edge("A", "A"), dep_org="org-2").error, SelfDependencyError)
    # tenant beats type
    d = _check([], _edge("A", "X", dependency_type="blocks"), dep_org="org-2")
    assert isinstance(d.error, CrossTenantDependencyError)
    # type beats cycle
    d = _check([_edge("A", "B")], _edge("B", "A", dependency_type="blocks"))
    assert isinstance(d.error, InvalidDependencyTypeError)


def test_rejection_is_returned_not_raised():
    edges = [_edge("A", "B")]
    decision = _check(edges, _edge("B", "A"))
    assert decision.edge is None
    assert edges == [_edge("A", "B")]


def test_every_dependency_type_is_accepted():
    for dep_type in ("finish_to_start", "start_to_start", "finish_to_finish", "start_to_finish"):
        assert _check([], _edge("B", "A", dependency_type=dep_type)).accepted


def _basic_roadmap():
    roadmap, errors = validate_roadmap(load_roadmap("examples/basic-roadmap.yaml"))
    assert errors == []
    return roadmap


def test_in_roadmap_accepts_and_rejects():
    roadmap = _basic_roadmap()
    assert validate_dependency_in_roadmap(roadmap, _edge("D", "B")).accepted
    assert validate_dependency_in_roadmap(roadmap, _edge("B", "C")).accepted
    decision = validate_dependency_in_roadmap(roadmap, _edge("A", "B"))
    assert isinstance(decision.error, CircularDependencyError)
    assert isinstance(validate_dependency_in_roadmap(roadmap, _edge("A", "A")).error, SelfDependencyError)


def test_in_roadmap_unknown_milestone():
    roadmap = _basic_roadmap()
    decision = validate_dependency_in_roadmap(roadmap, _edge("A", "ZZZ"))
    assert isinstance(decision.error, UnknownMilestoneError)
    assert decision.error.message == "Dependency milestone not found: ZZZ"
    decision = validate_dependency_in_roadmap(roadmap, _edge("ZZZ", "A"))
    assert decision.error.message == "Milestone not found: ZZZ"


def test_in_roadmap_resolves_tenants_from_snapshot():
    roadmap, errors = validate_roadmap(load_roadmap("examples/mixed-tenants.yaml"))
    assert errors == []
    decision = validate_dependency_in_roadmap(roadmap, _edge("A", "X"))
    assert isinstance(decision.error, CrossTenantDependencyError)
