from roadmap_engine.core.graph.dependency_graph import DependencyGraph
from roadmap_engine.core.model import DependencyEdge


def test_from_edges_accepts_edges_and_tuples():
    g = DependencyGraph.from_edges(
        [DependencyEdge(milestone_id="B", depends_on_milestone_id="A"), ("C", "A")]
    )
    assert g.nodes == frozenset({"A", "B", "C"})
    assert g.neighbors("B") == frozenset({"A"})
    assert g.neighbors("C") == frozenset({"A"})
    assert g.neighbors("A") == frozenset()


def test_dependents_is_reverse_lookup():
    g = DependencyGraph.from_edges([("B", "A"), ("C", "A"), ("C", "B")])
    assert g.dependents("A") == frozenset({"B", "C"})
    assert g.dependents("C") == frozenset()


def test_duplicate_edges_collapse():
    g = DependencyGraph.from_edges([("B", "A"), ("B", "A")])
    assert g.edge_count() == 1
    assert g.has_edge("B", "A")
    assert not g.has_edge("A", "B")


def test_isolated_milestones_are_nodes():
    g = DependencyGraph.from_edges([("B", "A")], milestone_ids=["A", "B", "Z"])
    assert "Z" in g.nodes
    assert g.neighbors("Z") == frozenset()


def test_with_proposed_edge_does_not_mutate():
    g = DependencyGraph.from_edges([("B", "A")])
    g2 = g.with_proposed_edge("A", "C")
    assert g2.has_edge("A", "C")
    assert g2.has_edge("B", "A")
    assert not g.has_edge("A", "C")
    assert "C" not in g.nodes
    assert g.edge_count() == 1
