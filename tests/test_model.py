from typing import get_args, get_type_hints

from roadmap_engine.core.io.load_roadmap import load_roadmap
from roadmap_engine.core.model import (
    DEPENDENCY_TYPES,
    DependencyEdge,
    DependencyType,
    Milestone,
)
from roadmap_engine.core.validate.validate_roadmap import validate_roadmap


def test_field_types_follow_closed_enums():
    assert get_type_hints(Milestone)["progress_percentage"] is int
    assert get_type_hints(DependencyEdge)["dependency_type"] == DependencyType
    assert set(get_args(DependencyType)) == set(DEPENDENCY_TYPES)


def test_validated_snapshot_carries_int_progress():
    roadmap, errors = validate_roadmap(load_roadmap("examples/basic-roadmap.yaml"))
    assert errors == []
    assert type(roadmap.milestones_by_id["C"].progress_percentage) is int
    assert {e.dependency_type for e in roadmap.edges} <= set(DEPENDENCY_TYPES)
