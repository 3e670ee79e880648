from __future__ import annotations

from collections import Counter
from datetime import date, datetime
from typing import Any, Iterable, Optional, cast

from roadmap_engine.core.errors import RoadmapValidationError
from roadmap_engine.core.graph.cycles import find_cycles
from roadmap_engine.core.graph.dependency_graph import DependencyGraph
from roadmap_engine.core.model import (
    ASSIGNMENT_ROLES,
    DEPENDENCY_TYPES,
    HEX_COLOR_PATTERN,
    MILESTONE_PRIORITIES,
    MILESTONE_STATUSES,
    PROGRESS_MODES,
    DependencyEdge,
    Milestone,
    MilestoneAssignment,
    Roadmap,
    TaskLink,
)


def _is_non_empty_str(v: Any) -> bool:
    return isinstance(v, str) and bool(v.strip())


def _is_int(v: Any) -> bool:
    return isinstance(v, int) and not isinstance(v, bool)


def parse_date(v: Any) -> Optional[date]:
    """Accept a ``date`` (YAML already parses bare dates) or an ISO ``YYYY-MM-DD`` string."""
    if isinstance(v, datetime):
        return v.date()
    if isinstance(v, date):
        return v
    if isinstance(v, str):
        try:
            return date.fromisoformat(v.strip()[:10])
        except ValueError:
            return None
    return None


class _ErrorSink:
    def __init__(self, file: Optional[str]) -> None:
        self.file = file
        self.errors: list[RoadmapValidationError] = []

    def __call__(self, code: str, message: str, path: str) -> None:
        self.errors.append(
            RoadmapValidationError(code=code, message=message, file=self.file, path=path)
        )

    def __len__(self) -> int:
        return len(self.errors)


def validate_roadmap(raw: dict[str, Any]) -> tuple[Optional[Roadmap], list[RoadmapValidationError]]:
    """Validate a roadmap snapshot at the system boundary.

    Returns (roadmap, errors). Roadmap is None when errors exist.
    """

    err = _ErrorSink(file=cast(Optional[str], raw.get("__file__")))
    errors = err.errors

    schema_version = raw.get("schema_version")
    if not _is_non_empty_str(schema_version):
        err("E_REQUIRED_FIELD", "schema_version is required and must be a non-empty string", "schema_version")

    organization_id = raw.get("organization_id")
    if not _is_non_empty_str(organization_id):
        err("E_REQUIRED_FIELD", "organization_id is required and must be a non-empty string", "organization_id")

    milestones_raw = raw.get("milestones")
    if not isinstance(milestones_raw, list):
        err("E_REQUIRED_FIELD", "milestones is required and must be an array", "milestones")
        return None, _sorted(errors)

    milestones_by_id: dict[str, Milestone] = {}
    seen_ids: set[str] = set()

    for i, m in enumerate(milestones_raw):
        node_path = f"milestones[{i}]"
        if not isinstance(m, dict):
            err("E_INVALID_TYPE", "milestone must be an object", node_path)
            continue

        mid = m.get("id")
        if not _is_non_empty_str(mid):
            err("E_REQUIRED_FIELD", "id is required and must be a non-empty string", f"{node_path}.id")
            continue
        if mid in seen_ids:
            err("E_DUPLICATE_ID", f"duplicate milestone id: {mid}", f"{node_path}.id")
            continue
        seen_ids.add(mid)

        milestone = _validate_milestone(m, node_path, organization_id, err)
        if milestone is not None:
            milestones_by_id[mid] = milestone

    edges = _validate_dependencies(raw.get("dependencies"), seen_ids, milestones_by_id, err)
    task_links = _validate_task_links(raw.get("task_links"), seen_ids, err)
    assignments = _validate_assignments(raw.get("assignments"), seen_ids, err)

    if edges:
        graph = DependencyGraph.from_edges(edges, milestone_ids=seen_ids)
        for cycle in find_cycles(graph):
            err(
                "E_CIRCULAR_DEPENDENCY",
                "dependency cycle detected: " + " -> ".join(cycle),
                f"dependencies[{cycle[0]}]",
            )

    if errors:
        return None, _sorted(errors)

    roadmap = Roadmap(
        schema_version=cast(str, schema_version),
        organization_id=cast(str, organization_id),
        milestones_by_id=milestones_by_id,
        edges=edges,
        task_links=task_links,
        assignments=assignments,
    )
    return roadmap, []


def _validate_milestone(m: dict[str, Any], node_path: str, organization_id: Any, err: _ErrorSink) -> Optional[Milestone]:
    n_before = len(err)

    org = m.get("organization_id", organization_id)
    if not _is_non_empty_str(org):
        err("E_REQUIRED_FIELD", "organization_id is required and must be a non-empty string", f"{node_path}.organization_id")

    name = m.get("name")
    if not _is_non_empty_str(name):
        err("E_REQUIRED_FIELD", "name is required and must be a non-empty string", f"{node_path}.name")

    description = m.get("description")
    if description is not None and not isinstance(description, str):
        err("E_INVALID_TYPE", "description must be a string", f"{node_path}.description")

    start = parse_date(m.get("start_date"))
    if start is None:
        err("E_INVALID_DATE", "start_date must be an ISO date (YYYY-MM-DD)", f"{node_path}.start_date")
    due = parse_date(m.get("due_date"))
    if due is None:
        err("E_INVALID_DATE", "due_date must be an ISO date (YYYY-MM-DD)", f"{node_path}.due_date")
    if start is not None and due is not None and start > due:
        err("E_INVALID_DATE_RANGE", "Start date must be before or equal to due date", f"{node_path}.due_date")

    status = m.get("status", "not_started")
    if status not in MILESTONE_STATUSES:
        err("E_INVALID_ENUM", f"status must be one of {list(MILESTONE_STATUSES)}", f"{node_path}.status")

    priority = m.get("priority", "medium")
    if priority not in MILESTONE_PRIORITIES:
        err("E_INVALID_ENUM", f"priority must be one of {list(MILESTONE_PRIORITIES)}", f"{node_path}.priority")

    color = m.get("color")
    if color is not None and (not isinstance(color, str) or not HEX_COLOR_PATTERN.match(color)):
        err("E_INVALID_COLOR", "Must be a valid hex color (e.g., #3B82F6)", f"{node_path}.color")

    progress_mode = m.get("progress_mode", "auto")
    if progress_mode not in PROGRESS_MODES:
        err("E_INVALID_ENUM", f"progress_mode must be one of {list(PROGRESS_MODES)}", f"{node_path}.progress_mode")

    progress = m.get("progress_percentage", 0)
    if not _is_int(progress):
        err("E_INVALID_TYPE", "progress_percentage must be an integer", f"{node_path}.progress_percentage")
    elif not 0 <= progress <= 100:
        err("E_OUT_OF_RANGE", "progress_percentage must be between 0 and 100", f"{node_path}.progress_percentage")

    project_id = m.get("project_id")
    if project_id is not None and not isinstance(project_id, str):
        err("E_INVALID_TYPE", "project_id must be a string", f"{node_path}.project_id")

    if len(err) != n_before:
        return None

    return Milestone(
        id=m["id"],
        organization_id=org,
        name=name.strip(),
        description=description,
        start_date=cast(date, start),
        due_date=cast(date, due),
        status=status,
        priority=priority,
        color=color,
        progress_mode=progress_mode,
        progress_percentage=progress,
        project_id=project_id,
    )


def _validate_dependencies(
    raw: Any,
    known_ids: set[str],
    milestones_by_id: dict[str, Milestone],
    err: _ErrorSink,
) -> list[DependencyEdge]:
    if raw is None:
        return []
    if not isinstance(raw, list):
        err("E_INVALID_TYPE", "dependencies must be an array", "dependencies")
        return []

    edges: list[DependencyEdge] = []
    seen: set[tuple[str, str]] = set()
    for i, d in enumerate(raw):
        path = f"dependencies[{i}]"
        if not isinstance(d, dict):
            err("E_INVALID_TYPE", "dependency must be an object", path)
            continue

        src = d.get("milestone_id")
        dst = d.get("depends_on_milestone_id")
        ok = True
        for key, value in (("milestone_id", src), ("depends_on_milestone_id", dst)):
            if not _is_non_empty_str(value):
                err("E_REQUIRED_FIELD", f"{key} is required and must be a non-empty string", f"{path}.{key}")
                ok = False
            elif value not in known_ids:
                err("E_UNKNOWN_MILESTONE", f"{key} references unknown milestone: {value}", f"{path}.{key}")
                ok = False
        if not ok:
            continue

        if src == dst:
            err("E_SELF_DEPENDENCY", "A milestone cannot depend on itself", path)
            continue

        dep_type = d.get("dependency_type", "finish_to_start")
        if dep_type not in DEPENDENCY_TYPES:
            err("E_INVALID_ENUM", f"dependency_type must be one of {list(DEPENDENCY_TYPES)}", f"{path}.dependency_type")
            continue

        lag = d.get("lag_days", 0)
        if lag is None:
            lag = 0
        if not _is_int(lag):
            err("E_INVALID_TYPE", "lag_days must be an integer", f"{path}.lag_days")
            continue

        if src in milestones_by_id and dst in milestones_by_id:
            if milestones_by_id[src].organization_id != milestones_by_id[dst].organization_id:
                err("E_CROSS_TENANT_DEPENDENCY", "Dependencies must be within the same organization", path)
                continue

        if (src, dst) in seen:
            err("E_DUPLICATE_DEPENDENCY", f"This dependency already exists: {src} -> {dst}", path)
            continue
        seen.add((src, dst))

        dep_id = d.get("id")
        edges.append(
            DependencyEdge(
                milestone_id=src,
                depends_on_milestone_id=dst,
                dependency_type=dep_type,
                lag_days=lag,
                id=dep_id if isinstance(dep_id, str) else None,
            )
        )
    return edges


def _validate_task_links(raw: Any, known_ids: set[str], err: _ErrorSink) -> list[TaskLink]:
    if raw is None:
        return []
    if not isinstance(raw, list):
        err("E_INVALID_TYPE", "task_links must be an array", "task_links")
        return []

    links: list[TaskLink] = []
    seen: set[tuple[str, str]] = set()
    for i, t in enumerate(raw):
        path = f"task_links[{i}]"
        if not isinstance(t, dict):
            err("E_INVALID_TYPE", "task link must be an object", path)
            continue

        mid = t.get("milestone_id")
        tid = t.get("task_id")
        if not _is_non_empty_str(mid):
            err("E_REQUIRED_FIELD", "milestone_id is required and must be a non-empty string", f"{path}.milestone_id")
            continue
        if mid not in known_ids:
            err("E_UNKNOWN_MILESTONE", f"milestone_id references unknown milestone: {mid}", f"{path}.milestone_id")
            continue
        if not _is_non_empty_str(tid):
            err("E_REQUIRED_FIELD", "task_id is required and must be a non-empty string", f"{path}.task_id")
            continue

        weight = t.get("weight", 1)
        if not _is_int(weight) or weight < 1:
            err("E_INVALID_TYPE", "weight must be a positive integer", f"{path}.weight")
            continue

        status = t.get("task_status", "TODO")
        if not _is_non_empty_str(status):
            err("E_INVALID_TYPE", "task_status must be a non-empty string", f"{path}.task_status")
            continue

        if (mid, tid) in seen:
            err("E_DUPLICATE_TASK_LINK", f"task {tid} is already linked to milestone {mid}", path)
            continue
        seen.add((mid, tid))

        links.append(TaskLink(milestone_id=mid, task_id=tid, weight=weight, task_status=status))
    return links


def _validate_assignments(raw: Any, known_ids: set[str], err: _ErrorSink) -> list[MilestoneAssignment]:
    if raw is None:
        return []
    if not isinstance(raw, list):
        err("E_INVALID_TYPE", "assignments must be an array", "assignments")
        return []

    out: list[MilestoneAssignment] = []
    for i, a in enumerate(raw):
        path = f"assignments[{i}]"
        if not isinstance(a, dict):
            err("E_INVALID_TYPE", "assignment must be an object", path)
            continue
        mid = a.get("milestone_id")
        uid = a.get("user_id")
        if not _is_non_empty_str(mid) or mid not in known_ids:
            err("E_UNKNOWN_MILESTONE", f"milestone_id references unknown milestone: {mid}", f"{path}.milestone_id")
            continue
        if not _is_non_empty_str(uid):
            err("E_REQUIRED_FIELD", "user_id is required and must be a non-empty string", f"{path}.user_id")
            continue
        role = a.get("role", "contributor")
        if role not in ASSIGNMENT_ROLES:
            err("E_INVALID_ENUM", f"role must be one of {list(ASSIGNMENT_ROLES)}", f"{path}.role")
            continue
        out.append(MilestoneAssignment(milestone_id=mid, user_id=uid, role=role))
    return out


def summarize_roadmap(roadmap: Roadmap) -> str:
    counts = Counter([m.status for m in roadmap.milestones_by_id.values()])
    parts = [f"{s}={counts.get(s, 0)}" for s in MILESTONE_STATUSES]
    return (
        f"OK: {len(roadmap.milestones_by_id)} milestones ("
        + ", ".join(parts)
        + f")\nDependencies: {len(roadmap.edges)}, task links: {len(roadmap.task_links)}"
        + f"\nOrganization: {roadmap.organization_id}"
    )


def _sorted(errors: Iterable[RoadmapValidationError]) -> list[RoadmapValidationError]:
    return sorted(
        list(errors),
        key=lambda e: (
            e.file or "",
            e.path or "",
            e.code,
        ),
    )
