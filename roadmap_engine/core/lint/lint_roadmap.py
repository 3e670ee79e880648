from __future__ import annotations

from collections import Counter
from datetime import date
from typing import Any, Optional

from roadmap_engine.core.errors import RoadmapValidationError
from roadmap_engine.core.graph.cycles import find_cycles
from roadmap_engine.core.graph.dependency_graph import DependencyGraph
from roadmap_engine.core.model import Milestone, TaskLink
from roadmap_engine.core.progress.progress import clamp_percentage, effective_progress
from roadmap_engine.core.progress.schedule import is_on_track, is_overdue
from roadmap_engine.core.validate.validate_roadmap import parse_date


# Roadmap lint rules:
# - L_DUPLICATE_ID: duplicate milestone IDs
# - L_CYCLE_DETECTED: stored dependencies already form a cycle
# - L_MILESTONE_OVERDUE: due date passed and status is not completed
# - L_MILESTONE_BEHIND_SCHEDULE: progress trails the elapsed share of the window by > 10 points
# - L_AUTO_PROGRESS_WITHOUT_TASKS: auto progress mode but no linked tasks, so progress is stuck at 0


def lint_roadmap(raw: dict[str, Any], today: date) -> list[RoadmapValidationError]:
    """Lint a roadmap snapshot.

    Lint runs *in addition to* snapshot validation. It works best effort on
    partially-invalid input and reports schedule health as of ``today``.
    """

    file = _cast_optional_str(raw.get("__file__"))

    milestones = raw.get("milestones")
    if not isinstance(milestones, list):
        # Let validator handle shape.
        return []

    id_to_index: dict[str, int] = {}
    id_to_raw: dict[str, dict[str, Any]] = {}
    ids: list[str] = []
    for i, m in enumerate(milestones):
        if not isinstance(m, dict):
            continue
        mid = m.get("id")
        if not isinstance(mid, str):
            continue
        ids.append(mid)
        id_to_index.setdefault(mid, i)
        id_to_raw.setdefault(mid, m)

    errors: list[RoadmapValidationError] = []

    def add(code: str, message: str, path: str) -> None:
        errors.append(RoadmapValidationError(code=code, message=message, file=file, path=path))

    # Rule: duplicate IDs
    counts = Counter(ids)
    seen: set[str] = set()
    for i, m in enumerate(milestones):
        if not isinstance(m, dict):
            continue
        mid = m.get("id")
        if not isinstance(mid, str) or counts[mid] < 2:
            continue
        if mid not in seen:
            seen.add(mid)
            continue
        add("L_DUPLICATE_ID", f"duplicate milestone id: {mid} (count={counts[mid]})", f"milestones[{i}].id")

    # Rule: cycles in stored dependencies
    edge_index: dict[tuple[str, str], int] = {}
    deps = raw.get("dependencies")
    if isinstance(deps, list):
        for i, d in enumerate(deps):
            if not isinstance(d, dict):
                continue
            src, dst = d.get("milestone_id"), d.get("depends_on_milestone_id")
            if isinstance(src, str) and isinstance(dst, str):
                edge_index.setdefault((src, dst), i)
    for cycle in find_cycles(DependencyGraph.from_edges(edge_index)):
        # Reported on the stored entry for the first hop of the cycle.
        add(
            "L_CYCLE_DETECTED",
            "dependency cycle detected: " + " -> ".join(cycle),
            f"dependencies[{edge_index[(cycle[0], cycle[1])]}]",
        )

    # Schedule rules need a parseable milestone.
    links_by_milestone = _links_by_milestone(raw.get("task_links"))
    for mid, m in id_to_raw.items():
        milestone = _best_effort_milestone(mid, m)
        if milestone is None:
            continue
        path = f"milestones[{id_to_index[mid]}]"
        tasks = links_by_milestone.get(mid, [])

        if milestone.progress_mode == "auto" and not tasks:
            add(
                "L_AUTO_PROGRESS_WITHOUT_TASKS",
                "progress_mode is auto but no tasks are linked; progress stays at 0",
                f"{path}.progress_mode",
            )

        if is_overdue(milestone, today):
            add(
                "L_MILESTONE_OVERDUE",
                f"due {milestone.due_date.isoformat()} and status is {milestone.status}",
                f"{path}.due_date",
            )
            continue

        progress = effective_progress(milestone, tasks)
        if not is_on_track(milestone, progress, today):
            add(
                "L_MILESTONE_BEHIND_SCHEDULE",
                f"progress {progress}% is behind the elapsed schedule",
                f"{path}.progress",
            )

    return _sorted(errors)


def _best_effort_milestone(mid: str, m: dict[str, Any]) -> Optional[Milestone]:
    start = parse_date(m.get("start_date"))
    due = parse_date(m.get("due_date"))
    if start is None or due is None or start > due:
        return None
    raw_progress = m.get("progress_percentage", 0)
    progress = 0
    if isinstance(raw_progress, (int, float)) and not isinstance(raw_progress, bool):
        progress = clamp_percentage(raw_progress)
    return Milestone(
        id=mid,
        organization_id=str(m.get("organization_id") or ""),
        name=str(m.get("name") or mid),
        start_date=start,
        due_date=due,
        status=m.get("status", "not_started"),
        progress_mode="manual" if m.get("progress_mode") == "manual" else "auto",
        progress_percentage=progress,
    )


def _links_by_milestone(raw: Any) -> dict[str, list[TaskLink]]:
    out: dict[str, list[TaskLink]] = {}
    if not isinstance(raw, list):
        return out
    for t in raw:
        if not isinstance(t, dict):
            continue
        mid, tid = t.get("milestone_id"), t.get("task_id")
        if not isinstance(mid, str) or not isinstance(tid, str):
            continue
        weight = t.get("weight", 1)
        if isinstance(weight, bool) or not isinstance(weight, int):
            weight = 1
        status = t.get("task_status", "TODO")
        out.setdefault(mid, []).append(
            TaskLink(milestone_id=mid, task_id=tid, weight=weight, task_status=str(status))
        )
    return out


def _sorted(errors: list[RoadmapValidationError]) -> list[RoadmapValidationError]:
    return sorted(errors, key=lambda e: (e.file or "", e.path or "", e.code))


def _cast_optional_str(v: Any) -> Optional[str]:
    return v if isinstance(v, str) else None
