from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import date
from typing import Literal, Optional


MilestoneStatus = Literal["not_started", "in_progress", "completed", "blocked", "at_risk"]
MilestonePriority = Literal["low", "medium", "high", "critical"]
DependencyType = Literal["finish_to_start", "start_to_start", "finish_to_finish", "start_to_finish"]
ProgressMode = Literal["auto", "manual"]
AssignmentRole = Literal["owner", "contributor", "reviewer"]

MILESTONE_STATUSES: tuple[str, ...] = (
    "not_started",
    "in_progress",
    "completed",
    "blocked",
    "at_risk",
)
MILESTONE_PRIORITIES: tuple[str, ...] = ("low", "medium", "high", "critical")
DEPENDENCY_TYPES: tuple[str, ...] = (
    "finish_to_start",
    "start_to_start",
    "finish_to_finish",
    "start_to_finish",
)
PROGRESS_MODES: tuple[str, ...] = ("auto", "manual")
ASSIGNMENT_ROLES: tuple[str, ...] = ("owner", "contributor", "reviewer")

# Task statuses belong to the external task system; only DONE counts toward progress.
COMPLETED_TASK_STATUS = "DONE"

HEX_COLOR_PATTERN = re.compile(r"^#[0-9A-Fa-f]{6}$")


@dataclass(frozen=True)
class Milestone:
    id: str
    organization_id: str
    name: str
    start_date: date
    due_date: date

    description: Optional[str] = None
    status: MilestoneStatus = "not_started"
    priority: MilestonePriority = "medium"
    color: Optional[str] = None
    progress_mode: ProgressMode = "auto"
    progress_percentage: int = 0
    project_id: Optional[str] = None


@dataclass(frozen=True)
class DependencyEdge:
    milestone_id: str  # dependent
    depends_on_milestone_id: str  # prerequisite
    dependency_type: DependencyType = "finish_to_start"
    lag_days: int = 0
    id: Optional[str] = None


@dataclass(frozen=True)
class TaskLink:
    milestone_id: str
    task_id: str
    weight: int = 1
    task_status: str = "TODO"


@dataclass(frozen=True)
class MilestoneAssignment:
    milestone_id: str
    user_id: str
    role: AssignmentRole = "contributor"


@dataclass(frozen=True)
class Roadmap:
    """One tenant's validated snapshot."""

    schema_version: str
    organization_id: str
    milestones_by_id: dict[str, Milestone]
    edges: list[DependencyEdge] = field(default_factory=list)
    task_links: list[TaskLink] = field(default_factory=list)
    assignments: list[MilestoneAssignment] = field(default_factory=list)

    def tasks_for(self, milestone_id: str) -> list[TaskLink]:
        return [t for t in self.task_links if t.milestone_id == milestone_id]

    def assignments_for(self, milestone_id: str) -> list[MilestoneAssignment]:
        return [a for a in self.assignments if a.milestone_id == milestone_id]
