from __future__ import annotations

from datetime import date
from typing import Iterable

from roadmap_engine.core.model import Milestone, MilestoneAssignment


PRIORITY_ORDER: dict[str, int] = {"critical": 0, "high": 1, "medium": 2, "low": 3}


def sort_by_start_date(milestones: Iterable[Milestone]) -> list[Milestone]:
    return sorted(milestones, key=lambda m: (m.start_date, m.id))


def sort_by_due_date(milestones: Iterable[Milestone]) -> list[Milestone]:
    return sorted(milestones, key=lambda m: (m.due_date, m.id))


def sort_by_priority(milestones: Iterable[Milestone]) -> list[Milestone]:
    """Critical first; ties keep their input order."""
    return sorted(milestones, key=lambda m: PRIORITY_ORDER.get(m.priority, len(PRIORITY_ORDER)))


def filter_by_status(milestones: Iterable[Milestone], statuses: Iterable[str]) -> list[Milestone]:
    wanted = set(statuses)
    return [m for m in milestones if m.status in wanted]


def filter_by_priority(milestones: Iterable[Milestone], priorities: Iterable[str]) -> list[Milestone]:
    wanted = set(priorities)
    return [m for m in milestones if m.priority in wanted]


def filter_by_date_range(milestones: Iterable[Milestone], start: date, end: date) -> list[Milestone]:
    """Milestones whose [start_date, due_date] overlaps [start, end]."""
    return [m for m in milestones if m.start_date <= end and m.due_date >= start]


def filter_assigned_to(
    milestones: Iterable[Milestone],
    assignments: Iterable[MilestoneAssignment],
    user_id: str,
) -> list[Milestone]:
    assigned = {a.milestone_id for a in assignments if a.user_id == user_id}
    return [m for m in milestones if m.id in assigned]
