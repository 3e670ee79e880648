from __future__ import annotations

from datetime import date

from roadmap_engine.core.model import Milestone


# Tolerance, in percentage points, before a milestone counts as behind schedule.
ON_TRACK_TOLERANCE = 10.0


def is_overdue(milestone: Milestone, today: date) -> bool:
    if milestone.status == "completed":
        return False
    return milestone.due_date < today


def duration_days(milestone: Milestone) -> int:
    return (milestone.due_date - milestone.start_date).days


def days_until_due(milestone: Milestone, today: date) -> int:
    return (milestone.due_date - today).days


def expected_progress(milestone: Milestone, today: date) -> float:
    """Share of the milestone's date window already elapsed, as 0-100."""
    if today <= milestone.start_date:
        return 0.0
    if today >= milestone.due_date:
        return 100.0
    total = duration_days(milestone)
    elapsed = (today - milestone.start_date).days
    return elapsed / total * 100


def is_on_track(milestone: Milestone, progress: int, today: date) -> bool:
    if today < milestone.start_date:
        return True
    if milestone.status == "completed":
        return True
    return progress >= expected_progress(milestone, today) - ON_TRACK_TOLERANCE
