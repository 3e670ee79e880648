from __future__ import annotations


STATUS_LABELS: dict[str, str] = {
    "not_started": "Not Started",
    "in_progress": "In Progress",
    "completed": "Completed",
    "blocked": "Blocked",
    "at_risk": "At Risk",
}

PRIORITY_LABELS: dict[str, str] = {
    "low": "Low",
    "medium": "Medium",
    "high": "High",
    "critical": "Critical",
}

DEPENDENCY_TYPE_LABELS: dict[str, str] = {
    "finish_to_start": "Finish to Start",
    "start_to_start": "Start to Start",
    "finish_to_finish": "Finish to Finish",
    "start_to_finish": "Start to Finish",
}

DEPENDENCY_TYPE_DESCRIPTIONS: dict[str, str] = {
    "finish_to_start": "This milestone starts when dependency finishes",
    "start_to_start": "Both milestones start at the same time",
    "finish_to_finish": "Both milestones finish at the same time",
    "start_to_finish": "This milestone finishes when dependency starts",
}

ASSIGNMENT_ROLE_LABELS: dict[str, str] = {
    "owner": "Owner",
    "contributor": "Contributor",
    "reviewer": "Reviewer",
}


def status_label(status: str) -> str:
    return STATUS_LABELS.get(status, status)


def priority_label(priority: str) -> str:
    return PRIORITY_LABELS.get(priority, priority)


def dependency_type_label(dependency_type: str) -> str:
    return DEPENDENCY_TYPE_LABELS.get(dependency_type, dependency_type)


def dependency_type_description(dependency_type: str) -> str:
    return DEPENDENCY_TYPE_DESCRIPTIONS.get(dependency_type, "")


def assignment_role_label(role: str) -> str:
    return ASSIGNMENT_ROLE_LABELS.get(role, role)
