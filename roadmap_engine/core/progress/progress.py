from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Iterable

from roadmap_engine.core.errors import DegenerateInputWarning
from roadmap_engine.core.model import COMPLETED_TASK_STATUS, Milestone, ProgressMode, TaskLink


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProgressResult:
    value: int
    mode: ProgressMode
    completed_weight: int = 0
    total_weight: int = 0
    total_tasks: int = 0
    completed_tasks: int = 0
    warnings: list[DegenerateInputWarning] = field(default_factory=list)


def is_task_completed(task_status: str) -> bool:
    return task_status == COMPLETED_TASK_STATUS


def round_half_up(x: float) -> int:
    # Python's round() is banker's rounding; percentages round .5 upward.
    return int(math.floor(x + 0.5))


def clamp_percentage(x: float) -> int:
    if math.isnan(x):
        return 0
    if math.isinf(x):
        return 100 if x > 0 else 0
    return max(0, min(100, round_half_up(x)))


def compute_progress(milestone: Milestone, linked_tasks: Iterable[TaskLink]) -> ProgressResult:
    """Compute a milestone's completion percentage with its supporting counts.

    Manual mode returns the stored percentage (clamped). Auto mode weighs each
    linked task; a weight <= 0 counts as 1 and is reported as a warning.
    """

    tasks = list(linked_tasks)

    if milestone.progress_mode == "manual":
        completed = sum(1 for t in tasks if is_task_completed(t.task_status))
        return ProgressResult(
            value=clamp_percentage(milestone.progress_percentage),
            mode="manual",
            total_tasks=len(tasks),
            completed_tasks=completed,
        )

    warnings: list[DegenerateInputWarning] = []
    total_weight = 0
    completed_weight = 0
    completed_tasks = 0
    for t in tasks:
        weight = t.weight
        if weight <= 0:
            warning = DegenerateInputWarning(
                code="W_NON_POSITIVE_WEIGHT",
                message=f"task {t.task_id} has weight {t.weight}; using 1",
                path=f"milestones[{milestone.id}].tasks[{t.task_id}].weight",
            )
            logger.warning("%s", warning)
            warnings.append(warning)
            weight = 1
        total_weight += weight
        if is_task_completed(t.task_status):
            completed_weight += weight
            completed_tasks += 1

    value = 0
    if total_weight > 0:
        value = clamp_percentage(100 * completed_weight / total_weight)

    return ProgressResult(
        value=value,
        mode="auto",
        completed_weight=completed_weight,
        total_weight=total_weight,
        total_tasks=len(tasks),
        completed_tasks=completed_tasks,
        warnings=warnings,
    )


def effective_progress(milestone: Milestone, linked_tasks: Iterable[TaskLink]) -> int:
    return compute_progress(milestone, linked_tasks).value
