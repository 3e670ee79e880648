import logging
from datetime import date

from roadmap_engine.core.model import Milestone, TaskLink
from roadmap_engine.core.progress.progress import (
    clamp_percentage,
    compute_progress,
    effective_progress,
    is_task_completed,
    round_half_up,
)


def _milestone(**kw) -> Milestone:
    base = dict(
        id="M1",
        organization_id="org-1",
        name="Milestone",
        start_date=date(2025, 1, 1),
        due_date=date(2025, 1, 31),
    )
    base.update(kw)
    return Milestone(**base)


def _task(task_id: str, weight: int = 1, status: str = "TODO") -> TaskLink:
    return TaskLink(milestone_id="M1", task_id=task_id, weight=weight, task_status=status)


def test_auto_weighted_progress():
    tasks = [_task("T1", 1, "DONE"), _task("T2", 1, "TODO"), _task("T3", 2, "DONE")]
    result = compute_progress(_milestone(), tasks)
    assert result.value == 75
    assert result.mode == "auto"
    assert (result.completed_weight, result.total_weight) == (3, 4)
    assert (result.completed_tasks, result.total_tasks) == (2, 3)
    assert result.warnings == []


def test_auto_without_tasks_is_zero():
    assert effective_progress(_milestone(), []) == 0


def test_auto_all_done_and_none_done():
    assert effective_progress(_milestone(), [_task("T1", status="DONE"), _task("T2", 5, "DONE")]) == 100
    assert effective_progress(_milestone(), [_task("T1"), _task("T2", status="IN_PROGRESS")]) == 0


def test_only_done_counts_as_completed():
    assert is_task_completed("DONE")
    for status in ("TODO", "IN_PROGRESS", "REVIEW", "BLOCKED", "done"):
        assert not is_task_completed(status)


def test_half_rounds_up():
    assert round_half_up(12.5) == 13
    assert round_half_up(2.5) == 3
    assert round_half_up(2.49) == 2
    tasks = [_task("T1", status="DONE")] + [_task(f"T{i}") for i in range(2, 9)]
    assert effective_progress(_milestone(), tasks) == 13


def test_manual_uses_stored_value_and_ignores_tasks():
    m = _milestone(progress_mode="manual", progress_percentage=40)
    result = compute_progress(m, [_task("T1", status="DONE")])
    assert result.value == 40
    assert result.mode == "manual"
    assert result.total_tasks == 1


def test_manual_is_clamped():
    assert effective_progress(_milestone(progress_mode="manual", progress_percentage=150), []) == 100
    assert effective_progress(_milestone(progress_mode="manual", progress_percentage=-5), []) == 0


def test_non_positive_weight_counts_as_one_with_warning(caplog):
    tasks = [_task("T1", 0, "DONE"), _task("T2", -3, "TODO")]
    with caplog.at_level(logging.WARNING, logger="roadmap_engine.core.progress.progress"):
        result = compute_progress(_milestone(), tasks)
    assert result.value == 50
    assert [w.code for w in result.warnings] == ["W_NON_POSITIVE_WEIGHT", "W_NON_POSITIVE_WEIGHT"]
    assert "T1" in result.warnings[0].message
    assert "W_NON_POSITIVE_WEIGHT" in caplog.text


def test_value_always_within_bounds():
    for done in range(0, 6):
        tasks = [_task(f"D{i}", 3, "DONE") for i in range(done)] + [_task(f"O{i}", 2) for i in range(5 - done)]
        value = effective_progress(_milestone(), tasks)
        assert 0 <= value <= 100


def test_clamp_handles_non_finite_values():
    assert clamp_percentage(float("nan")) == 0
    assert clamp_percentage(float("inf")) == 100
    assert clamp_percentage(float("-inf")) == 0
    assert clamp_percentage(33.6) == 34
    assert effective_progress(_milestone(progress_mode="manual", progress_percentage=float("nan")), []) == 0
