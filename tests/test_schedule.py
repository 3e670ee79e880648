from datetime import date

from roadmap_engine.core.model import Milestone
from roadmap_engine.core.progress.schedule import (
    days_until_due,
    duration_days,
    expected_progress,
    is_on_track,
    is_overdue,
)


def _milestone(status: str = "in_progress") -> Milestone:
    return Milestone(
        id="M1",
        organization_id="org-1",
        name="Milestone",
        start_date=date(2025, 1, 1),
        due_date=date(2025, 1, 11),
        status=status,
    )


def test_overdue_only_after_due_and_not_completed():
    m = _milestone()
    assert not is_overdue(m, date(2025, 1, 11))
    assert is_overdue(m, date(2025, 1, 12))
    assert not is_overdue(_milestone("completed"), date(2025, 2, 1))


def test_durations():
    m = _milestone()
    assert duration_days(m) == 10
    assert days_until_due(m, date(2025, 1, 6)) == 5
    assert days_until_due(m, date(2025, 1, 13)) == -2


def test_expected_progress():
    m = _milestone()
    assert expected_progress(m, date(2024, 12, 20)) == 0.0
    assert expected_progress(m, date(2025, 1, 6)) == 50.0
    assert expected_progress(m, date(2025, 3, 1)) == 100.0


def test_single_day_window_has_no_division_by_zero():
    m = Milestone(
        id="M1",
        organization_id="org-1",
        name="Day",
        start_date=date(2025, 1, 1),
        due_date=date(2025, 1, 1),
    )
    assert expected_progress(m, date(2025, 1, 1)) == 0.0
    assert expected_progress(m, date(2025, 1, 2)) == 100.0


def test_on_track_tolerance():
    m = _milestone()
    today = date(2025, 1, 6)
    assert is_on_track(m, 40, today)
    assert not is_on_track(m, 39, today)


def test_on_track_before_start_or_completed():
    assert is_on_track(_milestone(), 0, date(2024, 12, 1))
    assert is_on_track(_milestone("completed"), 0, date(2025, 1, 10))
