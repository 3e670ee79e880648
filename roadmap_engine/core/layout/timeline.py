from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta
from typing import Iterable, Optional

from roadmap_engine.core.layout.layout_config import DEFAULT_LAYOUT_CONFIG, LayoutConfig
from roadmap_engine.core.model import Milestone


_TOLERANCE_DAYS = 1e-9


@dataclass(frozen=True)
class LayoutAssignment:
    milestone_id: str
    row: int
    start_fraction: float
    end_fraction: float


@dataclass(frozen=True)
class MonthMarker:
    date: date
    fraction: float
    label: str


@dataclass(frozen=True)
class TimelineLayout:
    assignments: list[LayoutAssignment]
    window_start: Optional[datetime] = None
    window_end: Optional[datetime] = None
    month_markers: list[MonthMarker] = field(default_factory=list)

    @property
    def row_count(self) -> int:
        return max((a.row for a in self.assignments), default=-1) + 1

    def position_of(self, milestone_id: str) -> Optional[LayoutAssignment]:
        """Lookup used to anchor dependency arrows."""
        for a in self.assignments:
            if a.milestone_id == milestone_id:
                return a
        return None

    def rows(self) -> list[list[LayoutAssignment]]:
        out: list[list[LayoutAssignment]] = [[] for _ in range(self.row_count)]
        for a in self.assignments:
            out[a.row].append(a)
        return out


def layout(milestones: Iterable[Milestone], config: Optional[LayoutConfig] = None) -> TimelineLayout:
    """Place milestones on a padded, normalized timeline without overlaps.

    Milestones are taken in ``(start_date, id)`` order and each goes into the
    lowest row whose last occupant ends at least ``gap_ratio`` before it starts.
    Processing in start order keeps the row count minimal.
    """

    cfg = config or DEFAULT_LAYOUT_CONFIG
    items = sorted(milestones, key=lambda m: (m.start_date, m.id))
    if not items:
        return TimelineLayout(assignments=[])

    lo = float(min(m.start_date.toordinal() for m in items))
    hi = float(max(m.due_date.toordinal() for m in items))
    padding = (hi - lo) * cfg.padding_ratio
    window_lo, window_hi = lo - padding, hi + padding
    if window_hi - window_lo <= 0:
        half = cfg.min_window_days / 2
        window_lo, window_hi = lo - half, hi + half
    width = window_hi - window_lo

    # Rows are packed in day units; fractions are only derived for output.
    gap_days = cfg.gap_ratio * width

    row_ends: list[int] = []
    assignments: list[LayoutAssignment] = []
    for m in items:
        start = m.start_date.toordinal()
        end = m.due_date.toordinal()

        row = 0
        while row < len(row_ends) and row_ends[row] > start - gap_days + _TOLERANCE_DAYS:
            row += 1
        if row == len(row_ends):
            row_ends.append(end)
        else:
            row_ends[row] = end

        assignments.append(
            LayoutAssignment(
                milestone_id=m.id,
                row=row,
                start_fraction=(start - window_lo) / width,
                end_fraction=(end - window_lo) / width,
            )
        )

    window_start = _ordinal_to_datetime(window_lo)
    window_end = _ordinal_to_datetime(window_hi)
    return TimelineLayout(
        assignments=assignments,
        window_start=window_start,
        window_end=window_end,
        month_markers=month_markers(window_lo, window_hi),
    )


def month_markers(window_lo: float, window_hi: float) -> list[MonthMarker]:
    """First day of every month that falls inside the window, with its position."""
    width = window_hi - window_lo
    if width <= 0:
        return []

    first = date.fromordinal(int(window_lo))
    cur = date(first.year, first.month, 1)
    out: list[MonthMarker] = []
    while cur.toordinal() <= window_hi:
        frac = (cur.toordinal() - window_lo) / width
        if frac >= 0:
            out.append(MonthMarker(date=cur, fraction=frac, label=cur.strftime("%b %Y")))
        cur = date(cur.year + 1, 1, 1) if cur.month == 12 else date(cur.year, cur.month + 1, 1)
    return out


def _ordinal_to_datetime(x: float) -> datetime:
    whole = int(x // 1)
    return datetime.combine(date.fromordinal(whole), time()) + timedelta(days=x - whole)
