"""Current and best streaks over daily activity.

Two entry points share one definition of a streak: a run of consecutive
calendar days whose count is positive.

- ``streak_from_series`` walks a dense series produced by ``build_heatmap``.
- ``streaks_by_task`` walks sparse stored entries for many tasks at once.

Given the same entries and a window that covers them, both return the same
numbers for a task.
"""

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date
from typing import Protocol

from heatmap_tracker.services.heatmap_service import DatedCount
from heatmap_tracker.services.heatmap_service import aggregate_counts


class TaskDatedCount(Protocol):
    task_id: str
    day: date
    count: int


@dataclass(frozen=True)
class StreakStats:
    current: int = 0
    best: int = 0


def streak_from_series(days: Iterable[DatedCount]) -> StreakStats:
    """Compute streaks from an ascending day series with no gaps."""

    current = 0
    best = 0
    for day in days:
        current = current + 1 if day.count > 0 else 0
        best = max(best, current)
    return StreakStats(current=current, best=best)


def _walk_sparse(counts_by_day: dict[date, int], today: date | None) -> StreakStats:
    current = 0
    best = 0
    last_day: date | None = None

    for day in sorted(counts_by_day):
        count = counts_by_day[day]
        if last_day is None:
            current = 1 if count > 0 else 0
        elif count <= 0:
            current = 0
        elif (day - last_day).days == 1:
            current += 1
        else:
            current = 1

        best = max(best, current)
        last_day = day

    # Days after the last entry have no activity, so they end the run.
    if today is not None and last_day is not None and last_day < today:
        current = 0

    return StreakStats(current=current, best=best)


def streaks_by_task(
    entries: Iterable[TaskDatedCount], today: date | None = None
) -> dict[str, StreakStats]:
    """Compute streaks per task from sparse entries in any order.

    Rows sharing a (task, day) are summed before walking, the same way the
    heatmap builder aggregates them. When ``today`` is given, entries after
    it are ignored and a run that stopped before ``today`` is no longer
    current. Tasks without entries are absent from the result.
    """

    grouped: dict[str, list[TaskDatedCount]] = {}
    for entry in entries:
        if today is not None and entry.day > today:
            continue
        grouped.setdefault(entry.task_id, []).append(entry)

    return {
        task_id: _walk_sparse(aggregate_counts(task_entries), today)
        for task_id, task_entries in grouped.items()
    }
