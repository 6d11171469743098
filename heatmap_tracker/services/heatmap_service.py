from collections.abc import Iterable
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import date
from datetime import timedelta
from typing import Any
from typing import Protocol

from heatmap_tracker.services.intensity import IntensityLevel
from heatmap_tracker.services.intensity import classify
from heatmap_tracker.services.intensity import levels_from_rows


DEFAULT_WINDOW_DAYS = 365


class HeatmapContractError(ValueError):
    """Raised when a caller passes arguments the builder cannot honor."""


class DatedCount(Protocol):
    day: date
    count: int


class TaskWithLevels(Protocol):
    intensity_levels: Sequence[Any]


@dataclass(frozen=True)
class HeatmapDay:
    """Single calendar day of a dense heatmap series."""

    day: date
    count: int
    level: IntensityLevel | None


def aggregate_counts(entries: Iterable[DatedCount]) -> dict[date, int]:
    """Sum entry counts per calendar day."""

    counts_by_day: dict[date, int] = {}
    for entry in entries:
        counts_by_day[entry.day] = counts_by_day.get(entry.day, 0) + entry.count
    return counts_by_day


def build_heatmap(
    levels: Sequence[IntensityLevel],
    entries: Iterable[DatedCount],
    *,
    today: date,
    window_days: int = DEFAULT_WINDOW_DAYS,
) -> list[HeatmapDay]:
    """Build a dense, oldest-first day series ending at ``today``.

    Every day of the window is present exactly once. Days without entries
    get a zero count; days with several entries get their sum.

    Raises:
        HeatmapContractError: If ``window_days`` is negative or a day inside
            the window aggregates to a negative count.
    """

    if window_days < 0:
        raise HeatmapContractError(
            f"window_days must be zero or positive, got {window_days}"
        )

    counts_by_day = aggregate_counts(entries)

    days: list[HeatmapDay] = []
    for offset in range(window_days - 1, -1, -1):
        day = today - timedelta(days=offset)
        count = counts_by_day.get(day, 0)
        if count < 0:
            raise HeatmapContractError(
                f"aggregated count for {day.isoformat()} is negative ({count})"
            )
        days.append(HeatmapDay(day=day, count=count, level=classify(levels, count)))

    return days


def build_task_heatmap(
    task: TaskWithLevels,
    entries: Iterable[DatedCount],
    *,
    today: date,
    window_days: int = DEFAULT_WINDOW_DAYS,
) -> list[HeatmapDay]:
    """Build the heatmap for a stored task using its intensity levels."""

    levels = levels_from_rows(task.intensity_levels)
    return build_heatmap(levels, entries, today=today, window_days=window_days)


def heatmap_total(days: Iterable[HeatmapDay]) -> int:
    return sum(day.count for day in days)
