from collections.abc import Sequence
from datetime import date

from pydantic import BaseModel

from heatmap_tracker.api.schemas.task import IntensityLevelSchema
from heatmap_tracker.api.schemas.task import TaskResponse
from heatmap_tracker.models import ActivityEntry
from heatmap_tracker.models import Task
from heatmap_tracker.services.heatmap_service import HeatmapDay as HeatmapDayValue
from heatmap_tracker.services.heatmap_service import build_task_heatmap
from heatmap_tracker.services.heatmap_service import heatmap_total
from heatmap_tracker.services.streaks import StreakStats
from heatmap_tracker.services.streaks import streak_from_series


class HeatmapDay(BaseModel):
    """Single day item used in the heatmap response."""

    date: date
    count: int
    level: IntensityLevelSchema | None

    @classmethod
    def from_value(cls, value: HeatmapDayValue) -> "HeatmapDay":
        level = None
        if value.level is not None:
            level = IntensityLevelSchema.model_validate(value.level)
        return cls(date=value.day, count=value.count, level=level)


class StreakResponse(BaseModel):
    current: int = 0
    best: int = 0

    @classmethod
    def from_stats(cls, stats: StreakStats) -> "StreakResponse":
        return cls(current=stats.current, best=stats.best)


class TaskHeatmapResponse(BaseModel):
    """Task together with its dense heatmap series and streaks."""

    task: TaskResponse
    total: int
    streak: StreakResponse
    heatmap: list[HeatmapDay]


class TaskListResponse(BaseModel):
    tasks: list[TaskResponse] | list[TaskHeatmapResponse]


class OverviewResponse(BaseModel):
    overview: list[TaskHeatmapResponse]


class StreaksResponse(BaseModel):
    """Streaks keyed by task id; tasks without activity report zeros."""

    streaks: dict[str, StreakResponse]


def build_task_heatmap_response(
    task: Task,
    entries: Sequence[ActivityEntry],
    *,
    today: date,
    window_days: int,
) -> TaskHeatmapResponse:
    days = build_task_heatmap(task, entries, today=today, window_days=window_days)
    return TaskHeatmapResponse(
        task=TaskResponse.model_validate(task),
        total=heatmap_total(days),
        streak=StreakResponse.from_stats(streak_from_series(days)),
        heatmap=[HeatmapDay.from_value(day) for day in days],
    )
