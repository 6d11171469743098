from datetime import date

from fastapi import APIRouter
from fastapi import Depends
from fastapi import HTTPException
from fastapi import Query
from sqlalchemy.orm import Session

from heatmap_tracker.api.dependencies import get_settings
from heatmap_tracker.api.dependencies import get_today
from heatmap_tracker.api.schemas.activity import ActivityCreate
from heatmap_tracker.api.schemas.activity import ActivityResponse
from heatmap_tracker.api.schemas.heatmap import OverviewResponse
from heatmap_tracker.api.schemas.heatmap import StreakResponse
from heatmap_tracker.api.schemas.heatmap import StreaksResponse
from heatmap_tracker.api.schemas.heatmap import TaskHeatmapResponse
from heatmap_tracker.api.schemas.heatmap import build_task_heatmap_response
from heatmap_tracker.core.security import CurrentUser
from heatmap_tracker.core.security import get_current_user
from heatmap_tracker.db import get_db
from heatmap_tracker.repository import NegativeActivityTotalError
from heatmap_tracker.repository import TaskNotFoundError
from heatmap_tracker.repository import get_activity_for_task
from heatmap_tracker.repository import get_activity_for_user
from heatmap_tracker.repository import get_task_for_user
from heatmap_tracker.repository import get_tasks_for_user
from heatmap_tracker.repository import record_activity
from heatmap_tracker.services.heatmap_service import HeatmapContractError
from heatmap_tracker.services.streaks import streaks_by_task
from heatmap_tracker.settings import Settings


router = APIRouter(prefix="/api/activity", tags=["activity"])


@router.post("", status_code=201)
def create_activity(
    payload: ActivityCreate,
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> dict[str, ActivityResponse]:
    """Add a count to a task's day, accumulating with earlier records."""

    try:
        entry = record_activity(
            db,
            user_id=user.id,
            task_id=payload.task_id,
            day=payload.date,
            count=payload.count,
            metadata=payload.metadata,
        )
    except TaskNotFoundError as exc:
        raise HTTPException(status_code=404, detail="Task not found") from exc
    except NegativeActivityTotalError as exc:
        raise HTTPException(
            status_code=400, detail="Daily activity total cannot be negative"
        ) from exc

    return {"activity": ActivityResponse.from_entry(entry)}


@router.get("/task/{task_id}")
def get_task_heatmap(
    task_id: str,
    days: int | None = Query(default=None, ge=1, le=366),
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
    today: date = Depends(get_today),
) -> TaskHeatmapResponse:
    """Return one task with its dense heatmap and streaks."""

    try:
        task = get_task_for_user(db, user.id, task_id)
    except TaskNotFoundError as exc:
        raise HTTPException(status_code=404, detail="Task not found") from exc

    try:
        return build_task_heatmap_response(
            task,
            get_activity_for_task(db, task.id),
            today=today,
            window_days=days or settings.heatmap_window_days,
        )
    except HeatmapContractError as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc


@router.get("/overview")
def get_overview(
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
    today: date = Depends(get_today),
) -> OverviewResponse:
    """Return every task of the user with its heatmap."""

    overview = []
    for task in get_tasks_for_user(db, user.id):
        try:
            overview.append(
                build_task_heatmap_response(
                    task,
                    get_activity_for_task(db, task.id),
                    today=today,
                    window_days=settings.heatmap_window_days,
                )
            )
        except HeatmapContractError as exc:
            raise HTTPException(status_code=409, detail=str(exc)) from exc

    return OverviewResponse(overview=overview)


@router.get("/streaks")
def get_streaks(
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
    today: date = Depends(get_today),
) -> StreaksResponse:
    """Return current and best streaks for each of the user's tasks."""

    stats_by_task = streaks_by_task(get_activity_for_user(db, user.id), today=today)
    return StreaksResponse(
        streaks={
            task.id: StreakResponse.from_stats(stats_by_task[task.id])
            if task.id in stats_by_task
            else StreakResponse()
            for task in get_tasks_for_user(db, user.id)
        }
    )
