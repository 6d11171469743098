from datetime import date

from fastapi import APIRouter
from fastapi import Depends
from fastapi import HTTPException
from sqlalchemy.orm import Session

from heatmap_tracker.api.dependencies import get_settings
from heatmap_tracker.api.dependencies import get_today
from heatmap_tracker.api.schemas.heatmap import TaskListResponse
from heatmap_tracker.api.schemas.heatmap import build_task_heatmap_response
from heatmap_tracker.api.schemas.task import IntensityLevelsUpdate
from heatmap_tracker.api.schemas.task import TaskCreate
from heatmap_tracker.api.schemas.task import TaskResponse
from heatmap_tracker.core.security import CurrentUser
from heatmap_tracker.core.security import get_current_user
from heatmap_tracker.db import get_db
from heatmap_tracker.repository import TaskNotFoundError
from heatmap_tracker.repository import create_task_for_user
from heatmap_tracker.repository import get_activity_for_task
from heatmap_tracker.repository import get_tasks_for_user
from heatmap_tracker.repository import replace_intensity_levels
from heatmap_tracker.services.heatmap_service import HeatmapContractError
from heatmap_tracker.settings import Settings


router = APIRouter(prefix="/api/tasks", tags=["tasks"])


@router.get("")
def list_tasks(
    include_heatmap: bool = False,
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
    today: date = Depends(get_today),
) -> TaskListResponse:
    """List the user's tasks, optionally with each task's heatmap."""

    tasks = get_tasks_for_user(db, user.id)
    if not include_heatmap:
        return TaskListResponse(
            tasks=[TaskResponse.model_validate(task) for task in tasks]
        )

    try:
        return TaskListResponse(
            tasks=[
                build_task_heatmap_response(
                    task,
                    get_activity_for_task(db, task.id),
                    today=today,
                    window_days=settings.heatmap_window_days,
                )
                for task in tasks
            ]
        )
    except HeatmapContractError as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc


@router.post("", status_code=201)
def create_task(
    payload: TaskCreate,
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> dict[str, TaskResponse]:
    name = payload.name.strip()
    if not name:
        raise HTTPException(status_code=400, detail="Task name is required")

    levels = None
    if payload.intensity_levels is not None:
        levels = [level.to_domain() for level in payload.intensity_levels]

    task = create_task_for_user(
        db,
        user_id=user.id,
        name=name,
        description=payload.description,
        intensity_levels=levels,
    )
    return {"task": TaskResponse.model_validate(task)}


@router.put("/{task_id}/intensity")
def update_intensity_levels(
    task_id: str,
    payload: IntensityLevelsUpdate,
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> dict[str, TaskResponse]:
    """Replace all of a task's intensity levels at once."""

    if not payload.intensity_levels:
        raise HTTPException(
            status_code=400, detail="Intensity levels must be provided"
        )

    try:
        task = replace_intensity_levels(
            db,
            user_id=user.id,
            task_id=task_id,
            intensity_levels=[level.to_domain() for level in payload.intensity_levels],
        )
    except TaskNotFoundError as exc:
        raise HTTPException(status_code=404, detail="Task not found") from exc

    return {"task": TaskResponse.model_validate(task)}
