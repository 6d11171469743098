from collections.abc import Sequence
from datetime import date
from typing import Any

import structlog
from sqlalchemy import select
from sqlalchemy import update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from heatmap_tracker.models import ActivityEntry
from heatmap_tracker.models import Task
from heatmap_tracker.models import User
from heatmap_tracker.services.intensity import DEFAULT_INTENSITY_LEVELS
from heatmap_tracker.services.intensity import IntensityLevel


log = structlog.get_logger(__name__)


class TaskNotFoundError(Exception):
    """Raised when a task does not exist or belongs to another user."""


class NegativeActivityTotalError(Exception):
    """Raised when an increment would leave a day with a negative total."""


def find_user_by_id(db: Session, user_id: str) -> User | None:
    return db.get(User, user_id)


def upsert_google_user(
    db: Session,
    google_id: str,
    name: str,
    email: str,
    avatar_url: str | None = None,
) -> User:
    """Create the user for a Google account or refresh its profile fields."""

    user = db.scalar(select(User).where(User.google_id == google_id))
    if user is None:
        user = User(
            google_id=google_id, name=name, email=email, avatar_url=avatar_url
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        log.info("user_created", user_id=user.id)
        return user

    user.name = name
    user.email = email
    user.avatar_url = avatar_url
    db.commit()
    db.refresh(user)
    return user


def get_tasks_for_user(db: Session, user_id: str) -> list[Task]:
    return list(
        db.scalars(
            select(Task)
            .where(Task.owner_id == user_id)
            .order_by(Task.created_at.asc(), Task.id.asc())
        ).all()
    )


def get_task_for_user(db: Session, user_id: str, task_id: str) -> Task:
    """Return the user's task.

    Raises:
        TaskNotFoundError: If the task is missing or owned by someone else.
    """

    task = db.scalar(select(Task).where(Task.id == task_id, Task.owner_id == user_id))
    if task is None:
        raise TaskNotFoundError(task_id)
    return task


def create_task_for_user(
    db: Session,
    user_id: str,
    name: str,
    description: str | None = None,
    intensity_levels: Sequence[IntensityLevel] | None = None,
) -> Task:
    if intensity_levels is None:
        intensity_levels = DEFAULT_INTENSITY_LEVELS

    task = Task(
        owner_id=user_id,
        name=name,
        description=description,
        intensity_levels=[level.as_dict() for level in intensity_levels],
    )
    db.add(task)
    db.commit()
    db.refresh(task)
    log.info("task_created", task_id=task.id, user_id=user_id)
    return task


def replace_intensity_levels(
    db: Session,
    user_id: str,
    task_id: str,
    intensity_levels: Sequence[IntensityLevel],
) -> Task:
    """Replace a task's intensity levels with a single UPDATE.

    Raises:
        TaskNotFoundError: If the task is missing or owned by someone else.
    """

    result = db.execute(
        update(Task)
        .where(Task.id == task_id, Task.owner_id == user_id)
        .values(intensity_levels=[level.as_dict() for level in intensity_levels])
    )
    if result.rowcount == 0:
        db.rollback()
        raise TaskNotFoundError(task_id)

    db.commit()
    return get_task_for_user(db, user_id, task_id)


def _increment_existing(
    db: Session,
    task_id: str,
    day: date,
    count: int,
    metadata: dict[str, Any] | None,
) -> bool:
    values: dict[Any, Any] = {ActivityEntry.count: ActivityEntry.count + count}
    if metadata is not None:
        values[ActivityEntry.metadata_] = metadata

    result = db.execute(
        update(ActivityEntry)
        .where(ActivityEntry.task_id == task_id, ActivityEntry.day == day)
        .values(values)
    )
    return result.rowcount > 0


def record_activity(
    db: Session,
    user_id: str,
    task_id: str,
    day: date,
    count: int,
    metadata: dict[str, Any] | None = None,
) -> ActivityEntry:
    """Add ``count`` to the task's entry for ``day``, creating it if needed.

    The increment runs inside the database, and a lost insert race falls
    back to the increment, so concurrent calls for one day always sum.
    Decrements are allowed while the day's total stays at zero or above.

    Raises:
        TaskNotFoundError: If the task is missing or owned by someone else.
        NegativeActivityTotalError: If the day's total would drop below zero.
            Nothing is written in that case.
    """

    get_task_for_user(db, user_id, task_id)

    if not _increment_existing(db, task_id, day, count, metadata):
        if count < 0:
            db.rollback()
            raise NegativeActivityTotalError(day.isoformat())

        db.add(
            ActivityEntry(
                task_id=task_id,
                owner_id=user_id,
                day=day,
                count=count,
                metadata_=metadata,
            )
        )
        try:
            db.flush()
        except IntegrityError:
            # Another request created the row first; add to it instead.
            db.rollback()
            _increment_existing(db, task_id, day, count, metadata)

    entry = db.scalar(
        select(ActivityEntry)
        .where(ActivityEntry.task_id == task_id, ActivityEntry.day == day)
        .execution_options(populate_existing=True)
    )
    if entry is None:
        db.rollback()
        raise RuntimeError("Failed to record activity")
    if entry.count < 0:
        db.rollback()
        raise NegativeActivityTotalError(day.isoformat())

    db.commit()

    log.info(
        "activity_recorded",
        task_id=task_id,
        day=day.isoformat(),
        increment=count,
        total=entry.count,
    )
    return entry


def get_activity_for_task(db: Session, task_id: str) -> list[ActivityEntry]:
    return list(
        db.scalars(
            select(ActivityEntry)
            .where(ActivityEntry.task_id == task_id)
            .order_by(ActivityEntry.day.asc())
        ).all()
    )


def get_activity_for_user(db: Session, user_id: str) -> list[ActivityEntry]:
    return list(
        db.scalars(
            select(ActivityEntry)
            .where(ActivityEntry.owner_id == user_id)
            .order_by(ActivityEntry.day.asc())
        ).all()
    )
