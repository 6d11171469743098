from datetime import date
from datetime import datetime
from typing import Any

from pydantic import BaseModel
from pydantic import Field

from heatmap_tracker.models import ActivityEntry


class ActivityCreate(BaseModel):
    """Increment for one task on one calendar day."""

    task_id: str = Field(min_length=1)
    date: date
    count: int
    metadata: dict[str, Any] | None = None


class ActivityResponse(BaseModel):
    id: str
    task_id: str
    owner_id: str
    date: date
    count: int
    metadata: dict[str, Any] | None
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_entry(cls, entry: ActivityEntry) -> "ActivityResponse":
        return cls(
            id=entry.id,
            task_id=entry.task_id,
            owner_id=entry.owner_id,
            date=entry.day,
            count=entry.count,
            metadata=entry.metadata_,
            created_at=entry.created_at,
            updated_at=entry.updated_at,
        )
