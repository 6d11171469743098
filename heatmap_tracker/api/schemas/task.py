from datetime import datetime

from pydantic import BaseModel
from pydantic import ConfigDict
from pydantic import Field

from heatmap_tracker.services.intensity import IntensityLevel


class IntensityLevelSchema(BaseModel):
    """Labeled count threshold and the color it renders with."""

    model_config = ConfigDict(from_attributes=True)

    label: str = Field(min_length=1, max_length=50)
    min_count: int = Field(ge=1)
    color: str = Field(min_length=1, max_length=50)

    def to_domain(self) -> IntensityLevel:
        return IntensityLevel(
            label=self.label, min_count=self.min_count, color=self.color
        )


class TaskCreate(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    description: str | None = Field(default=None, max_length=2000)
    intensity_levels: list[IntensityLevelSchema] | None = None


class IntensityLevelsUpdate(BaseModel):
    intensity_levels: list[IntensityLevelSchema]


class TaskResponse(BaseModel):
    """Stored task with its intensity levels in stored order."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    owner_id: str
    name: str
    description: str | None
    created_at: datetime
    intensity_levels: list[IntensityLevelSchema]
