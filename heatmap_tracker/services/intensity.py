from collections.abc import Iterable
from collections.abc import Mapping
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class IntensityLevel:
    """Labeled minimum-count threshold used to color a heatmap day."""

    label: str
    min_count: int
    color: str

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> "IntensityLevel":
        return cls(
            label=str(raw["label"]),
            min_count=int(raw["min_count"]),
            color=str(raw["color"]),
        )

    def as_dict(self) -> dict[str, str | int]:
        return {"label": self.label, "min_count": self.min_count, "color": self.color}


DEFAULT_INTENSITY_LEVELS: tuple[IntensityLevel, ...] = (
    IntensityLevel(label="light", min_count=1, color="#D6E685"),
    IntensityLevel(label="medium", min_count=3, color="#8CC665"),
    IntensityLevel(label="heavy", min_count=5, color="#44A340"),
)


def levels_from_rows(rows: Iterable[Mapping[str, Any]]) -> list[IntensityLevel]:
    """Convert stored JSON level objects into IntensityLevel values."""

    return [IntensityLevel.from_mapping(row) for row in rows]


def classify(levels: Sequence[IntensityLevel], count: int) -> IntensityLevel | None:
    """Return the highest threshold that ``count`` reaches, or None.

    Levels are sorted by ``min_count`` first, so stored order does not matter
    except between levels sharing a ``min_count``: the sort is stable and the
    scan keeps the last qualifying level, so the one listed last wins.
    Non-positive counts never receive a level.
    """

    if count <= 0:
        return None

    matched: IntensityLevel | None = None
    for level in sorted(levels, key=lambda item: item.min_count):
        if level.min_count > count:
            break
        matched = level

    return matched
