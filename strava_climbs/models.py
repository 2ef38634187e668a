from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import IntEnum
from typing import Any, Dict, Mapping, Optional

from .errors import FetchError
from .utils import parse_iso_datetime


class ClimbCategory(IntEnum):
    """Strava climb categories keyed by their API values."""

    UNCATEGORIZED = 0
    CATEGORY_4 = 1
    CATEGORY_3 = 2
    CATEGORY_2 = 3
    CATEGORY_1 = 4
    HORS_CATEGORIE = 5

    @property
    def label(self) -> str:
        return _CATEGORY_LABELS[self]


_CATEGORY_LABELS = {
    ClimbCategory.UNCATEGORIZED: "Uncategorized",
    ClimbCategory.CATEGORY_4: "Category 4",
    ClimbCategory.CATEGORY_3: "Category 3",
    ClimbCategory.CATEGORY_2: "Category 2",
    ClimbCategory.CATEGORY_1: "Category 1",
    ClimbCategory.HORS_CATEGORIE: "HC",
}


def _as_float(value: Any) -> float:
    if isinstance(value, bool):
        return 0.0
    if isinstance(value, (int, float)):
        return float(value)
    return 0.0


@dataclass(frozen=True)
class ActivitySummary:
    id: int
    name: str
    average_speed: float  # m/s
    distance: float  # metres
    total_elevation_gain: float  # metres
    start_date: Optional[datetime] = None

    @classmethod
    def from_api(cls, payload: Mapping[str, Any]) -> "ActivitySummary":
        activity_id = payload.get("id")
        if activity_id is None:
            raise FetchError(f"Activity payload without id: {sorted(payload)}")
        start_raw = payload.get("start_date")
        return cls(
            id=int(activity_id),
            name=str(payload.get("name") or ""),
            average_speed=_as_float(payload.get("average_speed")),
            distance=_as_float(payload.get("distance")),
            total_elevation_gain=_as_float(payload.get("total_elevation_gain")),
            start_date=parse_iso_datetime(start_raw) if isinstance(start_raw, str) else None,
        )


@dataclass(frozen=True)
class SegmentRecord:
    segment_id: int
    name: str
    climb_category: ClimbCategory
    elevation_high: float
    elevation_low: float
    average_grade: float
    maximum_grade: float

    @property
    def elevation_gain(self) -> float:
        return self.elevation_high - self.elevation_low

    @classmethod
    def from_effort(
        cls, effort: Mapping[str, Any], activity_id: int | None = None
    ) -> "SegmentRecord":
        """Build a record from a segment effort's nested ``segment`` object."""

        segment = effort.get("segment")
        if not isinstance(segment, Mapping):
            raise FetchError(
                f"Segment effort {effort.get('id')} has no segment details",
                activity_id=activity_id,
            )
        raw_category = segment.get("climb_category", 0)
        try:
            category = ClimbCategory(int(raw_category))
        except (TypeError, ValueError) as exc:
            raise FetchError(
                f"Unexpected climb_category {raw_category!r} on segment {segment.get('id')}",
                activity_id=activity_id,
            ) from exc
        return cls(
            segment_id=int(segment.get("id") or 0),
            name=str(segment.get("name") or effort.get("name") or ""),
            climb_category=category,
            elevation_high=_as_float(segment.get("elevation_high")),
            elevation_low=_as_float(segment.get("elevation_low")),
            average_grade=_as_float(segment.get("average_grade")),
            maximum_grade=_as_float(segment.get("maximum_grade")),
        )


def _empty_category_counts() -> Dict[ClimbCategory, int]:
    return {category: 0 for category in ClimbCategory}


@dataclass
class AggregateResult:
    speed_sum: float = 0.0
    distance_sum: float = 0.0
    elevation_sum: float = 0.0
    activity_count: int = 0
    segment_count: int = 0
    category_counts: Dict[ClimbCategory, int] = field(
        default_factory=_empty_category_counts
    )
    biggest_climb: Optional[SegmentRecord] = None
    toughest_average_grade: Optional[SegmentRecord] = None
    toughest_maximum_grade: Optional[SegmentRecord] = None


@dataclass(frozen=True)
class SummaryReport:
    activity_count: int
    segment_count: int
    average_speed_kmh: float
    total_distance_km: float
    total_elevation_m: float
    average_distance_km: float
    average_elevation_m: float
    category_counts: Dict[ClimbCategory, int]
    biggest_climb: Optional[SegmentRecord]
    toughest_average_grade: Optional[SegmentRecord]
    toughest_maximum_grade: Optional[SegmentRecord]


@dataclass
class AuthorizationResponse:
    access_token: str
    refresh_token: str | None = None
    expires_at: int | None = None
    state: str | None = None
    athlete: Dict[str, Any] = field(default_factory=dict)
