"""Activity and climb-segment aggregation.

Pure transformation: activities and their segment records are folded into an
:class:`AggregateResult`, which :func:`summarize` turns into per-activity
averages. No I/O happens here; fetching lives in ``AggregateService``.

Extremal records only change on a strictly better value, so the first segment
seen wins a tie.
"""

from __future__ import annotations

from enum import Enum
from typing import Iterable, Optional

from .models import ActivitySummary, AggregateResult, SegmentRecord, SummaryReport


class MaxGradePolicy(str, Enum):
    """How a segment's maximum grade is compared with the current holder."""

    # Compare against the holder's maximum grade.
    MAXIMUM = "maximum"
    # Compare against the holder's average grade (reference output).
    LEGACY = "legacy"


def add_activity(result: AggregateResult, activity: ActivitySummary) -> None:
    result.speed_sum += activity.average_speed
    result.distance_sum += activity.distance
    result.elevation_sum += activity.total_elevation_gain
    result.activity_count += 1


def _is_bigger_climb(segment: SegmentRecord, holder: Optional[SegmentRecord]) -> bool:
    # Downhill or flat segments never count as climbs.
    if segment.average_grade <= 0:
        return False
    return holder is None or segment.elevation_gain > holder.elevation_gain


def _is_tougher_average(segment: SegmentRecord, holder: Optional[SegmentRecord]) -> bool:
    return holder is None or segment.average_grade > holder.average_grade


def _is_tougher_maximum(
    segment: SegmentRecord,
    holder: Optional[SegmentRecord],
    policy: MaxGradePolicy,
) -> bool:
    if holder is None:
        return True
    if policy is MaxGradePolicy.LEGACY:
        return segment.maximum_grade > holder.average_grade
    return segment.maximum_grade > holder.maximum_grade


def add_segment(
    result: AggregateResult,
    segment: SegmentRecord,
    *,
    max_grade_policy: MaxGradePolicy = MaxGradePolicy.MAXIMUM,
) -> None:
    result.category_counts[segment.climb_category] += 1
    result.segment_count += 1
    if _is_bigger_climb(segment, result.biggest_climb):
        result.biggest_climb = segment
    if _is_tougher_average(segment, result.toughest_average_grade):
        result.toughest_average_grade = segment
    if _is_tougher_maximum(segment, result.toughest_maximum_grade, max_grade_policy):
        result.toughest_maximum_grade = segment


def add_segments(
    result: AggregateResult,
    segments: Iterable[SegmentRecord],
    *,
    max_grade_policy: MaxGradePolicy = MaxGradePolicy.MAXIMUM,
) -> None:
    for segment in segments:
        add_segment(result, segment, max_grade_policy=max_grade_policy)


def summarize(result: AggregateResult) -> SummaryReport | None:
    """Convert running sums into averages; ``None`` when no activity was counted."""

    count = result.activity_count
    if count == 0:
        return None
    return SummaryReport(
        activity_count=count,
        segment_count=result.segment_count,
        # m/s -> km/h
        average_speed_kmh=result.speed_sum / count / 1000 * 3600,
        total_distance_km=result.distance_sum / 1000,
        total_elevation_m=result.elevation_sum,
        average_distance_km=result.distance_sum / count / 1000,
        average_elevation_m=result.elevation_sum / count,
        category_counts=dict(result.category_counts),
        biggest_climb=result.biggest_climb,
        toughest_average_grade=result.toughest_average_grade,
        toughest_maximum_grade=result.toughest_maximum_grade,
    )


__all__ = [
    "MaxGradePolicy",
    "add_activity",
    "add_segment",
    "add_segments",
    "summarize",
]
