"""Plain-text and JSON renderings of a ``SummaryReport``."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional

from .models import ClimbCategory, SegmentRecord, SummaryReport


def format_segment(segment: Optional[SegmentRecord]) -> str:
    if segment is None:
        return "none"
    name = segment.name or f"segment {segment.segment_id}"
    return (
        f"{name} [{segment.climb_category.label}] "
        f"{segment.elevation_gain:+.1f} m "
        f"(avg {segment.average_grade:.1f}%, max {segment.maximum_grade:.1f}%)"
    )


def render_report(
    summary: SummaryReport | None,
    window_start: datetime | None = None,
    window_end: datetime | None = None,
) -> str:
    if summary is None:
        if window_start is not None and window_end is not None:
            return (
                f"No activities found between {window_start.date()} "
                f"and {window_end.date()}"
            )
        return "No activities found"

    lines: List[str] = [
        f"Activities: {summary.activity_count}",
        f"Segment efforts: {summary.segment_count}",
        f"Average speed: {summary.average_speed_kmh:f} kph",
        f"Total distance: {summary.total_distance_km:.2f} km",
        f"Total elevation: {summary.total_elevation_m:.1f} m",
        f"Average distance/day: {summary.average_distance_km:.2f} km",
        f"Average elevation/day: {summary.average_elevation_m:.1f} m",
        "Climb categories:",
    ]
    for category in ClimbCategory:
        lines.append(f"  {category.label}: {summary.category_counts.get(category, 0)}")
    lines.extend(
        [
            f"Biggest climb: {format_segment(summary.biggest_climb)}",
            f"Toughest average grade: {format_segment(summary.toughest_average_grade)}",
            f"Toughest maximum grade: {format_segment(summary.toughest_maximum_grade)}",
        ]
    )
    return "\n".join(lines)


def summary_to_dict(summary: SummaryReport | None) -> Dict[str, Any]:
    """JSON-friendly form; ``{"activity_count": 0}`` stands for no data."""

    if summary is None:
        return {"activity_count": 0}

    def segment_dict(segment: Optional[SegmentRecord]) -> Optional[Dict[str, Any]]:
        if segment is None:
            return None
        return {
            "segment_id": segment.segment_id,
            "name": segment.name,
            "climb_category": segment.climb_category.label,
            "elevation_gain": segment.elevation_gain,
            "average_grade": segment.average_grade,
            "maximum_grade": segment.maximum_grade,
        }

    return {
        "activity_count": summary.activity_count,
        "segment_count": summary.segment_count,
        "average_speed_kmh": summary.average_speed_kmh,
        "total_distance_km": summary.total_distance_km,
        "total_elevation_m": summary.total_elevation_m,
        "average_distance_km": summary.average_distance_km,
        "average_elevation_m": summary.average_elevation_m,
        "category_counts": {
            category.label: summary.category_counts.get(category, 0)
            for category in ClimbCategory
        },
        "biggest_climb": segment_dict(summary.biggest_climb),
        "toughest_average_grade": segment_dict(summary.toughest_average_grade),
        "toughest_maximum_grade": segment_dict(summary.toughest_maximum_grade),
    }
