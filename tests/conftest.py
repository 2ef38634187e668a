"""Global pytest fixtures & helpers.

Adds project root to path and provides reusable factories for activity and
segment aggregation tests to avoid duplication across files.
"""
from __future__ import annotations

import os
import sys

import pytest

ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

from strava_climbs.models import ActivitySummary, ClimbCategory, SegmentRecord


# --- Factory helpers -------------------------------------------------
def make_activity(activity_id=1, speed=5.0, distance=10000.0, elevation=100.0, name="Ride"):
    return ActivitySummary(
        id=activity_id,
        name=name,
        average_speed=speed,
        distance=distance,
        total_elevation_gain=elevation,
    )


def make_segment(
    segment_id=1,
    category=ClimbCategory.UNCATEGORIZED,
    high=100.0,
    low=0.0,
    avg_grade=1.0,
    max_grade=2.0,
    name=None,
):
    return SegmentRecord(
        segment_id=segment_id,
        name=name or f"Segment {segment_id}",
        climb_category=category,
        elevation_high=high,
        elevation_low=low,
        average_grade=avg_grade,
        maximum_grade=max_grade,
    )


def make_effort_payload(segment_id=1, climb_category=0, high=100.0, low=0.0, avg=1.0, maximum=2.0):
    return {
        "id": 1000 + segment_id,
        "name": f"Effort {segment_id}",
        "segment": {
            "id": segment_id,
            "name": f"Segment {segment_id}",
            "climb_category": climb_category,
            "elevation_high": high,
            "elevation_low": low,
            "average_grade": avg,
            "maximum_grade": maximum,
        },
    }


# --- Fixtures --------------------------------------------------------
@pytest.fixture
def scenario_activity():
    return make_activity(activity_id=42, speed=5.0, distance=10000.0, elevation=100.0)


@pytest.fixture
def scenario_segment():
    return make_segment(
        segment_id=7,
        category=ClimbCategory.CATEGORY_2,
        high=500.0,
        low=300.0,
        avg_grade=4.0,
        max_grade=9.0,
    )


@pytest.fixture
def activity_factory():
    return make_activity


@pytest.fixture
def segment_factory():
    return make_segment


@pytest.fixture
def effort_payload_factory():
    return make_effort_payload
