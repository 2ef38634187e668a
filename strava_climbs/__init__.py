"""Strava activity and climb segment summary package."""

from .main import main
from .models import (
    ActivitySummary,
    AggregateResult,
    ClimbCategory,
    SegmentRecord,
    SummaryReport,
)
from .errors import AuthorizationError, ConfigurationError, FetchError

__all__ = [
    "main",
    "ActivitySummary",
    "AggregateResult",
    "ClimbCategory",
    "SegmentRecord",
    "SummaryReport",
    "AuthorizationError",
    "ConfigurationError",
    "FetchError",
]
