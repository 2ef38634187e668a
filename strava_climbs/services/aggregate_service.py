"""Activity aggregation service.

Fetches the athlete's activities for a window, then each activity's segment
efforts, one request at a time, and folds everything into an
``AggregateResult`` via the pure helpers in ``aggregation``. The first fetch
error aborts the run; nothing is skipped or retried.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, List, Optional

from ..aggregation import MaxGradePolicy, add_activity, add_segments
from ..config import FETCH_ALL_PAGES, MAX_GRADE_POLICY
from ..errors import ConfigurationError
from ..models import ActivitySummary, AggregateResult, SegmentRecord
from ..strava_client import ActivitiesAPI
from ..utils import to_utc_aware

ActivityLister = Callable[[str, datetime, datetime], List[ActivitySummary]]
SegmentFetcher = Callable[[str, int], List[SegmentRecord]]


@dataclass(slots=True)
class AggregateServiceConfig:
    list_activities: Optional[ActivityLister] = None
    fetch_segments: Optional[SegmentFetcher] = None
    include_segments: bool = True
    fetch_all_pages: bool = FETCH_ALL_PAGES
    max_grade_policy: MaxGradePolicy = field(
        default_factory=lambda: MaxGradePolicy(MAX_GRADE_POLICY)
    )
    logger: logging.Logger | None = None


class AggregateService:
    def __init__(
        self,
        config: AggregateServiceConfig | None = None,
        *,
        api: ActivitiesAPI | None = None,
    ) -> None:
        self.config = config or AggregateServiceConfig()
        self._log = self.config.logger or logging.getLogger(self.__class__.__name__)
        self._api = api
        self._list_activities = self.config.list_activities or self._default_lister
        self._fetch_segments = self.config.fetch_segments or self._default_segment_fetcher

    def _activities_api(self) -> ActivitiesAPI:
        if self._api is None:
            self._api = ActivitiesAPI()
        return self._api

    def _default_lister(
        self, token: str, start: datetime, end: datetime
    ) -> List[ActivitySummary]:
        max_pages = None if self.config.fetch_all_pages else 1
        return self._activities_api().list_activities(
            token, start, end, max_pages=max_pages
        )

    def _default_segment_fetcher(self, token: str, activity_id: int) -> List[SegmentRecord]:
        return self._activities_api().get_segment_records(token, activity_id)

    def aggregate(
        self, token: str, window_start: datetime, window_end: datetime
    ) -> AggregateResult:
        if not token:
            raise ConfigurationError("No athlete access token")
        start = to_utc_aware(window_start)
        end = to_utc_aware(window_end)
        if start > end:
            raise ConfigurationError(
                f"Window start {start.isoformat()} is after window end {end.isoformat()}"
            )

        self._log.info(
            "Listing activities between %s and %s", start.isoformat(), end.isoformat()
        )
        activities = self._list_activities(token, start, end)
        self._log.info("Fetched %d activities", len(activities))

        result = AggregateResult()
        for index, activity in enumerate(activities, start=1):
            add_activity(result, activity)
            if not self.config.include_segments:
                continue
            segments = self._fetch_segments(token, activity.id)
            add_segments(
                result, segments, max_grade_policy=self.config.max_grade_policy
            )
            self._log.debug(
                "Activity %s (%d/%d) contributed %d segment efforts",
                activity.id,
                index,
                len(activities),
                len(segments),
            )
        return result
