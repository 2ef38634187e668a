"""Athlete activity listing and per-activity segment effort fetches."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

import requests

from ..config import ACTIVITY_PAGE_SIZE, STRAVA_BASE_URL
from ..errors import FetchError
from ..models import ActivitySummary, SegmentRecord
from .rate_limiter import RateLimiter
from .resources import ResourceAPI
from .session import get_default_session

LOGGER = logging.getLogger(__name__)


class ActivitiesAPI:
    def __init__(
        self,
        *,
        session: requests.Session | None = None,
        limiter: RateLimiter | None = None,
        resources: ResourceAPI | None = None,
        page_size: int = ACTIVITY_PAGE_SIZE,
    ) -> None:
        self._session = session or get_default_session()
        self._limiter = limiter or RateLimiter()
        self._resources = resources or ResourceAPI(
            session=self._session,
            limiter=self._limiter,
        )
        self._page_size = page_size

    def list_activities(
        self,
        token: str,
        start_date: datetime,
        end_date: datetime,
        *,
        max_pages: Optional[int] = 1,
    ) -> List[ActivitySummary]:
        """Fetch the athlete's activities in [start_date, end_date].

        ``max_pages=None`` keeps paging until Strava returns a short page.
        """

        url = f"{STRAVA_BASE_URL}/athlete/activities"
        base_params = {
            "after": int(start_date.timestamp()),
            "before": int(end_date.timestamp()),
            "per_page": self._page_size,
        }
        activities: List[ActivitySummary] = []
        page = 1
        while max_pages is None or page <= max_pages:
            params = dict(base_params)
            params["page"] = page
            data = self._resources.fetch_json(
                token, url, params, f"activities page={page}"
            )
            if not isinstance(data, list):
                raise FetchError(
                    f"Unexpected JSON shape (not list) for activities page={page} "
                    f"type={type(data).__name__}"
                )
            for item in data:
                if not isinstance(item, dict):
                    raise FetchError(
                        f"Unexpected activity entry on page={page} type={type(item).__name__}"
                    )
                activities.append(ActivitySummary.from_api(item))
            LOGGER.debug("Fetched activities page=%s count=%s", page, len(data))
            if len(data) < self._page_size:
                break
            page += 1
        else:
            LOGGER.warning(
                "Stopped after %s page(s) of activities; later activities in the window are not included",
                max_pages,
            )
        return activities

    def get_activity(self, token: str, activity_id: int) -> Dict[str, Any]:
        """Fetch the detailed activity including every segment effort."""

        url = f"{STRAVA_BASE_URL}/activities/{activity_id}"
        data = self._resources.fetch_json(
            token,
            url,
            {"include_all_efforts": "true"},
            f"activity {activity_id}",
            activity_id=activity_id,
        )
        if not isinstance(data, dict):
            raise FetchError(
                f"Unexpected JSON shape for activity {activity_id}: {type(data).__name__}",
                activity_id=activity_id,
            )
        return data

    def get_segment_records(self, token: str, activity_id: int) -> List[SegmentRecord]:
        detail = self.get_activity(token, activity_id)
        efforts = detail.get("segment_efforts") or []
        if not isinstance(efforts, list):
            raise FetchError(
                f"segment_efforts for activity {activity_id} is not a list",
                activity_id=activity_id,
            )
        records: List[SegmentRecord] = []
        for effort in efforts:
            if not isinstance(effort, dict):
                raise FetchError(
                    f"Unexpected segment effort entry for activity {activity_id} "
                    f"type={type(effort).__name__}",
                    activity_id=activity_id,
                )
            records.append(SegmentRecord.from_effort(effort, activity_id=activity_id))
        return records
