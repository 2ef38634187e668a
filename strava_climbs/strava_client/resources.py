"""Generic JSON resource fetcher for bearer-authenticated Strava calls."""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import requests

from ..config import REQUEST_TIMEOUT
from ..errors import FetchError
from .rate_limiter import RateLimiter
from .response_handling import raise_for_strava_status
from .session import get_default_session

LOGGER = logging.getLogger(__name__)


def auth_headers(token: str) -> Dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


class ResourceAPI:
    """Single-attempt JSON GETs; every failure surfaces as :class:`FetchError`."""

    def __init__(
        self,
        *,
        session: requests.Session | None = None,
        limiter: RateLimiter | None = None,
        timeout: int = REQUEST_TIMEOUT,
    ) -> None:
        self._session = session or get_default_session()
        self._limiter = limiter or RateLimiter()
        self._timeout = timeout

    def fetch_json(
        self,
        token: str,
        url: str,
        params: Optional[Dict[str, Any]],
        context: str,
        *,
        activity_id: int | None = None,
    ) -> Any:
        self._limiter.before_request()
        try:
            response = self._session.get(
                url,
                headers=auth_headers(token),
                params=params,
                timeout=self._timeout,
            )
        except requests.RequestException as exc:
            self._limiter.after_response(None, None)
            message = f"{context} network error: {exc.__class__.__name__}"
            LOGGER.error(message)
            raise FetchError(message, activity_id=activity_id) from exc
        self._limiter.after_response(response.headers, response.status_code)

        raise_for_strava_status(response, context, activity_id=activity_id)

        try:
            return response.json()
        except ValueError as exc:
            message = f"{context} returned non-JSON payload"
            LOGGER.error(message)
            raise FetchError(message, activity_id=activity_id) from exc
