"""Shared HTTP response helpers for Strava API interactions."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import requests

from ..errors import (
    FetchError,
    StravaPermissionError,
    StravaRateLimitError,
    StravaResourceNotFoundError,
)

__all__ = [
    "raise_for_strava_status",
    "extract_error",
]

LOGGER = logging.getLogger(__name__)


def raise_for_strava_status(
    response: requests.Response,
    context: str,
    *,
    activity_id: int | None = None,
) -> None:
    """Raise the matching :class:`FetchError` for a non-success status."""

    status = response.status_code
    if status < 400:
        return
    detail = extract_error(response)

    def with_detail(message: str) -> str:
        return f"{message} | {detail}" if detail else message

    if status == 429:
        message = with_detail(f"{context} rate limited (429)")
        LOGGER.warning(message)
        raise StravaRateLimitError(message, activity_id=activity_id)

    if status in (401, 403):
        message = with_detail(f"{context} forbidden (status {status})")
        LOGGER.warning(message)
        raise StravaPermissionError(message, activity_id=activity_id)

    if status == 404:
        message = with_detail(f"{context} not found")
        LOGGER.info(message)
        raise StravaResourceNotFoundError(message, activity_id=activity_id)

    message = with_detail(f"{context} request failed (status {status})")
    LOGGER.error(message)
    raise FetchError(message, activity_id=activity_id)


def extract_error(resp: Optional[requests.Response]) -> Optional[str]:
    """Return compact string with Strava error info (message + codes) if present."""

    if resp is None:
        return None
    try:
        data = resp.json()
    except ValueError:
        return _extract_error_text(resp)
    if not isinstance(data, dict):
        return None
    parts = _collect_error_parts(data)
    return " | ".join(parts) if parts else None


def _extract_error_text(resp: requests.Response) -> Optional[str]:
    text = getattr(resp, "text", "")
    if not isinstance(text, str):
        return None
    trimmed = text.strip()
    if not trimmed:
        return None
    return (trimmed[:297] + "...") if len(trimmed) > 300 else trimmed


def _collect_error_parts(data: Dict[str, Any]) -> List[str]:
    parts: List[str] = []
    message = data.get("message")
    if message:
        parts.append(str(message))
    errors = data.get("errors")
    if isinstance(errors, list):
        for err in errors:
            if not isinstance(err, dict):
                continue
            spec = "/".join(filter(None, (err.get("resource"), err.get("field"))))
            code = err.get("code")
            if code and spec:
                parts.append(f"{spec}:{code}")
            elif code:
                parts.append(str(code))
    return parts
