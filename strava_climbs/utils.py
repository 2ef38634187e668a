"""General utility helpers shared across modules."""

from __future__ import annotations

import json
from datetime import date, datetime, timezone
from typing import Any


def mask_token(token: str | None, visible: int = 4) -> str:
    """Return ``token`` with all but the trailing ``visible`` chars masked."""

    if not token:
        return ""
    visible = max(0, visible)
    if visible == 0:
        return "*" * len(token)
    hidden_length = max(len(token) - visible, 0)
    if hidden_length == 0:
        return token
    return ("*" * hidden_length) + token[-visible:]


def parse_iso_datetime(value: str | None) -> datetime | None:
    """Parse ISO dates like ``2019-06-01`` or ``2019-06-01T08:00:00Z``."""

    if not value:
        return None
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(text)
    except ValueError:
        return None


def to_utc_aware(value: datetime) -> datetime:
    """Treat naive datetimes as UTC and convert aware ones to UTC."""

    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _normalise_value(value: Any) -> Any:
    """Convert objects to JSON-friendly representations."""

    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, (list, tuple)):
        return [_normalise_value(item) for item in value]
    if isinstance(value, dict):
        return {str(key): _normalise_value(val) for key, val in value.items()}
    return value


def pretty_json(value: Any) -> str:
    """Return tab-indented JSON for debug output."""

    try:
        return json.dumps(_normalise_value(value), indent="\t")
    except (TypeError, ValueError) as exc:
        return f"json marshal failure: {exc}"
