"""Central configuration for the Strava climbs summary tool.

All values are constants imported by the rest of the package. Adjust as needed
for your environment. Secrets are read from environment variables (optionally
via a local `.env`).
"""

from __future__ import annotations

import os
from datetime import datetime, timezone

from dotenv import load_dotenv


def _env_float(key: str, default: float | None) -> float | None:
    value = os.getenv(key)
    if value is None or not value.strip():
        return default
    try:
        return float(value)
    except ValueError:
        return default


def _env_int(key: str, default: int) -> int:
    value = os.getenv(key)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        return default


def _env_bool(key: str, default: bool) -> bool:
    value = os.getenv(key)
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "on"}:
        return True
    if normalized in {"0", "false", "no", "off"}:
        return False
    return default


# Load .env from the current directory or any parent folder.
load_dotenv()


# ---------------------------------------------------------------------------
# Strava settings
# ---------------------------------------------------------------------------
STRAVA_BASE_URL = "https://www.strava.com/api/v3"
STRAVA_AUTHORIZE_URL = "https://www.strava.com/oauth/authorize"
STRAVA_OAUTH_URL = "https://www.strava.com/oauth/token"

# Application credentials. The client ID defaults to the registered app; the
# secret must come from the environment or the command line.
CLIENT_ID = _env_int("STRAVA_CLIENT_ID", 38247)
CLIENT_SECRET = os.getenv("STRAVA_CLIENT_SECRET", "")

# An athlete access token skips the browser authorisation entirely.
ACCESS_TOKEN = os.getenv("STRAVA_ACCESS_TOKEN", "")


# ---------------------------------------------------------------------------
# Local OAuth listener
# ---------------------------------------------------------------------------
# Host/port must match the callback domain registered for the Strava app.
OAUTH_HOST = os.getenv("STRAVA_OAUTH_HOST", "localhost")
OAUTH_PORT = _env_int("STRAVA_OAUTH_PORT", 8080)
OAUTH_CALLBACK_PATH = "/exchange_token"

# Read-only access including private activities.
OAUTH_SCOPE = "read,activity:read_all"

# Opaque state echoed back by Strava on the callback.
OAUTH_STATE = os.getenv("STRAVA_OAUTH_STATE", "state1")

# Seconds to wait for the browser consent. Unset means wait forever.
OAUTH_WAIT_TIMEOUT = _env_float("STRAVA_OAUTH_WAIT_TIMEOUT", None)


# ---------------------------------------------------------------------------
# Activity window and aggregation
# ---------------------------------------------------------------------------
DEFAULT_WINDOW_START = datetime(2019, 6, 1, tzinfo=timezone.utc)
DEFAULT_WINDOW_END = datetime(2019, 8, 17, tzinfo=timezone.utc)

# Strava caps per_page at 200.
ACTIVITY_PAGE_SIZE = 200

# Only the first page is read unless enabled; larger windows are truncated.
FETCH_ALL_PAGES = _env_bool("STRAVA_FETCH_ALL_PAGES", False)

# "maximum" compares maximum grades; "legacy" compares a segment's maximum
# grade against the current holder's average grade.
MAX_GRADE_POLICY = os.getenv("STRAVA_MAX_GRADE_POLICY", "maximum")


# ---------------------------------------------------------------------------
# HTTP tuning
# ---------------------------------------------------------------------------
HTTP_POOL_CONNECTIONS = 4
HTTP_POOL_MAXSIZE = 4

# Request timeout in seconds.
REQUEST_TIMEOUT = 15

# RATE_LIMIT_NEAR_LIMIT_BUFFER starts throttling when this close to the short-window limit.
RATE_LIMIT_NEAR_LIMIT_BUFFER = 3
# RATE_LIMIT_THROTTLE_SECONDS is the pause applied before the next request when near the limit.
RATE_LIMIT_THROTTLE_SECONDS = _env_int("STRAVA_RATE_LIMIT_THROTTLE_SECONDS", 15)
