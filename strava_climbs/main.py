from __future__ import annotations

import argparse
import logging
from datetime import datetime
from typing import Optional, Sequence

from . import config
from .aggregation import MaxGradePolicy, summarize
from .errors import AuthorizationError, ConfigurationError, FetchError
from .oauth import authorize
from .report import render_report, summary_to_dict
from .services import AggregateService, AggregateServiceConfig
from .utils import parse_iso_datetime, pretty_json, to_utc_aware

LOGGER = logging.getLogger(__name__)

MISSING_CREDENTIALS_MESSAGE = (
    "Must provide either athlete access token or app client ID and app client secret"
)


def _setup_logging() -> None:
    if not logging.getLogger().hasHandlers():
        logging.basicConfig(
            level=logging.INFO,
            format="[%(asctime)s] %(levelname)s %(name)s: %(message)s",
        )


def _window_date(value: str) -> datetime:
    parsed = parse_iso_datetime(value)
    if parsed is None:
        raise argparse.ArgumentTypeError(f"invalid ISO date: {value!r}")
    return to_utc_aware(parsed)


def _parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    """Build and parse CLI arguments."""

    parser = argparse.ArgumentParser(
        description="Summarise Strava activities and climb segments for a date window"
    )
    parser.add_argument(
        "-token",
        "--token",
        default=config.ACCESS_TOKEN,
        help="Athlete access token (skips browser authorisation)",
    )
    parser.add_argument(
        "-client-id",
        "--client-id",
        type=int,
        default=config.CLIENT_ID,
        help="Application client ID",
    )
    parser.add_argument(
        "-client-secret",
        "--client-secret",
        default=config.CLIENT_SECRET,
        help="Application client secret",
    )
    parser.add_argument(
        "--after",
        type=_window_date,
        default=config.DEFAULT_WINDOW_START,
        help="Window start (ISO date, UTC when no offset is given)",
    )
    parser.add_argument(
        "--before",
        type=_window_date,
        default=config.DEFAULT_WINDOW_END,
        help="Window end (ISO date, UTC when no offset is given)",
    )
    parser.add_argument(
        "--all-pages",
        action="store_true",
        default=config.FETCH_ALL_PAGES,
        help="Follow pagination instead of reading only the first 200 activities",
    )
    parser.add_argument(
        "--skip-segments",
        action="store_true",
        help="Do not fetch per-activity segment efforts",
    )
    parser.add_argument(
        "--max-grade-policy",
        choices=[policy.value for policy in MaxGradePolicy],
        default=config.MAX_GRADE_POLICY,
        help="Compare maximum grade against the holder's maximum (default) or average grade (legacy)",
    )
    parser.add_argument(
        "--auth-timeout",
        type=float,
        default=config.OAUTH_WAIT_TIMEOUT,
        help="Seconds to wait for browser authorisation (default: wait forever)",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Also print the summary as JSON",
    )
    return parser.parse_args(argv)


def _resolve_token(args: argparse.Namespace) -> str:
    if args.token:
        return args.token
    if not args.client_id or not args.client_secret:
        raise ConfigurationError(MISSING_CREDENTIALS_MESSAGE)
    return authorize(
        args.client_id, args.client_secret, wait_timeout=args.auth_timeout
    )


def _service_config(args: argparse.Namespace) -> AggregateServiceConfig:
    try:
        policy = MaxGradePolicy(args.max_grade_policy)
    except ValueError as exc:
        raise ConfigurationError(
            f"Unknown max grade policy {args.max_grade_policy!r}"
        ) from exc
    return AggregateServiceConfig(
        include_segments=not args.skip_segments,
        fetch_all_pages=args.all_pages,
        max_grade_policy=policy,
    )


def main(argv: Optional[Sequence[str]] = None) -> int:
    _setup_logging()
    args = _parse_args(argv)

    try:
        token = _resolve_token(args)
    except ConfigurationError as exc:
        LOGGER.error("%s", exc)
        return 1
    except AuthorizationError as exc:
        LOGGER.error("Failed to obtain athlete access token: %s", exc)
        return 1

    if not token:
        LOGGER.error("No athlete access token")
        return 1

    try:
        service = AggregateService(_service_config(args))
        result = service.aggregate(token, args.after, args.before)
    except ConfigurationError as exc:
        LOGGER.error("%s", exc)
        return 1
    except FetchError as exc:
        if exc.activity_id is not None:
            LOGGER.error("Failed to obtain activity %s: %s", exc.activity_id, exc)
        else:
            LOGGER.error("Failed to obtain activities list: %s", exc)
        return 1

    summary = summarize(result)
    print(render_report(summary, args.after, args.before))
    if args.json:
        print(pretty_json(summary_to_dict(summary)))
    return 0
