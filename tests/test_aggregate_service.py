from datetime import datetime, timezone

import pytest

from strava_climbs.aggregation import MaxGradePolicy, summarize
from strava_climbs.errors import ConfigurationError, FetchError
from strava_climbs.models import ClimbCategory
from strava_climbs.services import AggregateService, AggregateServiceConfig

START = datetime(2019, 6, 1, tzinfo=timezone.utc)
END = datetime(2019, 8, 17, tzinfo=timezone.utc)


def _service(activities, segments_by_id, calls=None, **overrides):
    calls = calls if calls is not None else []

    def lister(token, start, end):
        calls.append(("list", token, start, end))
        return list(activities)

    def fetcher(token, activity_id):
        calls.append(("detail", token, activity_id))
        value = segments_by_id.get(activity_id, [])
        if isinstance(value, Exception):
            raise value
        return value

    config = AggregateServiceConfig(
        list_activities=lister,
        fetch_segments=fetcher,
        max_grade_policy=overrides.pop("max_grade_policy", MaxGradePolicy.MAXIMUM),
        **overrides,
    )
    return AggregateService(config)


def test_aggregate_folds_activities_and_segments(activity_factory, segment_factory):
    activities = [
        activity_factory(activity_id=1, speed=5.0, distance=10000.0, elevation=100.0),
        activity_factory(activity_id=2, speed=7.0, distance=30000.0, elevation=500.0),
    ]
    segments = {
        1: [segment_factory(segment_id=10, category=ClimbCategory.CATEGORY_3, high=250.0, low=100.0, avg_grade=5.0)],
        2: [
            segment_factory(segment_id=20, category=ClimbCategory.CATEGORY_1, high=900.0, low=200.0, avg_grade=7.0),
            segment_factory(segment_id=21, high=50.0, low=40.0, avg_grade=-1.0),
        ],
    }
    calls = []
    result = _service(activities, segments, calls).aggregate("tok", START, END)

    assert result.activity_count == 2
    assert result.segment_count == 3
    assert result.category_counts[ClimbCategory.CATEGORY_1] == 1
    assert result.category_counts[ClimbCategory.UNCATEGORIZED] == 1
    assert result.biggest_climb.segment_id == 20
    assert [c[0] for c in calls] == ["list", "detail", "detail"]
    summary = summarize(result)
    assert summary.average_speed_kmh == pytest.approx(6.0 * 3.6)


def test_aggregate_passes_window_and_token(activity_factory):
    calls = []
    _service([], {}, calls).aggregate("tok", START, END)
    assert calls == [("list", "tok", START, END)]


def test_naive_window_is_treated_as_utc():
    calls = []
    _service([], {}, calls).aggregate("tok", datetime(2019, 6, 1), datetime(2019, 8, 17))
    assert calls[0][2] == START
    assert calls[0][3] == END


def test_empty_window_yields_no_data():
    result = _service([], {}).aggregate("tok", START, END)
    assert result.activity_count == 0
    assert summarize(result) is None


def test_detail_failure_aborts_without_partial_result(activity_factory):
    activities = [activity_factory(activity_id=i) for i in (1, 2, 3)]
    calls = []
    service = _service(
        activities,
        {2: FetchError("activity 2 not found", activity_id=2)},
        calls,
    )
    with pytest.raises(FetchError) as excinfo:
        service.aggregate("tok", START, END)
    assert excinfo.value.activity_id == 2
    # Activity 3 is never fetched once activity 2 fails.
    assert ("detail", "tok", 3) not in calls


def test_list_failure_propagates():
    def lister(token, start, end):
        raise FetchError("boom")

    service = AggregateService(AggregateServiceConfig(list_activities=lister))
    with pytest.raises(FetchError):
        service.aggregate("tok", START, END)


def test_skip_segments_does_not_fetch_details(activity_factory):
    calls = []
    service = _service([activity_factory(activity_id=1)], {}, calls, include_segments=False)
    result = service.aggregate("tok", START, END)
    assert result.activity_count == 1
    assert result.segment_count == 0
    assert [c[0] for c in calls] == ["list"]


def test_empty_token_rejected():
    with pytest.raises(ConfigurationError):
        _service([], {}).aggregate("", START, END)


def test_inverted_window_rejected():
    with pytest.raises(ConfigurationError):
        _service([], {}).aggregate("tok", END, START)


def test_max_grade_policy_is_forwarded(activity_factory, segment_factory):
    holder = segment_factory(segment_id=1, avg_grade=3.0, max_grade=15.0)
    challenger = segment_factory(segment_id=2, avg_grade=2.0, max_grade=10.0)
    service = _service(
        [activity_factory(activity_id=1)],
        {1: [holder, challenger]},
        max_grade_policy=MaxGradePolicy.LEGACY,
    )
    result = service.aggregate("tok", START, END)
    assert result.toughest_maximum_grade is challenger


class _FakeActivitiesAPI:
    def __init__(self):
        self.max_pages = "unset"

    def list_activities(self, token, start, end, *, max_pages=1):
        self.max_pages = max_pages
        return []

    def get_segment_records(self, token, activity_id):  # pragma: no cover - unused
        return []


@pytest.mark.parametrize("fetch_all, expected", [(False, 1), (True, None)])
def test_default_lister_page_limit(fetch_all, expected):
    api = _FakeActivitiesAPI()
    service = AggregateService(
        AggregateServiceConfig(fetch_all_pages=fetch_all), api=api
    )
    service.aggregate("tok", START, END)
    assert api.max_pages == expected
