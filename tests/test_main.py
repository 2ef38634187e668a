import importlib
import json
import logging

import pytest

from strava_climbs.errors import AuthorizationDeniedError, FetchError
from strava_climbs.models import AggregateResult

cli = importlib.import_module("strava_climbs.main")


class FakeService:
    instances = []

    def __init__(self, config=None, result=None, error=None):
        self.config = config
        self.calls = []
        self._result = result if result is not None else AggregateResult()
        self._error = error
        FakeService.instances.append(self)

    def aggregate(self, token, start, end):
        self.calls.append((token, start, end))
        if self._error is not None:
            raise self._error
        return self._result


@pytest.fixture(autouse=True)
def _reset_instances():
    FakeService.instances.clear()


def _install_service(monkeypatch, result=None, error=None):
    monkeypatch.setattr(
        cli,
        "AggregateService",
        lambda config=None: FakeService(config, result=result, error=error),
    )


def _forbid_authorize(monkeypatch):
    def _fail(*args, **kwargs):
        raise AssertionError("authorize must not be called")

    monkeypatch.setattr(cli, "authorize", _fail)


def test_missing_token_and_credentials_exits_1(monkeypatch, caplog):
    _forbid_authorize(monkeypatch)

    def _no_service(*args, **kwargs):
        raise AssertionError("no network call expected")

    monkeypatch.setattr(cli, "AggregateService", _no_service)
    with caplog.at_level(logging.ERROR):
        code = cli.main(["-token", "", "-client-id", "0", "-client-secret", ""])
    assert code == 1
    assert "Must provide either athlete access token" in caplog.text


def test_missing_secret_with_default_client_id_exits_1(monkeypatch, caplog):
    _forbid_authorize(monkeypatch)
    with caplog.at_level(logging.ERROR):
        code = cli.main(["--token", "", "--client-secret", ""])
    assert code == 1
    assert "Must provide either athlete access token" in caplog.text


def test_token_flag_skips_authorization(monkeypatch, capsys, scenario_activity, scenario_segment):
    from strava_climbs.aggregation import add_activity, add_segment

    result = AggregateResult()
    add_activity(result, scenario_activity)
    add_segment(result, scenario_segment)
    _forbid_authorize(monkeypatch)
    _install_service(monkeypatch, result=result)

    code = cli.main(["-token", "abc", "--after", "2019-06-01", "--before", "2019-08-17"])
    out = capsys.readouterr().out

    assert code == 0
    assert "Average speed: 18.000000 kph" in out
    assert "Total distance: 10.00 km" in out
    assert "Category 2: 1" in out
    assert "Biggest climb: Segment 7" in out
    service = FakeService.instances[0]
    token, start, end = service.calls[0]
    assert token == "abc"
    assert start.isoformat() == "2019-06-01T00:00:00+00:00"
    assert end.isoformat() == "2019-08-17T00:00:00+00:00"


def test_credentials_trigger_authorization(monkeypatch, capsys):
    calls = []

    def fake_authorize(client_id, client_secret, **kwargs):
        calls.append((client_id, client_secret, kwargs))
        return "fresh-token"

    monkeypatch.setattr(cli, "authorize", fake_authorize)
    _install_service(monkeypatch)

    code = cli.main(["-token", "", "-client-id", "123", "-client-secret", "shh", "--auth-timeout", "30"])
    assert code == 0
    assert calls == [(123, "shh", {"wait_timeout": 30.0})]
    assert FakeService.instances[0].calls[0][0] == "fresh-token"
    assert "No activities found between 2019-06-01 and 2019-08-17" in capsys.readouterr().out


def test_authorization_failure_exits_1(monkeypatch, caplog):
    def denied(*args, **kwargs):
        raise AuthorizationDeniedError("The athlete declined authorization")

    monkeypatch.setattr(cli, "authorize", denied)
    with caplog.at_level(logging.ERROR):
        code = cli.main(["-token", "", "-client-id", "1", "-client-secret", "s"])
    assert code == 1
    assert "Failed to obtain athlete access token" in caplog.text


def test_empty_token_after_authorization_exits_1(monkeypatch, caplog):
    monkeypatch.setattr(cli, "authorize", lambda *a, **k: "")
    with caplog.at_level(logging.ERROR):
        code = cli.main(["-token", "", "-client-id", "1", "-client-secret", "s"])
    assert code == 1
    assert "No athlete access token" in caplog.text


def test_list_failure_exits_1(monkeypatch, caplog):
    _install_service(monkeypatch, error=FetchError("activities page=1 forbidden"))
    with caplog.at_level(logging.ERROR):
        code = cli.main(["-token", "abc"])
    assert code == 1
    assert "Failed to obtain activities list" in caplog.text


def test_detail_failure_exits_1(monkeypatch, caplog):
    _install_service(monkeypatch, error=FetchError("activity 9 not found", activity_id=9))
    with caplog.at_level(logging.ERROR):
        code = cli.main(["-token", "abc"])
    assert code == 1
    assert "Failed to obtain activity 9" in caplog.text


def test_json_output(monkeypatch, capsys, scenario_activity):
    from strava_climbs.aggregation import add_activity

    result = AggregateResult()
    add_activity(result, scenario_activity)
    _install_service(monkeypatch, result=result)

    assert cli.main(["-token", "abc", "--json", "--skip-segments"]) == 0
    out = capsys.readouterr().out
    payload = json.loads(out[out.index("{"):])
    assert payload["activity_count"] == 1
    assert payload["biggest_climb"] is None
    assert payload["category_counts"]["HC"] == 0
    assert FakeService.instances[0].config.include_segments is False


def test_service_config_from_flags(monkeypatch):
    _install_service(monkeypatch)
    cli.main(["-token", "abc", "--all-pages", "--max-grade-policy", "legacy"])
    config = FakeService.instances[0].config
    assert config.fetch_all_pages is True
    assert config.max_grade_policy.value == "legacy"
