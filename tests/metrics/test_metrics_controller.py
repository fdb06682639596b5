from __future__ import annotations

from datetime import date, datetime, timezone
from types import SimpleNamespace

import pytest
import pytz
from flask import Flask

from src.attendance_sync.attendance_sync.core.exceptions import ConfigurationError
from src.attendance_sync.attendance_sync.metrics.controller import register
from src.attendance_sync.attendance_sync.metrics.service import MetricsEngine
from src.attendance_sync.attendance_sync.punches.model import PunchRecord
from src.attendance_sync.attendance_sync.settings.service import SettingsService

NOW = datetime(2024, 1, 12, 18, 0, tzinfo=timezone.utc)


class InMemoryPunches:
    def __init__(self, records):
        self.records = records
        self.queries: list[tuple] = []

    def query_range(self, *, device_address, company_id, start_date, end_date):
        self.queries.append((device_address, start_date, end_date))
        return [r for r in self.records if r.device_address == device_address and start_date <= r.calendar_date <= end_date]

    def query_company_range(self, *, company_id, start_date, end_date):
        self.queries.append((None, start_date, end_date))
        return [r for r in self.records if start_date <= r.calendar_date <= end_date]


class NoSettings:
    def get_current(self, company_id):
        return None


class BrokenSettings(SettingsService):
    def policy(self, company_id):
        raise ConfigurationError("stored cutoff '9h' is not HH:MM")


def _punch(emp, iso):
    ts = datetime.fromisoformat(iso)
    return PunchRecord("10.0.0.5", emp, ts, ts.date(), "C1", NOW)


@pytest.fixture()
def punches():
    return InMemoryPunches([
        _punch("7", "2024-01-08T09:20:00+00:00"),
        _punch("7", "2024-01-08T17:30:00+00:00"),
        _punch("8", "2024-01-09T08:50:00+00:00"),
    ])


def _client(punches, settings_cls=SettingsService):
    engine = MetricsEngine(punches, settings_cls(NoSettings()), reporting_tz=pytz.utc, clock=lambda: NOW, window_days=30)
    app = Flask(__name__)
    app.secret_key = "test"
    register(app, SimpleNamespace(metrics_engine=engine))
    return app.test_client()


HEADERS = {"X-Company-Id": "C1"}


def test_leaderboard_defaults_to_trailing_window(punches):
    resp = _client(punches).get("/performance/leaderboard", headers=HEADERS)

    assert resp.status_code == 200
    data = resp.get_json()["data"]
    assert data["dateRange"] == {"startDate": "2023-12-13", "endDate": "2024-01-12"}
    assert [e["employeeDeviceId"] for e in data["leaderboard"]] == ["8", "7"]
    assert punches.queries[0] == (None, date(2023, 12, 13), date(2024, 1, 12))


def test_machine_leaderboard_respects_limit(punches):
    resp = _client(punches).get(
        "/performance/machine-leaderboard/10.0.0.5?startDate=2024-01-08&endDate=2024-01-09&limit=1", headers=HEADERS
    )

    data = resp.get_json()["data"]
    assert data["totalEmployees"] == 2
    assert len(data["leaderboard"]) == 1
    assert data["deviceAddress"] == "10.0.0.5"


def test_bad_limit_is_400(punches):
    resp = _client(punches).get("/performance/leaderboard?limit=0", headers=HEADERS)

    assert resp.status_code == 400


def test_attendance_report_requires_dates(punches):
    resp = _client(punches).get("/attendance-report/10.0.0.5?startDate=2024-01-08", headers=HEADERS)

    assert resp.status_code == 400
    assert punches.queries == []


def test_attendance_report_returns_daily_records(punches):
    resp = _client(punches).get("/attendance-report/10.0.0.5?startDate=2024-01-08&endDate=2024-01-08", headers=HEADERS)

    assert resp.status_code == 200
    [emp] = resp.get_json()["data"]["employees"]
    assert emp["dailyRecords"][0]["lateMinutes"] == 5
    assert emp["dailyRecords"][0]["workMinutes"] == 490


def test_overview(punches):
    resp = _client(punches).get("/performance/overview?startDate=2024-01-08&endDate=2024-01-09", headers=HEADERS)

    data = resp.get_json()["data"]
    assert data["totalEmployees"] == 2
    assert data["totalPunches"] == 3


def test_misconfigured_policy_is_distinct_500(punches):
    resp = _client(punches, BrokenSettings).get("/performance/leaderboard", headers=HEADERS)

    assert resp.status_code == 500
    assert resp.get_json()["error"] == "CONFIGURATION_ERROR"
