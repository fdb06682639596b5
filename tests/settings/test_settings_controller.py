from __future__ import annotations

from datetime import datetime, timezone
from types import SimpleNamespace

import pytest
from flask import Flask

from src.attendance_sync.attendance_sync.core.exceptions import SettingsConflictError
from src.attendance_sync.attendance_sync.settings.controller import register
from src.attendance_sync.attendance_sync.settings.model import AttendanceSettings
from src.attendance_sync.attendance_sync.settings.service import SettingsService


class InMemorySettings:
    def __init__(self):
        self.current: dict[str, AttendanceSettings] = {}
        self.saved: list[AttendanceSettings] = []

    def get_current(self, company_id):
        return self.current.get(company_id)

    def save_version(self, settings, *, expected_version):
        self.current[settings.company_id] = settings
        self.saved.append(settings)
        return settings

    def history(self, company_id, *, limit=20):
        return [s for s in reversed(self.saved) if s.company_id == company_id][:limit]


class RacingSettings(InMemorySettings):
    def save_version(self, settings, *, expected_version):
        raise SettingsConflictError("settings changed concurrently")


@pytest.fixture()
def client():
    service = SettingsService(InMemorySettings(), clock=lambda: datetime(2024, 1, 15, tzinfo=timezone.utc))
    app = Flask(__name__)
    app.secret_key = "test"
    register(app, SimpleNamespace(settings_service=service))
    return app.test_client()


HEADERS = {"X-Company-Id": "C1", "X-User-Id": "admin"}


def test_get_returns_defaults_and_effective_policy(client):
    resp = client.get("/attendance-settings", headers=HEADERS)

    assert resp.status_code == 200
    body = resp.get_json()
    assert body["data"]["version"] == 0
    assert body["effective"] == {"cutoffTime": "09:00", "lateGraceMinutes": 15, "source": "default"}


def test_put_updates_and_returns_new_version(client):
    resp = client.put(
        "/attendance-settings", json={"useCustomCutoff": True, "cutoffTime": "08:15", "lateGraceMinutes": 10}, headers=HEADERS
    )

    assert resp.status_code == 200
    body = resp.get_json()
    assert body["data"]["version"] == 1
    assert body["data"]["updatedBy"] == "admin"
    assert body["effective"]["cutoffTime"] == "08:15"


def test_put_with_bad_cutoff_is_400(client):
    resp = client.put("/attendance-settings", json={"cutoffTime": "8.15"}, headers=HEADERS)

    assert resp.status_code == 400
    assert resp.get_json()["success"] is False


def test_history_lists_versions_newest_first(client):
    client.put("/attendance-settings", json={"lateGraceMinutes": 10}, headers=HEADERS)
    client.put("/attendance-settings", json={"lateGraceMinutes": 20}, headers=HEADERS)

    resp = client.get("/attendance-settings/history?limit=5", headers=HEADERS)

    assert [s["version"] for s in resp.get_json()["data"]] == [2, 1]


def test_lost_update_race_is_409_not_configuration_error():
    app = Flask(__name__)
    app.secret_key = "test"
    register(app, SimpleNamespace(settings_service=SettingsService(RacingSettings())))

    resp = app.test_client().put("/attendance-settings", json={"lateGraceMinutes": 10}, headers=HEADERS)

    assert resp.status_code == 409
    assert resp.get_json()["error"] == "SETTINGS_CONFLICT"
