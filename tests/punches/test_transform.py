from __future__ import annotations

from datetime import date, datetime, timezone

import pytz

from src.attendance_sync.attendance_sync.core.enums import PunchMode, PunchType
from src.attendance_sync.attendance_sync.punches.model import PunchRecord, RejectedPunch
from src.attendance_sync.attendance_sync.punches.transform import PunchTransformer

INGESTED = datetime(2024, 1, 9, 8, 0, tzinfo=timezone.utc)


def _transformer(device_tz="UTC", reporting_tz="UTC") -> PunchTransformer:
    return PunchTransformer(device_tz=pytz.timezone(device_tz), reporting_tz=pytz.timezone(reporting_tz))


def _one(raw, **kwargs):
    return _transformer(**kwargs).transform_one(raw, device_address="10.0.0.5", company_id="C1", ingested_at=INGESTED)


def test_iso_punch_becomes_record():
    rec = _one({"employeeDeviceId": "7", "timestamp": "2024-01-08T09:12:00Z"})

    assert isinstance(rec, PunchRecord)
    assert rec.employee_device_id == "7"
    assert rec.timestamp == datetime(2024, 1, 8, 9, 12, tzinfo=timezone.utc)
    assert rec.calendar_date == date(2024, 1, 8)
    assert rec.device_address == "10.0.0.5"
    assert rec.company_id == "C1"
    assert rec.ingested_at == INGESTED
    assert rec.punch_type == PunchType.UNKNOWN


def test_naive_device_time_is_read_in_device_timezone():
    rec = _one({"user_id": 7, "timestamp": datetime(2024, 1, 8, 9, 0)}, device_tz="Asia/Ho_Chi_Minh")

    assert rec.timestamp == datetime(2024, 1, 8, 2, 0, tzinfo=timezone.utc)
    assert rec.employee_device_id == "7"


def test_calendar_date_follows_reporting_timezone():
    rec = _one({"user_id": "7", "timestamp": "2024-01-08T23:30:00Z"}, reporting_tz="Asia/Ho_Chi_Minh")

    assert rec.calendar_date == date(2024, 1, 9)


def test_punch_and_verify_codes_are_mapped():
    rec = _one({"user_id": "7", "timestamp": "2024-01-08T17:30:00Z", "punch": 1, "status": 15})

    assert rec.punch_type == PunchType.CHECK_OUT
    assert rec.punch_mode == PunchMode.FACE


def test_unknown_codes_map_to_unknown():
    rec = _one({"user_id": "7", "timestamp": "2024-01-08T17:30:00Z", "punch": 42, "status": 99})

    assert rec.punch_type == PunchType.UNKNOWN
    assert rec.punch_mode == PunchMode.UNKNOWN


def test_raw_payload_is_preserved_and_json_friendly():
    rec = _one({"user_id": "7", "timestamp": datetime(2024, 1, 8, 9, 0), "uid": 3})

    assert rec.raw_payload == {"user_id": "7", "timestamp": "2024-01-08T09:00:00", "uid": 3}


def test_missing_employee_is_rejected():
    out = _one({"timestamp": "2024-01-08T09:12:00Z"})

    assert isinstance(out, RejectedPunch)
    assert "employeeDeviceId" in out.reason


def test_missing_or_bad_timestamp_is_rejected():
    assert isinstance(_one({"user_id": "7"}), RejectedPunch)
    assert isinstance(_one({"user_id": "7", "timestamp": "yesterday"}), RejectedPunch)


def test_device_clock_reset_is_rejected():
    out = _one({"user_id": "7", "timestamp": "2000-01-01T00:00:00Z"})

    assert isinstance(out, RejectedPunch)


def test_batch_keeps_valid_and_counts_invalid():
    raws = [
        {"user_id": "7", "timestamp": "2024-01-08T09:12:00Z"},
        {"user_id": "", "timestamp": "2024-01-08T09:13:00Z"},
        "garbage",
        {"user_id": "8", "timestamp": "2024-01-08T09:14:00Z"},
    ]

    result = _transformer().transform(raws, device_address="10.0.0.5", company_id="C1", ingested_at=INGESTED)

    assert [r.employee_device_id for r in result.records] == ["7", "8"]
    assert len(result.rejected) == 2


def test_same_punch_has_same_dedupe_key_across_ingests():
    raw = {"user_id": "7", "timestamp": "2024-01-08T09:12:00Z"}
    t = _transformer()

    a = t.transform_one(raw, device_address="10.0.0.5", company_id="C1", ingested_at=INGESTED)
    b = t.transform_one(raw, device_address="10.0.0.5", company_id="C1", ingested_at=datetime.now(timezone.utc))

    assert a.dedupe_key == b.dedupe_key


def test_employee_id_wider_than_key_column_is_rejected():
    out = _one({"user_id": "9" * 100, "timestamp": "2024-01-08T09:00:00Z"})

    assert isinstance(out, RejectedPunch)
    assert "employeeDeviceId" in out.reason


def test_employee_id_at_column_width_is_kept():
    out = _one({"user_id": "9" * 64, "timestamp": "2024-01-08T09:00:00Z"})

    assert isinstance(out, PunchRecord)


def test_over_long_company_rejects_the_batch_rows():
    result = _transformer().transform(
        [{"user_id": "7", "timestamp": "2024-01-08T09:00:00Z"}],
        device_address="10.0.0.5",
        company_id="C" * 65,
        ingested_at=INGESTED,
    )

    assert result.records == []
    assert [r.reason for r in result.rejected] == ["companyId longer than 64 characters"]
