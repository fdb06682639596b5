from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Iterable, List, Mapping, Optional

from ..common.datetime_utils import parse_timestamp, to_utc
from ..core.constants import MAX_IDENTIFIER_LENGTH, MIN_VALID_PUNCH_YEAR
from ..core.enums import PunchMode, PunchType
from .model import PunchRecord, RejectedPunch

logger = logging.getLogger(__name__)

# Firmware and SDK versions disagree on key names.
_EMPLOYEE_KEYS = ("user_id", "userId", "deviceUserId", "employeeDeviceId", "uid", "id")
_TIMESTAMP_KEYS = ("timestamp", "recordTime", "record_time", "time")
_PUNCH_KEYS = ("punch", "punch_state", "state", "type")
_MODE_KEYS = ("status", "verify_type", "verifyType", "mode")


@dataclass
class TransformResult:
    records: List[PunchRecord] = field(default_factory=list)
    rejected: List[RejectedPunch] = field(default_factory=list)


def _first(raw: Mapping[str, Any], keys) -> Any:
    for k in keys:
        v = raw.get(k)
        if v is not None and v != "":
            return v
    return None


def _employee_id(raw: Mapping[str, Any]) -> Optional[str]:
    value = _first(raw, _EMPLOYEE_KEYS)
    if value is None:
        return None
    text = str(value).strip()
    if not text or text.lower() == "unknown":
        return None
    return text


def _punch_type(raw: Mapping[str, Any]) -> PunchType:
    value = _first(raw, _PUNCH_KEYS)
    if isinstance(value, str):
        try:
            return PunchType(value.strip().lower())
        except ValueError:
            pass
    return PunchType.from_code(value)


def _punch_mode(raw: Mapping[str, Any]) -> PunchMode:
    value = _first(raw, _MODE_KEYS)
    if isinstance(value, str):
        try:
            return PunchMode(value.strip().lower())
        except ValueError:
            pass
    return PunchMode.from_code(value)


def _payload(raw: Mapping[str, Any]) -> dict:
    return {k: (v.isoformat() if isinstance(v, datetime) else v) for k, v in raw.items()}


class PunchTransformer:
    """Raw device punch -> PunchRecord, rejecting per record instead of per batch."""

    def __init__(self, *, device_tz, reporting_tz, min_valid_year: int = MIN_VALID_PUNCH_YEAR):
        self._device_tz = device_tz
        self._reporting_tz = reporting_tz
        self._min_valid_year = int(min_valid_year)

    def transform_one(
        self,
        raw: Mapping[str, Any],
        *,
        device_address: str,
        company_id: str,
        ingested_at: datetime,
    ) -> PunchRecord | RejectedPunch:
        if not isinstance(raw, Mapping):
            return RejectedPunch("unsupported record shape", raw)

        employee = _employee_id(raw)
        if employee is None:
            return RejectedPunch("missing employeeDeviceId", raw)

        for name, value in (("employeeDeviceId", employee), ("deviceAddress", device_address), ("companyId", company_id)):
            if len(value) > MAX_IDENTIFIER_LENGTH:
                return RejectedPunch(f"{name} longer than {MAX_IDENTIFIER_LENGTH} characters", raw)

        parsed = parse_timestamp(_first(raw, _TIMESTAMP_KEYS))
        if parsed is None:
            return RejectedPunch("missing or unparseable timestamp", raw)

        timestamp = to_utc(parsed, self._device_tz)
        if timestamp.year < self._min_valid_year:
            return RejectedPunch(f"timestamp before {self._min_valid_year} (device clock reset)", raw)

        return PunchRecord(
            device_address=device_address,
            employee_device_id=employee,
            timestamp=timestamp,
            calendar_date=timestamp.astimezone(self._reporting_tz).date(),
            company_id=company_id,
            ingested_at=ingested_at,
            punch_type=_punch_type(raw),
            punch_mode=_punch_mode(raw),
            raw_payload=_payload(raw),
        )

    def transform(
        self,
        raws: Iterable[Mapping[str, Any]],
        *,
        device_address: str,
        company_id: str,
        ingested_at: datetime,
    ) -> TransformResult:
        result = TransformResult()
        for raw in raws:
            out = self.transform_one(raw, device_address=device_address, company_id=company_id, ingested_at=ingested_at)
            if isinstance(out, RejectedPunch):
                logger.debug("Rejected punch from %s: %s (%r)", device_address, out.reason, raw)
                result.rejected.append(out)
            else:
                result.records.append(out)
        return result
