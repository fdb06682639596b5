from __future__ import annotations

import logging
from typing import Any, Callable, Mapping, Optional

from ..common.datetime_utils import is_valid_hhmm, now_utc, parse_hhmm
from ..core.constants import DEFAULT_CUTOFF_TIME, DEFAULT_DEVICE_PORT, DEFAULT_LATE_GRACE_MINUTES
from ..core.exceptions import ValidationError
from .model import AttendanceSettings, CutoffPolicy
from .repository import SettingsRepository

logger = logging.getLogger(__name__)

MAX_LATE_GRACE_MINUTES = 240


def _as_bool(value: Any, field_name: str) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)) and value in (0, 1):
        return bool(value)
    if isinstance(value, str) and value.strip().lower() in {"true", "false", "1", "0", "yes", "no"}:
        return value.strip().lower() in {"true", "1", "yes"}
    raise ValidationError(f"{field_name} must be a boolean")


class SettingsService:
    def __init__(
        self,
        repo: SettingsRepository,
        *,
        default_cutoff: str = DEFAULT_CUTOFF_TIME,
        default_grace_minutes: int = DEFAULT_LATE_GRACE_MINUTES,
        default_device_port: int = DEFAULT_DEVICE_PORT,
        clock: Callable = now_utc,
    ):
        # Fails fast on a malformed configured default.
        parse_hhmm(default_cutoff)
        self._repo = repo
        self._default_cutoff = default_cutoff
        self._default_grace = int(default_grace_minutes)
        self._default_port = int(default_device_port)
        self._clock = clock

    @property
    def default_cutoff(self) -> str:
        return self._default_cutoff

    def defaults(self, company_id: str) -> AttendanceSettings:
        return AttendanceSettings(
            company_id=company_id,
            version=0,
            use_custom_cutoff=False,
            cutoff_time=self._default_cutoff,
            late_grace_minutes=self._default_grace,
            device_default_port=self._default_port,
        )

    def get(self, company_id: str) -> AttendanceSettings:
        """Current settings, or unsaved defaults (version 0) when the tenant never saved any."""
        return self._repo.get_current(company_id) or self.defaults(company_id)

    def policy(self, company_id: str) -> CutoffPolicy:
        return CutoffPolicy.resolve(self.get(company_id), default_cutoff=self._default_cutoff)

    def history(self, company_id: str, *, limit: int = 20) -> list[AttendanceSettings]:
        return self._repo.history(company_id, limit=limit)

    def update(self, company_id: str, changes: Mapping[str, Any], *, updated_by: Optional[str] = None) -> AttendanceSettings:
        if not isinstance(changes, Mapping) or not changes:
            raise ValidationError("Request body must be a non-empty JSON object")

        current = self.get(company_id)
        fields: dict = {}

        if "useCustomCutoff" in changes:
            fields["use_custom_cutoff"] = _as_bool(changes["useCustomCutoff"], "useCustomCutoff")

        if "cutoffTime" in changes:
            cutoff = str(changes["cutoffTime"] or "").strip()
            if not is_valid_hhmm(cutoff):
                raise ValidationError("cutoffTime must be in HH:MM format")
            hh, mm = cutoff.split(":")
            fields["cutoff_time"] = f"{int(hh):02d}:{mm}"

        if "lateGraceMinutes" in changes:
            try:
                grace = int(changes["lateGraceMinutes"])
            except (TypeError, ValueError):
                raise ValidationError("lateGraceMinutes must be an integer") from None
            if grace < 0 or grace > MAX_LATE_GRACE_MINUTES:
                raise ValidationError(f"lateGraceMinutes must be between 0 and {MAX_LATE_GRACE_MINUTES}")
            fields["late_grace_minutes"] = grace

        if "deviceDefaultAddress" in changes:
            address = changes["deviceDefaultAddress"]
            fields["device_default_address"] = (str(address).strip() or None) if address is not None else None

        if "deviceDefaultPort" in changes:
            try:
                port = int(changes["deviceDefaultPort"])
            except (TypeError, ValueError):
                raise ValidationError("deviceDefaultPort must be an integer") from None
            if not 0 < port < 65536:
                raise ValidationError("deviceDefaultPort must be between 1 and 65535")
            fields["device_default_port"] = port

        if "description" in changes:
            fields["description"] = changes["description"]

        if not fields:
            raise ValidationError("No supported settings fields in request")

        proposed = current.next_version(updated_by=updated_by, created_at=self._clock(), **fields)
        saved = self._repo.save_version(proposed, expected_version=current.version)
        logger.info("Company %s settings updated to version %d by %s", company_id, saved.version, updated_by or "-")
        return saved
