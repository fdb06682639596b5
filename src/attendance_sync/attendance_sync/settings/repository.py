from __future__ import annotations

from typing import Optional, Protocol

from .model import AttendanceSettings


class SettingsRepository(Protocol):
    def get_current(self, company_id: str) -> Optional[AttendanceSettings]:
        raise NotImplementedError

    def save_version(self, settings: AttendanceSettings, *, expected_version: int) -> AttendanceSettings:
        """Store ``settings`` as the new current version.

        Raises SettingsConflictError when the current version is no longer
        ``expected_version`` (another writer got there first).
        """
        raise NotImplementedError

    def history(self, company_id: str, *, limit: int = 20) -> list[AttendanceSettings]:
        raise NotImplementedError
