from __future__ import annotations

import logging
from dataclasses import replace
from typing import Optional

from mysql.connector import errors as mysql_errors

from ..common.datetime_utils import now_utc
from ..core.exceptions import SettingsConflictError
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, from_db_datetime, to_db_datetime
from .model import AttendanceSettings
from .repository import SettingsRepository

logger = logging.getLogger(__name__)

_SELECT = """
    SELECT s.settings_id, s.company_id, s.version, s.use_custom_cutoff, s.cutoff_time,
           s.late_grace_minutes, s.device_default_address, s.device_default_port,
           s.description, s.updated_by, s.created_at
    FROM attendance_settings s
"""


def _to_settings(r: dict) -> AttendanceSettings:
    return AttendanceSettings(
        settings_id=int(r["settings_id"]),
        company_id=str(r["company_id"]),
        version=int(r["version"]),
        use_custom_cutoff=bool(r["use_custom_cutoff"]),
        cutoff_time=str(r["cutoff_time"]),
        late_grace_minutes=int(r["late_grace_minutes"]),
        device_default_address=r.get("device_default_address"),
        device_default_port=int(r["device_default_port"]),
        description=r.get("description"),
        updated_by=r.get("updated_by"),
        created_at=from_db_datetime(r.get("created_at")),
    )


class MySQLSettingsRepository(SettingsRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_current(self, company_id: str) -> Optional[AttendanceSettings]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                _SELECT + " JOIN attendance_settings_current c ON c.settings_id = s.settings_id WHERE c.company_id=%s",
                (company_id,),
            )
            r = fetchone(cur)
        return _to_settings(r) if r else None

    def save_version(self, settings: AttendanceSettings, *, expected_version: int) -> AttendanceSettings:
        created_at = settings.created_at or now_utc()
        try:
            # Insert the new version and repoint the current row in one transaction,
            # so a tenant is never left without current settings.
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    """
                    INSERT INTO attendance_settings(
                        company_id, version, use_custom_cutoff, cutoff_time, late_grace_minutes,
                        device_default_address, device_default_port, description, updated_by, created_at
                    )
                    VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
                    """,
                    (
                        settings.company_id,
                        settings.version,
                        1 if settings.use_custom_cutoff else 0,
                        settings.cutoff_time,
                        settings.late_grace_minutes,
                        settings.device_default_address,
                        settings.device_default_port,
                        settings.description,
                        settings.updated_by,
                        to_db_datetime(created_at),
                    ),
                )
                new_id = int(cur.lastrowid)

                if expected_version == 0:
                    cur.execute(
                        "INSERT INTO attendance_settings_current(company_id, settings_id) VALUES(%s,%s)",
                        (settings.company_id, new_id),
                    )
                else:
                    cur.execute(
                        """
                        UPDATE attendance_settings_current c
                        JOIN attendance_settings s ON s.settings_id = c.settings_id
                        SET c.settings_id=%s
                        WHERE c.company_id=%s AND s.version=%s
                        """,
                        (new_id, settings.company_id, expected_version),
                    )
                    if cur.rowcount != 1:
                        raise SettingsConflictError("settings changed concurrently")
        except mysql_errors.IntegrityError as e:
            raise SettingsConflictError("settings changed concurrently") from e

        logger.info(
            "Attendance settings for company %s moved to version %d", settings.company_id, settings.version
        )
        return replace(settings, settings_id=new_id, created_at=created_at)

    def history(self, company_id: str, *, limit: int = 20) -> list[AttendanceSettings]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(_SELECT + " WHERE s.company_id=%s ORDER BY s.version DESC LIMIT %s", (company_id, int(limit)))
            return [_to_settings(r) for r in fetchall(cur)]
