from __future__ import annotations

from datetime import date
from typing import Optional, Sequence

from ..core.constants import BULK_INSERT_CHUNK_SIZE
from ..core.enums import PunchMode, PunchType
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, dump_json, fetchall, fetchone, from_db_datetime, load_json, to_db_datetime
from .model import BulkInsertResult, LastSyncInfo, PunchRecord, PunchStats
from .repository import PunchRepository

_COLUMNS = """
    device_address, employee_device_id, punched_at, calendar_date,
    punch_type, punch_mode, raw_payload, company_id, ingested_at
"""


def _enum_or_unknown(enum_cls, value):
    try:
        return enum_cls(value)
    except ValueError:
        return enum_cls.UNKNOWN


def _to_record(r: dict) -> PunchRecord:
    return PunchRecord(
        device_address=r["device_address"],
        employee_device_id=str(r["employee_device_id"]),
        timestamp=from_db_datetime(r["punched_at"]),
        calendar_date=r["calendar_date"],
        company_id=str(r["company_id"]),
        ingested_at=from_db_datetime(r["ingested_at"]),
        punch_type=_enum_or_unknown(PunchType, r.get("punch_type")),
        punch_mode=_enum_or_unknown(PunchMode, r.get("punch_mode")),
        raw_payload=load_json(r.get("raw_payload")),
    )


def _to_row(p: PunchRecord) -> tuple:
    return (
        p.device_address,
        p.employee_device_id,
        to_db_datetime(p.timestamp),
        p.calendar_date,
        p.punch_type.value,
        p.punch_mode.value,
        dump_json(p.raw_payload),
        p.company_id,
        to_db_datetime(p.ingested_at),
    )


class MySQLPunchRepository(PunchRepository):
    def __init__(self, conn_factory: DatabaseConnection, *, chunk_size: int = BULK_INSERT_CHUNK_SIZE):
        self._conn_factory = conn_factory
        self._chunk_size = int(chunk_size)

    def bulk_insert(self, records: Sequence[PunchRecord]) -> BulkInsertResult:
        if not records:
            return BulkInsertResult(inserted=0, skipped=0, total=0)

        inserted = 0
        # INSERT IGNORE: the unique key makes each row insert-if-absent at the engine level,
        # and rowcount only counts rows actually written.
        with db_cursor(self._conn_factory) as (_, cur):
            for i in range(0, len(records), self._chunk_size):
                chunk = records[i : i + self._chunk_size]
                cur.executemany(
                    f"""
                    INSERT IGNORE INTO punch_records({_COLUMNS})
                    VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s)
                    """,
                    [_to_row(p) for p in chunk],
                )
                inserted += max(int(cur.rowcount or 0), 0)

        total = len(records)
        return BulkInsertResult(inserted=inserted, skipped=total - inserted, total=total)

    def query_range(
        self,
        *,
        device_address: str,
        company_id: str,
        start_date: date,
        end_date: date,
    ) -> Sequence[PunchRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM punch_records
                WHERE device_address=%s AND company_id=%s
                  AND calendar_date BETWEEN %s AND %s
                ORDER BY punched_at ASC, punch_id ASC
                """,
                (device_address, company_id, start_date, end_date),
            )
            return [_to_record(r) for r in fetchall(cur)]

    def query_company_range(
        self,
        *,
        company_id: str,
        start_date: date,
        end_date: date,
    ) -> Sequence[PunchRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM punch_records
                WHERE company_id=%s AND calendar_date BETWEEN %s AND %s
                ORDER BY punched_at ASC, punch_id ASC
                """,
                (company_id, start_date, end_date),
            )
            return [_to_record(r) for r in fetchall(cur)]

    def last_sync_info(self, *, device_address: str, company_id: str) -> Optional[LastSyncInfo]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT punched_at, ingested_at
                FROM punch_records
                WHERE device_address=%s AND company_id=%s
                ORDER BY punched_at DESC
                LIMIT 1
                """,
                (device_address, company_id),
            )
            r = fetchone(cur)
            if not r:
                return None
            return LastSyncInfo(
                timestamp=from_db_datetime(r["punched_at"]),
                ingested_at=from_db_datetime(r["ingested_at"]),
            )

    def stats(self, *, device_address: str, company_id: str) -> PunchStats:
        params = (device_address, company_id)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT COUNT(*) AS total, MAX(ingested_at) AS last_ingested_at
                FROM punch_records
                WHERE device_address=%s AND company_id=%s
                """,
                params,
            )
            agg = fetchone(cur) or {}

            edges = {}
            for label, order in (("oldest", "ASC"), ("newest", "DESC")):
                cur.execute(
                    f"""
                    SELECT {_COLUMNS}
                    FROM punch_records
                    WHERE device_address=%s AND company_id=%s
                    ORDER BY punched_at {order}
                    LIMIT 1
                    """,
                    params,
                )
                r = fetchone(cur)
                edges[label] = _to_record(r) if r else None

        return PunchStats(
            total_punches=int(agg.get("total") or 0),
            last_ingested_at=from_db_datetime(agg.get("last_ingested_at")),
            oldest=edges["oldest"],
            newest=edges["newest"],
        )
