from __future__ import annotations

from datetime import date
from typing import Optional, Protocol, Sequence

from .model import BulkInsertResult, LastSyncInfo, PunchRecord, PunchStats


class PunchRepository(Protocol):
    def bulk_insert(self, records: Sequence[PunchRecord]) -> BulkInsertResult:
        """Insert-if-absent keyed on (device_address, employee_device_id, timestamp, company_id).

        Already-present keys are counted as ``skipped``, never raised.
        """

        raise NotImplementedError

    def query_range(
        self,
        *,
        device_address: str,
        company_id: str,
        start_date: date,
        end_date: date,
    ) -> Sequence[PunchRecord]:
        """Inclusive calendar-date range, ascending by timestamp."""

        raise NotImplementedError

    def query_company_range(
        self,
        *,
        company_id: str,
        start_date: date,
        end_date: date,
    ) -> Sequence[PunchRecord]:
        raise NotImplementedError

    def last_sync_info(self, *, device_address: str, company_id: str) -> Optional[LastSyncInfo]:
        raise NotImplementedError

    def stats(self, *, device_address: str, company_id: str) -> PunchStats:
        raise NotImplementedError
