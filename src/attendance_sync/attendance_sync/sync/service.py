from __future__ import annotations

import logging
import time
from contextlib import contextmanager
from datetime import date, timedelta
from typing import Callable, Iterator, Optional, Sequence

from ..common.datetime_utils import now_utc
from ..core.constants import DEFAULT_DEVICE_PORT, INCREMENTAL_OVERLAP_DAYS
from ..core.exceptions import ValidationError
from ..devices.client import DeviceClient
from ..devices.model import DeviceInfo, DeviceSession
from ..punches.model import PunchRecord
from ..punches.repository import PunchRepository
from ..punches.transform import PunchTransformer
from .model import SyncResult, SyncStats

logger = logging.getLogger(__name__)


class SyncEngine:
    """Device -> PunchStore pipeline. The only writer of punch records.

    Each call owns one device session for its whole lifetime and releases it
    on every exit path. Correctness under overlapping syncs comes from the
    store's dedupe key, not from locking here.
    """

    def __init__(
        self,
        device_client: DeviceClient,
        punches: PunchRepository,
        transformer: PunchTransformer,
        *,
        default_port: int = DEFAULT_DEVICE_PORT,
        reporting_tz=None,
        clock: Callable = now_utc,
        timer: Callable[[], float] = time.monotonic,
    ):
        self._client = device_client
        self._punches = punches
        self._transformer = transformer
        self._default_port = int(default_port)
        self._reporting_tz = reporting_tz
        self._clock = clock
        self._timer = timer

    @contextmanager
    def _session(self, address: str, port: Optional[int]) -> Iterator[DeviceSession]:
        session = self._client.connect(address, int(port or self._default_port))
        try:
            yield session
        finally:
            try:
                self._client.disconnect(session)
            except Exception:
                # A failed disconnect must never mask the outcome of the fetch.
                logger.warning("Disconnect from %s raised; ignoring", address, exc_info=True)

    def full_sync(
        self,
        device_address: str,
        company_id: str,
        *,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        port: Optional[int] = None,
        sync_type: str = "full",
    ) -> SyncResult:
        if not device_address or not company_id:
            raise ValidationError("deviceAddress and companyId are required")
        if start_date and end_date and start_date > end_date:
            raise ValidationError("startDate must not be after endDate")

        started = self._timer()
        logger.info(
            "%s sync %s -> company %s (%s..%s)",
            sync_type.capitalize(), device_address, company_id, start_date or "beginning", end_date or "now",
        )

        with self._session(device_address, port) as session:
            raw = list(self._client.fetch_punches(session, since=start_date, until=end_date))

        ingested_at = self._clock()
        transformed = self._transformer.transform(
            raw, device_address=device_address, company_id=company_id, ingested_at=ingested_at
        )
        if transformed.rejected:
            logger.warning("Excluded %d invalid punches from %s", len(transformed.rejected), device_address)

        stored = self._punches.bulk_insert(transformed.records)
        duration = round(self._timer() - started, 3)

        result = SyncResult(
            device_address=device_address,
            company_id=company_id,
            inserted_count=stored.inserted,
            skipped_duplicate_count=stored.skipped,
            invalid_count=len(transformed.rejected),
            total_seen=len(raw),
            duration_seconds=duration,
            sync_type=sync_type,
            start_date=start_date,
            end_date=end_date,
            synced_at=ingested_at,
        )
        logger.info(
            "Sync %s complete: inserted=%d skipped=%d invalid=%d total=%d in %.2fs",
            device_address, result.inserted_count, result.skipped_duplicate_count,
            result.invalid_count, result.total_seen, duration,
        )
        return result

    def resume_date(self, device_address: str, company_id: str) -> Optional[date]:
        """Date incremental sync restarts from: newest stored punch minus the overlap."""
        last = self._punches.last_sync_info(device_address=device_address, company_id=company_id)
        if last is None:
            return None
        resume = last.timestamp - timedelta(days=INCREMENTAL_OVERLAP_DAYS)
        if self._reporting_tz is not None:
            resume = resume.astimezone(self._reporting_tz)
        return resume.date()

    def incremental_sync(self, device_address: str, company_id: str, *, port: Optional[int] = None) -> SyncResult:
        since = self.resume_date(device_address, company_id)
        if since is None:
            logger.info("No stored punches for %s; first sync fetches the full log", device_address)
        else:
            logger.info("Incremental sync for %s from %s", device_address, since)
        return self.full_sync(device_address, company_id, start_date=since, port=port, sync_type="incremental")

    def query_range(self, device_address: str, company_id: str, start_date: date, end_date: date) -> Sequence[PunchRecord]:
        if start_date > end_date:
            raise ValidationError("startDate must not be after endDate")
        return self._punches.query_range(
            device_address=device_address, company_id=company_id, start_date=start_date, end_date=end_date
        )

    def sync_stats(self, device_address: str, company_id: str) -> SyncStats:
        stats = self._punches.stats(device_address=device_address, company_id=company_id)
        return SyncStats(
            device_address=device_address,
            company_id=company_id,
            total_punches=stats.total_punches,
            last_sync_time=stats.last_ingested_at,
            oldest_record=stats.oldest,
            newest_record=stats.newest,
        )

    def device_info(self, device_address: str, *, port: Optional[int] = None) -> DeviceInfo:
        with self._session(device_address, port) as session:
            return self._client.get_info(session)
