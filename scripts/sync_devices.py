"""Incrementally sync every configured biometric terminal.

Usage:
    python scripts/sync_devices.py

Devices come from SYNC_DEVICES ("company_id@address[:port],..."). Each one is
synced independently; a failing device does not stop the others.

Recommended: run it via cron or Windows Task Scheduler every 5-15 minutes.
Exit code is 0 when every device synced, 1 when any failed, 3 when nothing
is configured.
"""

from __future__ import annotations

import importlib
import logging
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from dotenv import load_dotenv
from mysql.connector import Error as MySQLError

from config import get_settings_module

from src.attendance_sync.attendance_sync.container import build_container
from src.attendance_sync.attendance_sync.core.exceptions import DomainError
from src.attendance_sync.attendance_sync.main import configure_logging
from src.attendance_sync.attendance_sync.sync.model import SyncTarget
from src.attendance_sync.attendance_sync.sync.service import SyncEngine

logger = logging.getLogger("sync_devices")


def run(engine: SyncEngine, targets: list[SyncTarget]) -> int:
    failed = 0
    for t in targets:
        try:
            result = engine.incremental_sync(t.address, t.company_id, port=t.port)
            print(
                f"OK: {t.company_id}@{t.address}:{t.port} inserted={result.inserted_count} "
                f"skipped={result.skipped_duplicate_count} invalid={result.invalid_count} "
                f"total={result.total_seen} ({result.duration_seconds:.2f}s)"
            )
        except (DomainError, MySQLError) as e:
            failed += 1
            logger.error("Sync failed for %s@%s: %s", t.company_id, t.address, e)
            print(f"ERR: {t.company_id}@{t.address}:{t.port} {type(e).__name__}: {e}")
    print(f"Done: {len(targets) - failed}/{len(targets)} devices synced")
    return 1 if failed else 0


def main() -> int:
    load_dotenv(override=False)
    settings = importlib.import_module(get_settings_module())
    configure_logging(getattr(settings, "LOG_LEVEL", "INFO"))

    targets = SyncTarget.parse_many(getattr(settings, "SYNC_DEVICES", ""), default_port=settings.DEVICE_PORT)
    if not targets:
        print("ERR: SYNC_DEVICES is not configured")
        return 3

    container = build_container(db_config=dict(settings.DB_CONFIG), settings=settings)
    return run(container.sync_engine, targets)


if __name__ == "__main__":
    raise SystemExit(main())
