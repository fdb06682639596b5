from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from .common.datetime_utils import get_timezone
from .core import constants
from .database.connection import DBConfig, DatabaseConnection
from .devices.client import DeviceClient
from .devices.zk_client import ZKClientOptions, ZKDeviceClient
from .metrics.model import ScoreWeights, TierBands
from .metrics.service import MetricsEngine
from .punches.mysql_punch_repository import MySQLPunchRepository
from .punches.transform import PunchTransformer
from .settings.mysql_settings_repository import MySQLSettingsRepository
from .settings.service import SettingsService
from .sync.service import SyncEngine


@dataclass(frozen=True)
class Container:
    conn: DatabaseConnection

    punches_repo: MySQLPunchRepository
    settings_repo: MySQLSettingsRepository
    device_client: DeviceClient

    sync_engine: SyncEngine
    settings_service: SettingsService
    metrics_engine: MetricsEngine

    device_port: int


def _setting(settings: Any, name: str, default):
    value = getattr(settings, name, None) if settings is not None else None
    return default if value is None else value


def build_container(*, db_config: dict, settings: Any = None, device_client: DeviceClient | None = None) -> Container:
    conn = DatabaseConnection.get_instance(DBConfig.from_dict(db_config))

    device_tz = get_timezone(_setting(settings, "DEVICE_TIMEZONE", "UTC"))
    reporting_tz = get_timezone(_setting(settings, "REPORTING_TIMEZONE", "UTC"))
    device_port = int(_setting(settings, "DEVICE_PORT", constants.DEFAULT_DEVICE_PORT))

    punches_repo = MySQLPunchRepository(conn)
    settings_repo = MySQLSettingsRepository(conn)

    if device_client is None:
        device_client = ZKDeviceClient(
            ZKClientOptions(
                connect_timeout=float(_setting(settings, "DEVICE_CONNECT_TIMEOUT", constants.DEFAULT_CONNECT_TIMEOUT_SECONDS)),
                fetch_timeout=float(_setting(settings, "DEVICE_FETCH_TIMEOUT", constants.DEFAULT_FETCH_TIMEOUT_SECONDS)),
                info_timeout=float(_setting(settings, "DEVICE_INFO_TIMEOUT", constants.DEFAULT_INFO_TIMEOUT_SECONDS)),
                bind_retries=int(_setting(settings, "DEVICE_BIND_RETRIES", constants.DEFAULT_BIND_RETRIES)),
                bind_backoff=float(_setting(settings, "DEVICE_BIND_BACKOFF", constants.DEFAULT_BIND_BACKOFF_SECONDS)),
                password=int(_setting(settings, "DEVICE_PASSWORD", 0)),
            )
        )

    transformer = PunchTransformer(
        device_tz=device_tz,
        reporting_tz=reporting_tz,
        min_valid_year=int(_setting(settings, "MIN_VALID_PUNCH_YEAR", constants.MIN_VALID_PUNCH_YEAR)),
    )
    sync_engine = SyncEngine(
        device_client,
        punches_repo,
        transformer,
        default_port=device_port,
        reporting_tz=reporting_tz,
    )
    settings_service = SettingsService(
        settings_repo,
        default_cutoff=str(_setting(settings, "DEFAULT_CUTOFF_TIME", constants.DEFAULT_CUTOFF_TIME)),
        default_grace_minutes=int(_setting(settings, "DEFAULT_LATE_GRACE_MINUTES", constants.DEFAULT_LATE_GRACE_MINUTES)),
        default_device_port=device_port,
    )
    metrics_engine = MetricsEngine(
        punches_repo,
        settings_service,
        reporting_tz=reporting_tz,
        weights=ScoreWeights.parse(_setting(settings, "SCORE_WEIGHTS", constants.DEFAULT_SCORE_WEIGHTS)),
        tiers=TierBands.parse(_setting(settings, "TIER_BANDS", constants.DEFAULT_TIER_BANDS)),
        count_weekend_punches=bool(_setting(settings, "COUNT_WEEKEND_PUNCHES", False)),
        window_days=int(_setting(settings, "DEFAULT_METRICS_WINDOW_DAYS", constants.DEFAULT_METRICS_WINDOW_DAYS)),
        leaderboard_limit=int(_setting(settings, "DEFAULT_LEADERBOARD_LIMIT", constants.DEFAULT_LEADERBOARD_LIMIT)),
    )

    return Container(
        conn=conn,
        punches_repo=punches_repo,
        settings_repo=settings_repo,
        device_client=device_client,
        sync_engine=sync_engine,
        settings_service=settings_service,
        metrics_engine=metrics_engine,
        device_port=device_port,
    )
