import os


def _flag(name: str, default: str) -> bool:
    return os.environ.get(name, default).strip().lower() in {"1", "true", "yes", "on"}


class Config:
    """Values shared by every environment; each is overridable through the environment / .env."""

    # Database (mysql-connector)
    DB_USER = os.environ.get("DB_USER", "root")
    DB_PASSWORD = os.environ.get("DB_PASSWORD", "")
    DB_HOST = os.environ.get("DB_HOST", "localhost")
    DB_PORT = int(os.environ.get("DB_PORT", "3306"))
    DB_NAME = os.environ.get("DB_NAME", "attendance_sync")

    # Biometric terminals
    DEVICE_PORT = int(os.environ.get("DEVICE_PORT", "4370"))
    DEVICE_CONNECT_TIMEOUT = float(os.environ.get("DEVICE_CONNECT_TIMEOUT", "10"))
    DEVICE_FETCH_TIMEOUT = float(os.environ.get("DEVICE_FETCH_TIMEOUT", "25"))
    DEVICE_INFO_TIMEOUT = float(os.environ.get("DEVICE_INFO_TIMEOUT", "5"))
    DEVICE_BIND_RETRIES = int(os.environ.get("DEVICE_BIND_RETRIES", "3"))
    DEVICE_BIND_BACKOFF = float(os.environ.get("DEVICE_BIND_BACKOFF", "0.1"))
    DEVICE_PASSWORD = int(os.environ.get("DEVICE_PASSWORD", "0"))
    DEVICE_TIMEZONE = os.environ.get("DEVICE_TIMEZONE", "UTC")
    MIN_VALID_PUNCH_YEAR = int(os.environ.get("MIN_VALID_PUNCH_YEAR", "2010"))

    # Scheduled sync: "company_id@address[:port],..."
    SYNC_DEVICES = os.environ.get("SYNC_DEVICES", "")

    # Attendance policy and analytics
    REPORTING_TIMEZONE = os.environ.get("REPORTING_TIMEZONE", "UTC")
    DEFAULT_CUTOFF_TIME = os.environ.get("DEFAULT_CUTOFF_TIME", "09:00")
    DEFAULT_LATE_GRACE_MINUTES = int(os.environ.get("DEFAULT_LATE_GRACE_MINUTES", "15"))
    COUNT_WEEKEND_PUNCHES = _flag("COUNT_WEEKEND_PUNCHES", "0")
    SCORE_WEIGHTS = os.environ.get("SCORE_WEIGHTS", "0.6,0.25,0.15")
    TIER_BANDS = os.environ.get("TIER_BANDS", "95:star,90:excellent,80:good,70:poor")
    DEFAULT_METRICS_WINDOW_DAYS = int(os.environ.get("DEFAULT_METRICS_WINDOW_DAYS", "60"))
    DEFAULT_LEADERBOARD_LIMIT = int(os.environ.get("DEFAULT_LEADERBOARD_LIMIT", "10"))

    @classmethod
    def db_config(cls) -> dict:
        return {
            "host": cls.DB_HOST,
            "port": cls.DB_PORT,
            "user": cls.DB_USER,
            "password": cls.DB_PASSWORD,
            "database": cls.DB_NAME,
        }

    @classmethod
    def export(cls, namespace: dict) -> None:
        """Copy every upper-case setting into a settings module's globals."""
        for name in dir(cls):
            if name.isupper():
                namespace.setdefault(name, getattr(cls, name))
