import os

from config.config import Config, _flag

SECRET_KEY = "test-secret"

DB_CONFIG = {**Config.db_config(), "database": os.getenv("DB_NAME", "attendance_sync_test")}

DEBUG = False
TESTING = True
LOG_LEVEL = os.getenv("LOG_LEVEL", "WARNING")

AUTO_INIT_DB = _flag("AUTO_INIT_DB", "0")

# Deterministic analytics regardless of the host environment.
REPORTING_TIMEZONE = "UTC"
DEVICE_TIMEZONE = "UTC"

Config.export(globals())
