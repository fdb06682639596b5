"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

DEFAULT_DEVICE_PORT = 4370
DEFAULT_CONNECT_TIMEOUT_SECONDS = 10
DEFAULT_FETCH_TIMEOUT_SECONDS = 25
DEFAULT_INFO_TIMEOUT_SECONDS = 5
DEFAULT_BIND_RETRIES = 3
DEFAULT_BIND_BACKOFF_SECONDS = 0.1

DEFAULT_CUTOFF_TIME = "09:00"
DEFAULT_LATE_GRACE_MINUTES = 15
DEFAULT_METRICS_WINDOW_DAYS = 60
DEFAULT_LEADERBOARD_LIMIT = 10
DEFAULT_SCORE_WEIGHTS = "0.6,0.25,0.15"
DEFAULT_TIER_BANDS = "95:star,90:excellent,80:good,70:poor"
LOWEST_TIER = "critical"

# Resume incremental syncs this far before the newest stored punch.
INCREMENTAL_OVERLAP_DAYS = 1

# Device clocks reset to 2000-01-01 after a battery loss.
MIN_VALID_PUNCH_YEAR = 2010

# Width of the VARCHAR key columns in punch_records.
MAX_IDENTIFIER_LENGTH = 64

BULK_INSERT_CHUNK_SIZE = 500
