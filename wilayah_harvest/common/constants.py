"""Application constants."""

USER_AGENT = "wilayah-harvest/1.0 (+https://sig.bps.go.id mirror)"
DEFAULT_BASE_URL = "https://sig.bps.go.id"
ROOT_PARENT_CODE = "0"
DUPLICATE_SENTINEL = "0"
POSTAL_SEPARATOR = ";"
STAGES = (
    "harvest",
    "check",
    "export-sql",
)
EXIT_SUCCESS = 0
EXIT_PARTIAL = 10
EXIT_HARD_FAIL = 20
JSON_LOG_FIELDS = (
    "timestamp",
    "run_id",
    "stage",
    "region_level",
    "parent",
    "event",
    "status",
    "attempt",
    "duration_ms",
    "rows_in",
    "rows_out",
    "error_code",
    "message",
)
