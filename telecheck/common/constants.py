"""Application constants."""

USER_AGENT = "telecheck/1.0 (+eligibility; contact: configured-email)"
COMMANDS = (
    "ingest",
    "reconcile",
    "select",
    "scan",
    "apply",
)
EXIT_SUCCESS = 0
EXIT_USER_ERROR = 10
EXIT_HARD_FAIL = 20

# Inclusive numeric ranges; values are not zero-padded.
AU_POSTCODE_RANGES = (
    (200, 299),  # ACT
    (800, 999),  # NT
    (1000, 2599),  # NSW
    (2600, 2899),  # ACT
    (2900, 2999),  # NSW
    (3000, 3999),  # VIC
    (4000, 4999),  # QLD
    (5000, 5999),  # SA
    (6000, 6999),  # WA
    (7000, 7999),  # TAS
)

AUSTRALIAN_STATES = {
    "NSW": "New South Wales",
    "VIC": "Victoria",
    "QLD": "Queensland",
    "WA": "Western Australia",
    "SA": "South Australia",
    "TAS": "Tasmania",
    "ACT": "Australian Capital Territory",
    "NT": "Northern Territory",
}

MAX_RECORDS = 100_000

DATASET_SIZE_TIERS = (
    (5_000, "standard"),
    (10_000, "medium"),
    (50_000, "large"),
)

JSON_LOG_FIELDS = (
    "timestamp",
    "run_id",
    "command",
    "source",
    "event",
    "status",
    "duration_ms",
    "rows_in",
    "rows_out",
    "error_code",
    "message",
)
