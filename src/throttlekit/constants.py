from __future__ import annotations

MAX_THROTTLE_WAIT_MS = 300_000

RETRY_AFTER_HEADER = "retry-after"

REMAINING_HEADERS = (
    "x-ratelimit-remaining",
    "x-hubspot-ratelimit-remaining",
    "ratelimit-remaining",
)

RESET_HEADERS = (
    "x-ratelimit-reset",
    "x-hubspot-ratelimit-reset",
    "ratelimit-reset",
)

EPOCH_MS_THRESHOLD = 1_000_000_000_000

DEFAULT_THROTTLE_CODES = ("429",)
DEFAULT_WAIT_MS = 5_000
DEFAULT_JITTER_PERCENT = 25
DEFAULT_MAX_RETRIES = 5
DEFAULT_TIMEOUT_SECONDS = 30.0

DEFAULT_CONFIG_DIR = "~/.config/throttlekit"
