from throttlekit.batch import ItemResult, run_batch
from throttlekit.client import AsyncThrottledClient, ThrottledClient
from throttlekit.config import ClientConfig, ThrottleConfig, load_config
from throttlekit.constants import MAX_THROTTLE_WAIT_MS
from throttlekit.errors import (
    ConfigError,
    HttpStatusError,
    RequestError,
    ThrottleExhaustedError,
    ThrottleKitError,
    TransportError,
)
from throttlekit.headers import normalize_headers
from throttlekit.http import CallState, HttpRequest, HttpxExecutor, ThrottledCall, ThrottlePolicy, ThrottleResponse
from throttlekit.jitter import apply_jitter
from throttlekit.wait_time import compute_wait_ms, parse_retry_after_ms, reset_wait_ms

__version__ = "0.1.0"

__all__ = [
    "__version__",
    "MAX_THROTTLE_WAIT_MS",
    "AsyncThrottledClient",
    "CallState",
    "ClientConfig",
    "ConfigError",
    "HttpRequest",
    "HttpStatusError",
    "HttpxExecutor",
    "ItemResult",
    "RequestError",
    "ThrottleConfig",
    "ThrottleExhaustedError",
    "ThrottleKitError",
    "ThrottlePolicy",
    "ThrottleResponse",
    "ThrottledCall",
    "ThrottledClient",
    "TransportError",
    "apply_jitter",
    "compute_wait_ms",
    "load_config",
    "normalize_headers",
    "parse_retry_after_ms",
    "reset_wait_ms",
    "run_batch",
]
