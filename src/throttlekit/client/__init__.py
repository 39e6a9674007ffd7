"""Client entrypoints."""

from throttlekit.client.async_client import AsyncThrottledClient
from throttlekit.client.sync_client import ThrottledClient

__all__ = [
    "AsyncThrottledClient",
    "ThrottledClient",
]
