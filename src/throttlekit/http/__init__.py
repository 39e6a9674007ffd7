from throttlekit.http.retry import CallState, Executor, ThrottledCall, ThrottlePolicy, ThrottleResponse
from throttlekit.http.transport import HttpRequest, HttpxExecutor

__all__ = [
    "CallState",
    "Executor",
    "HttpRequest",
    "HttpxExecutor",
    "ThrottlePolicy",
    "ThrottleResponse",
    "ThrottledCall",
]
