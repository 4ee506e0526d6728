from .request_id import RequestIDMiddleware, get_request_id
from .logging import LoggingMiddleware

__all__ = [
    "RequestIDMiddleware",
    "LoggingMiddleware",
    "get_request_id",
]
