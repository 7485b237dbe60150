"""Middleware package."""

from togglehub.api.middleware.request_id import RequestIdMiddleware, get_request_id
from togglehub.api.middleware.logging import LoggingMiddleware

__all__ = [
    "RequestIdMiddleware",
    "LoggingMiddleware",
    "get_request_id",
]
