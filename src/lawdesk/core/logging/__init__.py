"""Logging module with structured logging and request tracking."""

from lawdesk.core.logging.middleware import RequestIdMiddleware, RequestLoggingMiddleware


__all__ = [
    "RequestIdMiddleware",
    "RequestLoggingMiddleware",
]
