"""Background job tasks.

This package contains all background job implementations.
Each task module should define async functions that can be
registered in the worker.
"""

from lawdesk.core.jobs.tasks.cleanup import cleanup_expired_refresh_tokens


__all__ = [
    "cleanup_expired_refresh_tokens",
]
