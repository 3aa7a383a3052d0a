"""Error handling module with RFC 7807 Problem Details."""

from lawdesk.core.errors.exceptions import (
    AppException,
    AuthenticationError,
    AuthorizationError,
    ConflictError,
    DuplicateAdminEmailError,
    ForbiddenError,
    NotFoundError,
    PlanLimitError,
    ProvisioningError,
    ServiceUnavailableError,
    TenantInactiveError,
    TokenExpiredError,
    TokenInvalidError,
    TokenReuseError,
    UnauthorizedError,
    ValidationError,
)
from lawdesk.core.errors.handlers import (
    FieldError,
    ProblemDetail,
    register_exception_handlers,
)


__all__ = [
    # Exceptions
    "AppException",
    "AuthenticationError",
    "AuthorizationError",
    "ConflictError",
    "DuplicateAdminEmailError",
    # Handlers
    "FieldError",
    "ForbiddenError",
    "NotFoundError",
    "PlanLimitError",
    "ProblemDetail",
    "ProvisioningError",
    "ServiceUnavailableError",
    "TenantInactiveError",
    "TokenExpiredError",
    "TokenInvalidError",
    "TokenReuseError",
    "UnauthorizedError",
    "ValidationError",
    "register_exception_handlers",
]
