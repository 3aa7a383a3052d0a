"""Domain exceptions for the application.

These exceptions represent business-logic errors and are automatically
converted to RFC 7807 Problem Details responses by the exception handlers.
Every exception carries a stable machine-readable ``error_code``.
"""

from typing import Any


class AppException(Exception):
    """Base exception for all application errors.

    All domain exceptions should inherit from this class.

    Attributes:
        message: Human-readable error message
        error_code: Machine-readable error code for clients
        status_code: HTTP status code for the response
        details: Additional error details
    """

    message: str = "An unexpected error occurred"
    error_code: str = "INTERNAL_ERROR"
    status_code: int = 500

    def __init__(
        self,
        message: str | None = None,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.message = message or self.message
        self.error_code = error_code or self.error_code
        self.details = details or {}
        super().__init__(self.message)


class NotFoundError(AppException):
    """Raised when a requested resource is not found.

    Example:
        raise NotFoundError("Transaction not found", resource="cash_flow")
    """

    message = "Resource not found"
    error_code = "NOT_FOUND"
    status_code = 404

    def __init__(
        self,
        message: str | None = None,
        resource: str | None = None,
        resource_id: str | None = None,
        **kwargs: Any,
    ) -> None:
        details = kwargs.pop("details", {})
        if resource:
            details["resource"] = resource
        if resource_id:
            details["resource_id"] = resource_id
        super().__init__(message=message, details=details, **kwargs)


class ConflictError(AppException):
    """Raised when there's a conflict with existing data.

    Example:
        raise ConflictError("Email already registered", details={"email": email})
    """

    message = "Resource conflict"
    error_code = "CONFLICT"
    status_code = 409


class ValidationError(AppException):
    """Raised when request data is missing or malformed.

    Example:
        raise ValidationError(
            "Invalid input data",
            errors=[{"field": "email", "message": "Invalid email format"}]
        )
    """

    message = "Validation error"
    error_code = "VALIDATION_ERROR"
    status_code = 400

    def __init__(
        self,
        message: str | None = None,
        errors: list[dict[str, Any]] | None = None,
        **kwargs: Any,
    ) -> None:
        details = kwargs.pop("details", {})
        if errors:
            details["errors"] = errors
        super().__init__(message=message, details=details, **kwargs)


class DuplicateAdminEmailError(ValidationError):
    """Raised when a tenant is registered with an administrator email already in use."""

    message = "An organization is already registered with this email"
    error_code = "DUPLICATE_ADMIN_EMAIL"


class UnauthorizedError(AppException):
    """Raised when authentication is required but not provided or invalid.

    Example:
        raise UnauthorizedError("Invalid access token")
    """

    message = "Authentication required"
    error_code = "UNAUTHORIZED"
    status_code = 401


class AuthenticationError(UnauthorizedError):
    """Raised for unknown emails and wrong secrets alike."""

    message = "Invalid email or password"
    error_code = "INVALID_CREDENTIALS"


class TokenExpiredError(UnauthorizedError):
    """Raised when a token was valid but its lifetime has passed.

    Clients may attempt one renewal when they see this code.
    """

    message = "Token has expired"
    error_code = "TOKEN_EXPIRED"


class TokenInvalidError(UnauthorizedError):
    """Raised when a token is malformed, forged, or unknown."""

    message = "Invalid token"
    error_code = "TOKEN_INVALID"


class TokenReuseError(UnauthorizedError):
    """Raised when an already rotated refresh token is presented again."""

    message = "Refresh token has already been used"
    error_code = "TOKEN_REUSED"


class TenantInactiveError(UnauthorizedError):
    """Raised when the caller's tenant has been deactivated."""

    message = "Organization is deactivated"
    error_code = "TENANT_INACTIVE"


class ForbiddenError(AppException):
    """Raised when user lacks permission to access a resource.

    Example:
        raise ForbiddenError(
            "Insufficient permissions",
            details={"required": ["managerial"]}
        )
    """

    message = "Access forbidden"
    error_code = "FORBIDDEN"
    status_code = 403


class AuthorizationError(ForbiddenError):
    """Raised when an authenticated caller's account tier is insufficient."""

    message = "Access denied: insufficient account tier"
    error_code = "INSUFFICIENT_TIER"

    def __init__(
        self,
        required: list[str],
        current: str,
        message: str | None = None,
        **kwargs: Any,
    ) -> None:
        details = kwargs.pop("details", {})
        details["required"] = required
        details["current"] = current
        super().__init__(message=message, details=details, **kwargs)


class PlanLimitError(ForbiddenError):
    """Raised when a tenant's plan limit would be exceeded."""

    message = "Plan limit reached"
    error_code = "PLAN_LIMIT_REACHED"


class ProvisioningError(AppException):
    """Raised when a tenant namespace could not be fully provisioned.

    Fatal to registration: the surrounding transaction is rolled back.
    """

    message = "Organization storage could not be provisioned"
    error_code = "PROVISIONING_FAILED"
    status_code = 500


class ServiceUnavailableError(AppException):
    """Raised when a required service is temporarily unavailable.

    The response carries a ``Retry-After`` header when ``retry_after`` is set.

    Example:
        raise ServiceUnavailableError(error_code="DATABASE_BUSY", retry_after=1)
    """

    message = "Service temporarily unavailable"
    error_code = "SERVICE_UNAVAILABLE"
    status_code = 503

    def __init__(
        self,
        message: str | None = None,
        retry_after: int | None = None,
        **kwargs: Any,
    ) -> None:
        self.retry_after = retry_after
        super().__init__(message=message, **kwargs)
