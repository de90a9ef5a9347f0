"""Application error taxonomy.

Every error carries an HTTP status code and a machine-readable code. The API
layer turns them into ``{"error": message, "code": code}`` responses.
"""


class AppError(Exception):
    """Base class for errors that map onto an HTTP response."""

    status_code: int = 500
    default_code: str = "INTERNAL_ERROR"

    def __init__(self, message: str, code: str | None = None, status_code: int | None = None):
        super().__init__(message)
        self.message = message
        self.code = code or self.default_code
        if status_code is not None:
            self.status_code = status_code

    def to_dict(self) -> dict[str, str]:
        """Return the JSON error body."""
        return {"error": self.message, "code": self.code}


class ValidationError(AppError):
    """Malformed or missing input."""

    status_code = 400
    default_code = "VALIDATION_ERROR"


class AuthError(AppError):
    """Missing, invalid or expired credentials."""

    status_code = 401
    default_code = "UNAUTHORIZED"


class ForbiddenError(AuthError):
    """Authenticated, but not allowed to touch the resource."""

    status_code = 403
    default_code = "FORBIDDEN"


class NotFoundError(AppError):
    status_code = 404
    default_code = "NOT_FOUND"


class ConflictError(AppError):
    status_code = 409
    default_code = "CONFLICT"


class RateLimitError(AppError):
    status_code = 429
    default_code = "RATE_LIMIT_EXCEEDED"


class InternalError(AppError):
    status_code = 500
    default_code = "INTERNAL_ERROR"


class UpstreamProviderError(AppError):
    """Failure reported by (or while reaching) the hosted LLM provider."""

    status_code = 500
    default_code = "LLM_ERROR"


class ProviderAuthError(UpstreamProviderError):
    status_code = 401
    default_code = "INVALID_API_KEY"


class ProviderRateLimitError(UpstreamProviderError):
    status_code = 429
    default_code = "RATE_LIMIT"


class ProviderConnectionError(UpstreamProviderError):
    status_code = 500
    default_code = "CONNECTION_ERROR"
