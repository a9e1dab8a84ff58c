"""Domain error hierarchy and user-facing error messages."""

from fastapi import status


class AppError(Exception):
    """Base application error.

    ``message`` carries the raw detail for logs; ``user_message`` is the short
    string that may be shown to an end user.
    """

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str, code: str = "APP_ERROR", user_message: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.code = code
        self.user_message = user_message or "An unexpected error occurred. Please try again."


class InputValidationError(AppError):
    """Malformed or missing input fields."""

    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY

    def __init__(self, message: str, field_errors: dict[str, str] | None = None) -> None:
        super().__init__(message, code="INVALID_INPUT", user_message=message)
        self.field_errors = field_errors or {}


class NotFoundError(AppError):
    """Requested record or blob does not exist (or is not visible)."""

    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, message: str) -> None:
        super().__init__(message, code="NOT_FOUND", user_message=message)


class PermissionDeniedError(AppError):
    """Caller lacks the capability for this action."""

    status_code = status.HTTP_403_FORBIDDEN

    def __init__(self, message: str = "You do not have permission to perform this action.") -> None:
        super().__init__(message, code="FORBIDDEN", user_message=message)


class CatalogError(AppError):
    """Catalog query failed after the retry wrapper gave up."""

    def __init__(self, message: str, code: str = "CATALOG_ERROR") -> None:
        super().__init__(message, code=code, user_message=user_friendly_error(message))


class StorageError(AppError):
    """Blob store operation failed."""

    def __init__(self, message: str) -> None:
        super().__init__(message, code="STORAGE_ERROR")


class UpstreamError(AppError):
    """Third-party API (completion, email) returned a failure."""

    status_code = status.HTTP_502_BAD_GATEWAY

    def __init__(
        self,
        message: str,
        upstream_status: int | None = None,
        user_message: str | None = None,
    ) -> None:
        super().__init__(message, code="UPSTREAM_ERROR", user_message=user_message)
        self.upstream_status = upstream_status


class CompletionRateLimitedError(UpstreamError):
    """Completion API answered with HTTP 429."""

    def __init__(self, message: str = "AI Gateway rate limited") -> None:
        super().__init__(message, upstream_status=429)
        self.code = "RATE_LIMITED"


def user_friendly_error(error: BaseException | str | None) -> str:
    """Translate a raw error into a short, generic human-readable string."""
    if error is None:
        return "An unknown error occurred"
    if isinstance(error, AppError):
        return error.user_message

    message = error if isinstance(error, str) else str(error)
    lowered = message.lower()

    if "fetch" in lowered or "network" in lowered or "connection" in lowered:
        return "Network error. Please check your internet connection and try again."
    if "timeout" in lowered or "timed out" in lowered:
        return "Request timed out. Please try again."
    if "jwt" in lowered or "auth" in lowered or "401" in lowered or "expired" in lowered:
        return "Session expired. Please log in again."
    if "permission" in lowered or "403" in lowered or "not authorized" in lowered:
        return "You do not have permission to perform this action."
    if "rate limit" in lowered or "429" in lowered:
        return "Too many requests. Please wait a moment and try again."
    if "relation" in lowered or "column" in lowered:
        return "Database error. Please contact support."

    return "An error occurred. Please try again." if len(message) > 100 else message
