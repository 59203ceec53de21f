"""Custom exception hierarchy for the Ballot API."""

from __future__ import annotations


class AppError(Exception):
    """Base application error with a stable machine-readable code."""

    def __init__(self, message: str, code: str, status_code: int = 400) -> None:
        self.message = message
        self.code = code
        self.status_code = status_code
        super().__init__(message)

    def to_dict(self) -> dict[str, str]:
        """Serialize the error in the API standard shape."""
        return {"error": self.message, "code": self.code}


class NotFoundError(AppError):
    """Raised when a requested resource does not exist."""

    def __init__(self, resource: str, code: str = "NOT_FOUND") -> None:
        super().__init__(message=f"{resource} not found", code=code, status_code=404)


class ForbiddenError(AppError):
    """Raised when the caller lacks permission for the action."""

    def __init__(self, reason: str = "You don't have permission", code: str = "FORBIDDEN") -> None:
        super().__init__(message=reason, code=code, status_code=403)


class ConflictError(AppError):
    """Raised on duplicate/conflicting operations."""

    def __init__(self, reason: str, code: str = "CONFLICT") -> None:
        super().__init__(message=reason, code=code, status_code=409)


class GoneError(AppError):
    """Raised when a credential existed but can no longer be used."""

    def __init__(self, reason: str, code: str = "GONE") -> None:
        super().__init__(message=reason, code=code, status_code=410)


class UnauthorizedError(AppError):
    """Raised when the caller is not authenticated."""

    def __init__(self, reason: str = "Unauthorized") -> None:
        super().__init__(message=reason, code="UNAUTHORIZED", status_code=401)


class InvalidInputError(AppError):
    """Raised for request payload or parameter validation issues."""

    def __init__(self, reason: str, code: str = "INVALID_INPUT") -> None:
        super().__init__(message=reason, code=code, status_code=422)


class ServiceUnavailableError(AppError):
    """Raised when the backing store cannot be reached in time."""

    def __init__(self, reason: str = "Service temporarily unavailable") -> None:
        super().__init__(message=reason, code="STORE_UNAVAILABLE", status_code=503)


class StoreUnavailableError(Exception):
    """Raised by store adapters on timeouts and transport failures.

    This is an infrastructure signal, not an API error: services catch it and
    report ``STORE_UNAVAILABLE`` to their callers.
    """


class MalformedRecordError(Exception):
    """Raised when a stored document cannot be parsed into its model."""

    def __init__(self, path: str, detail: str = "") -> None:
        self.path = path
        message = f"Malformed record at {path}"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)
