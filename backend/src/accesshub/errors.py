"""Application error taxonomy.

Every error raised by services carries the HTTP status it maps to, so the
API layer can turn it into the standard error envelope without guessing.
"""

from dataclasses import dataclass
from typing import Any


@dataclass
class FieldError:
    """A single field-tagged error message."""

    field: str | None
    message: str

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {"message": self.message}
        if self.field is not None:
            result["field"] = self.field
        return result


class AppError(Exception):
    """Base class for errors that are reported to API clients."""

    status_code = 500
    code = "INTERNAL_ERROR"

    def __init__(self, message: str, errors: list[FieldError] | None = None):
        super().__init__(message)
        self.message = message
        self.errors = errors or []


class ValidationError(AppError):
    """Malformed or out-of-range input."""

    status_code = 400
    code = "VALIDATION_ERROR"


class QueryValidationError(ValidationError):
    """A query-string parameter failed validation."""

    def __init__(self, field: str, message: str):
        super().__init__(message, [FieldError(field, message)])
        self.field = field


class NotFoundError(AppError):
    status_code = 404
    code = "NOT_FOUND"


class ConflictError(AppError):
    status_code = 409
    code = "CONFLICT"


class AuthenticationError(AppError):
    status_code = 401
    code = "AUTHENTICATION_FAILED"


class PermissionDeniedError(AppError):
    status_code = 403
    code = "PERMISSION_DENIED"


class StorageError(AppError):
    """Storage failure. The message is safe to show; the cause is logged only."""

    status_code = 500
    code = "STORAGE_ERROR"

    def __init__(self, message: str = "A storage error occurred", cause: Exception | None = None):
        super().__init__(message)
        self.cause = cause


class UniqueConstraintError(StorageError):
    """A write would duplicate a unique key."""

    status_code = 409
    code = "CONFLICT"

    def __init__(self, entity: str, fields: tuple[str, ...]):
        super().__init__(f"Duplicate value for {entity} ({', '.join(fields)})")
        self.entity = entity
        self.fields = fields
