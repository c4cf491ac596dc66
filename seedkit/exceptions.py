"""Typed exception hierarchy. Every error seedkit can raise.

All errors share one base, :class:`SeedError`, tagged with a ``kind`` and an
HTTP-style ``status_code`` so a test-control endpoint can map them directly
to a response.
"""

from http import HTTPStatus


class SeedError(Exception):
    """Base exception for all seedkit errors."""

    kind = "seed_error"
    status_code = HTTPStatus.INTERNAL_SERVER_ERROR

    def __init__(self, message: str, status_code: int = None, details: dict = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = HTTPStatus(status_code)
        self.details = details or {}

    def to_dict(self) -> dict:
        return {
            "error": self.kind,
            "status": int(self.status_code),
            "message": self.message,
            "details": self.details,
        }


class ConfigurationError(SeedError):
    """Required settings are missing or unusable. Raised before any DB access."""
    kind = "configuration_error"
    status_code = HTTPStatus.PRECONDITION_FAILED

    def __init__(self, message: str, missing: list = None, **kwargs):
        super().__init__(message, **kwargs)
        self.missing = list(missing or [])


class ValidationError(SeedError):
    """Unknown scenario name or credential alias. Lists every offending value."""
    kind = "validation_error"
    status_code = HTTPStatus.BAD_REQUEST

    def __init__(self, message: str, invalid: list = None, **kwargs):
        super().__init__(message, **kwargs)
        self.invalid = list(invalid or [])


class AssignmentError(SeedError):
    """A credential entry asks to be assigned without being created."""
    kind = "assignment_error"
    status_code = HTTPStatus.PRECONDITION_FAILED

    def __init__(self, message: str, credential_type: str = "", **kwargs):
        super().__init__(message, **kwargs)
        self.credential_type = credential_type


class NotFoundError(SeedError):
    """A record the seed depends on does not exist."""
    kind = "not_found"
    status_code = HTTPStatus.NOT_FOUND

    def __init__(self, message: str, resource: str = "", resource_id: str = "", **kwargs):
        super().__init__(message, **kwargs)
        self.resource = resource
        self.resource_id = resource_id


class UnsupportedBackendError(SeedError):
    """The SQL dialect is not PostgreSQL, MySQL/MariaDB or SQLite."""
    kind = "unsupported_backend"
    status_code = HTTPStatus.NOT_IMPLEMENTED

    def __init__(self, message: str, dialect: str = "", **kwargs):
        super().__init__(message, **kwargs)
        self.dialect = dialect


class StorageError(SeedError):
    """A database statement failed. Wraps the driver/SQLAlchemy error with context."""
    kind = "storage_error"
    status_code = HTTPStatus.INTERNAL_SERVER_ERROR

    def __init__(self, message: str, operation: str = "", **kwargs):
        super().__init__(message, **kwargs)
        self.operation = operation
