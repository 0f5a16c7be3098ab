"""Typed failures raised by marketplace operations.

Every error propagates unchanged to the caller. The HTTP layer maps each kind
to a status code through ``http_status``.
"""


class SymbioError(Exception):
    """Base class for all marketplace errors."""

    http_status = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {"error": type(self).__name__, "message": self.message}


class NotFound(SymbioError):
    """A referenced entity does not exist."""

    http_status = 404


class InvalidState(SymbioError):
    """The operation is not valid for the entity's current status."""

    http_status = 409


class Forbidden(SymbioError):
    """The acting user lacks the required relationship to the resource."""

    http_status = 403


class Conflict(SymbioError):
    """A duplicate of an existing record."""

    http_status = 409


class ValidationError(SymbioError):
    """Malformed input."""

    http_status = 400


class StoreCorrupted(SymbioError):
    """The persisted document does not match the store schema."""
