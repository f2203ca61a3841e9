"""Error taxonomy shared by the domain, stores and services.

Each error carries a machine-readable ``code`` and a human-readable
``message`` so the HTTP layer can render the ``ApiErrorResponse`` shape.
"""


class PetCareError(Exception):
    """Base class for all domain errors."""

    status_code = 400
    default_code = "error"

    def __init__(self, message: str, code: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.code = code or self.default_code


class ValidationError(PetCareError, ValueError):
    """Malformed or out-of-range input."""

    status_code = 400
    default_code = "validation_error"


class NotFoundError(PetCareError, LookupError):
    """A referenced animal, user or breed does not exist."""

    status_code = 404
    default_code = "not_found"


class ConflictError(PetCareError):
    """Duplicate subscription or duplicate unique field."""

    status_code = 409
    default_code = "conflict"
