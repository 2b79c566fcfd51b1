"""
Service-level error taxonomy.

Services raise these; they know nothing about HTTP. The mapping to
status codes lives in ewmstats.exceptions.
"""


class ServiceError(Exception):
    """Base error with a user-safe message."""

    default_message = 'Service error'

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class BadRequestError(ServiceError):
    """Malformed input."""

    default_message = 'Bad request'


class InvalidRangeError(BadRequestError):
    """Raised when a time range starts after it ends."""

    default_message = 'Start date must be before end date'


class ValidationFailedError(ServiceError):
    """A business validation rule was violated."""

    default_message = 'Validation failed'


class NotFoundError(ServiceError):
    default_message = 'Not found'


class ForbiddenError(ServiceError):
    """
    A state guard or an input-range guard rejected the call.
    """

    default_message = 'Operation is not allowed'


class ConflictError(ServiceError):
    """Uniqueness or integrity violation at the store layer."""

    default_message = 'Data integrity violation'
