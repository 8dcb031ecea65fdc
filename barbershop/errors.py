# barbershop/errors.py

"""Errors raised by the scheduling core.

The HTTP layer maps each class to a status code in ``main.py``; the core
itself never retries and never swallows store failures.
"""

from typing import Optional


class SchedulingError(Exception):
    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(SchedulingError):
    """Malformed or unknown input: service, barber, duration, time outside hours."""


class InvalidTransitionError(ValidationError):
    """A status change that the validated transition path does not allow."""


class ConflictError(SchedulingError):
    """The requested slot is no longer free at commit time."""


class NotFoundError(SchedulingError):
    pass


class PermissionDeniedError(SchedulingError):
    pass


class StoreUnavailableError(SchedulingError):
    """The data store failed for infrastructure reasons."""

    def __init__(self, operation: str, cause: Optional[Exception] = None):
        super().__init__(f"Could not complete '{operation}', please try again")
        self.operation = operation
        self.cause = cause
