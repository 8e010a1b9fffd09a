"""Typed outcomes raised by the booking core and mapped to HTTP responses."""

from fastapi import status


class BookingError(Exception):
    """Base class for domain errors with a stable ``kind`` and HTTP status."""

    kind: str = "booking_error"
    status_code: int = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class NotFoundError(BookingError):
    """A referenced booking, listing, or user does not exist."""

    kind = "not_found"
    status_code = status.HTTP_404_NOT_FOUND


class ForbiddenError(BookingError):
    """The actor lacks ownership or role for the requested mutation."""

    kind = "forbidden"
    status_code = status.HTTP_403_FORBIDDEN


class CapacityExceededError(BookingError):
    """The listing is at its reservation limit."""

    kind = "capacity_exceeded"
    status_code = status.HTTP_409_CONFLICT


class InvalidTransitionError(BookingError):
    """A timing or state rule forbids the transition."""

    kind = "invalid_transition"
    status_code = status.HTTP_400_BAD_REQUEST


class ValidationError(BookingError):
    """Malformed or missing input, including request bodies rejected by pydantic."""

    kind = "validation_error"
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
