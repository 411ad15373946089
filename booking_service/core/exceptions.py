"""
Error taxonomy for the booking core.

Three categories are kept apart so the request-handling layer can map them
to different responses:

- InputValidationError: the request is malformed (bad date range, start in
  the past, missing customer fields).
- DomainRuleViolation: the request is well-formed but currently illegal
  (availability conflict, illegal status transition, duplicate customer,
  deleting a customer who still has a rental running or booked).
- NotFoundError: the referenced reservation/customer/vehicle does not exist.

``status_code`` is an HTTP-style hint only; nothing here depends on a web
framework.
"""

from typing import Any, Optional


class BookingError(Exception):
    status_code: int = 500

    def __init__(self, message: str, details: Optional[dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": type(self).__name__,
            "message": self.message,
            "details": self.details,
        }


class InputValidationError(BookingError):
    status_code = 400


class DomainRuleViolation(BookingError):
    status_code = 409


class AvailabilityConflictError(DomainRuleViolation):
    pass


class InvalidStatusTransition(DomainRuleViolation):
    pass


class DuplicateCustomerError(DomainRuleViolation):
    pass


class CustomerHasActiveReservationsError(DomainRuleViolation):
    pass


class NotFoundError(BookingError):
    status_code = 404


class ReservationNotFoundError(NotFoundError):
    pass


class CustomerNotFoundError(NotFoundError):
    pass


class VehicleNotFoundError(NotFoundError):
    pass


class VehicleCatalogError(BookingError):
    """The vehicle catalog could not be reached or answered with garbage."""

    status_code = 503
