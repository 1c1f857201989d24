"""Reservation lifecycle and change requests."""

from rauvfilm.bookings.changes import ChangeRequestService, change_request_service
from rauvfilm.bookings.service import BookingService, ConfirmationResult, booking_service

__all__ = [
    "ChangeRequestService",
    "change_request_service",
    "BookingService",
    "ConfirmationResult",
    "booking_service",
]
