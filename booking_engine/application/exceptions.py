from __future__ import annotations

from booking_engine.domain.entities.reservation import Reservation


class BookingEngineError(RuntimeError):
    """Base for every failure the booking engine reports to the user."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class AvailabilityFetchFailed(BookingEngineError):
    """Raised when reservations for a day cannot be fetched (recovered by failing closed)."""
    pass


class ValidationFailed(BookingEngineError):
    """Raised when a wizard guard is violated. Never reaches the network."""
    pass


class PartialSubmissionFailure(BookingEngineError):
    """One or more per-slot creates failed; the successful ones stay persisted."""

    def __init__(self, message: str, created: list[Reservation], failed: list[str]) -> None:
        super().__init__(message)
        self.created = created
        self.failed = failed


class RescheduleFailed(BookingEngineError):
    """Raised when the bulk reschedule request is rejected by the store."""
    pass


class CancellationFailed(BookingEngineError):
    """Raised when the bulk delete is rejected or removed nothing."""
    pass


class AuthorizationFailed(BookingEngineError):
    """No authenticated patient, or the caller is a practitioner."""

    def __init__(self, message: str, redirect_to: str, status_code: int = 401) -> None:
        super().__init__(message)
        self.redirect_to = redirect_to
        self.status_code = status_code


class ReservationStoreError(RuntimeError):
    """Raised by reservation store adapters (network failures, non-2xx answers)."""

    def __init__(self, detail: str, status_code: int | None = None) -> None:
        super().__init__(detail)
        self.detail = detail
        self.status_code = status_code


class DirectoryError(RuntimeError):
    """Raised when the practitioner directory cannot be reached."""
    pass


class PractitionerNotFound(BookingEngineError):
    """The practitioner being booked does not exist in the directory."""
    pass
