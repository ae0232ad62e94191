"""Domain exceptions raised by the reservation and booking services.

Each exception carries the HTTP status it maps to so routers can let them
propagate; ``venuebook.main`` installs a single handler that renders them.
"""

from fastapi import status


class VenuebookError(Exception):
    """Base class for errors surfaced to API callers."""

    status_code: int = status.HTTP_400_BAD_REQUEST
    code: str = "error"

    def __init__(self, detail: str) -> None:
        super().__init__(detail)
        self.detail = detail

    def to_dict(self) -> dict:
        return {"detail": self.detail, "code": self.code}


class ValidationFailed(VenuebookError):
    """Bad input detected before any write (dates, identity, facilities)."""

    code = "validation_error"

    def __init__(self, detail: str, field: str | None = None) -> None:
        super().__init__(detail)
        self.field = field

    def to_dict(self) -> dict:
        body = super().to_dict()
        if self.field is not None:
            body["field"] = self.field
        return body


class NotAuthenticated(VenuebookError):
    status_code = status.HTTP_401_UNAUTHORIZED
    code = "not_authenticated"


class Forbidden(VenuebookError):
    status_code = status.HTTP_403_FORBIDDEN
    code = "forbidden"


class NotFound(VenuebookError):
    status_code = status.HTTP_404_NOT_FOUND
    code = "not_found"


class SlotConflict(VenuebookError):
    """Requested time range overlaps a booking or a held reservation."""

    status_code = status.HTTP_409_CONFLICT
    code = "slot_conflict"

    def __init__(self, conflict_with: str) -> None:
        super().__init__(f"Time slot conflicts with a {conflict_with}.")
        self.conflict_with = conflict_with

    def to_dict(self) -> dict:
        body = super().to_dict()
        body["conflict_with"] = self.conflict_with
        return body


class ReservationStateError(VenuebookError):
    """Operation not allowed in the reservation's current state."""

    code = "invalid_state"


class ReservationExpired(ReservationStateError):
    """Conversion attempted after the cutoff; the reservation is now EXPIRED."""

    code = "reservation_expired"


class CodeAllocationError(VenuebookError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    code = "code_allocation_failed"


class PaymentGatewayError(VenuebookError):
    status_code = status.HTTP_502_BAD_GATEWAY
    code = "payment_gateway_error"


class BookingStateError(VenuebookError):
    """Operation not allowed in the booking's current state."""

    code = "invalid_state"
