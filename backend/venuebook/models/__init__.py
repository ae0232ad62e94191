"""SQLAlchemy models for Venuebook.

All models are imported here so that ``Base.metadata.create_all`` can
discover them. If you add a new model, import it in this file.
"""

from venuebook.models.booking import Booking, BookingSlot, BookingStatus
from venuebook.models.hall import Hall, HallFacility, hall_staff
from venuebook.models.notification import Notification
from venuebook.models.payment import PaymentPurpose, PaymentRecord
from venuebook.models.reservation import (
    PaymentStatus,
    Reservation,
    ReservationSlot,
    ReservationStatus,
)
from venuebook.models.setting import PlatformSetting
from venuebook.models.user import User

__all__ = [
    "Booking",
    "BookingSlot",
    "BookingStatus",
    "Hall",
    "HallFacility",
    "Notification",
    "PaymentPurpose",
    "PaymentRecord",
    "PaymentStatus",
    "PlatformSetting",
    "Reservation",
    "ReservationSlot",
    "ReservationStatus",
    "User",
    "hall_staff",
]
