"""
Reservation status transitions and confirmation numbers.

    (create) -> Pending --confirm--> Confirmed --cancel--> Cancelled
                                               (out of band) Completed

Cancelled and Completed are terminal. Cancelling is only allowed while the
rental has not started yet.
"""

import enum
import random
from datetime import datetime
from typing import Optional

from sqlalchemy.orm.attributes import flag_modified

from booking_service.models.reservation import Reservation, ReservationStatus
from booking_service.core.exceptions import InvalidStatusTransition
from booking_service.db.types import to_utc, utcnow


class ReservationAction(str, enum.Enum):
    CONFIRM = "confirm"
    CANCEL = "cancel"


TRANSITIONS: dict[ReservationAction, tuple[ReservationStatus, ReservationStatus]] = {
    ReservationAction.CONFIRM: (ReservationStatus.PENDING, ReservationStatus.CONFIRMED),
    ReservationAction.CANCEL: (ReservationStatus.CONFIRMED, ReservationStatus.CANCELLED),
}


def can_be_confirmed(reservation: Reservation) -> bool:
    return reservation.status == ReservationStatus.PENDING


def can_be_cancelled(reservation: Reservation, now: Optional[datetime] = None) -> bool:
    now = to_utc(now) if now else utcnow()
    return reservation.status == ReservationStatus.CONFIRMED and reservation.start_date > now


def apply_transition(
    reservation: Reservation,
    action: ReservationAction,
    now: Optional[datetime] = None,
) -> ReservationStatus:
    """Move the reservation to its next status or raise InvalidStatusTransition."""
    now = to_utc(now) if now else utcnow()
    source, target = TRANSITIONS[action]

    if reservation.status != source:
        raise InvalidStatusTransition(
            f"Cannot {action.value} a reservation in status {reservation.status.value}; "
            f"only {source.value} reservations can be {target.value.lower()}",
            details={
                "reservation_id": reservation.id,
                "status": reservation.status.value,
                "action": action.value,
            },
        )

    if action is ReservationAction.CANCEL and not can_be_cancelled(reservation, now):
        raise InvalidStatusTransition(
            "Reservation cannot be cancelled once the rental period has started",
            details={
                "reservation_id": reservation.id,
                "start_date": reservation.start_date.isoformat(),
                "action": action.value,
            },
        )

    reservation.status = target
    reservation.updated_at = now
    # An unchanged value would otherwise let onupdate overwrite it
    flag_modified(reservation, "updated_at")
    return target


def generate_confirmation_number(
    prefix: str = "RF",
    now: Optional[datetime] = None,
    rng: Optional[random.Random] = None,
) -> str:
    """
    Human-readable booking reference: <prefix><UTC date YYYYMMDD><4 digits>.

    Not unique by construction; the reservation service retries against
    existing numbers and the column carries a unique constraint.
    """
    now = to_utc(now) if now else utcnow()
    rng = rng or random
    return f"{prefix}{now:%Y%m%d}{rng.randint(1000, 9999)}"
