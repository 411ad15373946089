"""
Vehicle availability checks.

OVERLAP RULE
============

Reservations occupy half-open intervals [start_date, end_date). Two
intervals [s1, e1) and [s2, e2) conflict iff

    s1 < e2 and s2 < e1

which covers "candidate starts inside", "candidate ends inside" and
"candidate swallows the existing booking", while a rental that starts
exactly when another ends is not a conflict.

Only Confirmed reservations take part. A Pending reservation is an
unconfirmed hold and must not starve other customers; Cancelled and
Completed rows are history.
"""

from datetime import datetime
from typing import Iterable, Optional

from sqlalchemy import exists, select
from sqlalchemy.ext.asyncio import AsyncSession

from booking_service.models.reservation import Reservation, ReservationStatus
from booking_service.core.logging import get_logger
from booking_service.core.metrics import record_availability_check

logger = get_logger(__name__)


def intervals_overlap(s1: datetime, e1: datetime, s2: datetime, e2: datetime) -> bool:
    return s1 < e2 and s2 < e1


def find_conflicts(
    reservations: Iterable[Reservation],
    start: datetime,
    end: datetime,
    exclude_reservation_id: Optional[int] = None,
) -> list[Reservation]:
    """In-memory variant of the conflict query, for reservations already loaded."""
    return [
        r for r in reservations
        if r.status == ReservationStatus.CONFIRMED
        and r.id != exclude_reservation_id
        and intervals_overlap(r.start_date, r.end_date, start, end)
    ]


def _conflict_criteria(
    vehicle_id: int,
    start: datetime,
    end: datetime,
    exclude_reservation_id: Optional[int],
) -> list:
    criteria = [
        Reservation.vehicle_id == vehicle_id,
        Reservation.status == ReservationStatus.CONFIRMED,
        Reservation.start_date < end,
        Reservation.end_date > start,
    ]
    if exclude_reservation_id is not None:
        criteria.append(Reservation.id != exclude_reservation_id)
    return criteria


async def find_overlapping_confirmed(
    db: AsyncSession,
    vehicle_id: int,
    start: datetime,
    end: datetime,
    exclude_reservation_id: Optional[int] = None,
) -> list[Reservation]:
    """Confirmed reservations of a vehicle overlapping [start, end), earliest first."""
    result = await db.execute(
        select(Reservation)
        .where(*_conflict_criteria(vehicle_id, start, end, exclude_reservation_id))
        .order_by(Reservation.start_date.asc())
    )
    return list(result.scalars().all())


async def has_conflicting_reservations(
    db: AsyncSession,
    vehicle_id: int,
    start: datetime,
    end: datetime,
    exclude_reservation_id: Optional[int] = None,
) -> bool:
    query = select(exists().where(*_conflict_criteria(vehicle_id, start, end, exclude_reservation_id)))
    return bool((await db.execute(query)).scalar())


async def is_vehicle_available(
    db: AsyncSession,
    vehicle_id: int,
    start: datetime,
    end: datetime,
    exclude_reservation_id: Optional[int] = None,
) -> bool:
    """
    True when no Confirmed reservation of the vehicle overlaps [start, end).

    Pure query. Date validation and vehicle existence are the caller's job.
    """
    available = not await has_conflicting_reservations(
        db, vehicle_id, start, end, exclude_reservation_id
    )
    record_availability_check(available)
    logger.debug(
        "availability_checked",
        vehicle_id=vehicle_id,
        start=start.isoformat(),
        end=end.isoformat(),
        excluded=exclude_reservation_id,
        available=available,
    )
    return available
