"""
Reservation service: the operations the request-handling layer calls.

CONCURRENCY STRATEGY: Reserve-if-available
==========================================

Problem:
  Availability is "read, then write". Two confirms for overlapping dates on
  the same vehicle can both see no conflict and both go through.
  Result: Double booking.

Solution:
  Only Confirmed reservations block, so confirm is the one write that can
  change a vehicle's blocking set. It first locks the vehicle's
  `vehicle_schedules` row:

  1. UPDATE vehicle_schedules SET version = version + 1
     WHERE vehicle_id = :vehicle_id
  2. If no row was updated, insert it (first write for this vehicle)

  The bumped row stays locked until the caller's transaction ends. A second
  confirm for the same vehicle waits on that lock, then runs its conflict
  query and sees the first one's result. Writers queue; they never fail
  just because another writer was busy.

  Confirm re-runs the availability check (excluding the reservation being
  confirmed); two overlapping Pending holds must not both become Confirmed.

  Create only adds a Pending hold, which blocks nobody, so it checks for
  Confirmed overlaps without taking the lock. A hold that loses a race is
  rejected later, when it is confirmed.

  On PostgreSQL an exclusion constraint over Confirmed rows is the final
  safety net.

None of these functions commit. Run them inside `session_scope()` (or any
caller-owned transaction) so the lock, the check and the write share one
transaction.
"""

import math
from datetime import datetime
from decimal import Decimal
from typing import Any, Optional, Union

from pydantic import ValidationError
from sqlalchemy import exists, func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from booking_service.models.reservation import Reservation, ReservationStatus
from booking_service.models.vehicle_schedule import VehicleSchedule
from booking_service.schemas.reservation import ReservationCreate, ReservationSearch, ReservationResponse
from booking_service.services import availability
from booking_service.services.customer_service import find_or_create_customer
from booking_service.services.interfaces.vehicle_catalog import VehicleCatalog
from booking_service.services.lifecycle import (
    ReservationAction,
    apply_transition,
    can_be_confirmed,
    generate_confirmation_number,
)
from booking_service.core.config import get_settings
from booking_service.core.exceptions import (
    AvailabilityConflictError,
    DomainRuleViolation,
    InputValidationError,
    InvalidStatusTransition,
    NotFoundError,
    ReservationNotFoundError,
    VehicleNotFoundError,
)
from booking_service.core.logging import get_logger
from booking_service.core.metrics import (
    record_reservation_attempt,
    record_transition,
    reservation_latency,
    schedule_retries,
)
from booking_service.db.types import to_utc, utcnow

logger = get_logger(__name__)

SECONDS_PER_DAY = 86400


def parse_reservation_request(data: Union[ReservationCreate, dict[str, Any]]) -> ReservationCreate:
    if isinstance(data, ReservationCreate):
        return data
    try:
        return ReservationCreate.model_validate(data)
    except ValidationError as e:
        errors = [
            {"field": ".".join(str(p) for p in err["loc"]), "message": err["msg"]}
            for err in e.errors()
        ]
        raise InputValidationError("Invalid reservation request", details={"errors": errors}) from e


def validate_booking_window(
    start: datetime,
    end: datetime,
    now: datetime,
) -> tuple[datetime, datetime]:
    """
    Normalise the requested interval to UTC and enforce intake rules.

    Bookings may start any time today (UTC) or later.
    """
    start, end = to_utc(start), to_utc(end)

    if start >= end:
        logger.warning("reservation_rejected", reason="end_not_after_start")
        raise InputValidationError(
            "End date must be after start date",
            details={"start_date": start.isoformat(), "end_date": end.isoformat()},
        )

    start_of_today = to_utc(now).replace(hour=0, minute=0, second=0, microsecond=0)
    if start < start_of_today:
        logger.warning("reservation_rejected", reason="start_in_past")
        raise InputValidationError(
            "Start date cannot be in the past",
            details={"start_date": start.isoformat()},
        )

    return start, end


def calculate_total_price(start: datetime, end: datetime, price_per_day: Decimal) -> Decimal:
    """Whole rental days, rounded up, at least one, times the daily rate."""
    days = max(1, math.ceil((end - start).total_seconds() / SECONDS_PER_DAY))
    return (Decimal(days) * Decimal(price_per_day)).quantize(Decimal("0.01"))


async def claim_vehicle_schedule(db: AsyncSession, vehicle_id: int) -> None:
    """
    Take the per-vehicle write lock.

    The version bump is unconditional, so a concurrent writer queues on the
    row lock instead of failing. Only the first-use insert can race; it is
    retried up to MAX_RETRY_ATTEMPTS.
    """
    max_attempts = get_settings().MAX_RETRY_ATTEMPTS

    for attempt in range(1, max_attempts + 1):
        update_result = await db.execute(
            update(VehicleSchedule)
            .where(VehicleSchedule.vehicle_id == vehicle_id)
            .values(version=VehicleSchedule.version + 1, updated_at=utcnow())
            .execution_options(synchronize_session=False)
        )
        if update_result.rowcount == 1:
            return

        # First write for this vehicle: our insert is the lock
        try:
            async with db.begin_nested():
                db.add(VehicleSchedule(vehicle_id=vehicle_id, version=1))
                await db.flush()
            return
        except IntegrityError:
            schedule_retries.inc()
            logger.info("schedule_retry", vehicle_id=vehicle_id, attempt=attempt, reason="concurrent_insert")

    logger.warning("schedule_claim_failed", vehicle_id=vehicle_id, attempts=max_attempts)
    raise AvailabilityConflictError(
        "Vehicle is being booked by another request. Please try again.",
        details={"vehicle_id": vehicle_id},
    )


async def _new_confirmation_number(db: AsyncSession, now: datetime) -> str:
    settings = get_settings()
    for _ in range(settings.CONFIRMATION_NUMBER_ATTEMPTS):
        number = generate_confirmation_number(settings.CONFIRMATION_PREFIX, now)
        taken = await db.execute(select(exists().where(Reservation.confirmation_number == number)))
        if not taken.scalar():
            return number
    raise DomainRuleViolation("Could not allocate a unique confirmation number")


async def create_reservation(
    db: AsyncSession,
    catalog: VehicleCatalog,
    data: Union[ReservationCreate, dict[str, Any]],
    now: Optional[datetime] = None,
) -> Reservation:
    """
    Accept a booking request as a Pending reservation.

    Order: validate input, confirm the vehicle exists, check for Confirmed
    overlaps, resolve the customer, write.
    """
    now = to_utc(now) if now else utcnow()

    with reservation_latency.time():
        try:
            request = parse_reservation_request(data)
            start, end = validate_booking_window(request.start_date, request.end_date, now)

            vehicle = await catalog.get_vehicle(request.vehicle_id)
            if vehicle is None:
                logger.warning("reservation_rejected", reason="unknown_vehicle", vehicle_id=request.vehicle_id)
                raise VehicleNotFoundError(
                    f"Vehicle {request.vehicle_id} not found",
                    details={"vehicle_id": request.vehicle_id},
                )

            conflicts = await availability.find_overlapping_confirmed(db, vehicle.id, start, end)
            if conflicts:
                logger.warning(
                    "reservation_rejected",
                    reason="unavailable",
                    vehicle_id=vehicle.id,
                    conflicting=[c.id for c in conflicts],
                )
                raise AvailabilityConflictError(
                    "Vehicle is not available for the selected dates",
                    details={
                        "vehicle_id": vehicle.id,
                        "conflicting_reservations": [c.confirmation_number for c in conflicts],
                    },
                )

            customer = await find_or_create_customer(db, request.customer_info)

            reservation = Reservation(
                confirmation_number=await _new_confirmation_number(db, now),
                vehicle_id=vehicle.id,
                customer_id=customer.id,
                customer=customer,
                start_date=start,
                end_date=end,
                total_price=calculate_total_price(start, end, vehicle.price_per_day),
                status=ReservationStatus.PENDING,
                created_at=now,
                updated_at=now,
            )
            db.add(reservation)
            await db.flush()
        except InputValidationError:
            record_reservation_attempt("invalid")
            raise
        except NotFoundError:
            record_reservation_attempt("not_found")
            raise
        except DomainRuleViolation:
            record_reservation_attempt("conflict")
            raise
        except Exception:
            record_reservation_attempt("error")
            raise

    record_reservation_attempt("success")
    logger.info(
        "reservation_created",
        reservation_id=reservation.id,
        confirmation_number=reservation.confirmation_number,
        vehicle_id=reservation.vehicle_id,
        customer_id=reservation.customer_id,
        total_price=str(reservation.total_price),
    )
    return reservation


async def _load_for_update(db: AsyncSession, reservation_id: int) -> Reservation:
    result = await db.execute(
        select(Reservation)
        .where(Reservation.id == reservation_id)
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    reservation = result.scalar_one_or_none()
    if not reservation:
        logger.warning("reservation_not_found", reservation_id=reservation_id)
        raise ReservationNotFoundError(
            f"Reservation {reservation_id} not found", details={"reservation_id": reservation_id}
        )
    return reservation


async def confirm_reservation(
    db: AsyncSession,
    reservation_id: int,
    now: Optional[datetime] = None,
) -> Reservation:
    """Pending -> Confirmed, provided the interval is still free."""
    reservation = await _load_for_update(db, reservation_id)
    await claim_vehicle_schedule(db, reservation.vehicle_id)
    # Re-read under the lock; a concurrent confirm may have won
    reservation = await _load_for_update(db, reservation_id)

    try:
        if can_be_confirmed(reservation) and await availability.has_conflicting_reservations(
            db,
            reservation.vehicle_id,
            reservation.start_date,
            reservation.end_date,
            exclude_reservation_id=reservation.id,
        ):
            raise AvailabilityConflictError(
                "Vehicle is no longer available for the reserved dates",
                details={"reservation_id": reservation.id, "vehicle_id": reservation.vehicle_id},
            )
        apply_transition(reservation, ReservationAction.CONFIRM, now)
        await db.flush()
    except IntegrityError as e:
        record_transition(ReservationAction.CONFIRM.value, applied=False)
        logger.warning("reservation_confirm_rejected", reservation_id=reservation_id, reason="exclusion_constraint")
        raise AvailabilityConflictError(
            "Vehicle is no longer available for the reserved dates",
            details={"reservation_id": reservation_id},
        ) from e
    except DomainRuleViolation as e:
        record_transition(ReservationAction.CONFIRM.value, applied=False)
        logger.warning("reservation_confirm_rejected", reservation_id=reservation_id, reason=e.message)
        raise

    record_transition(ReservationAction.CONFIRM.value, applied=True)
    logger.info(
        "reservation_confirmed",
        reservation_id=reservation.id,
        confirmation_number=reservation.confirmation_number,
    )
    return reservation


async def cancel_reservation(
    db: AsyncSession,
    reservation_id: int,
    now: Optional[datetime] = None,
) -> Reservation:
    """Confirmed -> Cancelled, only before the rental starts."""
    reservation = await _load_for_update(db, reservation_id)

    try:
        apply_transition(reservation, ReservationAction.CANCEL, now)
    except InvalidStatusTransition as e:
        record_transition(ReservationAction.CANCEL.value, applied=False)
        logger.warning("reservation_cancel_rejected", reservation_id=reservation_id, reason=e.message)
        raise
    await db.flush()

    record_transition(ReservationAction.CANCEL.value, applied=True)
    logger.info(
        "reservation_cancelled",
        reservation_id=reservation.id,
        confirmation_number=reservation.confirmation_number,
    )
    return reservation


async def is_vehicle_available(
    db: AsyncSession,
    vehicle_id: int,
    start: datetime,
    end: datetime,
    exclude_reservation_id: Optional[int] = None,
) -> bool:
    """Availability query for the request layer; rejects malformed ranges."""
    start, end = to_utc(start), to_utc(end)
    if start >= end:
        raise InputValidationError(
            "End date must be after start date",
            details={"start_date": start.isoformat(), "end_date": end.isoformat()},
        )
    return await availability.is_vehicle_available(db, vehicle_id, start, end, exclude_reservation_id)


async def get_reservation(db: AsyncSession, reservation_id: int) -> Reservation:
    result = await db.execute(select(Reservation).where(Reservation.id == reservation_id))
    reservation = result.scalar_one_or_none()
    if not reservation:
        raise ReservationNotFoundError(
            f"Reservation {reservation_id} not found", details={"reservation_id": reservation_id}
        )
    return reservation


async def get_reservation_by_confirmation_number(db: AsyncSession, confirmation_number: str) -> Reservation:
    result = await db.execute(
        select(Reservation).where(Reservation.confirmation_number == confirmation_number)
    )
    reservation = result.scalar_one_or_none()
    if not reservation:
        raise ReservationNotFoundError(
            f"Reservation {confirmation_number} not found",
            details={"confirmation_number": confirmation_number},
        )
    return reservation


async def list_vehicle_reservations(db: AsyncSession, vehicle_id: int) -> list[Reservation]:
    """All reservations of a vehicle in start-date order."""
    result = await db.execute(
        select(Reservation)
        .where(Reservation.vehicle_id == vehicle_id)
        .order_by(Reservation.start_date.asc(), Reservation.id.asc())
    )
    return list(result.scalars().all())


async def search_reservations(
    db: AsyncSession,
    criteria: ReservationSearch,
) -> tuple[list[Reservation], int]:
    """
    Filter reservations with pagination. Filters combine with AND; the date
    filters select reservations touching [start_date, end_date].
    """
    query = select(Reservation)

    if criteria.status is not None:
        query = query.where(Reservation.status == criteria.status)
    if criteria.start_date is not None:
        query = query.where(Reservation.end_date >= to_utc(criteria.start_date))
    if criteria.end_date is not None:
        query = query.where(Reservation.start_date <= to_utc(criteria.end_date))
    if criteria.customer_id is not None:
        query = query.where(Reservation.customer_id == criteria.customer_id)
    if criteria.vehicle_id is not None:
        query = query.where(Reservation.vehicle_id == criteria.vehicle_id)

    count_query = select(func.count()).select_from(query.subquery())
    total = (await db.execute(count_query)).scalar()

    page_query = (
        query
        .order_by(Reservation.start_date.asc(), Reservation.id.asc())
        .offset((criteria.page - 1) * criteria.page_size)
        .limit(criteria.page_size)
    )
    result = await db.execute(page_query)
    return list(result.scalars().all()), total


def to_response(reservation: Reservation) -> ReservationResponse:
    return ReservationResponse.model_validate(reservation)
