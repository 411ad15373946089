"""
Customer identity resolution.

A booking carries inline customer details. Repeat bookers are matched by
email first, then by document number, and a new row is only inserted when
neither matches.

The lookup-then-insert sequence races with concurrent bookings for the same
new customer. The unique constraints on email and document number settle
the race: the insert runs inside a SAVEPOINT, and on IntegrityError the
savepoint is rolled back and the lookup repeated, returning the row the
other transaction won with.

Registered customers can also be listed, updated and deleted. Deleting is
refused while a Confirmed rental of theirs is running or still ahead.
"""

from datetime import datetime
from typing import Any, Optional, TypeVar, Union

from pydantic import BaseModel, ValidationError
from sqlalchemy import delete, exists, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.attributes import flag_modified

from booking_service.models.customer import Customer
from booking_service.models.reservation import Reservation, ReservationStatus
from booking_service.schemas.customer import CustomerInfo, CustomerSummary, CustomerUpdate
from booking_service.core.exceptions import (
    CustomerHasActiveReservationsError,
    CustomerNotFoundError,
    DuplicateCustomerError,
    InputValidationError,
)
from booking_service.core.logging import get_logger
from booking_service.core.metrics import record_customer_resolution
from booking_service.db.types import to_utc, utcnow

logger = get_logger(__name__)

SchemaT = TypeVar("SchemaT", bound=BaseModel)


def _validate(schema: type[SchemaT], data: Union[SchemaT, dict[str, Any]], message: str) -> SchemaT:
    if isinstance(data, schema):
        return data
    try:
        return schema.model_validate(data)
    except ValidationError as e:
        errors = [
            {"field": ".".join(str(p) for p in err["loc"]), "message": err["msg"]}
            for err in e.errors()
        ]
        raise InputValidationError(message, details={"errors": errors}) from e


def parse_customer_info(data: Union[CustomerInfo, dict[str, Any]]) -> CustomerInfo:
    """Validate raw customer details, reporting every failing field."""
    return _validate(CustomerInfo, data, "Invalid customer details")


async def get_customer(db: AsyncSession, customer_id: int) -> Customer:
    result = await db.execute(select(Customer).where(Customer.id == customer_id))
    customer = result.scalar_one_or_none()
    if not customer:
        raise CustomerNotFoundError(
            f"Customer {customer_id} not found", details={"customer_id": customer_id}
        )
    return customer


async def find_customer_by_email(db: AsyncSession, email: str) -> Optional[Customer]:
    result = await db.execute(select(Customer).where(Customer.email == email))
    return result.scalar_one_or_none()


async def find_customer_by_document_number(db: AsyncSession, document_number: str) -> Optional[Customer]:
    result = await db.execute(select(Customer).where(Customer.document_number == document_number))
    return result.scalar_one_or_none()


async def _lookup_existing(db: AsyncSession, info: CustomerInfo) -> tuple[Optional[Customer], str]:
    customer = await find_customer_by_email(db, info.email)
    if customer:
        return customer, "email"
    customer = await find_customer_by_document_number(db, info.document_number)
    if customer:
        return customer, "document"
    return None, ""


async def _insert_customer(db: AsyncSession, info: CustomerInfo) -> Customer:
    customer = Customer(
        name=info.name,
        email=info.email,
        phone=info.phone,
        document_number=info.document_number,
    )
    async with db.begin_nested():
        db.add(customer)
        await db.flush()
    return customer


async def find_or_create_customer(
    db: AsyncSession,
    data: Union[CustomerInfo, dict[str, Any]],
) -> Customer:
    info = parse_customer_info(data)

    customer, matched_by = await _lookup_existing(db, info)
    if customer:
        record_customer_resolution(matched_by)
        logger.info("customer_reused", customer_id=customer.id, matched_by=matched_by)
        return customer

    try:
        customer = await _insert_customer(db, info)
    except IntegrityError:
        # A concurrent booking inserted the same customer between our lookup
        # and our insert; the savepoint is already rolled back.
        customer, matched_by = await _lookup_existing(db, info)
        if not customer:
            raise
        record_customer_resolution("race_recovered")
        logger.info("customer_insert_race_recovered", customer_id=customer.id, matched_by=matched_by)
        return customer

    record_customer_resolution("created")
    logger.info("customer_created", customer_id=customer.id, email=customer.email)
    return customer


async def create_customer(
    db: AsyncSession,
    data: Union[CustomerInfo, dict[str, Any]],
) -> Customer:
    """
    Explicit registration. Unlike find-or-create, an existing email or
    document number is a rule violation.
    """
    info = parse_customer_info(data)

    if await find_customer_by_email(db, info.email):
        logger.warning("customer_create_failed", reason="email_exists", email=info.email)
        raise DuplicateCustomerError(
            f"Customer with email {info.email} already exists", details={"email": info.email}
        )

    if await find_customer_by_document_number(db, info.document_number):
        logger.warning("customer_create_failed", reason="document_exists")
        raise DuplicateCustomerError(
            f"Customer with document number {info.document_number} already exists",
            details={"document_number": info.document_number},
        )

    try:
        customer = await _insert_customer(db, info)
    except IntegrityError as e:
        raise DuplicateCustomerError("Customer already exists") from e

    logger.info("customer_created", customer_id=customer.id, email=customer.email)
    return customer


def to_summary(customer: Customer, total_reservations: int) -> CustomerSummary:
    return CustomerSummary.model_validate(customer).model_copy(
        update={"total_reservations": total_reservations}
    )


async def count_customer_reservations(db: AsyncSession, customer_id: int) -> int:
    result = await db.execute(
        select(func.count(Reservation.id)).where(Reservation.customer_id == customer_id)
    )
    return result.scalar()


async def list_customers(
    db: AsyncSession,
    page: int = 1,
    page_size: int = 50,
) -> list[tuple[Customer, int]]:
    """Customers in id order, each with its total number of reservations."""
    totals = (
        select(Reservation.customer_id, func.count(Reservation.id).label("total"))
        .group_by(Reservation.customer_id)
        .subquery()
    )
    result = await db.execute(
        select(Customer, func.coalesce(totals.c.total, 0))
        .outerjoin(totals, totals.c.customer_id == Customer.id)
        .order_by(Customer.id.asc())
        .offset((page - 1) * page_size)
        .limit(page_size)
    )
    return [(customer, total) for customer, total in result.all()]


async def list_customer_reservations(db: AsyncSession, customer_id: int) -> list[Reservation]:
    """A customer's booking history, earliest rental first."""
    await get_customer(db, customer_id)
    result = await db.execute(
        select(Reservation)
        .where(Reservation.customer_id == customer_id)
        .order_by(Reservation.start_date.asc(), Reservation.id.asc())
    )
    return list(result.scalars().all())


async def update_customer(
    db: AsyncSession,
    customer_id: int,
    data: Union[CustomerUpdate, dict[str, Any]],
    now: Optional[datetime] = None,
) -> Customer:
    """
    Apply the given fields. A new email must not belong to another customer;
    the document number cannot change.
    """
    changes = _validate(CustomerUpdate, data, "Invalid customer details")
    customer = await get_customer(db, customer_id)

    if changes.email is not None and changes.email != customer.email:
        if await find_customer_by_email(db, changes.email):
            logger.warning("customer_update_failed", reason="email_exists", customer_id=customer_id)
            raise DuplicateCustomerError(
                f"Customer with email {changes.email} already exists", details={"email": changes.email}
            )
        customer.email = changes.email
    if changes.name is not None:
        customer.name = changes.name
    if changes.phone is not None:
        customer.phone = changes.phone
    customer.updated_at = to_utc(now) if now else utcnow()
    flag_modified(customer, "updated_at")

    try:
        async with db.begin_nested():
            await db.flush()
    except IntegrityError as e:
        raise DuplicateCustomerError("Customer already exists") from e

    logger.info("customer_updated", customer_id=customer.id)
    return customer


async def delete_customer(db: AsyncSession, customer_id: int, now: Optional[datetime] = None) -> None:
    """
    Remove a customer and their reservation history.

    Refused while any Confirmed rental of theirs has not ended yet.
    """
    now = to_utc(now) if now else utcnow()
    customer = await get_customer(db, customer_id)

    active = await db.execute(
        select(exists().where(
            Reservation.customer_id == customer_id,
            Reservation.status == ReservationStatus.CONFIRMED,
            Reservation.end_date > now,
        ))
    )
    if active.scalar():
        logger.warning("customer_delete_failed", reason="active_reservations", customer_id=customer_id)
        raise CustomerHasActiveReservationsError(
            "Cannot delete customer with active reservations",
            details={"customer_id": customer_id},
        )

    removed = await db.execute(
        delete(Reservation)
        .where(Reservation.customer_id == customer_id)
        .execution_options(synchronize_session="fetch")
    )
    await db.delete(customer)
    await db.flush()

    logger.info("customer_deleted", customer_id=customer_id, reservations_removed=removed.rowcount)
