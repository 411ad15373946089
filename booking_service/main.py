"""
Vehicle Booking Service - Application Entry Point

Wires configuration, structured logging, the database and the vehicle
catalog into a single object that a request-handling layer holds for its
lifetime. Each operation runs in its own transaction and returns
boundary-mapped pydantic models, never live ORM rows.
"""

from datetime import datetime
from typing import Any, Optional, Union

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from booking_service.core.config import get_settings
from booking_service.core.logging import setup_logging, get_logger
from booking_service.db.session import dispose_engine, get_session_factory, session_scope
from booking_service.infrastructure.vehicle_catalog import HttpVehicleCatalog
from booking_service.schemas.customer import CustomerSummary, CustomerUpdate
from booking_service.schemas.reservation import (
    CustomerReservationsResponse,
    ReservationCreate,
    ReservationListResponse,
    ReservationResponse,
    ReservationSearch,
)
from booking_service.services import customer_service, reservation_service
from booking_service.services.interfaces.vehicle_catalog import VehicleCatalog

settings = get_settings()


class BookingApp:
    """
    Application lifecycle plus the booking and customer operations.

    Usage:
        async with BookingApp() as booking:
            reservation = await booking.create_reservation({...})
    """

    def __init__(
        self,
        catalog: Optional[VehicleCatalog] = None,
        session_factory: Optional[async_sessionmaker[AsyncSession]] = None,
    ):
        self._owns_catalog = catalog is None
        self._owns_engine = session_factory is None
        self.catalog = catalog
        self.session_factory = session_factory
        self.logger = get_logger(__name__)

    async def start(self) -> None:
        setup_logging()
        self.logger.info(
            "application_starting",
            app=settings.APP_NAME,
            version=settings.APP_VERSION,
            environment=settings.ENVIRONMENT,
        )
        if self.catalog is None:
            self.catalog = HttpVehicleCatalog()
            self.logger.info("vehicle_catalog_ready", url=settings.VEHICLE_SERVICE_URL)
        if self.session_factory is None:
            self.session_factory = get_session_factory()

    async def close(self) -> None:
        if self._owns_catalog and isinstance(self.catalog, HttpVehicleCatalog):
            await self.catalog.close()
        if self._owns_engine:
            await dispose_engine()
        self.logger.info("application_shutdown")

    async def __aenter__(self) -> "BookingApp":
        await self.start()
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    async def create_reservation(
        self,
        data: Union[ReservationCreate, dict[str, Any]],
        now: Optional[datetime] = None,
    ) -> ReservationResponse:
        async with session_scope(self.session_factory) as db:
            reservation = await reservation_service.create_reservation(db, self.catalog, data, now=now)
            return reservation_service.to_response(reservation)

    async def confirm_reservation(self, reservation_id: int, now: Optional[datetime] = None) -> ReservationResponse:
        async with session_scope(self.session_factory) as db:
            reservation = await reservation_service.confirm_reservation(db, reservation_id, now=now)
            return reservation_service.to_response(reservation)

    async def cancel_reservation(self, reservation_id: int, now: Optional[datetime] = None) -> ReservationResponse:
        async with session_scope(self.session_factory) as db:
            reservation = await reservation_service.cancel_reservation(db, reservation_id, now=now)
            return reservation_service.to_response(reservation)

    async def is_vehicle_available(
        self,
        vehicle_id: int,
        start: datetime,
        end: datetime,
        exclude_reservation_id: Optional[int] = None,
    ) -> bool:
        async with session_scope(self.session_factory) as db:
            return await reservation_service.is_vehicle_available(
                db, vehicle_id, start, end, exclude_reservation_id
            )

    async def get_reservation(self, reservation_id: int) -> ReservationResponse:
        async with session_scope(self.session_factory) as db:
            reservation = await reservation_service.get_reservation(db, reservation_id)
            return reservation_service.to_response(reservation)

    async def search_reservations(self, criteria: ReservationSearch) -> ReservationListResponse:
        async with session_scope(self.session_factory) as db:
            reservations, total = await reservation_service.search_reservations(db, criteria)
            return ReservationListResponse(
                reservations=[reservation_service.to_response(r) for r in reservations],
                total=total,
                page=criteria.page,
                page_size=criteria.page_size,
            )

    async def list_customers(self, page: int = 1, page_size: int = 50) -> list[CustomerSummary]:
        async with session_scope(self.session_factory) as db:
            rows = await customer_service.list_customers(db, page=page, page_size=page_size)
            return [customer_service.to_summary(customer, total) for customer, total in rows]

    async def update_customer(
        self,
        customer_id: int,
        data: Union[CustomerUpdate, dict[str, Any]],
        now: Optional[datetime] = None,
    ) -> CustomerSummary:
        async with session_scope(self.session_factory) as db:
            customer = await customer_service.update_customer(db, customer_id, data, now=now)
            total = await customer_service.count_customer_reservations(db, customer.id)
            return customer_service.to_summary(customer, total)

    async def delete_customer(self, customer_id: int, now: Optional[datetime] = None) -> None:
        async with session_scope(self.session_factory) as db:
            await customer_service.delete_customer(db, customer_id, now=now)

    async def get_customer_reservations(self, customer_id: int) -> CustomerReservationsResponse:
        async with session_scope(self.session_factory) as db:
            reservations = await customer_service.list_customer_reservations(db, customer_id)
            customer = await customer_service.get_customer(db, customer_id)
            return CustomerReservationsResponse(
                customer=customer_service.to_summary(customer, len(reservations)),
                reservations=[reservation_service.to_response(r) for r in reservations],
            )
