"""
Pytest fixtures for test database, vehicle catalog and seeded reservations.

Each test gets a fresh in-memory SQLite database (or TEST_DATABASE_URL if
set) with the schema created from the ORM metadata.
"""

import os
from datetime import datetime
from decimal import Decimal
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession
from sqlalchemy.pool import StaticPool

from booking_service.db.base import Base
from booking_service.db.session import create_engine_from_url, make_session_factory
from booking_service.models import Customer, Reservation, ReservationStatus
from booking_service.schemas.vehicle import VehicleSummary
from booking_service.services.interfaces import StaticVehicleCatalog

TEST_DATABASE_URL = os.getenv("TEST_DATABASE_URL", "sqlite+aiosqlite:///:memory:")


@pytest_asyncio.fixture(scope="function")
async def engine() -> AsyncGenerator[AsyncEngine, None]:
    """Create tables, yield engine, then drop tables for isolation."""
    kwargs = {"poolclass": StaticPool} if TEST_DATABASE_URL.startswith("sqlite") else {}
    test_engine = create_engine_from_url(TEST_DATABASE_URL, echo=False, **kwargs)

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield test_engine

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await test_engine.dispose()


@pytest.fixture
def session_factory(engine: AsyncEngine):
    return make_session_factory(engine)


@pytest_asyncio.fixture(scope="function")
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


@pytest.fixture
def catalog() -> StaticVehicleCatalog:
    """Two rentable vehicles: 1 (SUV, 85/day) and 2 (Sedan, 60/day)."""
    return StaticVehicleCatalog([
        VehicleSummary(id=1, type="SUV", model="Toyota RAV4", year=2023, price_per_day=Decimal("85.00")),
        VehicleSummary(id=2, type="Sedan", model="Honda Civic", year=2022, price_per_day=Decimal("60.00")),
    ])


@pytest.fixture
def customer_info() -> dict:
    return {
        "name": "Juan Perez",
        "email": "juan.perez@example.com",
        "phone": "+57 300 123 4567",
        "document_number": "12345678",
    }


@pytest_asyncio.fixture
async def test_customer(db_session: AsyncSession) -> Customer:
    customer = Customer(
        name="Maria Garcia",
        email="maria.garcia@example.com",
        phone="+57 300 987 6543",
        document_number="87654321",
    )
    db_session.add(customer)
    await db_session.commit()
    await db_session.refresh(customer)
    return customer


@pytest.fixture
def make_reservation(db_session: AsyncSession, test_customer: Customer):
    """Factory that inserts a reservation row directly, bypassing intake rules."""
    counter = {"n": 0}

    async def _make(
        start: datetime,
        end: datetime,
        status: ReservationStatus = ReservationStatus.CONFIRMED,
        vehicle_id: int = 1,
    ) -> Reservation:
        counter["n"] += 1
        reservation = Reservation(
            confirmation_number=f"RF20250101{1000 + counter['n']}",
            vehicle_id=vehicle_id,
            customer_id=test_customer.id,
            start_date=start,
            end_date=end,
            total_price=Decimal("100.00"),
            status=status,
        )
        db_session.add(reservation)
        await db_session.commit()
        await db_session.refresh(reservation)
        return reservation

    return _make
