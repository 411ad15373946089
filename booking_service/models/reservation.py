"""
Reservation model: one vehicle, one customer, one date interval.

Key design decisions:
- `vehicle_id` is a bare reference; the vehicle lives in the catalog service
- Intervals are half-open [start_date, end_date), so back-to-back rentals
  on the same vehicle never conflict
- CHECK constraints mirror the service-level invariants
- On PostgreSQL the migration adds an exclusion constraint over Confirmed
  rows (see alembic/versions)
"""

import enum

from sqlalchemy import (
    Column, Integer, String, Numeric, Enum, ForeignKey, Index, CheckConstraint,
)
from sqlalchemy.orm import relationship

from booking_service.db.base import Base, TimestampMixin
from booking_service.db.types import UTCDateTime


class ReservationStatus(str, enum.Enum):
    PENDING = "Pending"
    CONFIRMED = "Confirmed"
    CANCELLED = "Cancelled"
    COMPLETED = "Completed"

    @property
    def is_terminal(self) -> bool:
        return self in (ReservationStatus.CANCELLED, ReservationStatus.COMPLETED)


class Reservation(Base, TimestampMixin):
    __tablename__ = "reservations"

    id = Column(Integer, primary_key=True, index=True)
    confirmation_number = Column(String(32), nullable=False, unique=True, index=True)
    vehicle_id = Column(Integer, nullable=False, index=True)
    customer_id = Column(Integer, ForeignKey("customers.id"), nullable=False, index=True)
    start_date = Column(UTCDateTime(), nullable=False)
    end_date = Column(UTCDateTime(), nullable=False)
    total_price = Column(Numeric(10, 2), nullable=False)
    status = Column(
        Enum(
            ReservationStatus,
            name="reservation_status",
            native_enum=False,
            length=20,
            values_callable=lambda statuses: [s.value for s in statuses],
        ),
        nullable=False,
        default=ReservationStatus.PENDING,
    )

    customer = relationship("Customer", lazy="selectin")

    __table_args__ = (
        CheckConstraint("end_date > start_date", name="check_reservation_dates_ordered"),
        CheckConstraint("total_price > 0", name="check_reservation_price_positive"),
        CheckConstraint(
            "status IN ('Pending', 'Confirmed', 'Cancelled', 'Completed')",
            name="check_reservation_status",
        ),
        # Conflict lookups: vehicle + status, then range predicates
        Index("ix_reservations_vehicle_status_start", "vehicle_id", "status", "start_date"),
    )

    def __repr__(self) -> str:
        return (
            f"<Reservation(id={self.id}, number={self.confirmation_number}, "
            f"vehicle={self.vehicle_id}, status={self.status})>"
        )
