"""
Per-vehicle concurrency guard.

Vehicles belong to the catalog service, so the booking database keeps its
own row per booked vehicle purely as a lock target. Confirm bumps
`version` before checking availability, which serialises every writer that
touches the same vehicle's confirmed set. `version` counts those writes.
"""

from sqlalchemy import Column, Integer

from booking_service.db.base import Base, TimestampMixin


class VehicleSchedule(Base, TimestampMixin):
    __tablename__ = "vehicle_schedules"

    vehicle_id = Column(Integer, primary_key=True, autoincrement=False)
    version = Column(Integer, nullable=False, default=1)

    def __repr__(self) -> str:
        return f"<VehicleSchedule(vehicle={self.vehicle_id}, version={self.version})>"
