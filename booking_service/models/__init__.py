from booking_service.models.customer import Customer
from booking_service.models.reservation import Reservation, ReservationStatus
from booking_service.models.vehicle_schedule import VehicleSchedule

__all__ = ["Customer", "Reservation", "ReservationStatus", "VehicleSchedule"]
