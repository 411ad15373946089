from booking_service.schemas.customer import CustomerInfo, CustomerResponse, CustomerSummary, CustomerUpdate
from booking_service.schemas.reservation import (
    CustomerReservationsResponse, ReservationCreate, ReservationSearch, ReservationResponse, ReservationListResponse,
)
from booking_service.schemas.vehicle import VehicleSummary

__all__ = [
    "CustomerInfo", "CustomerResponse", "CustomerSummary", "CustomerUpdate",
    "CustomerReservationsResponse", "ReservationCreate", "ReservationSearch", "ReservationResponse",
    "ReservationListResponse", "VehicleSummary",
]
