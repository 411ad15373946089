"""
Pydantic schemas for reservation requests and responses.

Date ordering and "not in the past" are checked by the reservation service,
not here, so they surface as InputValidationError with the clock the
service was given.
"""

from datetime import datetime
from decimal import Decimal
from typing import Optional
from pydantic import BaseModel, Field

from booking_service.models.reservation import ReservationStatus
from booking_service.schemas.customer import CustomerInfo, CustomerResponse, CustomerSummary


class ReservationCreate(BaseModel):
    vehicle_id: int = Field(..., gt=0)
    start_date: datetime
    end_date: datetime
    customer_info: CustomerInfo


class ReservationSearch(BaseModel):
    status: Optional[ReservationStatus] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    customer_id: Optional[int] = None
    vehicle_id: Optional[int] = None
    page: int = Field(default=1, ge=1)
    page_size: int = Field(default=10, ge=1, le=100)


class ReservationResponse(BaseModel):
    id: int
    confirmation_number: str
    vehicle_id: int
    customer_id: int
    start_date: datetime
    end_date: datetime
    total_price: Decimal
    status: ReservationStatus
    created_at: datetime
    updated_at: datetime
    customer: Optional[CustomerResponse] = None

    model_config = {"from_attributes": True}


class ReservationListResponse(BaseModel):
    reservations: list[ReservationResponse]
    total: int
    page: int
    page_size: int


class CustomerReservationsResponse(BaseModel):
    customer: CustomerSummary
    reservations: list[ReservationResponse]
