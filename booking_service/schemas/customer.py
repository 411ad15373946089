"""
Pydantic schemas for customer details captured with a booking.
"""

from datetime import datetime
from typing import Optional
from pydantic import BaseModel, EmailStr, Field

PHONE_PATTERN = r"^\+?[0-9 ()\-]+$"


class CustomerInfo(BaseModel):
    name: str = Field(..., min_length=2, max_length=100)
    email: EmailStr
    phone: str = Field(..., min_length=7, max_length=20, pattern=PHONE_PATTERN)
    document_number: str = Field(..., min_length=5, max_length=50)


class CustomerUpdate(BaseModel):
    """Partial update. The document number identifies the person and stays fixed."""
    name: Optional[str] = Field(default=None, min_length=2, max_length=100)
    email: Optional[EmailStr] = None
    phone: Optional[str] = Field(default=None, min_length=7, max_length=20, pattern=PHONE_PATTERN)


class CustomerResponse(BaseModel):
    id: int
    name: str
    email: str
    phone: str
    document_number: str
    created_at: datetime

    model_config = {"from_attributes": True}


class CustomerSummary(CustomerResponse):
    total_reservations: int = 0
