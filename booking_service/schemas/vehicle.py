"""
Vehicle summary as returned by the catalog service.

The catalog speaks camelCase JSON; aliases map it onto snake_case fields.
"""

from datetime import datetime
from decimal import Decimal
from typing import Optional
from pydantic import BaseModel, Field


class VehicleSummary(BaseModel):
    id: int
    type: Optional[str] = None
    model: Optional[str] = None
    year: Optional[int] = None
    price_per_day: Decimal = Field(..., gt=0, alias="pricePerDay")
    available: bool = True
    created_at: Optional[datetime] = Field(default=None, alias="createdAt")

    model_config = {"populate_by_name": True}
