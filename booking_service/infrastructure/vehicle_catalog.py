"""
HTTP client for the vehicle catalog service.
Separated from business logic for clean architecture.

The catalog answers GET /api/vehicles/{id} with an envelope:

    {"success": true, "message": "...", "data": {"id": 1, "pricePerDay": 85.0, ...}}

and 404 for unknown vehicles.
"""

from typing import Optional

import httpx
from pydantic import ValidationError

from booking_service.services.interfaces.vehicle_catalog import VehicleCatalog
from booking_service.schemas.vehicle import VehicleSummary
from booking_service.core.config import get_settings
from booking_service.core.exceptions import VehicleCatalogError
from booking_service.core.logging import get_logger

logger = get_logger(__name__)


class HttpVehicleCatalog(VehicleCatalog):
    """Catalog client with a shared connection pool."""

    def __init__(self, client: Optional[httpx.AsyncClient] = None):
        if client is None:
            settings = get_settings()
            client = httpx.AsyncClient(
                base_url=settings.VEHICLE_SERVICE_URL,
                timeout=settings.VEHICLE_SERVICE_TIMEOUT,
            )
        self._client = client

    async def get_vehicle(self, vehicle_id: int) -> Optional[VehicleSummary]:
        try:
            response = await self._client.get(f"/api/vehicles/{vehicle_id}")
        except httpx.HTTPError as e:
            logger.error("vehicle_catalog_unreachable", vehicle_id=vehicle_id, error=str(e))
            raise VehicleCatalogError(
                "Vehicle catalog is unavailable", details={"vehicle_id": vehicle_id}
            ) from e

        if response.status_code == httpx.codes.NOT_FOUND:
            return None

        if response.is_error:
            logger.error(
                "vehicle_catalog_error",
                vehicle_id=vehicle_id,
                status_code=response.status_code,
            )
            raise VehicleCatalogError(
                f"Vehicle catalog answered {response.status_code}",
                details={"vehicle_id": vehicle_id, "status_code": response.status_code},
            )

        try:
            payload = response.json()
            if not payload.get("success", True) or payload.get("data") is None:
                return None
            return VehicleSummary.model_validate(payload["data"])
        except (ValueError, AttributeError, ValidationError) as e:
            logger.error("vehicle_catalog_bad_payload", vehicle_id=vehicle_id, error=str(e))
            raise VehicleCatalogError(
                "Vehicle catalog returned an unreadable response",
                details={"vehicle_id": vehicle_id},
            ) from e

    async def close(self) -> None:
        await self._client.aclose()
