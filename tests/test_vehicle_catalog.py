"""
Tests for the HTTP vehicle catalog client against a mocked transport.
"""

from decimal import Decimal

import httpx
import pytest

from booking_service.core.exceptions import VehicleCatalogError
from booking_service.infrastructure.vehicle_catalog import HttpVehicleCatalog
from booking_service.schemas.vehicle import VehicleSummary
from booking_service.services.interfaces import StaticVehicleCatalog

VEHICLE = {
    "id": 1,
    "type": "SUV",
    "model": "Toyota RAV4",
    "year": 2023,
    "pricePerDay": 85.0,
    "available": True,
    "createdAt": "2025-01-15T10:00:00Z",
}


def catalog_for(handler) -> HttpVehicleCatalog:
    client = httpx.AsyncClient(base_url="http://vehicles.test", transport=httpx.MockTransport(handler))
    return HttpVehicleCatalog(client=client)


@pytest.mark.asyncio
async def test_get_vehicle():
    """Envelope payload is unwrapped and camelCase fields mapped."""
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/api/vehicles/1"
        return httpx.Response(200, json={"success": True, "message": "ok", "data": VEHICLE})

    catalog = catalog_for(handler)
    vehicle = await catalog.get_vehicle(1)
    await catalog.close()

    assert vehicle.id == 1
    assert vehicle.price_per_day == Decimal("85.0")
    assert vehicle.model == "Toyota RAV4"


@pytest.mark.asyncio
async def test_unknown_vehicle_is_none():
    catalog = catalog_for(lambda request: httpx.Response(404, json={"success": False}))

    assert await catalog.get_vehicle(7) is None
    assert await catalog.vehicle_exists(7) is False


@pytest.mark.asyncio
async def test_unsuccessful_envelope_is_none():
    catalog = catalog_for(
        lambda request: httpx.Response(200, json={"success": False, "message": "Vehicle not found", "data": None})
    )

    assert await catalog.get_vehicle(7) is None


@pytest.mark.asyncio
async def test_server_error_raises():
    catalog = catalog_for(lambda request: httpx.Response(500, text="boom"))

    with pytest.raises(VehicleCatalogError) as exc_info:
        await catalog.get_vehicle(1)

    assert exc_info.value.details["status_code"] == 500
    assert exc_info.value.status_code == 503


@pytest.mark.asyncio
async def test_unreachable_catalog_raises():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(VehicleCatalogError):
        await catalog_for(handler).get_vehicle(1)


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "response",
    [
        httpx.Response(200, text="<html>not json</html>"),
        httpx.Response(200, json={"success": True, "data": {"id": 1}}),
        httpx.Response(200, json={"success": True, "data": {**VEHICLE, "pricePerDay": -5}}),
    ],
)
async def test_unreadable_payload_raises(response):
    """Garbage from the catalog is an infrastructure error, not a missing vehicle."""
    with pytest.raises(VehicleCatalogError):
        await catalog_for(lambda request: response).get_vehicle(1)


@pytest.mark.asyncio
async def test_static_catalog():
    catalog = StaticVehicleCatalog()
    catalog.add(VehicleSummary(id=3, price_per_day=Decimal("40.00")))

    assert (await catalog.get_vehicle(3)).price_per_day == Decimal("40.00")
    assert await catalog.get_vehicle(4) is None
