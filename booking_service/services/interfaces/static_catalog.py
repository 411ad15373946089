"""
Static vehicle catalog - no remote calls.
"""

from typing import Iterable, Optional

from booking_service.services.interfaces.vehicle_catalog import VehicleCatalog
from booking_service.schemas.vehicle import VehicleSummary


class StaticVehicleCatalog(VehicleCatalog):
    """
    Catalog backed by a fixed set of vehicles.

    Use when:
    - Running the booking core without the vehicle service
    - Tests
    """

    def __init__(self, vehicles: Iterable[VehicleSummary] = ()):
        self._vehicles = {v.id: v for v in vehicles}

    def add(self, vehicle: VehicleSummary) -> None:
        self._vehicles[vehicle.id] = vehicle

    async def get_vehicle(self, vehicle_id: int) -> Optional[VehicleSummary]:
        return self._vehicles.get(vehicle_id)
