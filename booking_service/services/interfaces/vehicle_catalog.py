"""
Vehicle catalog interface.
The booking core only needs to know whether a vehicle exists and what it
costs per day; the catalog itself is another service.
"""

from abc import ABC, abstractmethod
from typing import Optional

from booking_service.schemas.vehicle import VehicleSummary


class VehicleCatalog(ABC):
    """
    Interface for vehicle lookups.

    Implementations:
    - HttpVehicleCatalog: REST call to the vehicle service
    - StaticVehicleCatalog: fixed in-process mapping
    """

    @abstractmethod
    async def get_vehicle(self, vehicle_id: int) -> Optional[VehicleSummary]:
        """
        Fetch a vehicle summary.

        Returns:
            The vehicle, or None if the catalog does not know the id
        """
        pass

    async def vehicle_exists(self, vehicle_id: int) -> bool:
        return await self.get_vehicle(vehicle_id) is not None
