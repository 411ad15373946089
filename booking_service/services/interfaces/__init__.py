"""
Service interfaces for dependency inversion.
Allows swapping implementations without changing business logic.
"""

from .vehicle_catalog import VehicleCatalog
from .static_catalog import StaticVehicleCatalog

__all__ = ['VehicleCatalog', 'StaticVehicleCatalog']
