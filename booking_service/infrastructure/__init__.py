"""
Infrastructure layer - external system integrations.
Keeps business logic clean from implementation details.
"""

from .vehicle_catalog import HttpVehicleCatalog

__all__ = ['HttpVehicleCatalog']
