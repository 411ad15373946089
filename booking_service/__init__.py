"""Reservation core of the vehicle-rental platform."""

__version__ = "1.0.0"
