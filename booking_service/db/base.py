"""
Declarative base and shared column mixins.
"""

from sqlalchemy import Column, func
from sqlalchemy.orm import DeclarativeBase

from booking_service.db.types import UTCDateTime, utcnow


class Base(DeclarativeBase):
    pass


class TimestampMixin:
    created_at = Column(UTCDateTime(), nullable=False, server_default=func.now(), default=utcnow)
    updated_at = Column(
        UTCDateTime(),
        nullable=False,
        server_default=func.now(),
        default=utcnow,
        onupdate=utcnow,
    )
