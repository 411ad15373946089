"""
Column types.

Reservation boundaries are compared in Python against an aware "now", so
every timestamp that leaves the database must be timezone-aware UTC.
PostgreSQL's ``timestamptz`` already guarantees that; SQLite (used in tests)
stores naive strings, so values are normalised on the way in and out.
"""

from datetime import datetime, timezone

from sqlalchemy import DateTime
from sqlalchemy.types import TypeDecorator


def to_utc(value: datetime) -> datetime:
    """Interpret naive datetimes as UTC and convert aware ones to UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class UTCDateTime(TypeDecorator):
    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        value = to_utc(value)
        if dialect.name == "sqlite":
            return value.replace(tzinfo=None)
        return value

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        return to_utc(value)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)
