"""
Customer model. Email and document number are each unique so that
concurrent find-or-create calls collide in the database instead of
producing duplicates.
"""

from sqlalchemy import Column, Integer, String

from booking_service.db.base import Base, TimestampMixin


class Customer(Base, TimestampMixin):
    __tablename__ = "customers"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False)
    email = Column(String(100), unique=True, index=True, nullable=False)
    phone = Column(String(20), nullable=False)
    document_number = Column(String(50), unique=True, index=True, nullable=False)

    def __repr__(self) -> str:
        return f"<Customer(id={self.id}, email={self.email})>"
