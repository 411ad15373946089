"""Initial schema: customers, reservations, vehicle schedules with constraints.

Revision ID: 001
Revises: None
Create Date: 2026-10-19
"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Customers table
    op.create_table(
        "customers",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("email", sa.String(100), nullable=False),
        sa.Column("phone", sa.String(20), nullable=False),
        sa.Column("document_number", sa.String(50), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_customers_id", "customers", ["id"])
    # UNIQUE email / document number: find-or-create relies on these to
    # turn a lookup/insert race into an IntegrityError it can recover from.
    op.create_index("ix_customers_email", "customers", ["email"], unique=True)
    op.create_index("ix_customers_document_number", "customers", ["document_number"], unique=True)

    # Reservations table
    op.create_table(
        "reservations",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("confirmation_number", sa.String(32), nullable=False),
        sa.Column("vehicle_id", sa.Integer(), nullable=False),
        sa.Column("customer_id", sa.Integer(), sa.ForeignKey("customers.id"), nullable=False),
        sa.Column("start_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("end_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("total_price", sa.Numeric(10, 2), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default=sa.text("'Pending'")),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint("end_date > start_date", name="check_reservation_dates_ordered"),
        sa.CheckConstraint("total_price > 0", name="check_reservation_price_positive"),
        sa.CheckConstraint(
            "status IN ('Pending', 'Confirmed', 'Cancelled', 'Completed')",
            name="check_reservation_status",
        ),
    )
    op.create_index("ix_reservations_id", "reservations", ["id"])
    op.create_index("ix_reservations_confirmation_number", "reservations", ["confirmation_number"], unique=True)
    op.create_index("ix_reservations_vehicle_id", "reservations", ["vehicle_id"])
    op.create_index("ix_reservations_customer_id", "reservations", ["customer_id"])
    # Covers the conflict query: vehicle_id = ? AND status = 'Confirmed'
    # AND start_date < ? AND end_date > ?
    op.create_index(
        "ix_reservations_vehicle_status_start",
        "reservations",
        ["vehicle_id", "status", "start_date"],
    )

    # NO DOUBLE BOOKING AT THE STORAGE LEVEL: two Confirmed reservations of
    # the same vehicle may not have overlapping half-open ranges. Adjacent
    # ranges ('[)' bounds) are allowed.
    op.execute("CREATE EXTENSION IF NOT EXISTS btree_gist")
    op.execute(
        """
        ALTER TABLE reservations
        ADD CONSTRAINT ex_reservations_confirmed_overlap
        EXCLUDE USING gist (
            vehicle_id WITH =,
            tstzrange(start_date, end_date, '[)') WITH &&
        )
        WHERE (status = 'Confirmed')
        """
    )

    # Vehicle schedules: optimistic-lock row per booked vehicle
    op.create_table(
        "vehicle_schedules",
        sa.Column("vehicle_id", sa.Integer(), primary_key=True, autoincrement=False),
        sa.Column("version", sa.Integer(), nullable=False, server_default=sa.text("1")),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )


def downgrade() -> None:
    op.drop_table("vehicle_schedules")
    op.drop_table("reservations")
    op.drop_table("customers")
