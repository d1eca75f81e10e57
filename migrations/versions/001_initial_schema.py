"""Initial schema: users and deliveries.

Revision ID: 001
Create Date: 2026-10-19
"""

from alembic import op
import sqlalchemy as sa


revision = "001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    # ── users ─────────────────────────────────────────────────────────
    op.create_table(
        "users",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(120), nullable=False),
        sa.Column("email", sa.String(255), unique=True, nullable=False),
        sa.Column("mobile", sa.String(32), nullable=True),
        sa.Column(
            "role",
            sa.Enum("SENDER", "TRAVELER", name="userrole"),
            nullable=False,
        ),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
        ),
    )

    # ── deliveries ────────────────────────────────────────────────────
    op.create_table(
        "deliveries",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column(
            "sender_id", sa.Integer, sa.ForeignKey("users.id"), nullable=False
        ),
        sa.Column(
            "traveler_id", sa.Integer, sa.ForeignKey("users.id"), nullable=True
        ),
        sa.Column("pickup_lat", sa.Float, nullable=False),
        sa.Column("pickup_lng", sa.Float, nullable=False),
        sa.Column("pickup_address", sa.String(255), nullable=False),
        sa.Column("dropoff_lat", sa.Float, nullable=False),
        sa.Column("dropoff_lng", sa.Float, nullable=False),
        sa.Column("dropoff_address", sa.String(255), nullable=False),
        sa.Column("pickup_cell", sa.String(20), nullable=False),
        sa.Column("receiver_contact", sa.String(64), nullable=False),
        sa.Column(
            "vehicle_type",
            sa.Enum("GEARED_MOTORBIKE", "SCOOTER", "CAR", name="vehicletype"),
            nullable=False,
        ),
        sa.Column(
            "status",
            sa.Enum(
                "PENDING",
                "ACCEPTED",
                "IN_TRANSIT",
                "DELIVERED",
                name="deliverystatus",
            ),
            nullable=False,
        ),
        sa.Column("otp", sa.String(10), nullable=True),
        sa.Column(
            "payment_status",
            sa.Enum("PENDING", "COMPLETED", name="paymentstatus"),
            nullable=False,
        ),
        sa.Column("idempotency_key", sa.String(64), unique=True, nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
        ),
        sa.Column("delivered_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
        ),
    )
    op.create_index("idx_deliveries_status", "deliveries", ["status"])
    op.create_index("idx_deliveries_sender", "deliveries", ["sender_id"])
    op.create_index("idx_deliveries_traveler", "deliveries", ["traveler_id"])
    op.create_index("idx_deliveries_pickup_cell", "deliveries", ["pickup_cell"])
    op.create_index(
        "idx_deliveries_idempotency", "deliveries", ["idempotency_key"]
    )


def downgrade() -> None:
    op.drop_table("deliveries")
    op.drop_table("users")
    op.execute("DROP TYPE IF EXISTS deliverystatus")
    op.execute("DROP TYPE IF EXISTS paymentstatus")
    op.execute("DROP TYPE IF EXISTS vehicletype")
    op.execute("DROP TYPE IF EXISTS userrole")
