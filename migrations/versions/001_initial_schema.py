"""Initial schema: accounts, wallets, trips and complaints.

Revision ID: 001
Create Date: 2026-10-17
"""

from alembic import op
import sqlalchemy as sa


revision = "001"
down_revision = None
branch_labels = None
depends_on = None


def _money(name: str, nullable: bool = True, zero: bool = False) -> sa.Column:
    return sa.Column(
        name,
        sa.Numeric(12, 2),
        nullable=nullable,
        server_default=sa.text("0") if zero else None,
    )


def upgrade() -> None:
    # ── accounts (drivers, riders and admins) ─────────────────────────
    op.create_table(
        "accounts",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column(
            "role",
            sa.Enum("DRIVER", "USER", "ADMIN", name="role"),
            nullable=False,
        ),
        sa.Column("email", sa.String(255), unique=True, nullable=False),
        sa.Column("password_hash", sa.String(255), nullable=False),
        sa.Column("name", sa.String(120), nullable=False),
        sa.Column("phone", sa.String(32), nullable=True),
        # driver-only columns
        sa.Column(
            "status",
            sa.Enum("ACTIVE", "PAUSED", "BANNED", name="driverstatus"),
            nullable=True,
        ),
        sa.Column("paused_until", sa.DateTime(timezone=True), nullable=True),
        sa.Column("license_number", sa.String(32), nullable=True),
        sa.Column("vehicle_info", sa.String(120), nullable=True),
        sa.Column("rating", sa.Float, nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
        ),
    )
    op.create_index("idx_accounts_role", "accounts", ["role"])

    # ── wallets ───────────────────────────────────────────────────────
    op.create_table(
        "wallets",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column(
            "owner_id",
            sa.Integer,
            sa.ForeignKey("accounts.id"),
            unique=True,
            nullable=False,
        ),
        _money("balance", nullable=False, zero=True),
        _money("total_earned", nullable=False, zero=True),
        _money("total_tva_collected", nullable=False, zero=True),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
        ),
    )

    # ── trips ─────────────────────────────────────────────────────────
    op.create_table(
        "trips",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column(
            "origin",
            sa.Enum("PROPOSED", "BOOKED", name="triporigin"),
            nullable=False,
        ),
        sa.Column(
            "status",
            sa.Enum(
                "AVAILABLE",
                "ACCEPTED",
                "STARTED",
                "COMPLETED",
                "CANCELLED",
                "EXPIRED",
                name="tripstatus",
            ),
            nullable=False,
        ),
        sa.Column(
            "driver_id", sa.Integer, sa.ForeignKey("accounts.id"), nullable=False
        ),
        sa.Column(
            "rider_id", sa.Integer, sa.ForeignKey("accounts.id"), nullable=True
        ),
        sa.Column("pickup_address", sa.String(200), nullable=False),
        sa.Column("pickup_lat", sa.Float, nullable=False),
        sa.Column("pickup_lng", sa.Float, nullable=False),
        sa.Column("destination_address", sa.String(200), nullable=False),
        sa.Column("destination_lat", sa.Float, nullable=False),
        sa.Column("destination_lng", sa.Float, nullable=False),
        sa.Column("distance_km", sa.Float, nullable=False),
        _money("proposed_price", nullable=False),
        _money("final_price"),
        _money("fee_amount"),
        _money("driver_net_amount"),
        sa.Column("departure_time", sa.DateTime(timezone=True), nullable=False),
        sa.Column("estimated_duration_minutes", sa.Integer, nullable=True),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("available_seats", sa.Integer, default=4, nullable=False),
        sa.Column(
            "vehicle_type",
            sa.Enum("SEDAN", "SUV", "VAN", "HATCHBACK", name="vehicletype"),
            nullable=True,
        ),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
        ),
        sa.Column("accepted_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("started_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("cancelled_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("idx_trips_status", "trips", ["status"])
    op.create_index("idx_trips_driver", "trips", ["driver_id"])
    op.create_index("idx_trips_rider", "trips", ["rider_id"])
    op.create_index("idx_trips_departure", "trips", ["departure_time"])

    # ── complaints ────────────────────────────────────────────────────
    op.create_table(
        "complaints",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column(
            "rider_id", sa.Integer, sa.ForeignKey("accounts.id"), nullable=False
        ),
        sa.Column(
            "driver_id", sa.Integer, sa.ForeignKey("accounts.id"), nullable=False
        ),
        sa.Column(
            "trip_id", sa.Integer, sa.ForeignKey("trips.id"), nullable=False
        ),
        sa.Column("message", sa.Text, nullable=False),
        sa.Column(
            "status",
            sa.Enum(
                "PENDING", "RESOLVED", "REJECTED", "ESCALATED",
                name="complaintstatus",
            ),
            nullable=False,
        ),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
        ),
    )
    op.create_index("idx_complaints_driver", "complaints", ["driver_id"])
    op.create_index("idx_complaints_rider", "complaints", ["rider_id"])
    op.create_index("idx_complaints_status", "complaints", ["status"])


def downgrade() -> None:
    op.drop_table("complaints")
    op.drop_table("trips")
    op.drop_table("wallets")
    op.drop_table("accounts")
    op.execute("DROP TYPE IF EXISTS complaintstatus")
    op.execute("DROP TYPE IF EXISTS vehicletype")
    op.execute("DROP TYPE IF EXISTS tripstatus")
    op.execute("DROP TYPE IF EXISTS triporigin")
    op.execute("DROP TYPE IF EXISTS driverstatus")
    op.execute("DROP TYPE IF EXISTS role")
