"""
SQLAlchemy ORM models  (PostgreSQL in production, SQLite in tests).

Tables
------
* ``accounts``   -- drivers, riders and admins (single-table inheritance
  on ``role``; driver-only columns are NULL for other roles)
* ``wallets``    -- one per driver / admin, created with the account
* ``trips``      -- proposed or booked rides and their settlement amounts
* ``complaints`` -- rider complaints against a driver about a trip

Indexes
-------
* **B-Tree** on ``trips.status``, ``trips.driver_id``, ``trips.rider_id``,
  ``trips.departure_time`` and ``complaints.driver_id`` for the
  availability filter, the conditional transitions and penalty tallies.
"""

from sqlalchemy import (
    Column,
    DateTime,
    Enum,
    Float,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
)
from sqlalchemy.types import TypeDecorator

from .database import Base
from ridehail.domain.clock import ensure_utc, utcnow
from ridehail.domain.enums import (
    ComplaintStatus,
    DriverStatus,
    Role,
    TripOrigin,
    TripStatus,
    VehicleType,
)


class UTCDateTime(TypeDecorator):
    """Timezone-aware UTC datetimes on every backend (SQLite drops tzinfo)."""

    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is not None:
            return ensure_utc(value)
        return value

    def process_result_value(self, value, dialect):
        if value is not None:
            return ensure_utc(value)
        return value


def _money(**kw):
    return Column(Numeric(12, 2, asdecimal=True), **kw)


class AccountModel(Base):
    __tablename__ = "accounts"

    id = Column(Integer, primary_key=True, autoincrement=True)
    role = Column(Enum(Role), nullable=False)
    email = Column(String(255), unique=True, nullable=False)
    password_hash = Column(String(255), nullable=False)
    name = Column(String(120), nullable=False)
    phone = Column(String(32), nullable=True)
    created_at = Column(UTCDateTime, default=utcnow)
    updated_at = Column(UTCDateTime, default=utcnow, onupdate=utcnow)

    # subclass columns are loaded up front; lazy loads fail under asyncio
    __mapper_args__ = {"polymorphic_on": role, "with_polymorphic": "*"}
    __table_args__ = (Index("idx_accounts_role", "role"),)


class UserModel(AccountModel):
    """A rider."""

    __mapper_args__ = {"polymorphic_identity": Role.USER}


class DriverModel(AccountModel):
    __mapper_args__ = {"polymorphic_identity": Role.DRIVER}

    status = Column(Enum(DriverStatus), nullable=True)
    paused_until = Column(UTCDateTime, nullable=True)
    license_number = Column(String(32), nullable=True)
    vehicle_info = Column(String(120), nullable=True)
    rating = Column(Float, nullable=True)


class AdminModel(AccountModel):
    __mapper_args__ = {"polymorphic_identity": Role.ADMIN}


class WalletModel(Base):
    __tablename__ = "wallets"

    id = Column(Integer, primary_key=True, autoincrement=True)
    owner_id = Column(
        Integer, ForeignKey("accounts.id"), unique=True, nullable=False
    )
    balance = _money(nullable=False, default=0)
    total_earned = _money(nullable=False, default=0)
    total_tva_collected = _money(nullable=False, default=0)
    updated_at = Column(UTCDateTime, default=utcnow)


class TripModel(Base):
    __tablename__ = "trips"

    id = Column(Integer, primary_key=True, autoincrement=True)
    origin = Column(Enum(TripOrigin), default=TripOrigin.PROPOSED, nullable=False)
    status = Column(Enum(TripStatus), default=TripStatus.AVAILABLE, nullable=False)

    driver_id = Column(Integer, ForeignKey("accounts.id"), nullable=False)
    rider_id = Column(Integer, ForeignKey("accounts.id"), nullable=True)

    pickup_address = Column(String(200), nullable=False)
    pickup_lat = Column(Float, nullable=False)
    pickup_lng = Column(Float, nullable=False)
    destination_address = Column(String(200), nullable=False)
    destination_lat = Column(Float, nullable=False)
    destination_lng = Column(Float, nullable=False)
    distance_km = Column(Float, nullable=False)

    proposed_price = _money(nullable=False)
    final_price = _money(nullable=True)
    fee_amount = _money(nullable=True)
    driver_net_amount = _money(nullable=True)

    departure_time = Column(UTCDateTime, nullable=False)
    estimated_duration_minutes = Column(Integer, nullable=True)
    expires_at = Column(UTCDateTime, nullable=False)
    available_seats = Column(Integer, default=4, nullable=False)
    vehicle_type = Column(Enum(VehicleType), nullable=True)

    created_at = Column(UTCDateTime, default=utcnow)
    accepted_at = Column(UTCDateTime, nullable=True)
    started_at = Column(UTCDateTime, nullable=True)
    completed_at = Column(UTCDateTime, nullable=True)
    cancelled_at = Column(UTCDateTime, nullable=True)

    __table_args__ = (
        Index("idx_trips_status", "status"),
        Index("idx_trips_driver", "driver_id"),
        Index("idx_trips_rider", "rider_id"),
        Index("idx_trips_departure", "departure_time"),
    )


class ComplaintModel(Base):
    __tablename__ = "complaints"

    id = Column(Integer, primary_key=True, autoincrement=True)
    rider_id = Column(Integer, ForeignKey("accounts.id"), nullable=False)
    driver_id = Column(Integer, ForeignKey("accounts.id"), nullable=False)
    trip_id = Column(Integer, ForeignKey("trips.id"), nullable=False)
    message = Column(Text, nullable=False)
    status = Column(
        Enum(ComplaintStatus), default=ComplaintStatus.PENDING, nullable=False
    )
    created_at = Column(UTCDateTime, default=utcnow)
    updated_at = Column(UTCDateTime, default=utcnow)

    __table_args__ = (
        Index("idx_complaints_driver", "driver_id"),
        Index("idx_complaints_rider", "rider_id"),
        Index("idx_complaints_status", "status"),
    )
