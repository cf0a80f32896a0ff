"""
Domain value objects and command inputs.

Patterns used
-------------
- **State Pattern** on trips: ``ensure_transition`` enforces the lifecycle
  (AVAILABLE -> ACCEPTED -> STARTED -> COMPLETED | CANCELLED) before any
  conditional write is issued.
- **Tagged union** for registrations: ``Registration`` is one of
  ``DriverRegistration``, ``RiderRegistration`` or ``AdminRegistration``;
  the account service handles them with a single ``match``.
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from datetime import datetime
from decimal import Decimal
from typing import Optional, Union

from .enums import DriverStatus, TRIP_TRANSITIONS, TripStatus, VehicleType
from .errors import InvalidStateTransition, ValidationError
from .settlement import CENT, to_money


def ensure_transition(current: TripStatus, target: TripStatus) -> None:
    """Raise unless *current* -> *target* is a legal trip transition."""
    allowed = TRIP_TRANSITIONS.get(current, set())
    if target not in allowed:
        raise InvalidStateTransition(
            f"Cannot transition from {current.value} to {target.value}"
        )


# ── Value Object ──────────────────────────────────────────────────────


@dataclass(frozen=True)
class Location:
    latitude: float
    longitude: float


# ── Commands ──────────────────────────────────────────────────────────


@dataclass
class TripProposal:
    """Everything a driver sends when proposing a trip."""

    pickup_address: Optional[str] = None
    pickup_lat: Optional[float] = None
    pickup_lng: Optional[float] = None
    destination_address: Optional[str] = None
    destination_lat: Optional[float] = None
    destination_lng: Optional[float] = None
    proposed_price: Optional[Decimal] = None
    departure_time: Optional[datetime] = None
    estimated_duration_minutes: Optional[int] = None
    vehicle_type: Optional[VehicleType] = None
    expires_at: Optional[datetime] = None
    available_seats: int = 4

    def missing_fields(self) -> list[str]:
        missing = []
        for f in fields(self):
            value = getattr(self, f.name)
            if value is None or (isinstance(value, str) and not value.strip()):
                missing.append(f.name)
        return missing

    def validate(self) -> None:
        missing = self.missing_fields()
        if missing:
            raise ValidationError(
                "All required fields must be provided: " + ", ".join(missing)
            )
        if to_money(self.proposed_price) < CENT:
            raise ValidationError("proposed_price must be at least 0.01")
        if self.available_seats < 1:
            raise ValidationError("available_seats must be at least 1")

    @property
    def pickup(self) -> Location:
        return Location(self.pickup_lat, self.pickup_lng)

    @property
    def destination(self) -> Location:
        return Location(self.destination_lat, self.destination_lng)


@dataclass
class BookingRequest:
    """Legacy dispatch path: the rider names where, the system picks who."""

    pickup_address: str
    pickup_lat: float
    pickup_lng: float
    destination_address: str
    destination_lat: float
    destination_lng: float
    requested_at: Optional[datetime] = None

    @property
    def pickup(self) -> Location:
        return Location(self.pickup_lat, self.pickup_lng)

    @property
    def destination(self) -> Location:
        return Location(self.destination_lat, self.destination_lng)


@dataclass(frozen=True)
class TripFilter:
    """Optional predicates for the availability query; ``None`` = unused."""

    min_price: Optional[Decimal] = None
    max_price: Optional[Decimal] = None
    vehicle_type: Optional[VehicleType] = None
    min_rating: Optional[float] = None
    max_distance: Optional[float] = None
    departure_after: Optional[datetime] = None
    departure_before: Optional[datetime] = None
    available_seats: Optional[int] = None


# ── Registrations (tagged union) ──────────────────────────────────────


@dataclass(frozen=True)
class RiderRegistration:
    email: str
    password: str
    name: str
    phone: Optional[str] = None


@dataclass(frozen=True)
class DriverRegistration:
    email: str
    password: str
    name: str
    license_number: str
    vehicle_info: str
    phone: Optional[str] = None
    status: DriverStatus = DriverStatus.ACTIVE


@dataclass(frozen=True)
class AdminRegistration:
    email: str
    password: str
    name: str


Registration = Union[RiderRegistration, DriverRegistration, AdminRegistration]
