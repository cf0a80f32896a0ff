"""Pydantic request / response schemas for the REST API."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Annotated, Optional

from pydantic import BaseModel, Field, PlainSerializer

from ridehail.domain.enums import (
    ComplaintStatus,
    DriverStatus,
    Role,
    TripOrigin,
    TripStatus,
    VehicleType,
)
from ridehail.domain.settlement import to_money

# JSON number with 2 decimals; Decimal internally
Money = Annotated[
    Decimal, PlainSerializer(lambda v: float(to_money(v)), return_type=float)
]

EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"


# ── Requests ──────────────────────────────────────────────────────────


class UserRegisterRequest(BaseModel):
    email: str = Field(..., max_length=255, pattern=EMAIL_PATTERN)
    password: str = Field(..., min_length=6, max_length=128)
    name: str = Field(..., min_length=2, max_length=120)
    phone: Optional[str] = Field(None, max_length=32)


class DriverRegisterRequest(UserRegisterRequest):
    license_number: str = Field(..., min_length=3, max_length=32)
    vehicle_info: str = Field(..., min_length=2, max_length=120)


class AdminDriverCreateRequest(DriverRegisterRequest):
    status: DriverStatus = DriverStatus.ACTIVE


class AdminRegisterRequest(BaseModel):
    email: str = Field(..., max_length=255, pattern=EMAIL_PATTERN)
    password: str = Field(..., min_length=6, max_length=128)
    name: str = Field(..., min_length=2, max_length=120)


class LoginRequest(BaseModel):
    email: str
    password: str


class TripCreateRequest(BaseModel):
    """Every field is checked by the trip service, which names the missing ones."""

    pickup_address: Optional[str] = Field(None, max_length=200)
    pickup_lat: Optional[float] = Field(None, ge=-90, le=90)
    pickup_lng: Optional[float] = Field(None, ge=-180, le=180)
    destination_address: Optional[str] = Field(None, max_length=200)
    destination_lat: Optional[float] = Field(None, ge=-90, le=90)
    destination_lng: Optional[float] = Field(None, ge=-180, le=180)
    proposed_price: Optional[Decimal] = None
    departure_time: Optional[datetime] = None
    estimated_duration_minutes: Optional[int] = Field(None, ge=1)
    vehicle_type: Optional[VehicleType] = None
    expires_at: Optional[datetime] = None
    available_seats: int = Field(4, ge=1, le=8)


class BookingCreateRequest(BaseModel):
    pickup_address: str = Field(..., min_length=1, max_length=200)
    pickup_lat: float = Field(..., ge=-90, le=90)
    pickup_lng: float = Field(..., ge=-180, le=180)
    destination_address: str = Field(..., min_length=1, max_length=200)
    destination_lat: float = Field(..., ge=-90, le=90)
    destination_lng: float = Field(..., ge=-180, le=180)
    requested_at: Optional[datetime] = None


class TripActionRequest(BaseModel):
    trip_id: int


class ComplaintCreateRequest(BaseModel):
    driver_id: int
    trip_id: int
    message: str = Field(..., min_length=10, max_length=500)


class ComplaintProcessRequest(BaseModel):
    action: str = Field(..., description="RESOLVE, REJECT or ESCALATE")


class DriverStatusRequest(BaseModel):
    status: str = Field(..., description="ACTIVE, PAUSED or BANNED")
    days: Optional[int] = Field(
        None, ge=1, le=365, description="Pause length; required to pause an active driver"
    )


class DriverPauseRequest(BaseModel):
    days: int = Field(..., ge=1, le=365)


# ── Responses ─────────────────────────────────────────────────────────


class AccountResponse(BaseModel):
    """Any account; driver-only fields stay null for riders and admins."""

    id: int
    role: Role
    email: str
    name: str
    phone: Optional[str] = None
    status: Optional[DriverStatus] = None
    paused_until: Optional[datetime] = None
    license_number: Optional[str] = None
    vehicle_info: Optional[str] = None
    rating: Optional[float] = None
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class AuthResponse(BaseModel):
    token: str
    token_type: str = "bearer"
    account: AccountResponse


class DriverSummary(BaseModel):
    id: int
    name: str
    vehicle_info: Optional[str] = None
    rating: Optional[float] = None

    model_config = {"from_attributes": True}


class TripResponse(BaseModel):
    id: int
    origin: TripOrigin
    status: TripStatus
    driver_id: int
    rider_id: Optional[int] = None
    pickup_address: str
    pickup_lat: float
    pickup_lng: float
    destination_address: str
    destination_lat: float
    destination_lng: float
    distance_km: float
    proposed_price: Money
    final_price: Optional[Money] = None
    fee_amount: Optional[Money] = None
    driver_net_amount: Optional[Money] = None
    departure_time: datetime
    estimated_duration_minutes: Optional[int] = None
    expires_at: datetime
    available_seats: int
    vehicle_type: Optional[VehicleType] = None
    created_at: Optional[datetime] = None
    accepted_at: Optional[datetime] = None
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class AvailableTripResponse(TripResponse):
    driver: DriverSummary


class WalletResponse(BaseModel):
    id: int
    owner_id: int
    balance: Money
    total_earned: Money
    total_tva_collected: Money
    updated_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class ComplaintResponse(BaseModel):
    id: int
    rider_id: int
    driver_id: int
    trip_id: int
    message: str
    status: ComplaintStatus
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class DriverOverviewResponse(BaseModel):
    driver: AccountResponse
    wallet: Optional[WalletResponse] = None
    complaint_count: int

    model_config = {"from_attributes": True}


class DriverDetailResponse(BaseModel):
    driver: AccountResponse
    wallet: Optional[WalletResponse] = None
    complaints: list[ComplaintResponse] = []
    trips: list[TripResponse] = []

    model_config = {"from_attributes": True}


class ComplaintStatsResponse(BaseModel):
    total: int
    pending: int
    resolved: int
    rejected: int
    escalated: int
    drivers_with_complaints: int

    model_config = {"from_attributes": True}


class AdminStatsResponse(BaseModel):
    drivers_total: int
    drivers_active: int
    drivers_paused: int
    drivers_banned: int
    riders_total: int
    trips_total: int
    trips_by_status: dict[str, int]
    completion_rate: float
    complaints_total: int
    complaints_pending: int
    resolution_rate: float
    total_revenue: Money
    total_fees_collected: Money

    model_config = {"from_attributes": True}


class MessageResponse(BaseModel):
    message: str


class HealthResponse(BaseModel):
    status: str = "ok"


class ErrorResponse(BaseModel):
    detail: str
