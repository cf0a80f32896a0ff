"""Domain enumerations and state-transition rules."""

import enum


class Role(str, enum.Enum):
    DRIVER = "DRIVER"
    USER = "USER"
    ADMIN = "ADMIN"


class DriverStatus(str, enum.Enum):
    ACTIVE = "ACTIVE"
    PAUSED = "PAUSED"
    BANNED = "BANNED"


class TripStatus(str, enum.Enum):
    AVAILABLE = "AVAILABLE"
    ACCEPTED = "ACCEPTED"
    STARTED = "STARTED"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"
    EXPIRED = "EXPIRED"


# State machine: maps current status -> set of valid next statuses
TRIP_TRANSITIONS: dict[TripStatus, set[TripStatus]] = {
    TripStatus.AVAILABLE: {TripStatus.ACCEPTED, TripStatus.CANCELLED},
    TripStatus.ACCEPTED: {TripStatus.STARTED},
    TripStatus.STARTED: {TripStatus.COMPLETED},
    TripStatus.COMPLETED: set(),
    TripStatus.CANCELLED: set(),
    TripStatus.EXPIRED: set(),
}

# A rider is bound to the trip exactly in these states
RIDER_BOUND_STATUSES = frozenset(
    {TripStatus.ACCEPTED, TripStatus.STARTED, TripStatus.COMPLETED}
)

# A driver holding a trip in one of these is mid-ride
IN_PROGRESS_STATUSES = frozenset({TripStatus.ACCEPTED, TripStatus.STARTED})


class TripOrigin(str, enum.Enum):
    PROPOSED = "PROPOSED"  # driver proposes, rider accepts
    BOOKED = "BOOKED"  # legacy: rider books, a driver is dispatched


class VehicleType(str, enum.Enum):
    SEDAN = "SEDAN"
    SUV = "SUV"
    VAN = "VAN"
    HATCHBACK = "HATCHBACK"


class ComplaintStatus(str, enum.Enum):
    PENDING = "PENDING"
    RESOLVED = "RESOLVED"
    REJECTED = "REJECTED"
    ESCALATED = "ESCALATED"


class ComplaintAction(str, enum.Enum):
    RESOLVE = "RESOLVE"
    REJECT = "REJECT"
    ESCALATE = "ESCALATE"

    @property
    def resulting_status(self) -> ComplaintStatus:
        return _ACTION_RESULTS[self]


_ACTION_RESULTS = {
    ComplaintAction.RESOLVE: ComplaintStatus.RESOLVED,
    ComplaintAction.REJECT: ComplaintStatus.REJECTED,
    ComplaintAction.ESCALATE: ComplaintStatus.ESCALATED,
}
