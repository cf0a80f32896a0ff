"""
Complaint-driven penalty policy.

Evaluated after every new complaint against the driver's all-time
complaint count (any complaint status).  Higher threshold wins:

* ``count >= ban_threshold``   -> BANNED
* ``count >= pause_threshold`` -> PAUSED until ``now + pause_days``
* otherwise                    -> no change

BANNED is sticky: a recomputation never turns a banned driver back into a
paused one.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

from .enums import DriverStatus


@dataclass(frozen=True)
class PenaltyDecision:
    status: DriverStatus
    paused_until: Optional[datetime] = None


def evaluate_penalty(
    complaint_count: int,
    current_status: DriverStatus,
    now: datetime,
    pause_threshold: int = 3,
    ban_threshold: int = 7,
    pause_days: int = 3,
) -> Optional[PenaltyDecision]:
    """Return the status to apply, or ``None`` when nothing changes."""
    if complaint_count >= ban_threshold:
        return PenaltyDecision(status=DriverStatus.BANNED)
    if complaint_count >= pause_threshold:
        if current_status == DriverStatus.BANNED:
            return None
        return PenaltyDecision(
            status=DriverStatus.PAUSED,
            paused_until=now + timedelta(days=pause_days),
        )
    return None
