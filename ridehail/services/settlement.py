"""
Settlement Engine
=================

Runs inside the caller's transaction when a STARTED trip is completed:

1. Split ``proposed_price`` into fee and driver net (``domain.settlement``).
2. Resolve the platform wallet explicitly (configured admin e-mail, or the
   single admin wallet).
3. Credit both wallets with SQL-side increments.

A missing wallet raises ``ConfigurationError``; the caller's rollback then
undoes every balance change and the trip stays STARTED.
"""

from __future__ import annotations

import logging
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from ridehail.config import settings
from ridehail.domain.errors import ConfigurationError
from ridehail.domain.settlement import Settlement, settle
from ridehail.infrastructure.models import TripModel, WalletModel
from ridehail.infrastructure.repositories import WalletRepository

logger = logging.getLogger(__name__)


class SettlementEngine:
    def __init__(
        self,
        session: AsyncSession,
        fee_rate: Optional[float] = None,
        platform_admin_email: Optional[str] = None,
    ):
        self.wallets = WalletRepository(session)
        self.fee_rate = settings.platform_fee_rate if fee_rate is None else fee_rate
        self.platform_admin_email = (
            platform_admin_email or settings.platform_admin_email
        )

    async def resolve_platform_wallet(self) -> WalletModel:
        candidates = await self.wallets.get_admin_wallets(self.platform_admin_email)
        if not candidates:
            raise ConfigurationError("Platform wallet not found")
        if len(candidates) > 1:
            raise ConfigurationError(
                "Several admin wallets found; set PLATFORM_ADMIN_EMAIL"
            )
        return candidates[0]

    async def settle_trip(self, trip: TripModel) -> Settlement:
        split = settle(trip.proposed_price, self.fee_rate)
        platform_wallet = await self.resolve_platform_wallet()

        if not await self.wallets.credit_driver(
            trip.driver_id, split.driver_net_amount
        ):
            raise ConfigurationError(f"Driver {trip.driver_id} has no wallet")
        if not await self.wallets.credit_platform(
            platform_wallet.id, split.fee_amount
        ):
            raise ConfigurationError("Platform wallet not found")

        logger.info(
            "Trip %d settled: price=%s fee=%s driver_net=%s",
            trip.id,
            split.final_price,
            split.fee_amount,
            split.driver_net_amount,
        )
        return split
