"""
Trip lifecycle and settlement tests against an in-memory SQLite database.

Covers the conditional transitions (accept / start / complete / cancel),
expiry, the legacy booking path and wallet settlement.
"""

from datetime import timedelta
from decimal import Decimal

import pytest
from sqlalchemy import delete

from ridehail.domain.clock import utcnow
from ridehail.domain.entities import BookingRequest
from ridehail.domain.enums import DriverStatus, TripOrigin, TripStatus
from ridehail.domain.errors import ConfigurationError, NotFoundError, ValidationError
from ridehail.infrastructure.models import WalletModel
from ridehail.infrastructure.repositories import TripRepository, WalletRepository
from ridehail.services.trips import TripService


def _booking() -> BookingRequest:
    return BookingRequest(
        pickup_address="Gauthier",
        pickup_lat=33.5890,
        pickup_lng=-7.6270,
        destination_address="Casa Voyageurs",
        destination_lat=33.5900,
        destination_lng=-7.5900,
    )


class TestPropose:
    @pytest.mark.asyncio
    async def test_creates_available_trip_with_distance(self, driver, make_trip):
        trip = await make_trip(driver)
        assert trip.status == TripStatus.AVAILABLE
        assert trip.origin == TripOrigin.PROPOSED
        assert trip.driver_id == driver.id
        assert trip.rider_id is None
        assert 24.0 < trip.distance_km < 27.0
        assert trip.proposed_price == Decimal("100.00")

    @pytest.mark.asyncio
    async def test_missing_fields_rejected(self, driver, make_trip):
        with pytest.raises(ValidationError, match="expires_at"):
            await make_trip(driver, expires_at=None)

    @pytest.mark.asyncio
    async def test_sub_cent_price_is_not_stored_as_zero(self, driver, make_trip):
        with pytest.raises(ValidationError, match="proposed_price"):
            await make_trip(driver, proposed_price=Decimal("0.004"))


class TestAccept:
    @pytest.mark.asyncio
    async def test_binds_rider(self, db_session, driver, rider, make_trip):
        trip = await make_trip(driver)
        accepted = await TripService(db_session).accept(rider, trip.id)
        assert accepted.status == TripStatus.ACCEPTED
        assert accepted.rider_id == rider.id
        assert accepted.accepted_at is not None

    @pytest.mark.asyncio
    async def test_second_accept_fails(self, db_session, driver, make_rider, make_trip):
        first, second = await make_rider(), await make_rider()
        trip = await make_trip(driver)
        service = TripService(db_session)

        await service.accept(first, trip.id)
        with pytest.raises(NotFoundError, match="not available or expired"):
            await service.accept(second, trip.id)

        reloaded = await TripRepository(db_session).reload(trip.id)
        assert reloaded.rider_id == first.id

    @pytest.mark.asyncio
    async def test_expired_trip_cannot_be_accepted(self, db_session, driver, rider, make_trip):
        trip = await make_trip(driver, expires_at=utcnow() - timedelta(minutes=1))
        assert trip.status == TripStatus.AVAILABLE
        with pytest.raises(NotFoundError):
            await TripService(db_session).accept(rider, trip.id)

    @pytest.mark.asyncio
    async def test_unknown_trip(self, db_session, rider):
        with pytest.raises(NotFoundError):
            await TripService(db_session).accept(rider, 9999)

    @pytest.mark.asyncio
    async def test_racing_sessions_only_one_wins(
        self, session_factory, db_session, driver, make_rider, make_trip
    ):
        """Two transactions race for the same trip: exactly one row update lands."""
        first, second = await make_rider(), await make_rider()
        trip = await make_trip(driver)
        trip_id, first_id, second_id = trip.id, first.id, second.id
        await db_session.commit()

        now = utcnow()
        async with session_factory() as s1, session_factory() as s2:
            won_1 = await TripRepository(s1).transition(
                trip_id, TripStatus.AVAILABLE, TripStatus.ACCEPTED,
                rider_id=first_id, accepted_at=now,
            )
            await s1.commit()
            won_2 = await TripRepository(s2).transition(
                trip_id, TripStatus.AVAILABLE, TripStatus.ACCEPTED,
                rider_id=second_id, accepted_at=now,
            )
            await s2.commit()

        assert (won_1, won_2) == (True, False)
        reloaded = await TripRepository(db_session).reload(trip_id)
        assert reloaded.rider_id == first_id


class TestStartAndCancel:
    @pytest.mark.asyncio
    async def test_start_accepted_trip(self, db_session, driver, rider, make_trip):
        trip = await make_trip(driver)
        service = TripService(db_session)
        await service.accept(rider, trip.id)
        started = await service.start(driver, trip.id)
        assert started.status == TripStatus.STARTED
        assert started.started_at is not None

    @pytest.mark.asyncio
    async def test_start_requires_acceptance(self, db_session, driver, make_trip):
        trip = await make_trip(driver)
        with pytest.raises(NotFoundError):
            await TripService(db_session).start(driver, trip.id)

    @pytest.mark.asyncio
    async def test_only_owner_can_start(self, db_session, make_driver, rider, make_trip):
        owner, other = await make_driver(), await make_driver()
        trip = await make_trip(owner)
        service = TripService(db_session)
        await service.accept(rider, trip.id)
        with pytest.raises(NotFoundError):
            await service.start(other, trip.id)

    @pytest.mark.asyncio
    async def test_cancel_available_trip(self, db_session, driver, make_trip):
        trip = await make_trip(driver)
        cancelled = await TripService(db_session).cancel(driver, trip.id)
        assert cancelled.status == TripStatus.CANCELLED
        assert cancelled.cancelled_at is not None

    @pytest.mark.asyncio
    async def test_cannot_cancel_accepted_trip(self, db_session, driver, rider, make_trip):
        trip = await make_trip(driver)
        service = TripService(db_session)
        await service.accept(rider, trip.id)
        with pytest.raises(NotFoundError):
            await service.cancel(driver, trip.id)

    @pytest.mark.asyncio
    async def test_cancel_twice_fails(self, db_session, driver, make_trip):
        trip = await make_trip(driver)
        service = TripService(db_session)
        await service.cancel(driver, trip.id)
        with pytest.raises(NotFoundError):
            await service.cancel(driver, trip.id)


class TestComplete:
    @pytest.mark.asyncio
    async def test_settles_wallets(self, db_session, admin, driver, rider, make_trip):
        trip = await make_trip(driver, proposed_price=Decimal("100"))
        service = TripService(db_session)
        await service.accept(rider, trip.id)
        await service.start(driver, trip.id)

        completed = await service.complete(driver, trip.id)

        assert completed.status == TripStatus.COMPLETED
        assert completed.final_price == Decimal("100.00")
        assert completed.fee_amount == Decimal("8.00")
        assert completed.driver_net_amount == Decimal("92.00")
        assert completed.completed_at is not None

        wallets = WalletRepository(db_session)
        driver_wallet = await wallets.get_by_owner(driver.id)
        platform_wallet = await wallets.get_by_owner(admin.id)
        assert driver_wallet.balance == Decimal("92.00")
        assert driver_wallet.total_earned == Decimal("92.00")
        assert platform_wallet.balance == Decimal("8.00")
        assert platform_wallet.total_tva_collected == Decimal("8.00")

    @pytest.mark.asyncio
    async def test_settlements_accumulate(self, db_session, admin, driver, rider, make_trip):
        service = TripService(db_session)
        for price in ("100.00", "10.3125"):
            trip = await make_trip(driver, proposed_price=Decimal(price))
            await service.accept(rider, trip.id)
            await service.start(driver, trip.id)
            await service.complete(driver, trip.id)

        wallets = WalletRepository(db_session)
        # second trip is stored at 10.31: fee 0.82, net 9.49
        assert (await wallets.get_by_owner(driver.id)).balance == Decimal("101.49")
        assert (await wallets.get_by_owner(admin.id)).balance == Decimal("8.82")

    @pytest.mark.asyncio
    async def test_complete_requires_started(self, db_session, admin, driver, rider, make_trip):
        trip = await make_trip(driver)
        service = TripService(db_session)
        await service.accept(rider, trip.id)
        with pytest.raises(NotFoundError):
            await service.complete(driver, trip.id)

    @pytest.mark.asyncio
    async def test_complete_twice_fails(self, db_session, admin, driver, rider, make_trip):
        trip = await make_trip(driver)
        service = TripService(db_session)
        await service.accept(rider, trip.id)
        await service.start(driver, trip.id)
        await service.complete(driver, trip.id)
        with pytest.raises(NotFoundError):
            await service.complete(driver, trip.id)
        wallet = await WalletRepository(db_session).get_by_owner(driver.id)
        assert wallet.balance == Decimal("92.00")

    @pytest.mark.asyncio
    async def test_missing_driver_wallet_keeps_trip_started(
        self, db_session, admin, driver, rider, make_trip
    ):
        trip = await make_trip(driver)
        service = TripService(db_session)
        await service.accept(rider, trip.id)
        await service.start(driver, trip.id)
        trip_id, driver_id, admin_id = trip.id, driver.id, admin.id
        await db_session.execute(delete(WalletModel).where(WalletModel.owner_id == driver_id))
        await db_session.commit()

        with pytest.raises(ConfigurationError):
            await service.complete(driver, trip_id)
        await db_session.rollback()

        reloaded = await TripRepository(db_session).reload(trip_id)
        assert reloaded.status == TripStatus.STARTED
        assert reloaded.final_price is None
        platform_wallet = await WalletRepository(db_session).get_by_owner(admin_id)
        assert platform_wallet.balance == Decimal("0.00")

    @pytest.mark.asyncio
    async def test_no_platform_wallet(self, db_session, driver, rider, make_trip):
        trip = await make_trip(driver)
        service = TripService(db_session)
        await service.accept(rider, trip.id)
        await service.start(driver, trip.id)
        with pytest.raises(ConfigurationError, match="Platform wallet"):
            await service.complete(driver, trip.id)


class TestBook:
    @pytest.mark.asyncio
    async def test_book_dispatches_available_driver(self, db_session, driver, rider):
        trip = await TripService(db_session).book(rider, _booking())
        assert trip.origin == TripOrigin.BOOKED
        assert trip.status == TripStatus.ACCEPTED
        assert trip.driver_id == driver.id
        assert trip.rider_id == rider.id
        # distance x 3.0 per km, rounded half up
        assert trip.proposed_price == (
            Decimal(str(trip.distance_km)) * Decimal("3.0")
        ).quantize(Decimal("0.01"))

    @pytest.mark.asyncio
    async def test_no_driver_available(self, db_session, rider):
        with pytest.raises(NotFoundError, match="No driver available"):
            await TripService(db_session).book(rider, _booking())

    @pytest.mark.asyncio
    async def test_busy_and_paused_drivers_are_skipped(
        self, db_session, make_driver, make_rider, make_trip
    ):
        busy = await make_driver()
        await make_driver(status=DriverStatus.PAUSED)
        free = await make_driver()
        first, second = await make_rider(), await make_rider()
        service = TripService(db_session)
        trip = await make_trip(busy)
        await service.accept(first, trip.id)

        booked = await service.book(second, _booking())
        assert booked.driver_id == free.id

    @pytest.mark.asyncio
    async def test_booked_trip_follows_normal_flow(self, db_session, admin, driver, rider):
        service = TripService(db_session)
        trip = await service.book(rider, _booking())
        await service.start(driver, trip.id)
        completed = await service.complete(driver, trip.id)
        assert completed.status == TripStatus.COMPLETED


class TestQueries:
    @pytest.mark.asyncio
    async def test_rider_cannot_read_foreign_trip(self, db_session, driver, make_rider, make_trip):
        owner, stranger = await make_rider(), await make_rider()
        trip = await make_trip(driver)
        service = TripService(db_session)
        await service.accept(owner, trip.id)

        assert (await service.get_for_rider(owner, trip.id)).id == trip.id
        with pytest.raises(NotFoundError):
            await service.get_for_rider(stranger, trip.id)

    @pytest.mark.asyncio
    async def test_driver_sees_own_trips(self, db_session, make_driver, make_trip):
        mine, theirs = await make_driver(), await make_driver()
        await make_trip(mine)
        await make_trip(mine)
        await make_trip(theirs)
        trips = await TripService(db_session).trips_for_driver(mine)
        assert len(trips) == 2
        assert {t.driver_id for t in trips} == {mine.id}
