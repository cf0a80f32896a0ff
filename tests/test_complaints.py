"""
Complaint filing, automatic penalties and admin driver management.
"""

from datetime import timedelta

import pytest

from ridehail.domain.clock import utcnow
from ridehail.domain.enums import ComplaintStatus, DriverStatus
from ridehail.domain.errors import NotFoundError, ValidationError
from ridehail.services.complaints import ComplaintService
from ridehail.services.trips import TripService

MESSAGE = "Driver was rude and took a detour."


@pytest.fixture
def ridden_trip(db_session, make_trip):
    """A trip proposed by *driver* and accepted by *rider*."""

    async def _make(driver, rider):
        trip = await make_trip(driver)
        return await TripService(db_session).accept(rider, trip.id)

    return _make


async def _file(service, rider, driver, trip, times, now=None):
    for _ in range(times):
        await service.file_complaint(rider, driver.id, trip.id, MESSAGE, now=now)


class TestFileComplaint:
    @pytest.mark.asyncio
    async def test_creates_pending_complaint(self, db_session, driver, rider, ridden_trip):
        trip = await ridden_trip(driver, rider)
        complaint = await ComplaintService(db_session).file_complaint(
            rider, driver.id, trip.id, MESSAGE
        )
        assert complaint.status == ComplaintStatus.PENDING
        assert complaint.rider_id == rider.id
        assert complaint.driver_id == driver.id
        assert complaint.trip_id == trip.id

    @pytest.mark.asyncio
    async def test_driver_must_own_the_trip(
        self, db_session, make_driver, rider, ridden_trip
    ):
        owner, innocent = await make_driver(), await make_driver()
        trip = await ridden_trip(owner, rider)
        with pytest.raises(NotFoundError):
            await ComplaintService(db_session).file_complaint(
                rider, innocent.id, trip.id, MESSAGE
            )

    @pytest.mark.asyncio
    async def test_rider_must_have_ridden_the_trip(
        self, db_session, driver, make_rider, ridden_trip
    ):
        passenger, stranger = await make_rider(), await make_rider()
        trip = await ridden_trip(driver, passenger)
        with pytest.raises(NotFoundError):
            await ComplaintService(db_session).file_complaint(
                stranger, driver.id, trip.id, MESSAGE
            )

    @pytest.mark.asyncio
    async def test_unaccepted_trip_cannot_be_complained_about(
        self, db_session, driver, rider, make_trip
    ):
        trip = await make_trip(driver)
        with pytest.raises(NotFoundError):
            await ComplaintService(db_session).file_complaint(
                rider, driver.id, trip.id, MESSAGE
            )

    @pytest.mark.asyncio
    async def test_blank_message_rejected(self, db_session, driver, rider, ridden_trip):
        trip = await ridden_trip(driver, rider)
        with pytest.raises(ValidationError):
            await ComplaintService(db_session).file_complaint(
                rider, driver.id, trip.id, "   "
            )


class TestAutomaticPenalties:
    @pytest.mark.asyncio
    async def test_two_complaints_leave_driver_active(
        self, db_session, driver, rider, ridden_trip
    ):
        trip = await ridden_trip(driver, rider)
        await _file(ComplaintService(db_session), rider, driver, trip, 2)
        assert driver.status == DriverStatus.ACTIVE
        assert driver.paused_until is None

    @pytest.mark.asyncio
    async def test_third_complaint_pauses_for_three_days(
        self, db_session, driver, rider, ridden_trip
    ):
        trip = await ridden_trip(driver, rider)
        now = utcnow()
        await _file(ComplaintService(db_session), rider, driver, trip, 3, now=now)
        assert driver.status == DriverStatus.PAUSED
        assert driver.paused_until == now + timedelta(days=3)

    @pytest.mark.asyncio
    async def test_seventh_complaint_bans(self, db_session, driver, rider, ridden_trip):
        trip = await ridden_trip(driver, rider)
        await _file(ComplaintService(db_session), rider, driver, trip, 7)
        assert driver.status == DriverStatus.BANNED
        assert driver.paused_until is None

    @pytest.mark.asyncio
    async def test_processed_complaints_still_count(
        self, db_session, admin, driver, rider, ridden_trip
    ):
        trip = await ridden_trip(driver, rider)
        service = ComplaintService(db_session)
        first = await service.file_complaint(rider, driver.id, trip.id, MESSAGE)
        await service.process_complaint(admin, first.id, "REJECT")
        await _file(service, rider, driver, trip, 2)
        assert driver.status == DriverStatus.PAUSED

    @pytest.mark.asyncio
    async def test_manually_banned_driver_is_not_downgraded(
        self, db_session, admin, driver, rider, ridden_trip
    ):
        trip = await ridden_trip(driver, rider)
        service = ComplaintService(db_session)
        await service.ban_driver(admin, driver.id)
        await _file(service, rider, driver, trip, 3)
        assert driver.status == DriverStatus.BANNED


class TestProcessComplaint:
    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "action,expected",
        [
            ("RESOLVE", ComplaintStatus.RESOLVED),
            ("REJECT", ComplaintStatus.REJECTED),
            ("ESCALATE", ComplaintStatus.ESCALATED),
        ],
    )
    async def test_actions(self, db_session, admin, driver, rider, ridden_trip, action, expected):
        trip = await ridden_trip(driver, rider)
        service = ComplaintService(db_session)
        complaint = await service.file_complaint(rider, driver.id, trip.id, MESSAGE)
        processed = await service.process_complaint(admin, complaint.id, action)
        assert processed.status == expected

    @pytest.mark.asyncio
    async def test_invalid_action(self, db_session, admin, driver, rider, ridden_trip):
        trip = await ridden_trip(driver, rider)
        service = ComplaintService(db_session)
        complaint = await service.file_complaint(rider, driver.id, trip.id, MESSAGE)
        with pytest.raises(ValidationError, match="Invalid action"):
            await service.process_complaint(admin, complaint.id, "DELETE")
        assert complaint.status == ComplaintStatus.PENDING

    @pytest.mark.asyncio
    async def test_action_is_case_sensitive(self, db_session, admin, driver, rider, ridden_trip):
        trip = await ridden_trip(driver, rider)
        service = ComplaintService(db_session)
        complaint = await service.file_complaint(rider, driver.id, trip.id, MESSAGE)
        with pytest.raises(ValidationError, match="Invalid action"):
            await service.process_complaint(admin, complaint.id, "resolve")

    @pytest.mark.asyncio
    async def test_unknown_complaint(self, db_session, admin):
        with pytest.raises(NotFoundError):
            await ComplaintService(db_session).process_complaint(admin, 404, "RESOLVE")


class TestDriverManagement:
    @pytest.mark.asyncio
    async def test_pause_driver(self, db_session, admin, driver):
        now = utcnow()
        paused = await ComplaintService(db_session).pause_driver(
            admin, driver.id, 5, now=now
        )
        assert paused.status == DriverStatus.PAUSED
        assert paused.paused_until == now + timedelta(days=5)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("days", [0, -2, 366])
    async def test_pause_days_out_of_range(self, db_session, admin, driver, days):
        with pytest.raises(ValidationError):
            await ComplaintService(db_session).pause_driver(admin, driver.id, days)

    @pytest.mark.asyncio
    async def test_pause_unknown_driver(self, db_session, admin):
        with pytest.raises(NotFoundError):
            await ComplaintService(db_session).pause_driver(admin, 999, 3)

    @pytest.mark.asyncio
    async def test_ban_unknown_driver(self, db_session, admin):
        with pytest.raises(NotFoundError):
            await ComplaintService(db_session).ban_driver(admin, 999)

    @pytest.mark.asyncio
    async def test_rider_id_is_not_a_driver(self, db_session, admin, rider):
        with pytest.raises(NotFoundError):
            await ComplaintService(db_session).ban_driver(admin, rider.id)

    @pytest.mark.asyncio
    async def test_reinstate_clears_pause(self, db_session, admin, driver):
        service = ComplaintService(db_session)
        await service.pause_driver(admin, driver.id, 3)
        reinstated = await service.update_driver_status(admin, driver.id, "ACTIVE")
        assert reinstated.status == DriverStatus.ACTIVE
        assert reinstated.paused_until is None

    @pytest.mark.asyncio
    async def test_status_pause_needs_days(self, db_session, admin, driver):
        with pytest.raises(ValidationError, match="days is required"):
            await ComplaintService(db_session).update_driver_status(
                admin, driver.id, "PAUSED"
            )
        assert driver.status == DriverStatus.ACTIVE

    @pytest.mark.asyncio
    async def test_status_pause_with_days(self, db_session, admin, driver):
        now = utcnow()
        paused = await ComplaintService(db_session).update_driver_status(
            admin, driver.id, "PAUSED", days=2, now=now
        )
        assert paused.status == DriverStatus.PAUSED
        assert paused.paused_until == now + timedelta(days=2)

    @pytest.mark.asyncio
    async def test_status_pause_keeps_existing_window(self, db_session, admin, driver):
        service = ComplaintService(db_session)
        paused = await service.pause_driver(admin, driver.id, 4)
        window = paused.paused_until
        again = await service.update_driver_status(admin, driver.id, "PAUSED")
        assert again.paused_until == window

    @pytest.mark.asyncio
    async def test_status_is_case_sensitive(self, db_session, admin, driver):
        with pytest.raises(ValidationError, match="Invalid status"):
            await ComplaintService(db_session).update_driver_status(
                admin, driver.id, "active"
            )

    @pytest.mark.asyncio
    async def test_invalid_status(self, db_session, admin, driver):
        with pytest.raises(ValidationError, match="Invalid status"):
            await ComplaintService(db_session).update_driver_status(
                admin, driver.id, "RETIRED"
            )


class TestComplaintQueries:
    @pytest.mark.asyncio
    async def test_stats(self, db_session, admin, make_driver, rider, ridden_trip):
        first, second = await make_driver(), await make_driver()
        service = ComplaintService(db_session)
        trip_a = await ridden_trip(first, rider)
        trip_b = await ridden_trip(second, rider)
        a = await service.file_complaint(rider, first.id, trip_a.id, MESSAGE)
        await service.file_complaint(rider, first.id, trip_a.id, MESSAGE)
        b = await service.file_complaint(rider, second.id, trip_b.id, MESSAGE)
        await service.process_complaint(admin, a.id, "RESOLVE")
        await service.process_complaint(admin, b.id, "ESCALATE")

        stats = await service.complaint_stats()
        assert stats.total == 3
        assert stats.pending == 1
        assert stats.resolved == 1
        assert stats.rejected == 0
        assert stats.escalated == 1
        assert stats.drivers_with_complaints == 2

    @pytest.mark.asyncio
    async def test_listings_by_side(self, db_session, make_driver, make_rider, ridden_trip):
        driver, other_driver = await make_driver(), await make_driver()
        rider, other_rider = await make_rider(), await make_rider()
        service = ComplaintService(db_session)
        trip = await ridden_trip(driver, rider)
        other_trip = await ridden_trip(other_driver, other_rider)
        await service.file_complaint(rider, driver.id, trip.id, MESSAGE)
        await service.file_complaint(other_rider, other_driver.id, other_trip.id, MESSAGE)

        assert [c.rider_id for c in await service.complaints_by_rider(rider)] == [rider.id]
        assert [c.driver_id for c in await service.complaints_against_driver(driver)] == [
            driver.id
        ]
        assert len(await service.all_complaints()) == 2
