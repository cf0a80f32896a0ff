"""
Seed script -- populates the database with sample data for reviewers.

Run after migrations:
    alembic upgrade head
    python seed.py

Creates:
  - the platform admin (``PLATFORM_ADMIN_EMAIL`` or admin@ridehail.local)
    with its wallet
  - 5 sample drivers with wallets
  - 5 sample riders
  - 8 sample trips (mix of AVAILABLE, ACCEPTED and COMPLETED)

All accounts use the password ``password123``.
"""

import asyncio
from datetime import timedelta
from decimal import Decimal

from sqlalchemy import func, select

from ridehail.config import settings
from ridehail.domain.clock import utcnow
from ridehail.domain.entities import (
    AdminRegistration,
    DriverRegistration,
    RiderRegistration,
    TripProposal,
)
from ridehail.domain.enums import VehicleType
from ridehail.infrastructure.database import async_session_factory, engine
from ridehail.infrastructure.models import AccountModel
from ridehail.services.accounts import AccountService
from ridehail.services.trips import TripService

PASSWORD = "password123"

DRIVERS = [
    {"name": "Youssef Amrani", "email": "youssef@example.com", "license": "DL-100231", "vehicle": "Dacia Logan, grey", "rating": 4.8},
    {"name": "Sara Bennani", "email": "sara@example.com", "license": "DL-100232", "vehicle": "Toyota RAV4, white", "rating": 4.9},
    {"name": "Omar Idrissi", "email": "omar@example.com", "license": "DL-100233", "vehicle": "Renault Trafic, blue", "rating": 4.2},
    {"name": "Lina Tazi", "email": "lina@example.com", "license": "DL-100234", "vehicle": "Peugeot 208, red", "rating": 4.6},
    {"name": "Karim Alaoui", "email": "karim@example.com", "license": "DL-100235", "vehicle": "Skoda Octavia, black", "rating": None},
]

RIDERS = [
    {"name": "Nadia Cherkaoui", "email": "nadia@example.com"},
    {"name": "Hamza Berrada", "email": "hamza@example.com"},
    {"name": "Imane Fassi", "email": "imane@example.com"},
    {"name": "Mehdi Lahlou", "email": "mehdi@example.com"},
    {"name": "Salma Kettani", "email": "salma@example.com"},
]

# (driver index, pickup, destination, price, vehicle, hours from now)
TRIPS = [
    (0, ("Casa Port", 33.5970, -7.6160), ("Mohammed V Airport", 33.3675, -7.5898), "180.00", VehicleType.SEDAN, 2),
    (1, ("Maarif", 33.5830, -7.6380), ("Rabat Agdal", 34.0000, -6.8500), "350.00", VehicleType.SUV, 5),
    (2, ("Ain Diab", 33.5890, -7.6900), ("Mohammedia", 33.6860, -7.3830), "120.00", VehicleType.VAN, 3),
    (3, ("Gauthier", 33.5890, -7.6270), ("Casa Voyageurs", 33.5900, -7.5900), "45.00", VehicleType.HATCHBACK, 1),
    (0, ("Anfa", 33.5920, -7.6600), ("Bouskoura", 33.4490, -7.6480), "90.00", VehicleType.SEDAN, 8),
    (1, ("Sidi Maarouf", 33.5300, -7.6500), ("Marrakech Gueliz", 31.6340, -8.0100), "900.00", VehicleType.SUV, 24),
    (4, ("Bourgogne", 33.5990, -7.6420), ("Dar Bouazza", 33.5200, -7.8200), "110.00", VehicleType.SEDAN, 6),
    (2, ("Derb Sultan", 33.5700, -7.6000), ("El Jadida", 33.2540, -8.5060), "420.00", VehicleType.VAN, 12),
]


async def seed():
    async with async_session_factory() as session:
        # Check if already seeded
        result = await session.execute(select(func.count()).select_from(AccountModel))
        if result.scalar() > 0:
            print("Database already seeded. Skipping.")
            return

        accounts = AccountService(session)
        trips = TripService(session)
        now = utcnow()

        # ── Platform admin ────────────────────────────────────────────
        admin_email = settings.platform_admin_email or "admin@ridehail.local"
        await accounts.register(
            AdminRegistration(email=admin_email, password=PASSWORD, name="Platform")
        )
        print(f"  Created platform admin {admin_email}")

        # ── Drivers ───────────────────────────────────────────────────
        drivers = []
        for d in DRIVERS:
            driver = await accounts.register(
                DriverRegistration(
                    email=d["email"],
                    password=PASSWORD,
                    name=d["name"],
                    license_number=d["license"],
                    vehicle_info=d["vehicle"],
                )
            )
            driver.rating = d["rating"]
            drivers.append(driver)
        await session.flush()
        print(f"  Created {len(drivers)} drivers")

        # ── Riders ────────────────────────────────────────────────────
        riders = []
        for r in RIDERS:
            riders.append(
                await accounts.register(
                    RiderRegistration(email=r["email"], password=PASSWORD, name=r["name"])
                )
            )
        print(f"  Created {len(riders)} riders")

        # ── Trips ─────────────────────────────────────────────────────
        created = []
        for idx, pickup, destination, price, vehicle, hours in TRIPS:
            departure = now + timedelta(hours=hours)
            trip = await trips.propose(
                drivers[idx],
                TripProposal(
                    pickup_address=pickup[0],
                    pickup_lat=pickup[1],
                    pickup_lng=pickup[2],
                    destination_address=destination[0],
                    destination_lat=destination[1],
                    destination_lng=destination[2],
                    proposed_price=Decimal(price),
                    departure_time=departure,
                    estimated_duration_minutes=max(15, hours * 10),
                    vehicle_type=vehicle,
                    expires_at=departure - timedelta(minutes=30),
                ),
            )
            created.append(trip)

        # One accepted trip and one trip run to completion (settles wallets)
        await trips.accept(riders[0], created[1].id)
        await trips.accept(riders[1], created[3].id)
        await trips.start(drivers[3], created[3].id)
        await trips.complete(drivers[3], created[3].id)
        print(f"  Created {len(created)} trips")

        await session.commit()
        print("\nSeed complete!")


async def main():
    print("Seeding database...")
    await seed()
    await engine.dispose()


if __name__ == "__main__":
    asyncio.run(main())
