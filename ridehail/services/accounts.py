"""
Accounts: registration, login and admin-side driver lookups.

Registration takes one of the ``Registration`` variants and dispatches on
its type.  Drivers and admins get their wallet in the same transaction as
the account row, so a committed driver or admin always has a wallet.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from ridehail.domain.entities import (
    AdminRegistration,
    DriverRegistration,
    Registration,
    RiderRegistration,
)
from ridehail.domain.enums import DriverStatus, Role
from ridehail.domain.errors import (
    AuthError,
    ConfigurationError,
    ConflictError,
    NotFoundError,
)
from ridehail.infrastructure.models import (
    AccountModel,
    AdminModel,
    ComplaintModel,
    DriverModel,
    TripModel,
    UserModel,
    WalletModel,
)
from ridehail.infrastructure.repositories import (
    AccountRepository,
    ComplaintRepository,
    TripRepository,
    WalletRepository,
)
from ridehail.infrastructure.security import hash_password, verify_password

logger = logging.getLogger(__name__)


@dataclass
class DriverOverview:
    driver: DriverModel
    wallet: Optional[WalletModel]
    complaint_count: int


@dataclass
class DriverDetail:
    driver: DriverModel
    wallet: Optional[WalletModel]
    complaints: list[ComplaintModel]
    trips: list[TripModel]


class AccountService:
    def __init__(self, session: AsyncSession):
        self.accounts = AccountRepository(session)
        self.wallets = WalletRepository(session)
        self.complaints = ComplaintRepository(session)
        self.trips = TripRepository(session)

    async def register(self, registration: Registration) -> AccountModel:
        if await self.accounts.get_by_email(registration.email):
            raise ConflictError("Email already registered")

        password_hash = hash_password(registration.password)
        match registration:
            case DriverRegistration():
                account = DriverModel(
                    email=registration.email,
                    password_hash=password_hash,
                    name=registration.name,
                    phone=registration.phone,
                    license_number=registration.license_number,
                    vehicle_info=registration.vehicle_info,
                    status=registration.status,
                )
                with_wallet = True
            case AdminRegistration():
                account = AdminModel(
                    email=registration.email,
                    password_hash=password_hash,
                    name=registration.name,
                )
                with_wallet = True
            case RiderRegistration():
                account = UserModel(
                    email=registration.email,
                    password_hash=password_hash,
                    name=registration.name,
                    phone=registration.phone,
                )
                with_wallet = False
            case _:
                raise TypeError(f"Unknown registration {registration!r}")

        await self.accounts.add(account)
        if with_wallet:
            await self.wallets.create_for(account.id)
        logger.info("Registered %s account %d", account.role.value, account.id)
        return account

    async def authenticate(
        self, role: Role, email: str, password: str
    ) -> AccountModel:
        account = await self.accounts.get_by_email(email)
        if (
            account is None
            or account.role != role
            or not verify_password(password, account.password_hash)
        ):
            raise AuthError("Invalid email or password")
        if isinstance(account, DriverModel) and account.status == DriverStatus.BANNED:
            raise AuthError("Account is banned", status_code=403)
        return account

    async def get_account(self, account_id: int) -> Optional[AccountModel]:
        return await self.accounts.get_by_id(account_id)

    async def get_driver(self, driver_id: int) -> DriverModel:
        driver = await self.accounts.get_driver(driver_id)
        if driver is None:
            raise NotFoundError("Driver not found")
        return driver

    async def create_driver(self, registration: DriverRegistration) -> DriverModel:
        driver = await self.register(registration)
        logger.info("Driver %d created by admin", driver.id)
        return driver

    async def list_drivers(self) -> list[DriverOverview]:
        drivers = await self.accounts.list_drivers()
        counts = await self.complaints.count_against_many([d.id for d in drivers])
        overviews = []
        for driver in drivers:
            overviews.append(
                DriverOverview(
                    driver=driver,
                    wallet=await self.wallets.get_by_owner(driver.id),
                    complaint_count=counts.get(driver.id, 0),
                )
            )
        return overviews

    async def driver_detail(self, driver_id: int) -> DriverDetail:
        driver = await self.get_driver(driver_id)
        return DriverDetail(
            driver=driver,
            wallet=await self.wallets.get_by_owner(driver.id),
            complaints=await self.complaints.list_against(driver.id),
            trips=await self.trips.list_for_driver(driver.id),
        )

    async def wallet_for(self, owner_id: int) -> WalletModel:
        wallet = await self.wallets.get_by_owner(owner_id)
        if wallet is None:
            raise ConfigurationError(f"Account {owner_id} has no wallet")
        return wallet
