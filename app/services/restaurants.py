"""
Restaurant Service (identity store and catalog)

Owns restaurant accounts: registration with bcrypt-hashed credentials,
stateless login, payment info updates and the embedded menu.

Usage:
    service = RestaurantService(db)
    summary = await service.register(payload)
"""

import logging
from typing import Any, Optional

from fastapi.concurrency import run_in_threadpool
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import DuplicateIdentity, InvalidCredential, NotFound
from app.core.security import hash_password, verify_password
from app.models import Restaurant
from app.schemas import (
    MenuItem,
    MenuItemCreate,
    PaymentInfo,
    PaymentInfoUpdate,
    RestaurantDetail,
    RestaurantPublic,
    RestaurantRegister,
    RestaurantSummary,
)

logger = logging.getLogger(__name__)


class RestaurantService:
    """
    Restaurant accounts backed by an injected database session.

    Every mutating call commits before returning; a failure leaves
    nothing written.
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    # =========================================================================
    # LOOKUPS
    # =========================================================================

    async def find(self, restaurant_id: str) -> Optional[Restaurant]:
        return await self.db.get(Restaurant, restaurant_id)

    async def find_by_email(self, email: str) -> Optional[Restaurant]:
        result = await self.db.execute(
            select(Restaurant).where(Restaurant.email == email)
        )
        return result.scalar_one_or_none()

    async def _require(self, restaurant_id: str) -> Restaurant:
        restaurant = await self.find(restaurant_id)
        if restaurant is None:
            raise NotFound("Restaurant not found")
        return restaurant

    # =========================================================================
    # IDENTITY
    # =========================================================================

    async def register(self, data: RestaurantRegister) -> RestaurantSummary:
        """Create an account; the raw password is never stored."""
        if await self.find_by_email(data.email) is not None:
            raise DuplicateIdentity()

        # bcrypt is CPU-bound; keep it off the event loop
        password_hash = await run_in_threadpool(hash_password, data.password)
        restaurant = Restaurant(
            name=data.name,
            email=data.email,
            phone=data.phone,
            address=data.address,
            password_hash=password_hash,
            upi_id=data.upi_id,
            payment_qr_code=data.payment_qr_code,
            gstin=data.gstin,
            menu=[],
        )
        self.db.add(restaurant)
        try:
            await self.db.commit()
        except IntegrityError:
            # Lost a race against a concurrent registration
            await self.db.rollback()
            raise DuplicateIdentity()

        logger.info(f"Restaurant {restaurant.id} registered ({restaurant.email})")
        return RestaurantSummary.model_validate(restaurant)

    async def login(self, email: str, password: str) -> RestaurantSummary:
        restaurant = await self.find_by_email(email)
        if restaurant is None:
            raise NotFound("Restaurant not found with this email")
        if not await run_in_threadpool(verify_password, password, restaurant.password_hash):
            logger.info(f"Rejected login for restaurant {restaurant.id}")
            raise InvalidCredential()
        return RestaurantSummary.model_validate(restaurant)

    async def get(self, restaurant_id: str) -> RestaurantDetail:
        return RestaurantDetail.model_validate(await self._require(restaurant_id))

    async def list_all(self) -> list[RestaurantPublic]:
        result = await self.db.execute(select(Restaurant).order_by(Restaurant.created_at))
        return [RestaurantPublic.model_validate(r) for r in result.scalars().all()]

    async def update_payment_info(
        self, restaurant_id: str, data: PaymentInfoUpdate
    ) -> PaymentInfo:
        """Write only the payment fields present in the request."""
        restaurant = await self._require(restaurant_id)
        for key, value in data.model_dump(exclude_unset=True).items():
            setattr(restaurant, key, value)
        await self.db.commit()
        return PaymentInfo.model_validate(restaurant)

    # =========================================================================
    # CATALOG
    # =========================================================================

    async def add_menu_item(self, restaurant_id: str, item: MenuItemCreate) -> list[MenuItem]:
        restaurant = await self._require(restaurant_id)
        entry: dict[str, Any] = item.model_dump()
        restaurant.menu = [*(restaurant.menu or []), entry]
        await self.db.commit()
        logger.debug(f"Menu item '{item.name}' added to restaurant {restaurant_id}")
        return [MenuItem.model_validate(m) for m in restaurant.menu]

    async def list_menu(self, restaurant_id: str) -> list[MenuItem]:
        restaurant = await self._require(restaurant_id)
        return [MenuItem.model_validate(m) for m in restaurant.menu or []]
