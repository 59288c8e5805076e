from datetime import datetime
from typing import AsyncGenerator
from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession
from basket_api.basket.repository import BasketItemRepository, WishlistRotationRepository
from basket_api.basket.store import BasketItemStore, RotationStore
from basket_api.common.utils import now
from basket_api.config.settings import config_settings
from basket_api.db.connection import async_session
from basket_api.db.dependencies import get_session


async def get_basket_store(session: AsyncSession = Depends(get_session)) -> BasketItemStore:
    return BasketItemRepository(session)


async def get_rotation_store() -> AsyncGenerator[RotationStore, None]:
    # own session , a rotation rollback must not expire the basket rows loaded for the same request
    async with async_session() as session:
        yield WishlistRotationRepository(session)


def get_wishlist_ids():
    return list(config_settings.WISHLIST_IDS)


def get_now() -> datetime:
    # the only place request handling reads the clock
    return now()
