import uuid
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence
from sqlalchemy import delete, select, update
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from basket_api.basket.constants import logger
from basket_api.common.custom_exceptions import DependencyFailure
from basket_api.schema.basket import BasketItem, BasketStatus, FrequencyType, WishlistRotation

# never overwritten by a repeat add of the same product
IDENTITY_COLUMNS = ("id", "public_id", "user_id", "product_id", "created_at")

ROTATION_ROW_ID = 1


class BasketItemRepository:
    """SQL implementation of BasketItemStore. Every write commits on its own."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def _fail(self, op: str, exc: Exception):
        await self.session.rollback()
        logger.error("basket.store.failed", extra={"op": op, "error": str(exc)})
        raise DependencyFailure(f"basket store unavailable ({op})") from exc

    async def find_by_user_and_product(self, user_id: str, product_id: str) -> Optional[BasketItem]:
        stmt = select(BasketItem).where(BasketItem.user_id == user_id, BasketItem.product_id == product_id)
        try:
            res = await self.session.execute(stmt)
            return res.scalar_one_or_none()
        except SQLAlchemyError as e:
            await self._fail("find_by_user_and_product", e)

    async def find_by_id(self, item_id: uuid.UUID) -> Optional[BasketItem]:
        stmt = select(BasketItem).where(BasketItem.public_id == item_id)
        try:
            res = await self.session.execute(stmt)
            return res.scalar_one_or_none()
        except SQLAlchemyError as e:
            await self._fail("find_by_id", e)

    async def find_all_for_user(self, user_id: str, *, status: Optional[BasketStatus] = None,
                                product_ids: Optional[Sequence[str]] = None,
                                newest_first: bool = False) -> List[BasketItem]:
        stmt = select(BasketItem).where(BasketItem.user_id == user_id)
        if status is not None:
            stmt = stmt.where(BasketItem.status == status.value)
        if product_ids:
            stmt = stmt.where(BasketItem.product_id.in_(list(product_ids)))
        if newest_first:
            stmt = stmt.order_by(BasketItem.created_at.desc(), BasketItem.id.desc())
        else:
            stmt = stmt.order_by(BasketItem.created_at.asc(), BasketItem.id.asc())
        try:
            res = await self.session.execute(stmt)
            return list(res.scalars().all())
        except SQLAlchemyError as e:
            await self._fail("find_all_for_user", e)

    async def find_due(self, as_of: datetime, *, status: BasketStatus = BasketStatus.ACTIVE,
                       exclude_buy_once: bool = False) -> List[BasketItem]:
        stmt = select(BasketItem).where(BasketItem.status == status.value, BasketItem.next_due_at <= as_of)
        if exclude_buy_once:
            stmt = stmt.where(BasketItem.frequency_type != FrequencyType.BUY_ONCE.value)
        stmt = stmt.order_by(BasketItem.next_due_at.asc(), BasketItem.id.asc())
        try:
            res = await self.session.execute(stmt)
            return list(res.scalars().all())
        except SQLAlchemyError as e:
            await self._fail("find_due", e)

    async def upsert(self, item: BasketItem) -> BasketItem:
        values = item.model_dump(exclude={"id"})
        stmt = pg_insert(BasketItem).values(**values)
        stmt = stmt.on_conflict_do_update(
            index_elements=["user_id", "product_id"],
            set_={k: stmt.excluded[k] for k in values if k not in IDENTITY_COLUMNS},
        ).returning(BasketItem)
        try:
            res = await self.session.execute(stmt, execution_options={"populate_existing": True})
            saved = res.scalar_one()
            await self.session.commit()
            return saved
        except SQLAlchemyError as e:
            await self._fail("upsert", e)

    async def update_fields(self, item_pk: int, fields: Dict[str, Any]) -> Optional[BasketItem]:
        stmt = (
            update(BasketItem)
            .where(BasketItem.id == item_pk)
            .values(**fields)
            .returning(BasketItem)
        )
        try:
            res = await self.session.execute(stmt, execution_options={"populate_existing": True})
            updated = res.scalar_one_or_none()
            await self.session.commit()
            return updated
        except SQLAlchemyError as e:
            await self._fail("update_fields", e)

    async def delete_by_user_and_product(self, user_id: str, product_id: str) -> bool:
        stmt = (
            delete(BasketItem)
            .where(BasketItem.user_id == user_id, BasketItem.product_id == product_id)
            .returning(BasketItem.id)
        )
        try:
            res = await self.session.execute(stmt)
            deleted = res.scalar_one_or_none() is not None
            await self.session.commit()
            return deleted
        except SQLAlchemyError as e:
            await self._fail("delete_by_user_and_product", e)

    async def delete_all_for_user(self, user_id: str) -> int:
        stmt = delete(BasketItem).where(BasketItem.user_id == user_id).returning(BasketItem.id)
        try:
            res = await self.session.execute(stmt)
            count = len(res.scalars().all())
            await self.session.commit()
            return count
        except SQLAlchemyError as e:
            await self._fail("delete_all_for_user", e)


class WishlistRotationRepository:
    """Single-row counter , advanced with one UPDATE ... RETURNING so concurrent checkouts never share a slot."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_or_create(self, now: datetime) -> WishlistRotation:
        ins = (
            pg_insert(WishlistRotation)
            .values(id=ROTATION_ROW_ID, current_index=0, last_used_at=None, created_at=now)
            .on_conflict_do_nothing(index_elements=["id"])
        )
        try:
            await self.session.execute(ins)
            await self.session.commit()
            res = await self.session.execute(select(WishlistRotation).where(WishlistRotation.id == ROTATION_ROW_ID))
            return res.scalar_one()
        except SQLAlchemyError as e:
            await self.session.rollback()
            raise DependencyFailure("rotation store unavailable (get_or_create)") from e

    async def atomic_advance(self, size: int, now: datetime) -> int:
        # modulo on the stored index too , in case the target list shrank since the last write
        stmt = (
            update(WishlistRotation)
            .where(WishlistRotation.id == ROTATION_ROW_ID)
            .values(current_index=(WishlistRotation.current_index % size + 1) % size, last_used_at=now)
            .returning(WishlistRotation.current_index)
        )
        try:
            res = await self.session.execute(stmt)
            new_index = res.scalar_one()
            await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            raise DependencyFailure("rotation store unavailable (atomic_advance)") from e
        return (new_index - 1) % size
