"""
Persistence contracts for basket items and the wishlist rotation counter.

Implementations must keep (user_id, product_id) unique and make
``atomic_advance`` a single find-and-increment, never a read then a write.
"""
import uuid
from datetime import datetime
from typing import Any, Dict, List, Optional, Protocol, Sequence

from basket_api.schema.basket import BasketItem, BasketStatus, WishlistRotation


class BasketItemStore(Protocol):

    async def find_by_user_and_product(self, user_id: str, product_id: str) -> Optional[BasketItem]: ...

    async def find_by_id(self, item_id: uuid.UUID) -> Optional[BasketItem]: ...

    async def find_all_for_user(self, user_id: str, *, status: Optional[BasketStatus] = None,
                                product_ids: Optional[Sequence[str]] = None,
                                newest_first: bool = False) -> List[BasketItem]: ...

    async def find_due(self, as_of: datetime, *, status: BasketStatus = BasketStatus.ACTIVE,
                       exclude_buy_once: bool = False) -> List[BasketItem]: ...

    async def upsert(self, item: BasketItem) -> BasketItem: ...

    async def update_fields(self, item_pk: int, fields: Dict[str, Any]) -> Optional[BasketItem]: ...

    async def delete_by_user_and_product(self, user_id: str, product_id: str) -> bool: ...

    async def delete_all_for_user(self, user_id: str) -> int: ...


class RotationStore(Protocol):

    async def get_or_create(self, now: datetime) -> WishlistRotation: ...

    async def atomic_advance(self, size: int, now: datetime) -> int:
        """Move the counter to the next slot and return the index it held before."""
        ...
