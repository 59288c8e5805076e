import uuid
from datetime import datetime
from typing import Any, List, Optional
from basket_api.basket.constants import DEFAULT_CURRENCY, logger
from basket_api.basket.schedule import frequency_to_dict, next_run, parse_frequency
from basket_api.basket.store import BasketItemStore
from basket_api.common.custom_exceptions import NotFound, ValidationError
from basket_api.schema.basket import BasketItem, BasketStatus


def parse_status(raw: Any) -> BasketStatus:
    try:
        return BasketStatus(raw)
    except ValueError:
        allowed = ", ".join(s.value for s in BasketStatus)
        raise ValidationError(f"status must be one of {allowed}") from None


def parse_item_id(raw: Any) -> uuid.UUID:
    if isinstance(raw, uuid.UUID):
        return raw
    try:
        return uuid.UUID(str(raw))
    except ValueError:
        raise ValidationError("itemId must be a valid id") from None


def validate_quantity(raw: Any) -> int:
    # bool is an int subclass , reject it explicitly
    if isinstance(raw, bool) or not isinstance(raw, int) or raw < 1:
        raise ValidationError("quantity must be an integer >= 1")
    return raw


def _require(**fields):
    missing = [name for name, value in fields.items() if value is None or value == ""]
    if missing:
        raise ValidationError(f"Missing required fields: {', '.join(missing)}")


async def _item_by_id(store: BasketItemStore, item_id) -> BasketItem:
    item = await store.find_by_id(parse_item_id(item_id))
    if item is None:
        raise NotFound("Item not found")
    return item


async def _write(store: BasketItemStore, item: BasketItem, now: datetime, **fields) -> BasketItem:
    fields["updated_at"] = now
    updated = await store.update_fields(item.id, fields)
    if updated is None:
        # removed between the read and the write
        raise NotFound("Item not found")
    return updated


async def add_item(store: BasketItemStore, *, user_id: str, email: str, product_id: str, frequency: Any,
                   price_at_add: Optional[float], source: Optional[str], affiliate_url: Optional[str],
                   now: datetime, currency: Optional[str] = None, title: Optional[str] = None,
                   image: Optional[str] = None, quantity: Any = 1) -> BasketItem:

    _require(userId=user_id, email=email, productId=product_id, frequency=frequency or None,
             priceAtAdd=price_at_add, source=source, affiliateUrl=affiliate_url)

    freq = parse_frequency(frequency)
    quantity = validate_quantity(quantity)
    try:
        price = float(price_at_add)
    except (TypeError, ValueError):
        raise ValidationError("priceAtAdd must be a number") from None

    item = BasketItem(
        user_id=user_id,
        email=email,
        product_id=product_id,
        title=title,
        image=image,
        quantity=quantity,
        source=source,
        affiliate_url=affiliate_url,
        price_at_add=price,
        currency=currency or DEFAULT_CURRENCY,
        frequency=frequency_to_dict(freq),
        frequency_type=freq.type,
        next_due_at=next_run(freq, now),
        status=BasketStatus.ACTIVE.value,
        created_at=now,
        updated_at=now,
    )
    saved = await store.upsert(item)

    logger.info("basket.item.upserted", extra={"user_id": user_id, "product_id": product_id,
                                               "frequency_type": freq.type, "next_due_at": saved.next_due_at})
    return saved


async def get_basket(store: BasketItemStore, user_id: str) -> List[BasketItem]:
    _require(userId=user_id)
    return await store.find_all_for_user(user_id, status=BasketStatus.ACTIVE, newest_first=True)


async def remove_item(store: BasketItemStore, user_id: str, product_id: str) -> None:
    _require(userId=user_id, productId=product_id)

    deleted = await store.delete_by_user_and_product(user_id, product_id)
    if not deleted:
        raise NotFound("Item not found")
    logger.info("basket.item.removed", extra={"user_id": user_id, "product_id": product_id})


async def clear_basket(store: BasketItemStore, user_id: str) -> int:
    _require(userId=user_id)

    deleted = await store.delete_all_for_user(user_id)
    logger.info("basket.cleared", extra={"user_id": user_id, "deleted": deleted})
    return deleted


async def set_status(store: BasketItemStore, user_id: str, product_id: str, status: Any,
                     now: datetime) -> BasketItem:
    _require(userId=user_id, productId=product_id, status=status)
    new_status = parse_status(status)

    item = await store.find_by_user_and_product(user_id, product_id)
    if item is None:
        raise NotFound("Item not found")

    # status only , the schedule stays as it is
    updated = await _write(store, item, now, status=new_status.value)
    logger.info("basket.item.status_changed", extra={"user_id": user_id, "product_id": product_id,
                                                     "status": new_status.value})
    return updated


async def update_schedule(store: BasketItemStore, item_id: Any, frequency: Any, now: datetime) -> BasketItem:
    freq = parse_frequency(frequency)
    item = await _item_by_id(store, item_id)

    return await _write(store, item, now,
                        frequency=frequency_to_dict(freq),
                        frequency_type=freq.type,
                        next_due_at=next_run(freq, now))


async def pause_item(store: BasketItemStore, item_id: Any, now: datetime) -> BasketItem:
    item = await _item_by_id(store, item_id)
    return await _write(store, item, now, status=BasketStatus.PAUSED.value)


async def resume_item(store: BasketItemStore, item_id: Any, now: datetime) -> BasketItem:
    item = await _item_by_id(store, item_id)

    # re-anchor on now , cycles missed while paused are dropped
    freq = parse_frequency(item.frequency)
    return await _write(store, item, now,
                        status=BasketStatus.ACTIVE.value,
                        next_due_at=next_run(freq, now))


async def update_quantity(store: BasketItemStore, item_id: Any, quantity: Any, now: datetime) -> BasketItem:
    quantity = validate_quantity(quantity)
    item = await _item_by_id(store, item_id)
    return await _write(store, item, now, quantity=quantity)


async def due_items(store: BasketItemStore, as_of: datetime, exclude_buy_once: bool = False) -> List[BasketItem]:
    items = await store.find_due(as_of, status=BasketStatus.ACTIVE, exclude_buy_once=exclude_buy_once)
    logger.info("basket.due.selected", extra={"count": len(items), "exclude_buy_once": exclude_buy_once})
    return items
