from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence
from basket_api.basket.constants import (AFFILIATE_BY_SOURCE, DEFAULT_AFFILIATE, DEFAULT_SOURCE,
                                         WISHLIST_URL_TEMPLATE, logger)
from basket_api.basket.store import BasketItemStore, RotationStore
from basket_api.common.custom_exceptions import DependencyFailure, ValidationError
from basket_api.schema.basket import BasketItem, BasketStatus, FrequencyType


@dataclass
class CheckoutSummary:
    count: int = 0
    total: float = 0.0
    items: List[Dict[str, Any]] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {"count": self.count, "total": self.total, "items": self.items}


@dataclass
class CheckoutResult:
    checkout_type: str                  # quick_buy | scheduled | mixed
    wishlist_url: Optional[str]
    quick_buy: CheckoutSummary
    scheduled: CheckoutSummary
    wishlist_id: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "checkoutType": self.checkout_type,
            "wishlistUrl": self.wishlist_url,
            "summary": {
                "quickBuy": self.quick_buy.to_dict(),
                "scheduled": self.scheduled.to_dict(),
            },
        }


def order_total(items: Sequence[BasketItem]) -> float:
    return sum(item.price_at_add * item.quantity for item in items)


def affiliate_for_source(source: Optional[str]):
    return AFFILIATE_BY_SOURCE.get(source or DEFAULT_SOURCE, DEFAULT_AFFILIATE)


async def next_wishlist(rotation_store: RotationStore, wishlist_ids: Sequence[str], now: datetime) -> str:
    """
    Hand out the wishlist at the current rotation slot and move the slot forward.

    Rotation is best effort: when the counter cannot be read or advanced the
    first wishlist is returned and the checkout carries on.
    """
    if not wishlist_ids:
        raise DependencyFailure("no wishlist targets configured")

    try:
        await rotation_store.get_or_create(now)
        index = await rotation_store.atomic_advance(len(wishlist_ids), now)
        logger.info("wishlist.rotation.advanced", extra={"index": index, "next_index": (index + 1) % len(wishlist_ids)})
        return wishlist_ids[index]
    except Exception as e:
        logger.error("wishlist.rotation.failed", extra={"error": str(e)})
        return wishlist_ids[0]


def _quick_buy_line(item: BasketItem) -> Dict[str, Any]:
    return {
        "productId": item.product_id,
        "title": item.title,
        "price": item.price_at_add,
        "quantity": item.quantity,
    }


def _scheduled_line(item: BasketItem) -> Dict[str, Any]:
    line = _quick_buy_line(item)
    line["frequency"] = item.frequency
    line["nextDueAt"] = item.next_due_at
    return line


async def checkout(item_store: BasketItemStore, rotation_store: RotationStore, user_id: str,
                   wishlist_ids: Sequence[str], now: datetime,
                   selected_products: Optional[Sequence[str]] = None) -> CheckoutResult:

    if not user_id:
        raise ValidationError("userId is required")

    items = await item_store.find_all_for_user(user_id, status=BasketStatus.ACTIVE,
                                               product_ids=selected_products or None)
    if not items:
        raise ValidationError("No items to checkout")

    quick_buy_items = [i for i in items if i.frequency_type == FrequencyType.BUY_ONCE.value]
    scheduled_items = [i for i in items if i.frequency_type != FrequencyType.BUY_ONCE.value]

    # lines are read off the rows before the rotation runs , a failed rotation
    # may roll back a shared session and expire these instances
    quick_buy = CheckoutSummary(
        count=len(quick_buy_items),
        total=order_total(quick_buy_items),
        items=[_quick_buy_line(i) for i in quick_buy_items],
    )
    scheduled = CheckoutSummary(
        count=len(scheduled_items),
        total=order_total(scheduled_items),
        items=[_scheduled_line(i) for i in scheduled_items],
    )
    source = quick_buy_items[0].source if quick_buy_items else None

    wishlist_id = None
    wishlist_url = None
    if quick_buy.count:
        # one rotation slot per checkout , not per item
        wishlist_id = await next_wishlist(rotation_store, wishlist_ids, now)
        tag, domain = affiliate_for_source(source)
        wishlist_url = WISHLIST_URL_TEMPLATE.format(domain=domain, wishlist_id=wishlist_id, tag=tag)

    if quick_buy.count and scheduled.count:
        checkout_type = "mixed"
    elif quick_buy.count:
        checkout_type = "quick_buy"
    else:
        checkout_type = "scheduled"

    result = CheckoutResult(
        checkout_type=checkout_type,
        wishlist_url=wishlist_url,
        wishlist_id=wishlist_id,
        quick_buy=quick_buy,
        scheduled=scheduled,
    )

    logger.info("checkout.completed", extra={"user_id": user_id, "checkout_type": checkout_type,
                                             "quick_buy_count": quick_buy.count,
                                             "scheduled_count": scheduled.count,
                                             "wishlist_id": wishlist_id})
    return result
