from datetime import datetime, timedelta
from typing import List, Optional
from fastapi import APIRouter, Depends, Query, status
from basket_api.basket import services
from basket_api.basket.checkout import checkout
from basket_api.basket.constants import logger
from basket_api.basket.dependencies import get_basket_store, get_now, get_rotation_store, get_wishlist_ids
from basket_api.basket.models import (BasketItemIn, BasketItemKeyIn, CheckoutIn, ClearBasketIn, QuantityIn,
                                      ScheduleIn, StatusIn)
from basket_api.basket.store import BasketItemStore, RotationStore
from basket_api.basket.utils import item_to_dict
from basket_api.common.utils import success_response
from basket_api.config.settings import config_settings
from basket_api.notifications.push import PushSender, get_push_sender
from basket_api.notifications.reminders import run_reminders
from basket_api.rate_limiting.dependencies import checkout_rate_limit, remind_rate_limit

basket_router=APIRouter()


@basket_router.post("")
async def add_to_basket(payload: BasketItemIn, store: BasketItemStore = Depends(get_basket_store),
                        now: datetime = Depends(get_now)):

    item = await services.add_item(
        store,
        user_id=payload.user_id,
        email=payload.email,
        product_id=payload.product_id,
        frequency=payload.frequency,
        price_at_add=payload.price_at_add,
        currency=payload.currency,
        source=payload.source,
        affiliate_url=payload.affiliate_url,
        title=payload.title,
        image=payload.image,
        quantity=payload.quantity,
        now=now,
    )
    return success_response({"basketItem": item_to_dict(item)})


@basket_router.get("")
async def get_basket(user_id: Optional[str] = Query(None, alias="userId"),
                     store: BasketItemStore = Depends(get_basket_store)):

    items = await services.get_basket(store, user_id)
    return success_response({"total": len(items), "items": [item_to_dict(i) for i in items]})


@basket_router.delete("")
async def remove_from_basket(payload: BasketItemKeyIn, store: BasketItemStore = Depends(get_basket_store)):

    await services.remove_item(store, payload.user_id, payload.product_id)
    return success_response({"message": "Item removed from basket"})


@basket_router.delete("/all")
async def clear_basket(payload: ClearBasketIn, store: BasketItemStore = Depends(get_basket_store)):

    deleted = await services.clear_basket(store, payload.user_id)
    return success_response({"deleted": deleted})


@basket_router.put("/status")
async def set_item_status(payload: StatusIn, store: BasketItemStore = Depends(get_basket_store),
                          now: datetime = Depends(get_now)):

    item = await services.set_status(store, payload.user_id, payload.product_id, payload.status, now)
    return success_response({"basketItem": item_to_dict(item)})


@basket_router.get("/due")
async def get_due_items(store: BasketItemStore = Depends(get_basket_store), now: datetime = Depends(get_now)):

    items = await services.due_items(store, now)
    return success_response({"total": len(items), "items": [item_to_dict(i) for i in items]})


@basket_router.post("/checkout", dependencies=[Depends(checkout_rate_limit)])
async def checkout_basket(payload: CheckoutIn,
                          item_store: BasketItemStore = Depends(get_basket_store),
                          rotation_store: RotationStore = Depends(get_rotation_store),
                          wishlist_ids: List[str] = Depends(get_wishlist_ids),
                          now: datetime = Depends(get_now)):

    result = await checkout(item_store, rotation_store, payload.user_id, wishlist_ids, now,
                            selected_products=payload.selected_product_ids)
    return success_response(result.to_dict())


@basket_router.get("/scheduled/due")
async def get_due_scheduled_items(store: BasketItemStore = Depends(get_basket_store),
                                  now: datetime = Depends(get_now)):

    items = await services.due_items(store, now, exclude_buy_once=True)
    return success_response({"count": len(items), "items": [item_to_dict(i) for i in items]})


@basket_router.patch("/item/{item_id}")
async def update_item_schedule(item_id: str, payload: ScheduleIn,
                               store: BasketItemStore = Depends(get_basket_store),
                               now: datetime = Depends(get_now)):

    item = await services.update_schedule(store, item_id, payload.frequency, now)
    return success_response({"item": item_to_dict(item)})


@basket_router.patch("/item/{item_id}/pause")
async def pause_item(item_id: str, store: BasketItemStore = Depends(get_basket_store),
                     now: datetime = Depends(get_now)):

    item = await services.pause_item(store, item_id, now)
    return success_response({"item": item_to_dict(item)})


@basket_router.patch("/item/{item_id}/resume")
async def resume_item(item_id: str, store: BasketItemStore = Depends(get_basket_store),
                      now: datetime = Depends(get_now)):

    item = await services.resume_item(store, item_id, now)
    return success_response({"item": item_to_dict(item)})


@basket_router.patch("/item/{item_id}/quantity")
async def update_item_quantity(item_id: str, payload: QuantityIn,
                               store: BasketItemStore = Depends(get_basket_store),
                               now: datetime = Depends(get_now)):

    item = await services.update_quantity(store, item_id, payload.quantity, now)
    return success_response({"item": item_to_dict(item)})


# manual trigger , same run the cron job does
@basket_router.post("/notifications/remind", dependencies=[Depends(remind_rate_limit)])
async def trigger_reminders(store: BasketItemStore = Depends(get_basket_store),
                            push: PushSender = Depends(get_push_sender),
                            now: datetime = Depends(get_now)):

    lookahead = timedelta(hours=config_settings.REMINDER_LOOKAHEAD_HOURS)
    result = await run_reminders(store, push, now, lookahead=lookahead)
    if not result["success"]:
        logger.warning("reminders.trigger.unavailable")
        return success_response(result, status_code=status.HTTP_503_SERVICE_UNAVAILABLE)
    return success_response(result)
