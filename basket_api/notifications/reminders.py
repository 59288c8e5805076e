from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional
from basket_api.basket.services import due_items
from basket_api.basket.store import BasketItemStore
from basket_api.common.logging_setup import get_logger
from basket_api.notifications.push import PushSender
from basket_api.schema.basket import BasketItem

logger = get_logger("basket.reminders")

REMINDER_TYPE = "basket_reminder"
DEFAULT_LOOKAHEAD = timedelta(hours=24)


def group_by_user(items: List[BasketItem]) -> Dict[str, List[BasketItem]]:
    # dicts keep insertion order , users come out in due order
    groups: Dict[str, List[BasketItem]] = {}
    for item in items:
        groups.setdefault(item.user_id, []).append(item)
    return groups


def build_reminder(items: List[BasketItem]) -> Dict[str, Any]:
    first = items[0]
    name = first.title or first.product_id
    if len(items) > 1:
        title = "Restock Alert: Multiple Items Due"
        body = f"You have {len(items)} items in your basket ready for checkout."
    else:
        title = f"Restock Alert: {name}"
        body = f"Your {name} is due for restock. Tap to checkout."

    return {
        "type": REMINDER_TYPE,
        "title": title,
        "body": body,
        "productId": first.product_id,
        "count": str(len(items)),
    }


def user_topic(user_id: str) -> str:
    return f"user_{user_id}"


async def run_reminders(store: BasketItemStore, push: Optional[PushSender], as_of: datetime,
                        lookahead: timedelta = DEFAULT_LOOKAHEAD) -> Dict[str, Any]:
    """
    Send one restock notification per user for recurring items due within the look-ahead window.

    A failed send is counted and the run moves on to the next user.
    """
    if push is None or not push.available:
        logger.warning("reminders.skipped", extra={"reason": "push unavailable"})
        return {"success": False, "message": "push unavailable"}

    items = await due_items(store, as_of + lookahead, exclude_buy_once=True)
    if not items:
        return {"success": True, "sent": 0, "errors": 0}

    logger.info("reminders.processing", extra={"count": len(items)})

    sent = 0
    errors = 0
    for user_id, user_items in group_by_user(items).items():
        payload = build_reminder(user_items)
        try:
            ok = await push.send(payload, user_topic(user_id))
        except Exception as e:
            logger.error("reminders.send_failed", extra={"user_id": user_id, "error": str(e)})
            errors += 1
            continue

        if ok:
            sent += 1
        else:
            logger.error("reminders.send_rejected", extra={"user_id": user_id})
            errors += 1

    logger.info("reminders.sent", extra={"sent": sent, "errors": errors})
    return {"success": True, "sent": sent, "errors": errors}
