"""
Cron entry point: send restock reminders for recurring items due soon.

    python -m basket_api.jobs.run_reminders
"""
import asyncio
from datetime import timedelta
from basket_api.basket.repository import BasketItemRepository
from basket_api.common.logging_setup import get_logger, setup_logging, stop_logging
from basket_api.common.utils import now
from basket_api.config.settings import config_settings
from basket_api.db.connection import async_engine, async_session
from basket_api.notifications.push import push_sender
from basket_api.notifications.reminders import run_reminders

logger = get_logger("basket.jobs")


async def main():
    lookahead = timedelta(hours=config_settings.REMINDER_LOOKAHEAD_HOURS)
    try:
        async with async_session() as session:
            store = BasketItemRepository(session)
            result = await run_reminders(store, push_sender, now(), lookahead=lookahead)
    finally:
        await push_sender.aclose()
        await async_engine.dispose()

    logger.info("reminders.job.finished", extra={"success": result["success"], "sent": result.get("sent", 0),
                                                 "errors": result.get("errors", 0)})
    return result


if __name__ == "__main__":
    setup_logging()
    try:
        asyncio.run(main())
    finally:
        stop_logging()
