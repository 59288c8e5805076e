from contextlib import asynccontextmanager
from fastapi import FastAPI
from basket_api.api import cur_version
from basket_api.api.routers import public_routers
from basket_api.common.custom_exceptions import register_all_exceptions
from basket_api.common.logging_setup import get_logger, setup_logging, stop_logging
from basket_api.config.settings import config_settings
from basket_api.db.connection import async_engine
from basket_api.middlewares.rate_limit_middleware import RateLimitHeadersMiddleware
from basket_api.middlewares.request_id_middleware import RequestIdMiddleware
from basket_api.notifications.push import push_sender
from basket_api.rate_limiting.redis_client import redis_client
from metrics.custom_instrumentator import instrumentator

logger = get_logger("basket.app")


@asynccontextmanager
async def app_lifespan(app: FastAPI):
    setup_logging()
    app.state.rate_limit_strategy = "fixed_window"
    logger.info("app.startup", extra={"env": config_settings.ENV, "push_available": push_sender.available})

    try:
        yield
    finally:
        # new requests are no longer accepted at this point
        await push_sender.aclose()
        await redis_client.aclose()
        await async_engine.dispose()
        logger.info("app.shutdown")
        stop_logging()


def create_app():
    app = FastAPI(
        title="Recurring Basket",
        version=cur_version,
        lifespan=app_lifespan)

    app.include_router(public_routers)

    app.add_middleware(RateLimitHeadersMiddleware)
    app.add_middleware(RequestIdMiddleware)
    register_all_exceptions(app)

    if config_settings.ENABLE_METRICS:
        instrumentator.instrument(app).expose(app, endpoint="/metrics")

    return app


app = create_app()
