from datetime import datetime, timezone
import pytest
import pytest_asyncio
from asgi_lifespan import LifespanManager
from httpx import ASGITransport, AsyncClient
from basket_api.basket.dependencies import get_basket_store, get_now, get_rotation_store, get_wishlist_ids
from basket_api.config.settings import DEFAULT_WISHLIST_IDS
from basket_api.main import app
from basket_api.notifications.push import get_push_sender
from basket_api.rate_limiting.dependencies import checkout_rate_limit, remind_rate_limit
from tests.fakes import FakePushSender, InMemoryBasketStore, InMemoryRotationStore

url_prefix = "/api/v1"

# a monday
FIXED_NOW = datetime(2024, 1, 15, 10, 0, tzinfo=timezone.utc)


@pytest.fixture
def fixed_now():
    return FIXED_NOW


@pytest.fixture
def wishlist_ids():
    return list(DEFAULT_WISHLIST_IDS)


@pytest.fixture
def basket_store():
    return InMemoryBasketStore()


@pytest.fixture
def rotation_store():
    return InMemoryRotationStore()


@pytest.fixture
def push():
    return FakePushSender()


async def _no_rate_limit():
    return None


@pytest_asyncio.fixture
async def ac_client(basket_store, rotation_store, push, fixed_now, wishlist_ids):
    app.dependency_overrides[get_basket_store] = lambda: basket_store
    app.dependency_overrides[get_rotation_store] = lambda: rotation_store
    app.dependency_overrides[get_push_sender] = lambda: push
    app.dependency_overrides[get_now] = lambda: fixed_now
    app.dependency_overrides[get_wishlist_ids] = lambda: wishlist_ids
    app.dependency_overrides[checkout_rate_limit] = _no_rate_limit
    app.dependency_overrides[remind_rate_limit] = _no_rate_limit
    try:
        async with LifespanManager(app):
            async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
                yield ac
    finally:
        app.dependency_overrides.clear()
