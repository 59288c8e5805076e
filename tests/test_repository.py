"""
BasketItemRepository / WishlistRotationRepository against a real database.

Runs on a file backed sqlite through aiosqlite , JSONB is rendered as JSON.
sqlite drops tzinfo on write so stored timestamps come back naive.
"""
from datetime import timedelta
import pytest
import pytest_asyncio
from sqlalchemy import func, select
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.ext.compiler import compiles
from sqlmodel import SQLModel
from basket_api.basket import services
from basket_api.basket.checkout import checkout, next_wishlist
from basket_api.basket.repository import BasketItemRepository, WishlistRotationRepository
from basket_api.common.custom_exceptions import DependencyFailure
from basket_api.schema.basket import BasketItem, BasketStatus, WishlistRotation
from tests.fakes import make_item


@compiles(JSONB, "sqlite")
def _jsonb_as_json(type_, compiler, **kw):
    return "JSON"


def naive(dt):
    return dt.replace(tzinfo=None)


@pytest_asyncio.fixture
async def sql_engine(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'basket.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    try:
        yield engine
    finally:
        await engine.dispose()


@pytest.fixture
def session_maker(sql_engine):
    return async_sessionmaker(bind=sql_engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(session_maker):
    async with session_maker() as session:
        yield session


async def drop_table(engine, table):
    async with engine.begin() as conn:
        await conn.run_sync(table.drop)


def add_kwargs(**overrides):
    payload = dict(
        user_id="u1",
        email="u1@example.com",
        product_id="p1",
        frequency={"type": "weekly", "dayOfWeek": 3},
        price_at_add=499.0,
        source="amazon_in",
        affiliate_url="https://www.amazon.in/dp/p1",
        title="Green Tea",
    )
    payload.update(overrides)
    return payload


@pytest.mark.asyncio
async def test_repeat_add_overwrites_row_but_keeps_identity(db_session, fixed_now):
    repo = BasketItemRepository(db_session)

    first = await services.add_item(repo, now=fixed_now, **add_kwargs())
    public_id = first.public_id
    later = fixed_now + timedelta(days=1)

    second = await services.add_item(repo, now=later, **add_kwargs(frequency={"type": "buy_once"},
                                                                     price_at_add=450.0, quantity=3))

    count = (await db_session.execute(select(func.count()).select_from(BasketItem))).scalar_one()
    assert count == 1
    assert second.public_id == public_id
    assert naive(second.created_at) == naive(fixed_now)
    assert naive(second.updated_at) == naive(later)
    assert second.price_at_add == 450.0
    assert second.quantity == 3
    assert second.frequency == {"type": "buy_once"}
    assert second.frequency_type == "buy_once"
    assert naive(second.next_due_at) == naive(later)


@pytest.mark.asyncio
async def test_find_by_id_and_key(db_session, fixed_now):
    repo = BasketItemRepository(db_session)
    item = await services.add_item(repo, now=fixed_now, **add_kwargs())

    assert (await repo.find_by_id(item.public_id)).product_id == "p1"
    assert (await repo.find_by_user_and_product("u1", "p1")).public_id == item.public_id
    assert await repo.find_by_user_and_product("u1", "missing") is None


@pytest.mark.asyncio
async def test_find_due_orders_and_filters(db_session, fixed_now):
    repo = BasketItemRepository(db_session)
    await repo.upsert(make_item("u1", "weekly", fixed_now - timedelta(hours=1)))
    await repo.upsert(make_item("u2", "once", fixed_now - timedelta(hours=3), frequency={"type": "buy_once"}))
    await repo.upsert(make_item("u1", "paused", fixed_now - timedelta(hours=2), status="paused"))
    await repo.upsert(make_item("u3", "later", fixed_now + timedelta(hours=1)))

    due = await repo.find_due(fixed_now)
    assert [i.product_id for i in due] == ["once", "weekly"]

    recurring = await repo.find_due(fixed_now, exclude_buy_once=True)
    assert [i.product_id for i in recurring] == ["weekly"]

    paused = await repo.find_due(fixed_now, status=BasketStatus.PAUSED)
    assert [i.product_id for i in paused] == ["paused"]


@pytest.mark.asyncio
async def test_find_all_for_user_filters_and_orders(db_session, fixed_now):
    repo = BasketItemRepository(db_session)
    for offset, pid in enumerate(("a", "b", "c")):
        await repo.upsert(make_item("u1", pid, fixed_now, created_at=fixed_now + timedelta(minutes=offset)))
    await repo.upsert(make_item("u2", "z", fixed_now))

    oldest_first = await repo.find_all_for_user("u1")
    assert [i.product_id for i in oldest_first] == ["a", "b", "c"]

    newest_first = await repo.find_all_for_user("u1", newest_first=True)
    assert [i.product_id for i in newest_first] == ["c", "b", "a"]

    selected = await repo.find_all_for_user("u1", status=BasketStatus.ACTIVE, product_ids=["a", "c"])
    assert [i.product_id for i in selected] == ["a", "c"]


@pytest.mark.asyncio
async def test_lifecycle_writes(db_session, fixed_now):
    repo = BasketItemRepository(db_session)
    item = await services.add_item(repo, now=fixed_now, **add_kwargs())
    due = naive(item.next_due_at)

    paused = await services.pause_item(repo, str(item.public_id), fixed_now + timedelta(days=1))
    assert paused.status == "paused"
    assert naive(paused.next_due_at) == due

    resumed_at = fixed_now + timedelta(days=30)
    resumed = await services.resume_item(repo, str(item.public_id), resumed_at)
    assert resumed.status == "active"
    assert naive(resumed.next_due_at) >= naive(resumed_at)

    updated = await services.update_quantity(repo, str(item.public_id), 5, resumed_at)
    assert updated.quantity == 5

    assert await repo.update_fields(9999, {"quantity": 2}) is None


@pytest.mark.asyncio
async def test_deletes(db_session, fixed_now):
    repo = BasketItemRepository(db_session)
    for pid in ("a", "b"):
        await repo.upsert(make_item("u1", pid, fixed_now))
    await repo.upsert(make_item("u2", "a", fixed_now))

    assert await repo.delete_by_user_and_product("u1", "a") is True
    assert await repo.delete_by_user_and_product("u1", "a") is False
    assert await repo.delete_all_for_user("u1") == 1
    assert [i.product_id for i in await repo.find_all_for_user("u2")] == ["a"]


@pytest.mark.asyncio
async def test_store_errors_become_dependency_failures(sql_engine, db_session, fixed_now):
    repo = BasketItemRepository(db_session)
    await drop_table(sql_engine, BasketItem.__table__)

    with pytest.raises(DependencyFailure):
        await repo.find_due(fixed_now)
    with pytest.raises(DependencyFailure):
        await repo.upsert(make_item("u1", "a", fixed_now))


@pytest.mark.asyncio
async def test_rotation_hands_out_every_wishlist_then_wraps(db_session, fixed_now, wishlist_ids):
    rotation = WishlistRotationRepository(db_session)

    handed_out = [await next_wishlist(rotation, wishlist_ids, fixed_now) for _ in range(len(wishlist_ids) + 1)]
    assert handed_out[:len(wishlist_ids)] == wishlist_ids
    assert handed_out[-1] == wishlist_ids[0]

    stored = (await db_session.execute(select(WishlistRotation.id, WishlistRotation.current_index))).one()
    assert tuple(stored) == (1, 1)
    rows = (await db_session.execute(select(func.count()).select_from(WishlistRotation))).scalar_one()
    assert rows == 1


@pytest.mark.asyncio
async def test_rotation_store_errors_become_dependency_failures(sql_engine, db_session, fixed_now):
    rotation = WishlistRotationRepository(db_session)
    await drop_table(sql_engine, WishlistRotation.__table__)

    with pytest.raises(DependencyFailure):
        await rotation.atomic_advance(5, fixed_now)


@pytest.mark.asyncio
async def test_checkout_survives_broken_rotation_on_a_shared_session(sql_engine, db_session, fixed_now,
                                                                     wishlist_ids):
    items = BasketItemRepository(db_session)
    rotation = WishlistRotationRepository(db_session)
    await items.upsert(make_item("u1", "tea", fixed_now, frequency={"type": "buy_once"}, price=10.0,
                                 quantity=2, source="amazon_us", title="Green Tea"))
    await items.upsert(make_item("u1", "rice", fixed_now, frequency={"type": "monthly", "dayOfMonth": 5}))
    await drop_table(sql_engine, WishlistRotation.__table__)

    result = await checkout(items, rotation, "u1", wishlist_ids, fixed_now)

    assert result.wishlist_id == wishlist_ids[0]
    assert result.checkout_type == "mixed"
    assert result.wishlist_url == (
        f"https://www.amazon.com/hz/wishlist/ls/{wishlist_ids[0]}?ref_=wl_share&tag=aviders-20"
    )
    assert result.quick_buy.items == [{"productId": "tea", "title": "Green Tea", "price": 10.0, "quantity": 2}]
    assert result.quick_buy.total == 20.0
    assert [line["productId"] for line in result.scheduled.items] == ["rice"]


@pytest.mark.asyncio
async def test_checkout_with_separate_rotation_session(sql_engine, session_maker, fixed_now, wishlist_ids):
    async with session_maker() as item_session, session_maker() as rotation_session:
        items = BasketItemRepository(item_session)
        rotation = WishlistRotationRepository(rotation_session)
        await items.upsert(make_item("u1", "tea", fixed_now, frequency={"type": "buy_once"}))

        first = await checkout(items, rotation, "u1", wishlist_ids, fixed_now)
        second = await checkout(items, rotation, "u1", wishlist_ids, fixed_now)

        assert [first.wishlist_id, second.wishlist_id] == wishlist_ids[:2]
