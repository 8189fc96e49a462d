from datetime import datetime, timedelta, timezone

import pytest

from bobapos.database import transaction
from bobapos.schemas import OrderPlacementRequest
from bobapos.services.errors import InvalidInput
from bobapos.services.order_store import OrderStore

from conftest import order_count

NOON = datetime(2025, 3, 14, 12, 0, tzinfo=timezone.utc)


@pytest.mark.asyncio
async def test_create_order_assigns_unique_ids(session_maker, menu, order_request):
    store = OrderStore()
    request = OrderPlacementRequest.model_validate(order_request((menu.latte, 1), (menu.straw, 2)))

    async with transaction(session_maker) as session:
        first = await store.create_order(session, request, NOON)
        second = await store.create_order(session, request, NOON)

    assert first.id != second.id
    item_ids = [item.id for item in first.items + second.items]
    assert len(set(item_ids)) == 4
    assert all(item.order_id == first.id for item in first.items)
    assert [(i.menu_item_id, i.quantity) for i in first.items] == [(menu.latte, 1), (menu.straw, 2)]


@pytest.mark.asyncio
async def test_create_order_without_items_is_rejected(session_maker):
    request = OrderPlacementRequest.model_construct(
        employee_id=1, customer_id=None, total_cost=0.0, order_week=1, time_of_order=None, items=[]
    )

    with pytest.raises(InvalidInput):
        async with transaction(session_maker) as session:
            await OrderStore().create_order(session, request, NOON)

    assert await order_count(session_maker) == 0


@pytest.mark.asyncio
async def test_get_order(session_maker, menu, order_request):
    store = OrderStore()
    request = OrderPlacementRequest.model_validate(
        order_request((menu.sweet_tea, 3), customer_id=42, total_cost=11.25)
    )
    async with transaction(session_maker) as session:
        created = await store.create_order(session, request, NOON)

    async with session_maker() as session:
        order = await store.get_order(session, created.id)
        missing = await store.get_order(session, created.id + 100)

    assert missing is None
    assert order.customer_id == 42
    assert order.employee_id == 7
    assert order.total_cost == 11.25
    assert order.order_week == 12
    assert [(i.menu_item_id, i.quantity) for i in order.items] == [(menu.sweet_tea, 3)]


@pytest.mark.asyncio
async def test_list_orders_newest_first(session_maker, menu, order_request):
    store = OrderStore()
    request = OrderPlacementRequest.model_validate(order_request((menu.latte, 1)))
    async with transaction(session_maker) as session:
        old = await store.create_order(session, request, NOON - timedelta(hours=2))
        new = await store.create_order(session, request, NOON)
        middle = await store.create_order(session, request, NOON - timedelta(hours=1))

    async with session_maker() as session:
        orders = await store.list_orders(session)
        page = await store.list_orders(session, skip=1, limit=1)
        total = await store.count_orders(session)

    assert [o.id for o in orders] == [new.id, middle.id, old.id]
    assert [o.id for o in page] == [middle.id]
    assert total == 3
