"""Shared fixtures: a throwaway SQLite database seeded with a tiny boba menu."""

import os
from types import SimpleNamespace

# Keep the application engine off any real server while tests import bobapos
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///./.pytest-bobapos.db")

import pytest
import pytest_asyncio
from sqlalchemy import func, select, update

from bobapos.database import build_engine, build_session_maker, init_db, transaction
from bobapos.models import Ingredient, MenuItem, Order, OrderItem, RecipeEntry
from bobapos.services.placement import OrderPlacementService


@pytest_asyncio.fixture
async def engine(tmp_path):
    """SQLite file database (not :memory:, so every session gets its own connection)."""
    test_engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'bobapos.db'}")
    await init_db(test_engine)
    yield test_engine
    await test_engine.dispose()


@pytest.fixture
def session_maker(engine):
    return build_session_maker(engine)


async def seed_menu(session_maker):
    """
    Ingredients: milk 10, tea 50, sugar 5, cups 100.

    Menu items:
        milk_drink  4 milk + 1 cup
        latte       2 milk + 1 cup
        sweet_tea   1 milk + 1 tea + 2 sugar + 1 cup
        straw       nothing
    """
    async with transaction(session_maker) as session:
        milk = Ingredient(name="Whole Milk", count=10)
        tea = Ingredient(name="Black Tea", count=50)
        sugar = Ingredient(name="Cane Sugar", count=5)
        cups = Ingredient(name="Cups", count=100)
        session.add_all([milk, tea, sugar, cups])

        milk_drink = MenuItem(category="Milk Tea", name="Classic Milk Tea", price=4.50)
        latte = MenuItem(category="Coffee", name="Latte", price=5.00)
        sweet_tea = MenuItem(category="Fruit Tea", name="Sweet Tea", price=3.75)
        straw = MenuItem(category="Extras", name="Reusable Straw", price=1.50)
        session.add_all([milk_drink, latte, sweet_tea, straw])
        await session.flush()

        session.add_all([
            RecipeEntry(menu_item_id=milk_drink.id, ingredient_id=milk.id, quantity=4),
            RecipeEntry(menu_item_id=milk_drink.id, ingredient_id=cups.id, quantity=1),
            RecipeEntry(menu_item_id=latte.id, ingredient_id=milk.id, quantity=2),
            RecipeEntry(menu_item_id=latte.id, ingredient_id=cups.id, quantity=1),
            RecipeEntry(menu_item_id=sweet_tea.id, ingredient_id=milk.id, quantity=1),
            RecipeEntry(menu_item_id=sweet_tea.id, ingredient_id=tea.id, quantity=1),
            RecipeEntry(menu_item_id=sweet_tea.id, ingredient_id=sugar.id, quantity=2),
            RecipeEntry(menu_item_id=sweet_tea.id, ingredient_id=cups.id, quantity=1),
        ])

    return SimpleNamespace(
        milk=milk.id,
        tea=tea.id,
        sugar=sugar.id,
        cups=cups.id,
        milk_drink=milk_drink.id,
        latte=latte.id,
        sweet_tea=sweet_tea.id,
        straw=straw.id,
    )


@pytest_asyncio.fixture
async def menu(session_maker):
    return await seed_menu(session_maker)


@pytest.fixture
def service(session_maker):
    return OrderPlacementService(
        session_maker,
        max_attempts=5,
        retry_base_delay=0.0,
        retry_max_delay=0.0,
    )


@pytest.fixture
def order_request():
    """Build a placement request in the terminals' camelCase format."""
    def build(*lines, employee_id=7, customer_id=None, total_cost=9.0, order_week=12):
        return {
            "employeeId": employee_id,
            "customerId": customer_id,
            "totalCost": total_cost,
            "orderWeek": order_week,
            "items": [{"menuItemId": item, "quantity": qty} for item, qty in lines],
        }
    return build


# =============================================================================
# HELPERS
# =============================================================================

async def stock_of(session_maker, ingredient_id: int) -> int:
    async with session_maker() as session:
        result = await session.execute(select(Ingredient.count).where(Ingredient.id == ingredient_id))
        return result.scalar_one()


async def set_stock(session_maker, ingredient_id: int, count: int) -> None:
    async with transaction(session_maker) as session:
        await session.execute(
            update(Ingredient).where(Ingredient.id == ingredient_id).values({Ingredient.count: count})
        )


async def count_rows(session_maker, model) -> int:
    async with session_maker() as session:
        result = await session.execute(select(func.count()).select_from(model))
        return result.scalar_one()


async def order_count(session_maker) -> int:
    return await count_rows(session_maker, Order)


async def order_item_count(session_maker) -> int:
    return await count_rows(session_maker, OrderItem)
