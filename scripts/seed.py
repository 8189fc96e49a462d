"""
Demo Data Seeding Script

Creates the tables and loads a small boba shop menu, its ingredients and
recipes. Does nothing if menu items already exist.
Run from project root: python scripts/seed.py

Version: 1.0.0
"""

import argparse
import asyncio
import os
import sys

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from sqlalchemy import func, select

from bobapos.core.config import setup_logging
from bobapos.database import async_session_maker, engine, init_db, transaction
from bobapos.models import Ingredient, MenuItem, RecipeEntry

# Windows event loop fix
if sys.platform == "win32":
    asyncio.set_event_loop_policy(asyncio.WindowsSelectorEventLoopPolicy())

INGREDIENTS = {
    "Black Tea": 150,
    "Green Tea": 120,
    "Oolong Tea": 100,
    "Whole Milk": 200,
    "Oat Milk": 45,
    "Cane Sugar": 300,
    "Brown Sugar": 150,
    "Mango Syrup": 90,
    "Passion Fruit Syrup": 70,
    "Taro Powder": 110,
    "Matcha Powder": 95,
    "Tapioca Pearls (Boba)": 500,
    "Lychee Jelly": 200,
    "Cups": 400,
}

# (category, name, price, {ingredient: units per drink})
MENU = [
    ("Milk Tea", "Classic Milk Tea", 4.50,
     {"Black Tea": 1, "Whole Milk": 2, "Cane Sugar": 1, "Tapioca Pearls (Boba)": 2, "Cups": 1}),
    ("Milk Tea", "Taro Milk Tea", 5.00,
     {"Taro Powder": 2, "Whole Milk": 2, "Cane Sugar": 1, "Tapioca Pearls (Boba)": 2, "Cups": 1}),
    ("Milk Tea", "Matcha Milk Tea", 5.25,
     {"Matcha Powder": 2, "Oat Milk": 2, "Cane Sugar": 1, "Cups": 1}),
    ("Fruit Tea", "Passion Fruit Tea", 4.25,
     {"Green Tea": 1, "Passion Fruit Syrup": 2, "Lychee Jelly": 1, "Cups": 1}),
    ("Fruit Tea", "Mango Green Tea", 4.50,
     {"Green Tea": 1, "Mango Syrup": 2, "Cups": 1}),
    ("Specialty", "Brown Sugar Boba", 6.00,
     {"Whole Milk": 3, "Brown Sugar": 2, "Tapioca Pearls (Boba)": 3, "Cups": 1}),
    ("Specialty", "Oolong Milk Tea", 5.00,
     {"Oolong Tea": 1, "Whole Milk": 2, "Cane Sugar": 1, "Cups": 1}),
    # Sold by the bag; not tracked in inventory
    ("Extras", "Reusable Straw", 1.50, {}),
]


async def seed(reset: bool = False) -> None:
    await init_db()

    async with transaction(async_session_maker) as session:
        existing = (await session.execute(select(func.count(MenuItem.id)))).scalar() or 0
        if existing and not reset:
            print(f"Menu already has {existing} item(s); nothing to do (use --reset to top up stock)")
            return

        ingredients = {}
        for name, count in INGREDIENTS.items():
            found = (await session.execute(select(Ingredient).where(Ingredient.name == name))).scalar_one_or_none()
            if found is None:
                found = Ingredient(name=name, count=count)
                session.add(found)
            else:
                found.count = count
            ingredients[name] = found
        await session.flush()

        for category, name, price, recipe in MENU:
            item = (await session.execute(select(MenuItem).where(MenuItem.name == name))).scalar_one_or_none()
            if item is None:
                item = MenuItem(category=category, name=name, price=price)
                session.add(item)
                await session.flush()
                for ingredient_name, qty in recipe.items():
                    session.add(RecipeEntry(
                        menu_item_id=item.id,
                        ingredient_id=ingredients[ingredient_name].id,
                        quantity=qty,
                    ))

    print(f"Seeded {len(INGREDIENTS)} ingredients and {len(MENU)} menu items")


async def main(reset: bool) -> None:
    try:
        await seed(reset=reset)
    finally:
        await engine.dispose()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Seed demo menu and inventory")
    parser.add_argument("--reset", action="store_true", help="Reset ingredient counts to demo levels")
    args = parser.parse_args()

    setup_logging()
    asyncio.run(main(args.reset))
