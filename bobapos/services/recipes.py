"""
Recipe Index

Read-only view of which ingredients a menu item consumes per unit sold.
A menu item with no recipe rows consumes nothing; that is a valid state,
not an error.
"""

from typing import Iterable, NamedTuple

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from bobapos.models import MenuItem, RecipeEntry


class RecipeLine(NamedTuple):
    ingredient_id: int
    quantity: int


class RecipeIndex:
    """Looks up recipe rows inside the caller's transaction."""

    async def ingredients_for(
        self,
        session: AsyncSession,
        menu_item_id: int,
    ) -> list[RecipeLine]:
        """
        Recipe of a single menu item, ordered by ingredient id.

        Returns:
            list[RecipeLine]: Empty if the item consumes nothing
        """
        recipes = await self.expand(session, [menu_item_id])
        return recipes[menu_item_id]

    async def expand(
        self,
        session: AsyncSession,
        menu_item_ids: Iterable[int],
    ) -> dict[int, list[RecipeLine]]:
        """
        Recipes of several menu items in one query.

        Every requested id is present in the result, mapped to an empty list
        when it has no recipe rows.
        """
        ids = sorted(set(menu_item_ids))
        recipes: dict[int, list[RecipeLine]] = {menu_item_id: [] for menu_item_id in ids}
        if not ids:
            return recipes

        result = await session.execute(
            select(RecipeEntry.menu_item_id, RecipeEntry.ingredient_id, RecipeEntry.quantity)
            .where(RecipeEntry.menu_item_id.in_(ids))
            .order_by(RecipeEntry.menu_item_id, RecipeEntry.ingredient_id)
        )
        for menu_item_id, ingredient_id, quantity in result.all():
            recipes[menu_item_id].append(RecipeLine(ingredient_id, quantity))
        return recipes

    async def missing_menu_items(
        self,
        session: AsyncSession,
        menu_item_ids: Iterable[int],
    ) -> set[int]:
        """Ids that do not name an existing menu item."""
        ids = set(menu_item_ids)
        if not ids:
            return set()
        result = await session.execute(select(MenuItem.id).where(MenuItem.id.in_(ids)))
        return ids - set(result.scalars().all())
