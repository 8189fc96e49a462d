import pytest

from bobapos.services.recipes import RecipeIndex, RecipeLine


@pytest.mark.asyncio
async def test_ingredients_for_single_item(session_maker, menu):
    async with session_maker() as session:
        lines = await RecipeIndex().ingredients_for(session, menu.latte)

    assert lines == [RecipeLine(menu.milk, 2), RecipeLine(menu.cups, 1)]


@pytest.mark.asyncio
async def test_item_without_recipe_consumes_nothing(session_maker, menu):
    async with session_maker() as session:
        lines = await RecipeIndex().ingredients_for(session, menu.straw)

    assert lines == []


@pytest.mark.asyncio
async def test_expand_returns_every_requested_item(session_maker, menu):
    async with session_maker() as session:
        recipes = await RecipeIndex().expand(session, [menu.sweet_tea, menu.straw, menu.sweet_tea])

    assert set(recipes) == {menu.sweet_tea, menu.straw}
    assert recipes[menu.straw] == []
    assert {line.ingredient_id: line.quantity for line in recipes[menu.sweet_tea]} == {
        menu.milk: 1,
        menu.tea: 1,
        menu.sugar: 2,
        menu.cups: 1,
    }


@pytest.mark.asyncio
async def test_expand_nothing(session_maker, menu):
    async with session_maker() as session:
        assert await RecipeIndex().expand(session, []) == {}


@pytest.mark.asyncio
async def test_missing_menu_items(session_maker, menu):
    async with session_maker() as session:
        missing = await RecipeIndex().missing_menu_items(session, [menu.latte, 9001, 9002])

    assert missing == {9001, 9002}
