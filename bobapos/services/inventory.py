"""
Inventory Ledger

The only shared mutable state in order placement. Stock is lowered through
``decrement()`` alone, which checks and subtracts in the same statement so
no reader can act on a count that changed underneath it.

Design:
    - One conditional UPDATE per ingredient:
          SET count = count - n WHERE id = :id AND count >= n
      A row count of zero means the ingredient cannot cover the request.
    - Rows are touched in ascending id order so concurrent orders lock
      them in the same sequence.
    - On any shortage the ledger raises and the enclosing transaction is
      rolled back, so no partial decrement is ever committed.
"""

import logging
from typing import Iterable, Mapping, Optional

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from bobapos.models import INT_MAX, Ingredient
from bobapos.services.errors import InsufficientInventory

logger = logging.getLogger(__name__)


class InventoryLedger:
    """Reads and conditionally decrements ingredient counts."""

    async def get_counts(
        self,
        session: AsyncSession,
        ingredient_ids: Optional[Iterable[int]] = None,
    ) -> dict[int, int]:
        """
        Current count per ingredient.

        Args:
            session: Open session (its transaction decides what is visible)
            ingredient_ids: Ingredients to read; None reads all of them

        Returns:
            dict: ingredient id -> count, unknown ids omitted
        """
        query = select(Ingredient.id, Ingredient.count).order_by(Ingredient.id)
        if ingredient_ids is not None:
            ids = set(ingredient_ids)
            if not ids:
                return {}
            query = query.where(Ingredient.id.in_(ids))

        result = await session.execute(query)
        return {ingredient_id: count for ingredient_id, count in result.all()}

    async def decrement(
        self,
        session: AsyncSession,
        amounts: Mapping[int, int],
    ) -> None:
        """
        Subtract every amount, or report why it cannot be done.

        Must run inside the caller's transaction; the caller rolls back when
        this raises.

        Args:
            session: Session inside an open transaction
            amounts: ingredient id -> units to remove (non-positive skipped)

        Raises:
            InsufficientInventory: With every ingredient that fell short
        """
        short = []

        for ingredient_id in sorted(amounts):
            amount = amounts[ingredient_id]
            if amount <= 0:
                continue
            if amount > INT_MAX:
                # more than any count column can hold
                short.append(ingredient_id)
                continue

            result = await session.execute(
                update(Ingredient)
                .where(Ingredient.id == ingredient_id, Ingredient.count >= amount)
                .values({Ingredient.count: Ingredient.count - amount})
                .execution_options(synchronize_session=False)
            )
            if result.rowcount != 1:
                short.append(ingredient_id)

        if short:
            logger.debug(f"Decrement refused, short ingredients: {short}")
            raise InsufficientInventory(short)
