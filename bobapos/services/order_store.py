"""
Order Store

Writes an order and its line items inside the caller's transaction and
reads them back. Identifiers come from the database on flush; the store
never commits on its own.
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from bobapos.models import Order, OrderItem
from bobapos.schemas import OrderPlacementRequest
from bobapos.services.errors import InvalidInput


class OrderStore:
    """Append-only persistence for orders."""

    async def create_order(
        self,
        session: AsyncSession,
        request: OrderPlacementRequest,
        placed_at: datetime,
    ) -> Order:
        """
        Insert the order row and one row per requested line.

        Args:
            session: Session inside the placement transaction
            request: Validated placement request
            placed_at: Timestamp recorded on the order

        Returns:
            Order: Flushed order with its id and its items' ids assigned
        """
        if not request.items:
            raise InvalidInput("Order must contain at least one item")

        order = Order(
            time_of_order=placed_at,
            customer_id=request.customer_id,
            employee_id=request.employee_id,
            total_cost=request.total_cost,
            order_week=request.order_week,
            items=[
                OrderItem(menu_item_id=line.menu_item_id, quantity=line.quantity)
                for line in request.items
            ],
        )
        session.add(order)
        await session.flush()
        return order

    async def get_order(self, session: AsyncSession, order_id: int) -> Optional[Order]:
        result = await session.execute(
            select(Order).options(selectinload(Order.items)).where(Order.id == order_id)
        )
        return result.scalar_one_or_none()

    async def list_orders(
        self,
        session: AsyncSession,
        skip: int = 0,
        limit: int = 50,
    ) -> list[Order]:
        """Newest first, line items loaded."""
        result = await session.execute(
            select(Order)
            .options(selectinload(Order.items))
            .order_by(Order.time_of_order.desc(), Order.id.desc())
            .offset(skip)
            .limit(limit)
        )
        return list(result.scalars().all())

    async def count_orders(self, session: AsyncSession) -> int:
        result = await session.execute(select(func.count(Order.id)))
        return result.scalar() or 0
