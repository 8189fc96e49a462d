"""
Order Placement Service

Validates an order against ingredient stock, persists it and decrements
inventory as one transaction.

Flow per attempt (one database transaction):
    1. Expand every distinct menu item through the Recipe Index
    2. Sum ingredient requirements across all lines of the order
    3. Conditionally decrement the Inventory Ledger by those sums
    4. Insert the order and its line items through the Order Store
    5. Commit (any exception rolls the whole attempt back)

Serialization conflicts and lock timeouts re-run the whole attempt from a
fresh read, a bounded number of times with exponential backoff. Shortages
and invalid input are final.

Each attempt is shielded from cancellation: once it starts, it always ends
in a commit or a rollback even if the caller goes away.
"""

import asyncio
import logging
import random
from collections import defaultdict
from datetime import datetime, timezone
from typing import Any, Callable, Iterable, Mapping, Optional, Union

from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from bobapos.database import transaction
from bobapos.models import Order
from bobapos.schemas import OrderLineRequest, OrderPlacementRequest
from bobapos.services.errors import (
    InsufficientInventory,
    InvalidInput,
    StorageFailure,
    TransientStorageConflict,
    is_transient_error,
)
from bobapos.services.inventory import InventoryLedger
from bobapos.services.order_store import OrderStore
from bobapos.services.placement.base import PlacementResult, PlacementState
from bobapos.services.recipes import RecipeIndex, RecipeLine

logger = logging.getLogger(__name__)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def aggregate_requirements(
    lines: Iterable[OrderLineRequest],
    recipes: Mapping[int, list[RecipeLine]],
) -> dict[int, int]:
    """
    Total units of each ingredient the whole order consumes.

    An ingredient shared by several lines is summed before any stock check.

    Example:
        item 1 needs 2 milk, item 2 needs 1 milk;
        3x item 1 + 1x item 2 -> {milk: 7}
    """
    totals: dict[int, int] = defaultdict(int)
    for line in lines:
        for ingredient_id, per_unit in recipes.get(line.menu_item_id, ()):
            totals[ingredient_id] += per_unit * line.quantity
    return {ingredient_id: amount for ingredient_id, amount in totals.items() if amount > 0}


def describe_validation_error(exc: ValidationError) -> str:
    """Compact 'field: message' summary of a pydantic error."""
    parts = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ())) or "request"
        parts.append(f"{location}: {error.get('msg', 'invalid')}")
    return "; ".join(parts)


class OrderPlacementService:
    """
    Places orders atomically against the inventory.

    Attributes:
        session_maker: Factory for the per-attempt sessions
        max_attempts: Attempts before a conflicting placement is reported failed
        retry_base_delay: First backoff delay in seconds
        retry_max_delay: Upper bound for a single backoff delay

    Example:
        >>> service = OrderPlacementService(async_session_maker)
        >>> result = await service.place_order({
        ...     "employeeId": 3, "totalCost": 9.5, "orderWeek": 12,
        ...     "items": [{"menuItemId": 1, "quantity": 2}],
        ... })
        >>> result.state
        <PlacementState.COMMITTED: 'committed'>
    """

    def __init__(
        self,
        session_maker: async_sessionmaker[AsyncSession],
        recipe_index: Optional[RecipeIndex] = None,
        ledger: Optional[InventoryLedger] = None,
        store: Optional[OrderStore] = None,
        clock: Callable[[], datetime] = utc_now,
        max_attempts: int = 5,
        retry_base_delay: float = 0.05,
        retry_max_delay: float = 1.0,
    ):
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")

        self.session_maker = session_maker
        self.recipe_index = recipe_index or RecipeIndex()
        self.ledger = ledger or InventoryLedger()
        self.store = store or OrderStore()
        self.clock = clock
        self.max_attempts = max_attempts
        self.retry_base_delay = retry_base_delay
        self.retry_max_delay = retry_max_delay

        self._inflight: set[asyncio.Task] = set()

    # =========================================================================
    # PUBLIC API
    # =========================================================================

    async def place_order(
        self,
        request: Union[OrderPlacementRequest, Mapping[str, Any]],
    ) -> PlacementResult:
        """
        Place one order.

        Args:
            request: Validated request, or the raw mapping a terminal sent

        Returns:
            PlacementResult: COMMITTED with the order, REJECTED with the
            reason (invalid input or short ingredients), or FAILED
        """
        history = [PlacementState.RECEIVED]

        self._advance(history, PlacementState.VALIDATING)
        try:
            placement = self._coerce(request)
        except InvalidInput as exc:
            self._advance(history, PlacementState.REJECTED)
            logger.warning(f"Order rejected before storage access: {exc.reason}")
            return PlacementResult.invalid_input(exc.reason, attempts=0, history=history)

        attempts = 0
        while True:
            attempts += 1
            if attempts > 1:
                self._advance(history, PlacementState.VALIDATING)

            try:
                order = await self._run_shielded(placement, history)

            except InvalidInput as exc:
                self._advance(history, PlacementState.REJECTED)
                logger.warning(f"Order rejected: {exc.reason}")
                return PlacementResult.invalid_input(exc.reason, attempts, history)

            except InsufficientInventory as exc:
                self._advance(history, PlacementState.REJECTED)
                logger.warning(
                    f"Order rejected, insufficient inventory for ingredient(s) "
                    f"{list(exc.ingredient_ids)}"
                )
                return PlacementResult.insufficient_inventory(exc, attempts, history)

            except TransientStorageConflict as exc:
                if attempts >= self.max_attempts:
                    self._advance(history, PlacementState.FAILED)
                    logger.error(
                        f"Order failed after {attempts} conflicting attempt(s): {exc.reason}"
                    )
                    return PlacementResult.failed(
                        f"Could not place order after {attempts} attempt(s): {exc.reason}",
                        attempts,
                        history,
                        retryable=True,
                    )
                delay = self._backoff_delay(attempts)
                logger.warning(
                    f"Attempt {attempts}/{self.max_attempts} hit a storage conflict, "
                    f"retrying in {delay:.3f}s: {exc.reason}"
                )
                await asyncio.sleep(delay)
                continue

            except StorageFailure as exc:
                self._advance(history, PlacementState.FAILED)
                logger.error(f"Order failed on attempt {attempts}: {exc.reason}")
                return PlacementResult.failed(exc.reason, attempts, history)

            self._advance(history, PlacementState.COMMITTED)
            logger.info(
                f"Order #{order.id} committed with {len(placement.items)} line(s) "
                f"after {attempts} attempt(s)"
            )
            return PlacementResult.committed(order, attempts, history)

    async def drain(self) -> None:
        """Wait until every attempt already started has committed or rolled back."""
        while self._inflight:
            await asyncio.gather(*list(self._inflight), return_exceptions=True)

    # =========================================================================
    # ATTEMPT
    # =========================================================================

    async def _run_shielded(
        self,
        placement: OrderPlacementRequest,
        history: list[PlacementState],
    ) -> Order:
        task = asyncio.ensure_future(self._attempt(placement, history))
        self._inflight.add(task)
        task.add_done_callback(self._inflight.discard)
        return await asyncio.shield(task)

    async def _attempt(
        self,
        placement: OrderPlacementRequest,
        history: list[PlacementState],
    ) -> Order:
        """
        One transaction: expand, aggregate, decrement, persist, commit.

        Raises:
            InvalidInput: Unknown menu items
            InsufficientInventory: Stock cannot cover the order
            TransientStorageConflict: Concurrent transaction conflict
            StorageFailure: Any other database error
        """
        menu_item_ids = {line.menu_item_id for line in placement.items}

        try:
            async with transaction(self.session_maker) as session:
                missing = await self.recipe_index.missing_menu_items(session, menu_item_ids)
                if missing:
                    raise InvalidInput(f"Unknown menu item ID(s): {sorted(missing)}")

                recipes = await self.recipe_index.expand(session, menu_item_ids)
                requirements = aggregate_requirements(placement.items, recipes)
                logger.debug(f"Aggregated ingredient requirements: {requirements}")

                await self.ledger.decrement(session, requirements)

                self._advance(history, PlacementState.ALLOCATING)
                placed_at = placement.time_of_order or self.clock()
                return await self.store.create_order(session, placement, placed_at)

        except SQLAlchemyError as exc:
            if is_transient_error(exc):
                raise TransientStorageConflict(str(getattr(exc, "orig", exc))) from exc
            logger.exception("Order placement rolled back after a storage error")
            raise StorageFailure(f"Storage error: {exc.__class__.__name__}") from exc

    # =========================================================================
    # HELPERS
    # =========================================================================

    def _coerce(self, request: Union[OrderPlacementRequest, Mapping[str, Any]]) -> OrderPlacementRequest:
        if isinstance(request, OrderPlacementRequest):
            if not request.items:
                raise InvalidInput("Order must contain at least one item")
            return request
        if not isinstance(request, Mapping):
            raise InvalidInput("Order request must be an object")
        try:
            return OrderPlacementRequest.model_validate(dict(request))
        except ValidationError as exc:
            raise InvalidInput(describe_validation_error(exc)) from exc

    def _backoff_delay(self, attempt: int) -> float:
        """Exponential backoff with jitter: base * 2^(attempt-1), capped."""
        delay = min(self.retry_max_delay, self.retry_base_delay * (2 ** (attempt - 1)))
        return delay * random.uniform(0.5, 1.0)

    @staticmethod
    def _advance(history: list[PlacementState], state: PlacementState) -> None:
        logger.debug(f"Placement {history[-1].value} -> {state.value}")
        history.append(state)
