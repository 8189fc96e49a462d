"""
Order Placement Result Types

A placement moves through a small state machine:

    RECEIVED -> VALIDATING -> ALLOCATING -> COMMITTED
    RECEIVED -> VALIDATING -> REJECTED
    ...      -> FAILED

Callers only ever receive a ``PlacementResult``; the exceptions in
``bobapos.services.errors`` stay inside the service.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from bobapos.models import Order
from bobapos.services.errors import InsufficientInventory


class PlacementState(str, Enum):
    """Lifecycle of one order placement."""
    RECEIVED = "received"
    VALIDATING = "validating"
    ALLOCATING = "allocating"
    COMMITTED = "committed"
    REJECTED = "rejected"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (PlacementState.COMMITTED, PlacementState.REJECTED, PlacementState.FAILED)


class ResultKind(str, Enum):
    """What the caller should tell the cashier."""
    COMMITTED = "committed"
    INVALID_INPUT = "invalid_input"
    INSUFFICIENT_INVENTORY = "insufficient_inventory"
    FAILED = "failed"


# =============================================================================
# RESULT
# =============================================================================

@dataclass
class PlacementResult:
    """
    Standardized outcome of ``OrderPlacementService.place_order``.

    Attributes:
        state: Terminal state (COMMITTED, REJECTED or FAILED)
        kind: Which of the four caller-facing outcomes this is
        order: The persisted order when committed
        ingredient_ids: Ingredients that could not cover the order
        reason: Human-readable explanation for rejections and failures
        attempts: Transactions started for this placement
        history: Every state the placement passed through, in order
        retryable: A failure caused only by conflicts; resubmitting may work
    """
    state: PlacementState
    kind: ResultKind
    order: Optional[Order] = None
    ingredient_ids: tuple[int, ...] = ()
    reason: Optional[str] = None
    attempts: int = 0
    history: list[PlacementState] = field(default_factory=list)
    retryable: bool = False

    @property
    def success(self) -> bool:
        return self.state == PlacementState.COMMITTED

    @property
    def is_business_rejection(self) -> bool:
        """True when the order cannot be fulfilled, as opposed to a system fault."""
        return self.state == PlacementState.REJECTED

    @classmethod
    def committed(cls, order: Order, attempts: int, history: list[PlacementState]) -> "PlacementResult":
        return cls(
            state=PlacementState.COMMITTED,
            kind=ResultKind.COMMITTED,
            order=order,
            attempts=attempts,
            history=history,
        )

    @classmethod
    def invalid_input(cls, reason: str, attempts: int, history: list[PlacementState]) -> "PlacementResult":
        return cls(
            state=PlacementState.REJECTED,
            kind=ResultKind.INVALID_INPUT,
            reason=reason,
            attempts=attempts,
            history=history,
        )

    @classmethod
    def insufficient_inventory(
        cls,
        error: InsufficientInventory,
        attempts: int,
        history: list[PlacementState],
    ) -> "PlacementResult":
        return cls(
            state=PlacementState.REJECTED,
            kind=ResultKind.INSUFFICIENT_INVENTORY,
            ingredient_ids=error.ingredient_ids,
            reason=error.reason,
            attempts=attempts,
            history=history,
        )

    @classmethod
    def failed(
        cls,
        reason: str,
        attempts: int,
        history: list[PlacementState],
        retryable: bool = False,
    ) -> "PlacementResult":
        return cls(
            state=PlacementState.FAILED,
            kind=ResultKind.FAILED,
            reason=reason,
            attempts=attempts,
            history=history,
            retryable=retryable,
        )

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization (order excluded)."""
        return {
            "success": self.success,
            "state": self.state.value,
            "kind": self.kind.value,
            "order_id": self.order.id if self.order is not None else None,
            "ingredient_ids": list(self.ingredient_ids),
            "reason": self.reason,
            "attempts": self.attempts,
            "retryable": self.retryable,
        }
