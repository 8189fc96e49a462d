"""
Pydantic Schemas for Request/Response Validation

The placement request accepts the cashier terminals' camelCase keys
(``employeeId``, ``menuItemId``...) as well as snake_case, and the legacy
``orderItems`` key for the line list.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from bobapos.models import ID_MAX, INT_MAX


# =============================================================================
# REQUEST SCHEMAS
# =============================================================================
#
# Numbers are strict: true, "3" and 2.0 are refused rather than coerced, and
# every integer is bounded by the column it lands in, so oversized values are
# rejected before the database sees them.

class OrderLineRequest(BaseModel):
    """Single line of a placement request."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    menu_item_id: int = Field(
        ...,
        strict=True,
        gt=0,
        le=ID_MAX,
        validation_alias=AliasChoices("menuItemId", "menu_item_id", "menuitemid"),
        examples=[1],
    )
    quantity: int = Field(..., strict=True, gt=0, le=INT_MAX, examples=[2])


class OrderPlacementRequest(BaseModel):
    """
    Request schema for placing an order.

    ``total_cost`` is the terminal's own total; it is stored as given and
    not recomputed from menu prices.
    """
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    employee_id: int = Field(
        ...,
        strict=True,
        ge=0,
        le=INT_MAX,
        validation_alias=AliasChoices("employeeId", "employee_id", "employeeid"),
        examples=[3],
    )
    customer_id: Optional[int] = Field(
        None,
        strict=True,
        ge=0,
        le=INT_MAX,
        validation_alias=AliasChoices("customerId", "customer_id", "customerid"),
        examples=[42],
    )
    total_cost: float = Field(
        ...,
        strict=True,
        ge=0,
        allow_inf_nan=False,
        validation_alias=AliasChoices("totalCost", "total_cost", "totalcost"),
        examples=[9.5],
    )
    order_week: int = Field(
        ...,
        strict=True,
        ge=0,
        le=INT_MAX,
        validation_alias=AliasChoices("orderWeek", "order_week", "orderweek"),
        examples=[12],
    )
    time_of_order: Optional[datetime] = Field(
        None,
        validation_alias=AliasChoices("timeOfOrder", "time_of_order", "timeoforder"),
    )
    items: List[OrderLineRequest] = Field(
        ...,
        min_length=1,
        validation_alias=AliasChoices("items", "orderItems", "order_items"),
    )


# =============================================================================
# RESPONSE SCHEMAS
# =============================================================================

class OrderItemResponse(BaseModel):
    """One persisted line item."""
    id: int
    order_id: int
    menu_item_id: int
    quantity: int

    class Config:
        from_attributes = True


class OrderResponse(BaseModel):
    """Response schema for a single order."""
    id: int
    time_of_order: datetime
    customer_id: Optional[int]
    employee_id: int
    total_cost: float
    order_week: int
    items: List[OrderItemResponse] = []

    class Config:
        from_attributes = True


class OrderCreateResponse(BaseModel):
    """Response after an order was committed."""
    success: bool = True
    message: str
    attempts: int
    order: OrderResponse


class OrderListResponse(BaseModel):
    """Response for listing multiple orders."""
    total: int
    orders: List[OrderResponse]


class InventoryLevel(BaseModel):
    ingredient_id: int
    count: int


class InventoryResponse(BaseModel):
    """Current stock for the requested ingredients."""
    ingredients: List[InventoryLevel]


class ErrorResponse(BaseModel):
    """Standard error response."""
    success: bool = False
    error: str
    detail: Optional[str] = None


class PlacementErrorResponse(ErrorResponse):
    """Error response for a rejected or failed placement."""
    ingredient_ids: List[int] = []
    attempts: int = 0


class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    database: str
    timestamp: datetime
