"""
FastAPI Application Entry Point

Boba POS Order Service - the thin HTTP layer cashier terminals talk to.
All inventory and order logic lives in the placement service.

Endpoints:
    - POST /api/orders: Place an order (atomic stock check + write)
    - GET /api/orders: List orders, newest first
    - GET /api/orders/{order_id}: One order with its line items
    - GET /api/inventory: Current ingredient counts
    - GET /health: System health check
"""

import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any, List, Optional

from fastapi import Body, Depends, FastAPI, HTTPException, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from bobapos.core.config import get_settings, setup_logging
from bobapos.database import engine, get_db, init_db
from bobapos.schemas import (
    ErrorResponse,
    HealthResponse,
    InventoryLevel,
    InventoryResponse,
    OrderCreateResponse,
    OrderListResponse,
    OrderResponse,
    PlacementErrorResponse,
)
from bobapos.services import InventoryLedger, OrderStore
from bobapos.services.placement import (
    OrderPlacementService,
    PlacementResult,
    ResultKind,
    get_placement_service,
)

settings = get_settings()
setup_logging()
logger = logging.getLogger(__name__)


# =============================================================================
# APPLICATION LIFECYCLE
# =============================================================================

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create tables on startup; finish in-flight orders before closing the pool."""
    # Startup
    logger.info("=" * 60)
    logger.info(f"Starting {settings.app_name}")
    logger.info(f"   Version: {settings.app_version}")
    logger.info(f"   Environment: {settings.env_mode.value}")
    logger.info(f"   Isolation: {settings.database_isolation_level}")
    logger.info(f"   Debug: {settings.debug}")
    logger.info("=" * 60)

    await init_db()
    logger.info("Database initialized")

    for problem in settings.validate_production_config():
        logger.warning(f"Configuration problem: {problem}")

    logger.info("Application ready!")

    yield  # Application runs

    # Shutdown
    logger.info("Shutting down, waiting for in-flight orders...")
    await get_placement_service().drain()
    await engine.dispose()
    logger.info("Cleanup complete")


# =============================================================================
# APPLICATION INSTANCE
# =============================================================================

app = FastAPI(
    title=settings.app_name,
    description=(
        "Inventory-aware order placement for cashier terminals. "
        "Orders either commit together with their inventory decrement or not at all."
    ),
    version=settings.app_version,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Configure appropriately for production
    allow_credentials=False,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization"],
)


# =============================================================================
# HELPER FUNCTIONS
# =============================================================================

FAILURE_STATUS = {
    ResultKind.INVALID_INPUT: 400,
    ResultKind.INSUFFICIENT_INVENTORY: 409,
}


def placement_error_response(result: PlacementResult) -> JSONResponse:
    """Map a rejected or failed placement onto an HTTP error."""
    if result.kind in FAILURE_STATUS:
        status_code = FAILURE_STATUS[result.kind]
    elif result.retryable:
        status_code = 503
    else:
        status_code = 500

    body = PlacementErrorResponse(
        error=result.kind.value,
        detail=result.reason,
        ingredient_ids=list(result.ingredient_ids),
        attempts=result.attempts,
    )
    return JSONResponse(status_code=status_code, content=body.model_dump())


# =============================================================================
# ROOT & HEALTH ENDPOINTS
# =============================================================================

@app.get("/", tags=["Root"])
async def root() -> dict[str, str]:
    """API root with navigation links."""
    return {
        "name": settings.app_name,
        "version": settings.app_version,
        "environment": settings.env_mode.value,
        "documentation": "/docs",
        "health": "/health",
    }


@app.get(
    "/health",
    response_model=HealthResponse,
    tags=["Health"],
    summary="Database Connectivity",
)
async def health_check(
    db: AsyncSession = Depends(get_db)
) -> HealthResponse:
    """Degraded when the database cannot answer a trivial query."""
    db_status = "healthy"
    try:
        await db.execute(select(func.now()))
    except SQLAlchemyError as exc:
        db_status = f"unhealthy: {exc.__class__.__name__}"
        logger.error(f"Health check could not reach the database: {exc}")

    return HealthResponse(
        status="operational" if db_status == "healthy" else "degraded",
        database=db_status,
        timestamp=datetime.now(timezone.utc),
    )


# =============================================================================
# ORDER API ENDPOINTS
# =============================================================================

@app.post(
    "/api/orders",
    status_code=201,
    response_model=OrderCreateResponse,
    responses={
        400: {"model": PlacementErrorResponse},
        409: {"model": PlacementErrorResponse},
        500: {"model": PlacementErrorResponse},
        503: {"model": PlacementErrorResponse},
    },
    tags=["Orders"],
    summary="Place Order",
)
async def create_order(
    payload: Any = Body(...),
    service: OrderPlacementService = Depends(get_placement_service),
) -> Any:
    """
    Place an order.

    Body: ``employeeId``, optional ``customerId``, ``totalCost``,
    ``orderWeek``, optional ``timeOfOrder`` and a non-empty ``items`` list of
    ``{menuItemId, quantity}``.

    409 means the order cannot be fulfilled with current stock;
    503/500 mean the system could not process it.
    """
    result = await service.place_order(payload)

    if not result.success:
        return placement_error_response(result)

    return OrderCreateResponse(
        message="Order placed successfully!",
        attempts=result.attempts,
        order=OrderResponse.model_validate(result.order),
    )


@app.get(
    "/api/orders",
    response_model=OrderListResponse,
    tags=["Orders"],
    summary="List Orders",
)
async def list_orders(
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=500),
    db: AsyncSession = Depends(get_db),
) -> OrderListResponse:
    """Retrieve paginated list of orders, newest first."""
    store = OrderStore()
    total = await store.count_orders(db)
    orders = await store.list_orders(db, skip=skip, limit=limit)

    return OrderListResponse(
        total=total,
        orders=[OrderResponse.model_validate(order) for order in orders],
    )


@app.get(
    "/api/orders/{order_id}",
    response_model=OrderResponse,
    responses={404: {"model": ErrorResponse}},
    tags=["Orders"],
)
async def get_order(
    order_id: int,
    db: AsyncSession = Depends(get_db),
) -> OrderResponse:
    """Get a specific order by ID."""
    order = await OrderStore().get_order(db, order_id)

    if not order:
        raise HTTPException(status_code=404, detail=f"Order #{order_id} not found")

    return OrderResponse.model_validate(order)


# =============================================================================
# INVENTORY ENDPOINTS
# =============================================================================

@app.get(
    "/api/inventory",
    response_model=InventoryResponse,
    tags=["Inventory"],
)
async def get_inventory(
    ids: Optional[List[int]] = Query(None),
    db: AsyncSession = Depends(get_db),
) -> InventoryResponse:
    """Current ingredient counts, optionally limited to ``ids``."""
    counts = await InventoryLedger().get_counts(db, ids)
    return InventoryResponse(
        ingredients=[
            InventoryLevel(ingredient_id=ingredient_id, count=count)
            for ingredient_id, count in counts.items()
        ]
    )


# =============================================================================
# ERROR HANDLERS
# =============================================================================

@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Anything a route did not turn into a response becomes a JSON 500."""
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")

    body = ErrorResponse(
        error="internal_error",
        detail=str(exc) if settings.debug else "The order service hit an unexpected error",
    )
    return JSONResponse(status_code=500, content=body.model_dump())


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("bobapos.main:app", host=settings.api_host, port=settings.api_port)
