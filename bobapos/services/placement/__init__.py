"""
Order Placement Service Factory

Provides a single entry point for obtaining the placement service wired to
the application's database and retry settings.

Usage:
    from bobapos.services.placement import get_placement_service

    service = get_placement_service()
    result = await service.place_order(payload)
    if result.success:
        print(result.order.id)
"""

from functools import lru_cache

from bobapos.core.config import get_logger, get_settings
from bobapos.database import async_session_maker
from bobapos.services.placement.base import (
    PlacementResult,
    PlacementState,
    ResultKind,
)
from bobapos.services.placement.service import (
    OrderPlacementService,
    aggregate_requirements,
)

logger = get_logger(__name__)


@lru_cache()
def get_placement_service() -> OrderPlacementService:
    """
    Get the configured placement service instance.

    The instance is cached so in-flight attempts are tracked in one place
    and can be drained at shutdown.

    Returns:
        OrderPlacementService: Service bound to the application database
    """
    settings = get_settings()
    logger.info(
        f"Placement Service: max_attempts={settings.placement_max_attempts}, "
        f"isolation={settings.database_isolation_level}"
    )
    return OrderPlacementService(
        async_session_maker,
        max_attempts=settings.placement_max_attempts,
        retry_base_delay=settings.placement_retry_base_delay,
        retry_max_delay=settings.placement_retry_max_delay,
    )


def reset_placement_service() -> None:
    """
    Clear the cached placement service instance.

    Useful for testing or when configuration changes at runtime.
    """
    get_placement_service.cache_clear()
    logger.debug("Placement service cache cleared")


__all__ = [
    "get_placement_service",
    "reset_placement_service",
    "OrderPlacementService",
    "PlacementResult",
    "PlacementState",
    "ResultKind",
    "aggregate_requirements",
]
