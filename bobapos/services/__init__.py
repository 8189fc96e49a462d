"""
                        Services Module

The transactional core of order placement. Each collaborator receives the
session of the current transaction explicitly.

Services:
    - recipes: Recipe Index (menu item -> ingredients per unit)
    - inventory: Inventory Ledger (read and conditional decrement)
    - order_store: Order Store (orders and line items)
    - placement: Order Placement Service (the atomic unit)
"""

from bobapos.services.inventory import InventoryLedger
from bobapos.services.order_store import OrderStore
from bobapos.services.recipes import RecipeIndex, RecipeLine

__all__ = ["InventoryLedger", "OrderStore", "RecipeIndex", "RecipeLine"]
