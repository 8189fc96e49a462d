"""
                Boba POS Order Service

Inventory-aware order placement for a multi-terminal point-of-sale:
validates ingredient stock, records the order and its line items, and
decrements inventory as one atomic unit.

Version: 1.0.0
License: MIT
"""

__version__ = "1.0.0"
