"""
Order Placement Error Taxonomy

Raised inside a single placement attempt by the ledger, the store and the
placement service. The service converts every one of them into a
``PlacementResult`` before returning, so they never reach the HTTP layer.

    InvalidInput             caller error, surfaced immediately
    InsufficientInventory    business rule, surfaced with ingredient ids
    TransientStorageConflict concurrent transaction, retried with backoff
    StorageFailure           unrecoverable, rolled back and logged
"""

from typing import Iterable

from sqlalchemy.exc import DBAPIError


class PlacementError(Exception):
    """Base class for everything that stops an attempt."""

    def __init__(self, reason: str):
        super().__init__(reason)
        self.reason = reason


class InvalidInput(PlacementError):
    """The request itself is wrong. Never retried."""


class InsufficientInventory(PlacementError):
    """
    At least one ingredient cannot cover the order. Never retried.

    Only ingredient identifiers are carried; stock counts stay internal.
    """

    def __init__(self, ingredient_ids: Iterable[int]):
        self.ingredient_ids = tuple(sorted(set(ingredient_ids)))
        ids = ", ".join(str(i) for i in self.ingredient_ids)
        super().__init__(f"Insufficient inventory for ingredient ID(s): {ids}")


class TransientStorageConflict(PlacementError):
    """Another transaction got in the way. The whole attempt may be re-run."""


class StorageFailure(PlacementError):
    """The database failed in a way a retry will not fix."""


# PostgreSQL serialization_failure and deadlock_detected
TRANSIENT_SQLSTATES = frozenset({"40001", "40P01"})

# sqlite3 reports lock contention only through the message
TRANSIENT_SQLITE_MESSAGES = ("database is locked", "database is busy", "database table is locked")


def is_transient_error(exc: BaseException) -> bool:
    """
    Decide whether a driver error came from a concurrent transaction.

    Args:
        exc: Exception raised by SQLAlchemy (usually a DBAPIError)

    Returns:
        bool: True if re-running the transaction from scratch may succeed
    """
    if not isinstance(exc, DBAPIError):
        return False

    orig = exc.orig
    sqlstate = getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)
    if sqlstate in TRANSIENT_SQLSTATES:
        return True

    message = str(orig).lower()
    return any(m in message for m in TRANSIENT_SQLITE_MESSAGES)
