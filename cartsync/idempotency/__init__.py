"""
Idempotency — execute at most once per key.

    from cartsync import idempotency as I

    store = I.MemoryStore()
    policy = I.Policy().with_ttl(hours=24).with_on_pending(I.FAIL)

    result = await I.run_idempotent(order_id, place_order, store, policy)
"""

from cartsync.idempotency._types import (
    RecordState,
    IdempotencyRecord,
    IdempotencyResult,
    IdempotencyErrorKind,
    IdempotencyError,
)
from cartsync.idempotency._store import StoreError, Store, MemoryStore
from cartsync.idempotency._policy import OnPending, WAIT, FAIL, Policy
from cartsync.idempotency._run import run_idempotent

__all__ = (
    # Types
    "RecordState",
    "IdempotencyRecord",
    "IdempotencyResult",
    "IdempotencyErrorKind",
    "IdempotencyError",
    # Store
    "StoreError",
    "Store",
    "MemoryStore",
    # Policy
    "OnPending",
    "WAIT",
    "FAIL",
    "Policy",
    # Run
    "run_idempotent",
)
