"""
Idempotent execution — run an operation at most once per key.

    result = await run_idempotent(order_id, submit_op, store, Policy().with_on_pending(FAIL))

    match result:
        case Ok(r) if r.from_cache:
            ...  # already placed, nothing re-sent
        case Ok(r):
            ...  # placed now
        case Error(e) if e.kind is IdempotencyErrorKind.CONFLICT:
            ...  # the same order is being placed right now
"""

from __future__ import annotations

import asyncio
import logging

from kungfu import Error, LazyCoroResult, Ok, Result

from cartsync.idempotency._policy import OnPending, Policy
from cartsync.idempotency._store import Store, StoreError
from cartsync.idempotency._types import (
    IdempotencyError,
    IdempotencyErrorKind,
    IdempotencyRecord,
    IdempotencyResult,
)

logger = logging.getLogger(__name__)

type Outcome[T, E] = Result[IdempotencyResult[T], IdempotencyError[E]]


def _store_error[T, E](err: StoreError) -> Outcome[T, E]:
    return Error(IdempotencyError(IdempotencyErrorKind.STORE_ERROR, err.message))


def _from_record[T, E](record: IdempotencyRecord[T], input_hash: str | None) -> Outcome[T, E] | None:
    """Terminal outcome for a settled record, None while it is pending."""
    if input_hash is not None and record.input_hash is not None and record.input_hash != input_hash:
        return Error(
            IdempotencyError(
                IdempotencyErrorKind.INPUT_MISMATCH,
                f"key {record.key} was used for a different request",
            )
        )
    if record.is_completed:
        logger.debug("idempotency hit for %s", record.key)
        return Ok(IdempotencyResult(value=record.value, from_cache=True, key=record.key))  # type: ignore[arg-type]
    if record.is_failed:
        return Error(
            IdempotencyError(
                IdempotencyErrorKind.EXECUTION,
                "cached failure",
                original_error=record.error,  # type: ignore[arg-type]
            )
        )
    return None


async def _execute[T, E](
    key: str,
    operation: LazyCoroResult[T, E],
    store: Store[T],
    policy: Policy,
) -> Outcome[T, E]:
    try:
        result = await operation
    except Exception as e:
        await store.delete(key)
        logger.warning("idempotent operation %s raised: %s", key, e)
        return Error(IdempotencyError(IdempotencyErrorKind.EXECUTION, str(e)))

    match result:
        case Ok(value):
            match await store.set_completed(key, value, policy.result_ttl):
                case Error(err):
                    return _store_error(err)
                case Ok(_):
                    return Ok(IdempotencyResult(value=value, from_cache=False, key=key))
        case Error(err):
            if policy.persist_failed:
                await store.set_failed(key, err, policy.failed_ttl or policy.result_ttl)
            else:
                await store.delete(key)
            return Error(
                IdempotencyError(
                    IdempotencyErrorKind.EXECUTION,
                    "operation returned an error",
                    original_error=err,
                )
            )


async def run_idempotent[T, E](
    key: str,
    operation: LazyCoroResult[T, E],
    store: Store[T],
    policy: Policy = Policy(),
    input_hash: str | None = None,
) -> Outcome[T, E]:
    """
    Execute operation unless key already has a settled result.

    Never raises: store problems, conflicts and the operation's own
    failures all come back as Error(IdempotencyError).
    """
    timeout = policy.wait_timeout.total_seconds()
    interval = policy.poll_interval.total_seconds()
    waited = 0.0

    while True:
        match await store.get(key):
            case Error(err):
                return _store_error(err)

            case Ok(None):
                match await store.set_pending(key, policy.result_ttl, input_hash):
                    case Error(err):
                        return _store_error(err)
                    case Ok(True):
                        return await _execute(key, operation, store, policy)
                    case Ok(_):
                        # lost the race, re-read what the winner wrote
                        continue

            case Ok(record):
                settled = _from_record(record, input_hash)
                if settled is not None:
                    return settled

                if policy.on_pending is OnPending.FAIL:
                    return Error(
                        IdempotencyError(IdempotencyErrorKind.CONFLICT, f"{key} is already in progress")
                    )
                if waited >= timeout:
                    return Error(
                        IdempotencyError(IdempotencyErrorKind.TIMEOUT, f"gave up waiting on {key}")
                    )
                await asyncio.sleep(interval)
                waited += interval


__all__ = ("run_idempotent",)
