"""
Order submission — create the order once per order id, then best-effort follow-ups.
"""

from __future__ import annotations

import hashlib
import json
import logging
from dataclasses import replace

from combinators import lift as L
from kungfu import Error, Ok, Result

from cartsync.checkout._types import (
    FailureKind,
    Notice,
    NoticeCode,
    OrderGateway,
    OrderPayload,
    SubmissionFailure,
    SubmissionReceipt,
)
from cartsync.idempotency import (
    FAIL,
    IdempotencyErrorKind,
    MemoryStore,
    Policy,
    Store,
    run_idempotent,
)

logger = logging.getLogger(__name__)

DEFAULT_POLICY = Policy().with_ttl(hours=24).with_on_pending(FAIL)

_FAILURE_KINDS = {
    IdempotencyErrorKind.EXECUTION: FailureKind.CREATE_ORDER_FAILED,
    IdempotencyErrorKind.CONFLICT: FailureKind.CONFLICT,
    IdempotencyErrorKind.TIMEOUT: FailureKind.CONFLICT,
    IdempotencyErrorKind.INPUT_MISMATCH: FailureKind.CONFLICT,
    IdempotencyErrorKind.STORE_ERROR: FailureKind.STORE_ERROR,
}


def payload_fingerprint(payload: OrderPayload) -> str:
    """Stable hash of what is being ordered; the terms timestamp is excluded."""
    body = payload.to_dict()
    body.pop("termsAcceptedAt", None)
    encoded = json.dumps(body, sort_keys=True, separators=(",", ":")).encode()
    return hashlib.sha256(encoded).hexdigest()


class OrderSubmitter:
    """
    Hands payloads to the gateway, guarded by order id.

    A second submit of a completed order returns the recorded receipt
    (from_cache=True) and the gateway is not called again. A submit that
    arrives while the same order id is in flight is a CONFLICT.
    """

    def __init__(
        self,
        gateway: OrderGateway,
        store: Store[SubmissionReceipt] | None = None,
        policy: Policy = DEFAULT_POLICY,
    ) -> None:
        self.gateway = gateway
        self.store: Store[SubmissionReceipt] = store if store is not None else MemoryStore()
        self.policy = policy

    async def _record_usage(self, payload: OrderPayload) -> tuple[Notice, ...]:
        if payload.coupon_code is None:
            return ()

        code = payload.coupon_code
        recorded = await L.catching_async(
            lambda: self.gateway.record_coupon_usage(code, payload.customer),
            on_error=str,
        )
        match recorded:
            case Ok(_):
                return ()
            case Error(e):
                logger.warning("failed to record usage of coupon %s for %s: %s", code, payload.order_id, e)
                return (
                    Notice(
                        NoticeCode.COUPON_USAGE_NOT_RECORDED,
                        f"Order placed, but usage of coupon {code} could not be recorded",
                        level="warning",
                    ),
                )

    async def _place(self, payload: OrderPayload) -> SubmissionReceipt:
        order_id = await self.gateway.create_order(payload)
        logger.info("order %s created (%s)", order_id or payload.order_id, payload.payment_method.value)
        warnings = await self._record_usage(payload)
        return SubmissionReceipt(order_id=order_id or payload.order_id, payload=payload, warnings=warnings)

    async def recorded(self, order_id: str) -> SubmissionReceipt | None:
        """Receipt of an already completed order id, or None."""
        match await self.store.get(order_id):
            case Ok(record) if record is not None and record.is_completed and record.value is not None:
                return replace(record.value, from_cache=True)
            case Ok(_):
                return None
            case Error(e):
                logger.warning("could not read order record %s: %s", order_id, e.message)
                return None

    async def submit(self, payload: OrderPayload) -> Result[SubmissionReceipt, SubmissionFailure]:
        operation = L.catching_async(
            lambda: self._place(payload),
            on_error=lambda e: f"{type(e).__name__}: {e}",
        )
        outcome = await run_idempotent(
            payload.order_id,
            operation,
            self.store,
            self.policy,
            input_hash=payload_fingerprint(payload),
        )

        match outcome:
            case Ok(done):
                receipt = replace(done.value, from_cache=True) if done.from_cache else done.value
                return Ok(receipt)
            case Error(err):
                kind = _FAILURE_KINDS[err.kind]
                message = str(err.original_error) if err.original_error is not None else err.message
                logger.warning("order %s not submitted: %s (%s)", payload.order_id, kind.value, message)
                return Error(SubmissionFailure(kind=kind, message=message, order_id=payload.order_id))


__all__ = ("DEFAULT_POLICY", "payload_fingerprint", "OrderSubmitter")
