"""
Idempotency store — Result-returning storage protocol + in-memory backend.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, replace
from datetime import datetime, timedelta
from typing import Protocol

from kungfu import Error, Ok, Result

from cartsync._types import Clock, utc_now
from cartsync.idempotency._types import IdempotencyRecord, RecordState


@dataclass(frozen=True, slots=True)
class StoreError:
    message: str
    cause: Exception | None = None


class Store[T](Protocol):
    """
    Where submission records live.

    Every method returns a Result; a backend never raises into the guard.
    set_pending must be compare-and-swap: Ok(False) when the key is taken.
    """

    async def get(self, key: str) -> Result[IdempotencyRecord[T] | None, StoreError]: ...

    async def set_pending(
        self,
        key: str,
        ttl: timedelta | None,
        input_hash: str | None = None,
    ) -> Result[bool, StoreError]: ...

    async def set_completed(
        self, key: str, value: T, ttl: timedelta | None
    ) -> Result[None, StoreError]: ...

    async def set_failed(
        self, key: str, error: object, ttl: timedelta | None
    ) -> Result[None, StoreError]: ...

    async def delete(self, key: str) -> Result[bool, StoreError]: ...


class MemoryStore[T]:
    """
    In-process store.

    Single instance only: no cross-process locking, nothing survives a
    restart. Expiry is judged by the injected clock.
    """

    def __init__(self, clock: Clock = utc_now) -> None:
        self._records: dict[str, IdempotencyRecord[T]] = {}
        self._lock = asyncio.Lock()
        self._clock = clock

    def _live(self, key: str) -> IdempotencyRecord[T] | None:
        record = self._records.get(key)
        if record is not None and record.expired_at(self._clock()):
            del self._records[key]
            return None
        return record

    def _expiry(self, ttl: timedelta | None) -> datetime | None:
        return self._clock() + ttl if ttl else None

    async def get(self, key: str) -> Result[IdempotencyRecord[T] | None, StoreError]:
        async with self._lock:
            return Ok(self._live(key))

    async def set_pending(
        self,
        key: str,
        ttl: timedelta | None,
        input_hash: str | None = None,
    ) -> Result[bool, StoreError]:
        async with self._lock:
            if self._live(key) is not None:
                return Ok(False)
            self._records[key] = IdempotencyRecord(
                key=key,
                state=RecordState.PENDING,
                value=None,
                error=None,
                created_at=self._clock(),
                expires_at=self._expiry(ttl),
                input_hash=input_hash,
            )
            return Ok(True)

    async def set_completed(
        self, key: str, value: T, ttl: timedelta | None
    ) -> Result[None, StoreError]:
        async with self._lock:
            existing = self._records.get(key)
            if existing is None:
                return Error(StoreError(f"no pending record for {key}"))
            self._records[key] = replace(
                existing,
                state=RecordState.COMPLETED,
                value=value,
                expires_at=self._expiry(ttl),
            )
            return Ok(None)

    async def set_failed(
        self, key: str, error: object, ttl: timedelta | None
    ) -> Result[None, StoreError]:
        async with self._lock:
            existing = self._records.get(key)
            if existing is None:
                return Error(StoreError(f"no pending record for {key}"))
            self._records[key] = replace(
                existing,
                state=RecordState.FAILED,
                error=error,
                expires_at=self._expiry(ttl),
            )
            return Ok(None)

    async def delete(self, key: str) -> Result[bool, StoreError]:
        async with self._lock:
            return Ok(self._records.pop(key, None) is not None)


__all__ = ("StoreError", "Store", "MemoryStore")
