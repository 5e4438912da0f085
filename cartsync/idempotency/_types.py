"""
Idempotency types — what a submission guard remembers per key.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum, auto


# ═══════════════════════════════════════════════════════════════════════════════
# Record State
# ═══════════════════════════════════════════════════════════════════════════════


class RecordState(Enum):
    """
    Lifecycle of one guarded operation.

        PENDING → COMPLETED (value recorded)
                → FAILED (only when the policy keeps failures)
    """

    PENDING = auto()
    COMPLETED = auto()
    FAILED = auto()


@dataclass(frozen=True, slots=True)
class IdempotencyRecord[T]:
    """
    Stored state for a key.

    value is set only for COMPLETED, error only for FAILED. input_hash
    fingerprints the request that claimed the key, so a different request
    reusing the key is detected.
    """

    key: str
    state: RecordState
    value: T | None
    error: object | None
    created_at: datetime
    expires_at: datetime | None
    input_hash: str | None = None

    def expired_at(self, now: datetime) -> bool:
        return self.expires_at is not None and now > self.expires_at

    @property
    def is_pending(self) -> bool:
        return self.state is RecordState.PENDING

    @property
    def is_completed(self) -> bool:
        return self.state is RecordState.COMPLETED

    @property
    def is_failed(self) -> bool:
        return self.state is RecordState.FAILED


# ═══════════════════════════════════════════════════════════════════════════════
# Outcomes
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class IdempotencyResult[T]:
    """Value of the guarded operation; from_cache when it was not re-run."""

    value: T
    from_cache: bool
    key: str


class IdempotencyErrorKind(Enum):
    CONFLICT = auto()  # same key still pending
    TIMEOUT = auto()  # gave up waiting on a pending key
    STORE_ERROR = auto()
    EXECUTION = auto()  # the guarded operation itself failed
    INPUT_MISMATCH = auto()  # key reused for a different request


@dataclass(frozen=True, slots=True)
class IdempotencyError[E]:
    """original_error carries the operation's own error for EXECUTION."""

    kind: IdempotencyErrorKind
    message: str
    original_error: E | None = None


__all__ = (
    "RecordState",
    "IdempotencyRecord",
    "IdempotencyResult",
    "IdempotencyErrorKind",
    "IdempotencyError",
)
